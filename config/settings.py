"""
Application settings loaded from environment variables.
"""

import hashlib
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Session binding ─────────────────────────────────────────────────
    session_key: str = "auth_user_id"            # key holding the user id in the session
    session_secret: str = "change-me-session-secret"   # signs the session cookie
    session_cookie: str = "session"
    session_max_age: int = 1209600               # 14 days

    # ── Password hashing ────────────────────────────────────────────────
    hash_method: str = "sha256"                  # legacy (v1) HMAC digest
    hash_key: str = "change-me-hash-key"         # legacy (v1) HMAC secret
    bcrypt_rounds: int = 12

    # ── Login ───────────────────────────────────────────────────────────
    login_strategy: Literal["verified_hash", "legacy_equality"] = "verified_hash"

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./auth.db"

    # ── Server ───────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["*"]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }

    @field_validator("hash_method")
    @classmethod
    def _known_hash_method(cls, value: str) -> str:
        method = value.strip().lower()
        if method not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash method: {value!r}")
        return method

    @field_validator("bcrypt_rounds")
    @classmethod
    def _valid_rounds(cls, value: int) -> int:
        # bcrypt.gensalt accepts 4..31
        if not 4 <= value <= 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")
        return value


config = Settings()
