"""
Password hashing and verification.

Two schemes coexist, tagged by the integer version stored next to each hash:

  1  legacy keyed HMAC; digest method and key come from configuration,
     no per-password salt.  Kept only so existing records keep verifying.
  2  bcrypt with automatic salting and a configurable work factor.

New hashes are always produced under ``LATEST_VERSION``.  Verification
dispatches on the stored version through a closed table; a version with
no registered scheme fails closed.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from enum import IntEnum
from typing import Dict, NamedTuple, Optional, Union

import bcrypt

from auth.errors import UnknownHashVersionError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
_BCRYPT_MAX_BYTES = 72


class HashVersion(IntEnum):
    LEGACY_HMAC = 1
    BCRYPT = 2


LATEST_VERSION = HashVersion.BCRYPT


class HashedPassword(NamedTuple):
    hash: str
    version: int


class LegacyHmacScheme:
    """Version 1: hex ``HMAC(hash_key, plaintext)`` using ``hash_method``."""

    version = HashVersion.LEGACY_HMAC

    def __init__(self, hash_method: str, hash_key: str) -> None:
        if hash_method not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash method: {hash_method!r}")
        self._method = hash_method
        self._key = hash_key.encode()

    def hash(self, plaintext: str) -> str:
        return hmac.new(self._key, plaintext.encode(), self._method).hexdigest()

    def verify(self, plaintext: str, password_hash: str) -> bool:
        return hmac.compare_digest(
            self.hash(plaintext).encode(), password_hash.encode()
        )


class BcryptScheme:
    """Version 2: bcrypt (auto-salted, work factor ``rounds``)."""

    version = HashVersion.BCRYPT

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    @staticmethod
    def _encode(plaintext: str) -> bytes:
        return plaintext.encode()[:_BCRYPT_MAX_BYTES]

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(self._encode(plaintext), salt).decode()

    def verify(self, plaintext: str, password_hash: str) -> bool:
        """Constant-time comparison against a bcrypt hash."""
        try:
            return bcrypt.checkpw(self._encode(plaintext), password_hash.encode())
        except (ValueError, TypeError):
            # malformed or truncated stored hash
            return False


PasswordScheme = Union[LegacyHmacScheme, BcryptScheme]


class CredentialHasher:
    """
    Produces and verifies versioned password hashes.

    The scheme table is fixed at construction: one legacy scheme and one
    current scheme.  Adding a version means adding a ``HashVersion`` member
    and registering its scheme here.
    """

    def __init__(
        self,
        hash_method: str,
        hash_key: str,
        bcrypt_rounds: int = 12,
    ) -> None:
        self._legacy = LegacyHmacScheme(hash_method, hash_key)
        self._current = BcryptScheme(bcrypt_rounds)
        self._schemes: Dict[HashVersion, PasswordScheme] = {
            self._legacy.version: self._legacy,
            self._current.version: self._current,
        }
        self._dummy_hash: Optional[str] = None

    @classmethod
    def from_settings(cls, settings) -> "CredentialHasher":
        return cls(
            hash_method=settings.hash_method,
            hash_key=settings.hash_key,
            bcrypt_rounds=settings.bcrypt_rounds,
        )

    def scheme_for(self, version: object) -> PasswordScheme:
        """Return the scheme registered for ``version`` or raise ``UnknownHashVersionError``."""
        if isinstance(version, bool) or not isinstance(version, int):
            raise UnknownHashVersionError(version)
        try:
            return self._schemes[HashVersion(version)]
        except (ValueError, KeyError):
            raise UnknownHashVersionError(version) from None

    def hash(self, plaintext: str) -> HashedPassword:
        """Hash ``plaintext`` under the latest version."""
        if not plaintext:
            raise ValueError("Cannot hash an empty password")
        return HashedPassword(self._current.hash(plaintext), int(LATEST_VERSION))

    def hash_legacy(self, plaintext: str) -> str:
        """Deterministic version-1 hash; never used for new records."""
        return self._legacy.hash(plaintext)

    def verify(self, plaintext: str, password_hash: str, version: object) -> bool:
        if not plaintext or not password_hash:
            return False
        try:
            scheme = self.scheme_for(version)
        except UnknownHashVersionError as exc:
            logger.error("Refusing to verify password: %s", exc)
            return False
        return scheme.verify(plaintext, password_hash)

    def needs_upgrade(self, version: object) -> bool:
        return version != LATEST_VERSION

    def dummy_verify(self, plaintext: str) -> None:
        """Spend the same work as a real verification when there is no user to check."""
        if self._dummy_hash is None:
            self._dummy_hash = self._current.hash("dummy-password-not-used-for-auth")
        self._current.verify(plaintext or "", self._dummy_hash)
