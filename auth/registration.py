"""
User registration: validate the submitted fields, then create the user.

Validation failures are an ordinary outcome and come back as a list of
``Violation`` objects.  An empty list means the user was created.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Mapping

from pydantic import BaseModel, ConfigDict, EmailStr, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from auth.errors import DuplicateUserError
from auth.password import CredentialHasher
from auth.stores import UserStore
from database.models import User

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8


class Violation(BaseModel):
    field: str
    message: str


class RegistrationRequest(BaseModel):
    """Submitted registration fields.  Never persisted as-is."""

    model_config = ConfigDict(extra="ignore", validate_default=True)

    username: str = ""
    email: EmailStr = ""
    password: str = ""
    password_confirm: str = ""

    @field_validator("username", "email", "password", "password_confirm", mode="before")
    @classmethod
    def _present(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == "":
            raise PydanticCustomError(
                "missing_value",
                "Field {field} is required",
                {"field": info.field_name},
            )
        return value

    @field_validator("password")
    @classmethod
    def _long_enough(cls, value: str) -> str:
        if len(value) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError(
                "password_too_short",
                "Field password must be at least {min_length} characters long",
                {"min_length": PASSWORD_MIN_LENGTH},
            )
        return value


def _violations(exc: ValidationError) -> List[Violation]:
    out: List[Violation] = []
    for err in exc.errors():
        loc = err.get("loc") or ("__root__",)
        field = str(loc[0])
        if err.get("type") == "value_error" and field == "email":
            message = "Field email must be an email address"
        else:
            message = err.get("msg", "Invalid value")
        out.append(Violation(field=field, message=message))
    return out


def _confirmation_violations(values: Mapping[str, Any]) -> List[Violation]:
    # compared on the raw input so a mismatch is reported even when the password itself is invalid
    confirm = values.get("password_confirm")
    if confirm is None or confirm == "" or confirm == values.get("password"):
        return []
    return [Violation(field="password_confirm", message="The passwords are not the same")]


def validate_registration(values: Mapping[str, Any]) -> tuple[RegistrationRequest | None, List[Violation]]:
    """Validate ``values``; returns ``(request, [])`` or ``(None, violations)``."""
    request: RegistrationRequest | None = None
    violations: List[Violation] = []
    try:
        request = RegistrationRequest.model_validate(dict(values))
    except ValidationError as exc:
        violations = _violations(exc)
    violations += _confirmation_violations(values)
    if violations:
        return None, violations
    return request, []


class RegistrationService:
    def __init__(self, users: UserStore, hasher: CredentialHasher):
        self._users = users
        self._hasher = hasher

    async def register(self, values: Mapping[str, Any]) -> List[Violation]:
        _, violations = await self.register_user(values)
        return violations

    async def register_user(self, values: Mapping[str, Any]) -> tuple[User | None, List[Violation]]:
        """Like ``register`` but also hands back the created user."""
        request, violations = validate_registration(values)
        if request is None:
            logger.info(
                "Registration rejected for %r: %s",
                values.get("username"),
                ", ".join(v.field for v in violations),
            )
            return None, violations

        hashed = await asyncio.to_thread(self._hasher.hash, request.password)
        try:
            user = await self._users.create(
                username=request.username,
                email=str(request.email),
                password_hash=hashed.hash,
                password_version=hashed.version,
            )
        except DuplicateUserError as exc:
            logger.info("Registration rejected for %r: %s", request.username, exc)
            return None, [Violation(field=exc.field or "username", message=str(exc))]

        logger.info("Registered user %s (%s)", user.username, user.user_id)
        return user, []
