"""
SQLAlchemy-backed user store.

Each write commits on its own; a failed write rolls the session back and
propagates.  Unique-constraint violations are reported as
``DuplicateUserError`` so callers can tell them apart from outages.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import DuplicateUserError
from database.models import User

logger = logging.getLogger(__name__)


def _to_uuid(value: str | uuid.UUID) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


# SQLite: "UNIQUE constraint failed: users.email"
# Postgres: duplicate key value violates unique constraint "users_email_key"
# Only the first line is searched: later lines echo the offending value.
_DUPLICATE_PATTERNS = {
    field: re.compile(rf"\busers\.{field}\b|\busers_{field}_key\b")
    for field in ("email", "username")
}


def _duplicate_field(exc: IntegrityError) -> Optional[str]:
    lines = str(exc.orig).lower().splitlines()
    detail = lines[0] if lines else ""
    for field, pattern in _DUPLICATE_PATTERNS.items():
        if pattern.search(detail):
            return field
    return None


class SqlUserStore:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def _first(self, stmt) -> Optional[User]:
        result = await self._session.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def find_by_username_or_email(self, identifier: str) -> Optional[User]:
        return await self._first(
            select(User).where(or_(User.username == identifier, User.email == identifier))
        )

    async def find_by_username(self, username: str) -> Optional[User]:
        return await self._first(select(User).where(User.username == username))

    async def find_by_id(self, user_id: Any) -> Optional[User]:
        uid = _to_uuid(user_id)
        if uid is None:
            return None
        return await self._session.get(User, uid)

    async def create(self, **fields: Any) -> User:
        user = User(**fields)
        self._session.add(user)
        await self._commit()
        logger.debug("Created user %s (%s)", user.username, user.user_id)
        return user

    async def save(self, user: User) -> None:
        self._session.add(user)
        await self._commit()

    async def _commit(self) -> None:
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            field = _duplicate_field(exc)
            raise DuplicateUserError(
                f"A user with this {field or 'username or email'} already exists",
                field=field,
            ) from exc
