"""
Collaborator contracts consumed by the authentication core.

The core never reaches for a store on its own: every service takes the
stores it needs as constructor arguments.
"""

from __future__ import annotations

from typing import Any, MutableMapping, Optional, Protocol

from database.models import User


class UserStore(Protocol):
    """Async persistence for ``User`` rows; enforces username/email uniqueness."""

    async def find_by_username_or_email(self, identifier: str) -> Optional[User]: ...

    async def find_by_username(self, username: str) -> Optional[User]: ...

    async def find_by_id(self, user_id: Any) -> Optional[User]: ...

    async def create(self, **fields: Any) -> User: ...

    async def save(self, user: User) -> None: ...


class SessionStore(Protocol):
    """Opaque per-session key/value storage."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MappingSessionStore:
    """
    ``SessionStore`` over any mutable mapping.

    Wraps Starlette's ``request.session`` in the web app and a plain dict
    in tests and scripts.
    """

    def __init__(self, backing: Optional[MutableMapping[str, Any]] = None) -> None:
        self._data = backing if backing is not None else {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
