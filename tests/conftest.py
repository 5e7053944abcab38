"""
Shared fixtures: in-memory user store, dict-backed sessions, fast hasher.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

import pytest

from auth.errors import DuplicateUserError
from auth.identity import IdentityResolver
from auth.password import CredentialHasher
from auth.stores import MappingSessionStore
from database.models import User

SESSION_KEY = "testkey"
HASH_METHOD = "sha256"
HASH_KEY = "hashkey"


class FakeUserStore:
    """In-memory ``UserStore`` with the same uniqueness rules as the SQL store."""

    def __init__(self) -> None:
        self.users: Dict[uuid.UUID, User] = {}
        self.id_lookups = 0
        self.saves = 0
        self.save_error: Optional[Exception] = None

    def add(self, **fields: Any) -> User:
        fields.setdefault("user_id", uuid.uuid4())
        user = User(**fields)
        self.users[user.user_id] = user
        return user

    async def find_by_username_or_email(self, identifier: str) -> Optional[User]:
        return next(
            (u for u in self.users.values() if identifier in (u.username, u.email)),
            None,
        )

    async def find_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)

    async def find_by_id(self, user_id: Any) -> Optional[User]:
        self.id_lookups += 1
        try:
            return self.users.get(uuid.UUID(str(user_id)))
        except ValueError:
            return None

    async def create(self, **fields: Any) -> User:
        for existing in self.users.values():
            if existing.username == fields.get("username"):
                raise DuplicateUserError("A user with this username already exists", field="username")
            if existing.email == fields.get("email"):
                raise DuplicateUserError("A user with this email already exists", field="email")
        return self.add(**fields)

    async def save(self, user: User) -> None:
        if self.save_error is not None:
            raise self.save_error
        self.saves += 1
        self.users[user.user_id] = user


@pytest.fixture
def hasher() -> CredentialHasher:
    return CredentialHasher(HASH_METHOD, HASH_KEY, bcrypt_rounds=4)


@pytest.fixture
def users() -> FakeUserStore:
    return FakeUserStore()


@pytest.fixture
def session_data() -> dict:
    return {}


@pytest.fixture
def resolver(session_data, users) -> IdentityResolver:
    return IdentityResolver(MappingSessionStore(session_data), users, SESSION_KEY)
