"""
Tests for the SQLAlchemy user store against a temporary SQLite database.
"""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from auth.errors import DuplicateUserError
from database.session import build_session_factory, init_models
from database.user_store import SqlUserStore, _duplicate_field


@pytest_asyncio.fixture
async def store(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}", poolclass=NullPool)
    await init_models(engine)
    factory = build_session_factory(engine)
    async with factory() as session:
        yield SqlUserStore(session)
    await engine.dispose()


async def _alice(store):
    return await store.create(
        username="alice",
        email="alice@example.com",
        password_hash="hash",
        password_version=2,
    )


class TestSqlUserStore:
    @pytest.mark.asyncio
    async def test_create_assigns_id(self, store):
        user = await _alice(store)
        assert isinstance(user.user_id, uuid.UUID)

    @pytest.mark.asyncio
    async def test_find_by_username_or_email(self, store):
        user = await _alice(store)
        assert (await store.find_by_username_or_email("alice")).user_id == user.user_id
        assert (await store.find_by_username_or_email("alice@example.com")).user_id == user.user_id
        assert await store.find_by_username_or_email("bob") is None

    @pytest.mark.asyncio
    async def test_find_by_username_ignores_email(self, store):
        await _alice(store)
        assert await store.find_by_username("alice") is not None
        assert await store.find_by_username("alice@example.com") is None

    @pytest.mark.asyncio
    async def test_find_by_id_accepts_string(self, store):
        user = await _alice(store)
        assert (await store.find_by_id(str(user.user_id))).username == "alice"
        assert await store.find_by_id(str(uuid.uuid4())) is None
        assert await store.find_by_id("not-a-uuid") is None

    @pytest.mark.asyncio
    async def test_duplicate_username(self, store):
        await _alice(store)
        with pytest.raises(DuplicateUserError) as exc_info:
            await store.create(
                username="alice",
                email="other@example.com",
                password_hash="hash",
                password_version=2,
            )
        assert exc_info.value.field == "username"
        assert await store.find_by_username_or_email("other@example.com") is None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, store):
        await _alice(store)
        with pytest.raises(DuplicateUserError) as exc_info:
            await store.create(
                username="alice2",
                email="alice@example.com",
                password_hash="hash",
                password_version=2,
            )
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_save_persists_changes(self, store):
        user = await _alice(store)
        user.password_hash = "new-hash"
        user.password_version = 2
        await store.save(user)

        reloaded = await store.find_by_id(user.user_id)
        assert reloaded.password_hash == "new-hash"


class TestDuplicateField:
    @pytest.mark.parametrize(
        "message, field",
        [
            ("UNIQUE constraint failed: users.email", "email"),
            ("UNIQUE constraint failed: users.username", "username"),
            (
                'duplicate key value violates unique constraint "users_username_key"\n'
                "DETAIL:  Key (username)=(email_admin) already exists.",
                "username",
            ),
            (
                'duplicate key value violates unique constraint "users_email_key"\n'
                "DETAIL:  Key (email)=(username@example.com) already exists.",
                "email",
            ),
            ("NOT NULL constraint failed: users.password_hash", None),
        ],
    )
    def test_field_is_taken_from_the_constraint(self, message, field):
        exc = IntegrityError("INSERT INTO users", {}, Exception(message))
        assert _duplicate_field(exc) == field
