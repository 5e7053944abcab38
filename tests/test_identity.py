"""
Tests for session → user resolution.
"""

import uuid

import pytest

from auth.identity import ANONYMOUS, IdentityResolver
from auth.stores import MappingSessionStore

from conftest import SESSION_KEY


def _user(users):
    return users.add(
        username="alice",
        email="alice@example.com",
        password_hash="x",
        password_version=2,
    )


class TestIdentityResolver:
    @pytest.mark.asyncio
    async def test_no_session_key_is_anonymous(self, resolver, users):
        assert await resolver.current_user() is None
        assert not await resolver.is_authenticated()
        assert await resolver.identity() is ANONYMOUS
        assert users.id_lookups == 0

    @pytest.mark.asyncio
    async def test_bound_user_is_resolved(self, resolver, users, session_data):
        user = _user(users)
        session_data[SESSION_KEY] = str(user.user_id)

        assert await resolver.current_user() is user
        assert await resolver.is_authenticated()

    @pytest.mark.asyncio
    async def test_lookup_is_cached(self, resolver, users, session_data):
        user = _user(users)
        session_data[SESSION_KEY] = str(user.user_id)

        await resolver.current_user()
        await resolver.current_user()
        await resolver.is_authenticated()
        assert users.id_lookups == 1

    @pytest.mark.asyncio
    async def test_missing_user_is_cached_as_anonymous(self, resolver, users, session_data):
        session_data[SESSION_KEY] = str(uuid.uuid4())

        assert await resolver.current_user() is None
        assert await resolver.current_user() is None
        assert users.id_lookups == 1

    @pytest.mark.asyncio
    async def test_bind_sets_session_and_cache(self, resolver, users, session_data):
        user = _user(users)

        identity = resolver.bind(user)
        assert identity.user is user
        assert session_data[SESSION_KEY] == str(user.user_id)
        assert await resolver.current_user() is user
        assert users.id_lookups == 0

    @pytest.mark.asyncio
    async def test_logout_clears_binding(self, resolver, users, session_data):
        user = _user(users)
        resolver.bind(user)

        resolver.logout()
        assert SESSION_KEY not in session_data
        assert not await resolver.is_authenticated()

        fresh = IdentityResolver(MappingSessionStore(session_data), users, SESSION_KEY)
        assert not await fresh.is_authenticated()

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, resolver):
        resolver.logout()
        resolver.logout()
        assert not await resolver.is_authenticated()

    @pytest.mark.asyncio
    async def test_resolvers_do_not_share_state(self, users):
        user = _user(users)
        first_session, second_session = {}, {}
        first = IdentityResolver(MappingSessionStore(first_session), users, SESSION_KEY)
        second = IdentityResolver(MappingSessionStore(second_session), users, SESSION_KEY)

        first.bind(user)
        assert await first.is_authenticated()
        assert not await second.is_authenticated()
