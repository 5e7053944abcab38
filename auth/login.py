"""
Login procedure.

Two credential-matching strategies are supported:

``verified_hash`` (default)
    Find the user by username *or* email, verify the password with the
    scheme recorded on the row, re-hash legacy rows under the latest
    scheme, then bind the session.

``legacy_equality``
    Find the user by username and compare the stored hash with the legacy
    keyed hash of the password.  No version dispatch, no upgrade.

Both return ``True``/``False`` only; an unknown identifier and a wrong
password are indistinguishable to the caller.
"""

from __future__ import annotations

import asyncio
import hmac
import logging
from enum import Enum
from typing import Optional

from auth.identity import IdentityResolver
from auth.password import CredentialHasher
from auth.stores import UserStore
from database.models import User

logger = logging.getLogger(__name__)


class LoginStrategy(str, Enum):
    VERIFIED_HASH = "verified_hash"
    LEGACY_EQUALITY = "legacy_equality"


class LoginService:
    def __init__(
        self,
        users: UserStore,
        resolver: IdentityResolver,
        hasher: CredentialHasher,
        strategy: LoginStrategy | str = LoginStrategy.VERIFIED_HASH,
    ):
        self._users = users
        self._resolver = resolver
        self._hasher = hasher
        self._strategy = LoginStrategy(strategy)

    @property
    def strategy(self) -> LoginStrategy:
        return self._strategy

    async def login(self, identifier: str, password: str) -> bool:
        if not identifier or not password:
            return False

        if self._strategy is LoginStrategy.LEGACY_EQUALITY:
            user = await self._match_legacy_equality(identifier, password)
        else:
            user = await self._match_verified_hash(identifier, password)

        if user is None:
            logger.info("Login failed for %r", identifier)
            return False

        # the session is bound only once every store write has succeeded
        if self._strategy is LoginStrategy.VERIFIED_HASH:
            await self._upgrade_hash(user, password)

        self._resolver.bind(user)
        logger.info("Login: %s (%s)", user.username, user.user_id)
        return True

    def logout(self) -> None:
        self._resolver.logout()

    async def _match_verified_hash(self, identifier: str, password: str) -> Optional[User]:
        user = await self._users.find_by_username_or_email(identifier)
        if user is None:
            await asyncio.to_thread(self._hasher.dummy_verify, password)
            return None
        ok = await asyncio.to_thread(
            self._hasher.verify, password, user.password_hash, user.password_version
        )
        if not ok and self._hasher.needs_upgrade(user.password_version):
            # legacy verification is cheap; pay one bcrypt check like every other failure
            await asyncio.to_thread(self._hasher.dummy_verify, password)
        return user if ok else None

    async def _match_legacy_equality(self, identifier: str, password: str) -> Optional[User]:
        expected = self._hasher.hash_legacy(password)
        user = await self._users.find_by_username(identifier)
        if user is None:
            return None
        if not hmac.compare_digest(expected.encode(), (user.password_hash or "").encode()):
            return None
        return user

    async def _upgrade_hash(self, user: User, password: str) -> None:
        if not self._hasher.needs_upgrade(user.password_version):
            return
        old_hash, old_version = user.password_hash, user.password_version
        hashed = await asyncio.to_thread(self._hasher.hash, password)
        user.password_hash = hashed.hash
        user.password_version = hashed.version
        try:
            await self._users.save(user)
        except Exception:
            user.password_hash, user.password_version = old_hash, old_version
            raise
        logger.info(
            "Upgraded password hash for %s from v%s to v%s",
            user.username,
            old_version,
            hashed.version,
        )
