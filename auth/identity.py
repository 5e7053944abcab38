"""
Resolve the authenticated user bound to a session.

A resolver belongs to exactly one session (one request in the web app).
The first lookup produces an immutable ``Identity`` which is kept for the
rest of the resolver's life, so repeated checks hit the user store once.
Never share a resolver between sessions; build a new one per request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from auth.stores import SessionStore, UserStore
from database.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


ANONYMOUS = Identity()


class IdentityResolver:
    def __init__(self, sessions: SessionStore, users: UserStore, session_key: str):
        self._sessions = sessions
        self._users = users
        self._session_key = session_key
        self._identity: Optional[Identity] = None

    async def identity(self) -> Identity:
        if self._identity is None:
            self._identity = await self._resolve()
        return self._identity

    async def _resolve(self) -> Identity:
        user_id = self._sessions.get(self._session_key)
        if user_id is None:
            return ANONYMOUS
        user = await self._users.find_by_id(user_id)
        if user is None:
            logger.info("Session bound to unknown user %s", user_id)
            return ANONYMOUS
        return Identity(user=user)

    async def current_user(self) -> Optional[User]:
        return (await self.identity()).user

    async def is_authenticated(self) -> bool:
        return (await self.identity()).is_authenticated

    def bind(self, user: User) -> Identity:
        """Bind the session to ``user`` and make it the resolved identity."""
        self._sessions.set(self._session_key, str(user.user_id))
        self._identity = Identity(user=user)
        return self._identity

    def logout(self) -> None:
        """Drop the session binding and forget the resolved identity (idempotent)."""
        self._sessions.remove(self._session_key)
        self._identity = None
