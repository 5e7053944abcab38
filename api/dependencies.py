"""
FastAPI dependencies (shared across routes).

Every request gets its own DB session, user store, session adapter and
identity resolver; the services are assembled from those explicitly.
"""

from __future__ import annotations

from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from auth.identity import Identity, IdentityResolver
from auth.login import LoginService
from auth.password import CredentialHasher
from auth.registration import RegistrationService
from auth.stores import MappingSessionStore
from config.settings import config
from database.session import get_db_session
from database.user_store import SqlUserStore


async def db_session(session: AsyncSession = Depends(get_db_session)) -> AsyncGenerator[AsyncSession, None]:
    """Re-export so routes import from a single place."""
    yield session


@lru_cache(maxsize=1)
def get_hasher() -> CredentialHasher:
    return CredentialHasher.from_settings(config)


def get_user_store(session: AsyncSession = Depends(db_session)) -> SqlUserStore:
    return SqlUserStore(session)


def get_resolver(
    request: Request,
    users: SqlUserStore = Depends(get_user_store),
) -> IdentityResolver:
    return IdentityResolver(MappingSessionStore(request.session), users, config.session_key)


def get_login_service(
    users: SqlUserStore = Depends(get_user_store),
    resolver: IdentityResolver = Depends(get_resolver),
    hasher: CredentialHasher = Depends(get_hasher),
) -> LoginService:
    return LoginService(users, resolver, hasher, strategy=config.login_strategy)


def get_registration_service(
    users: SqlUserStore = Depends(get_user_store),
    hasher: CredentialHasher = Depends(get_hasher),
) -> RegistrationService:
    return RegistrationService(users, hasher)


async def get_identity(resolver: IdentityResolver = Depends(get_resolver)) -> Identity:
    return await resolver.identity()


async def require_identity(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return identity
