"""
Auth API routes — register, login, logout, me.

Route prefix: /api/v1/auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies import (
    get_login_service,
    get_registration_service,
    get_resolver,
    require_identity,
)
from auth.identity import Identity, IdentityResolver
from auth.login import LoginService
from auth.registration import RegistrationService
from database.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class RegisterRequest(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""
    password_confirm: str = ""


class LoginRequest(BaseModel):
    identifier: str
    password: str


class UserResponse(BaseModel):
    user_id: str
    username: str
    email: str


def _summary(user: User) -> Dict[str, Any]:
    return {
        "user_id": str(user.user_id),
        "username": user.username,
        "email": user.email,
    }


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register(
    req: RegisterRequest,
    registration: RegistrationService = Depends(get_registration_service),
):
    """Register a new user.  Does not log the user in."""
    user, violations = await registration.register_user(req.model_dump())
    if violations:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"violations": [v.model_dump() for v in violations]},
        )

    return _summary(user)


@router.post("/login", response_model=UserResponse)
async def login(
    req: LoginRequest,
    service: LoginService = Depends(get_login_service),
    resolver: IdentityResolver = Depends(get_resolver),
) -> Dict[str, Any]:
    """Login with username or email + password."""
    if not await service.login(req.identifier, req.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    user = await resolver.current_user()
    return _summary(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(service: LoginService = Depends(get_login_service)) -> Response:
    service.logout()
    logger.debug("Session cleared")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
async def me(identity: Identity = Depends(require_identity)) -> Dict[str, Any]:
    return _summary(identity.user)
