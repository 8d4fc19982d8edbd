"""Auth API — signup, login, status, current user.

Learn: Routes for account lifecycle:
- POST /auth/signup  → create a new account (open)
- POST /auth/login   → email/password → bearer token (open)
- GET  /auth/status  → the caller's status (auth)
- PATCH /auth/status → change the caller's status (auth)
- GET  /auth/me      → the caller's account and post ids (auth)
"""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from postfeed.auth.dependencies import get_current_user_id, get_token_service
from postfeed.auth.tokens import TokenService
from postfeed.db.engine import get_db
from postfeed.schemas.account import (
    CurrentUserRead,
    LoginRequest,
    SignupRequest,
    StatusRead,
    StatusUpdate,
    TokenResponse,
    UserRead,
)
from postfeed.services.account_service import AccountService

router = APIRouter(prefix="/auth")


def _svc(
    request: Request,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AccountService:
    return AccountService(db, tokens, request.app.state.settings)


@router.post("/signup", response_model=UserRead, status_code=201)
async def signup(body: SignupRequest, svc: AccountService = Depends(_svc)):
    """Create a new account. 409 if the email is already registered."""
    return await svc.signup(email=body.email, name=body.name, password=body.password)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, svc: AccountService = Depends(_svc)):
    result = await svc.login(email=body.email, password=body.password)
    return TokenResponse(
        access_token=result.token,
        user_id=result.user_id,
        expires_at=result.expires_at,
    )


@router.get("/status", response_model=StatusRead)
async def get_status(
    user_id: uuid.UUID = Depends(get_current_user_id),
    svc: AccountService = Depends(_svc),
):
    return StatusRead(status=await svc.get_status(user_id))


@router.patch("/status", response_model=StatusRead)
async def set_status(
    body: StatusUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    svc: AccountService = Depends(_svc),
):
    return StatusRead(status=await svc.set_status(user_id, body.status))


@router.get("/me", response_model=CurrentUserRead)
async def get_me(
    user_id: uuid.UUID = Depends(get_current_user_id),
    svc: AccountService = Depends(_svc),
):
    """Get the current authenticated user's info (never the password hash)."""
    user, post_ids = await svc.get_current_user(user_id)
    return CurrentUserRead(
        id=user.id,
        email=user.email,
        name=user.name,
        status=user.status,
        created_at=user.created_at,
        posts=post_ids,
    )
