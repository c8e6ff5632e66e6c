"""
Blue Whale Backend: Auth Route Handlers
=========================================

What:  POST /auth/register, POST /auth/login, POST /auth/logout, GET /auth/me.

Tokens are stateless JWTs; logout only tells the client to drop its copy.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bluewhale.database import get_db_session
from bluewhale.dependencies import get_current_user
from bluewhale.models import User
from bluewhale.schemas.common import ErrorResponse, MessageResponse
from bluewhale.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from bluewhale.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={400: {"description": "Email taken or password too short", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(db, email=payload.email, password=payload.password)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Exchange email and password for a token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db, email=payload.email, password=payload.password)


@router.post("/logout", response_model=MessageResponse, summary="Log out")
async def logout(current_user: User = Depends(get_current_user)) -> MessageResponse:
    logger.info("User %s logged out", current_user.id)
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserResponse, summary="The authenticated user")
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
