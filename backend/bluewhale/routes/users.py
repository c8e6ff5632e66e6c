"""
Blue Whale Backend: User Route Handlers
=========================================

What:  /users search, profiles, follow graph and a user's posts.

Route order matters: /users/search is declared before /users/{user_id} so
"search" is never parsed as a user id.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from bluewhale.database import get_db_session
from bluewhale.dependencies import get_current_user
from bluewhale.models import User
from bluewhale.schemas.common import ErrorResponse, MessageResponse
from bluewhale.schemas.content import ContentPageResponse
from bluewhale.schemas.user import (
    FollowersResponse,
    FollowingResponse,
    UserMutationResponse,
    UserProfileResponse,
    UserSearchResponse,
    UserUpdateRequest,
)
from bluewhale.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

NOT_FOUND = {404: {"description": "User not found", "model": ErrorResponse}}


@router.get("/search", response_model=UserSearchResponse, summary="Search users by name or email")
async def search_users(
    response: Response,
    query: str | None = Query(default=None, description="Substring of name or email"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> UserSearchResponse:
    result = await user_service.search_users(db, query=query, page=page, limit=limit)
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@router.get(
    "/{user_id}",
    response_model=UserProfileResponse,
    responses=NOT_FOUND,
    summary="Profile with follower, following and content counts",
)
async def get_profile(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> UserProfileResponse:
    return await user_service.get_profile(db, user_id)


@router.put(
    "/{user_id}",
    response_model=UserMutationResponse,
    responses={
        403: {"description": "Not your profile", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Update your own profile",
)
async def update_profile(
    user_id: UUID,
    payload: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserMutationResponse:
    return await user_service.update_profile(db, current_user, user_id, payload)


@router.post(
    "/{user_id}/follow",
    response_model=MessageResponse,
    responses={400: {"description": "Self-follow or already following", "model": ErrorResponse}, **NOT_FOUND},
    summary="Follow a user",
)
async def follow_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await user_service.follow(db, current_user, user_id)


@router.delete(
    "/{user_id}/follow",
    response_model=MessageResponse,
    responses={400: {"description": "Not following", "model": ErrorResponse}, **NOT_FOUND},
    summary="Unfollow a user",
)
async def unfollow_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await user_service.unfollow(db, current_user, user_id)


@router.get("/{user_id}/followers", response_model=FollowersResponse, responses=NOT_FOUND)
async def list_followers(
    user_id: UUID,
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> FollowersResponse:
    result = await user_service.list_followers(db, user_id, page=page, limit=limit)
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@router.get("/{user_id}/following", response_model=FollowingResponse, responses=NOT_FOUND)
async def list_following(
    user_id: UUID,
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> FollowingResponse:
    result = await user_service.list_following(db, user_id, page=page, limit=limit)
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@router.get("/{user_id}/content", response_model=ContentPageResponse, responses=NOT_FOUND)
async def list_user_content(
    user_id: UUID,
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> ContentPageResponse:
    result = await user_service.list_content(db, user_id, page=page, limit=limit)
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result
