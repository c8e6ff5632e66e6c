"""
Blue Whale Backend: User Service
==================================

What:  Profiles, user search and the follow graph.
Who:   Called by the /users route handlers.

Follow Graph:
    follows(follower_id, followed_id) with a composite primary key.
    - follow:   existence check first for a clean 400, the primary key catches races
    - unfollow: deletes the edge; 400 when there is nothing to delete
    - a follow notifies the followed user
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bluewhale.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from bluewhale.models import Content, Follow, User
from bluewhale.models.user import utcnow
from bluewhale.pagination import build_pagination, page_offset
from bluewhale.schemas.common import MessageResponse
from bluewhale.schemas.content import ContentPageResponse, ContentResponse
from bluewhale.schemas.user import (
    FollowersResponse,
    FollowingResponse,
    UserMutationResponse,
    UserProfileResponse,
    UserResponse,
    UserSearchResponse,
    UserStats,
    UserUpdateRequest,
)
from bluewhale.services.notification_service import display_name, notification_service

logger = logging.getLogger(__name__)


def like_pattern(query: str) -> str:
    """Substring ILIKE pattern with the user's % and _ taken literally."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class UserService:

    async def _get_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    # ── Search & Profiles ─────────────────────────────────────────────────

    async def search_users(
        self,
        db: AsyncSession,
        query: Optional[str],
        page: int = 1,
        limit: int = 10,
    ) -> UserSearchResponse:
        """Case-insensitive substring match on name or email, newest accounts first."""
        conditions = []
        if query and query.strip():
            pattern = like_pattern(query.strip())
            conditions.append(
                or_(User.name.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\"))
            )

        total = await db.scalar(select(func.count(User.id)).where(*conditions)) or 0
        result = await db.scalars(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )

        return UserSearchResponse(
            users=[UserResponse.model_validate(u) for u in result.all()],
            pagination=build_pagination(total, page, limit),
        )

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> UserProfileResponse:
        user = await self._get_user(db, user_id)

        followers_count = await db.scalar(
            select(func.count()).select_from(Follow).where(Follow.followed_id == user_id)
        )
        following_count = await db.scalar(
            select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
        )
        content_count = await db.scalar(
            select(func.count(Content.id)).where(Content.author_id == user_id)
        )

        return UserProfileResponse(
            user=UserResponse.model_validate(user),
            stats=UserStats(
                followers_count=followers_count or 0,
                following_count=following_count or 0,
                content_count=content_count or 0,
            ),
        )

    async def update_profile(
        self,
        db: AsyncSession,
        current_user: User,
        user_id: UUID,
        data: UserUpdateRequest,
    ) -> UserMutationResponse:
        """
        Only the owner may update; empty strings leave the field unchanged.

        Raises:
            PermissionDeniedError: updating someone else's profile
            NotFoundError:         the user row is gone
        """
        if current_user.id != user_id:
            raise PermissionDeniedError(message="You can only update your own profile")

        user = await self._get_user(db, user_id)

        if data.name:
            user.name = data.name
        if data.bio:
            user.bio = data.bio
        if data.avatar_url:
            user.avatar_url = data.avatar_url
        if data.location is not None:
            user.longitude = data.location.longitude
            user.latitude = data.location.latitude
        user.updated_at = utcnow()

        await db.flush()
        logger.info("Updated profile of %s", user_id)

        return UserMutationResponse(
            message="Profile updated successfully",
            user=UserResponse.model_validate(user),
        )

    # ── Follow Graph ──────────────────────────────────────────────────────

    async def follow(self, db: AsyncSession, current_user: User, user_id: UUID) -> MessageResponse:
        """
        Raises:
            ValidationError: self-follow or already following
            NotFoundError:   target user doesn't exist
        """
        if current_user.id == user_id:
            raise ValidationError(message="You cannot follow yourself", field="userId")

        await self._get_user(db, user_id)

        existing = await db.get(Follow, (current_user.id, user_id))
        if existing is not None:
            raise ValidationError(message="You are already following this user")

        db.add(Follow(follower_id=current_user.id, followed_id=user_id, created_at=utcnow()))
        notification_service.notify(
            db,
            recipient_id=user_id,
            sender_id=current_user.id,
            type="follow",
            message=f"{display_name(current_user)} started following you",
        )
        try:
            await db.flush()
        except IntegrityError:
            raise ValidationError(message="You are already following this user")

        logger.info("%s followed %s", current_user.id, user_id)
        return MessageResponse(message="Successfully followed user")

    async def unfollow(self, db: AsyncSession, current_user: User, user_id: UUID) -> MessageResponse:
        if current_user.id == user_id:
            raise ValidationError(message="You cannot unfollow yourself", field="userId")

        await self._get_user(db, user_id)

        existing = await db.get(Follow, (current_user.id, user_id))
        if existing is None:
            raise ValidationError(message="You are not following this user")

        await db.delete(existing)
        await db.flush()

        logger.info("%s unfollowed %s", current_user.id, user_id)
        return MessageResponse(message="Successfully unfollowed user")

    async def list_followers(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
    ) -> FollowersResponse:
        """Users following `user_id`, most recent follow first."""
        await self._get_user(db, user_id)

        total = await db.scalar(
            select(func.count()).select_from(Follow).where(Follow.followed_id == user_id)
        ) or 0
        result = await db.scalars(
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.followed_id == user_id)
            .order_by(Follow.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )

        return FollowersResponse(
            followers=[UserResponse.model_validate(u) for u in result.all()],
            pagination=build_pagination(total, page, limit),
        )

    async def list_following(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
    ) -> FollowingResponse:
        """Users `user_id` follows, most recent follow first."""
        await self._get_user(db, user_id)

        total = await db.scalar(
            select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
        ) or 0
        result = await db.scalars(
            select(User)
            .join(Follow, Follow.followed_id == User.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )

        return FollowingResponse(
            following=[UserResponse.model_validate(u) for u in result.all()],
            pagination=build_pagination(total, page, limit),
        )

    async def list_content(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> ContentPageResponse:
        """A user's own posts, newest first."""
        await self._get_user(db, user_id)

        total = await db.scalar(
            select(func.count(Content.id)).where(Content.author_id == user_id)
        ) or 0
        result = await db.scalars(
            select(Content)
            .options(selectinload(Content.author))
            .where(Content.author_id == user_id)
            .order_by(Content.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )

        return ContentPageResponse(
            content=[ContentResponse.model_validate(c) for c in result.all()],
            pagination=build_pagination(total, page, limit),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
