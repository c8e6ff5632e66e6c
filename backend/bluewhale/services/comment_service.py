"""
Blue Whale Backend: Comment Service
=====================================

What:  Comments on a content item: add, list, edit, delete.
How:   Content.comments_count moves with the insert/delete of each comment in
       the same transaction. Deleting a comment also drops notifications
       that point at it (ON DELETE CASCADE on notifications.comment_id).
Who:   Called by the /content/{content_id}/comments route handlers.
"""

import logging
import uuid
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bluewhale.exceptions import NotFoundError, PermissionDeniedError
from bluewhale.models import Comment, Content, User
from bluewhale.models.user import utcnow
from bluewhale.pagination import build_pagination, page_offset
from bluewhale.schemas.common import MessageResponse
from bluewhale.schemas.content import (
    CommentListResponse,
    CommentMutationResponse,
    CommentResponse,
)
from bluewhale.services.notification_service import display_name, notification_service

logger = logging.getLogger(__name__)


class CommentService:

    async def _get_content(self, db: AsyncSession, content_id: UUID) -> Content:
        content = await db.get(Content, content_id)
        if content is None:
            raise NotFoundError(resource="content", resource_id=str(content_id))
        return content

    async def _get_owned_comment(
        self,
        db: AsyncSession,
        user: User,
        content_id: UUID,
        comment_id: UUID,
    ) -> Comment:
        # A comment addressed under the wrong content id is treated as missing
        comment = await db.get(Comment, comment_id, options=[selectinload(Comment.author)])
        if comment is None or comment.content_id != content_id:
            raise NotFoundError(resource="comment", resource_id=str(comment_id))
        if comment.author_id != user.id:
            raise PermissionDeniedError(message="You can only modify your own comments")
        return comment

    async def add_comment(
        self,
        db: AsyncSession,
        user: User,
        content_id: UUID,
        text: str,
    ) -> CommentMutationResponse:
        """
        Raises:
            NotFoundError: no such content
        """
        content = await self._get_content(db, content_id)

        now = utcnow()
        comment = Comment(
            id=uuid.uuid4(),
            content=text,
            author_id=user.id,
            content_id=content_id,
            created_at=now,
            updated_at=now,
        )
        comment.author = user
        db.add(comment)

        await db.execute(
            update(Content)
            .where(Content.id == content_id)
            .values(comments_count=Content.comments_count + 1)
            .execution_options(synchronize_session=False)
        )
        notification_service.notify(
            db,
            recipient_id=content.author_id,
            sender_id=user.id,
            type="comment",
            message=f"{display_name(user)} commented on your content \"{content.title}\"",
            content_id=content_id,
            comment_id=comment.id,
        )
        await db.flush()

        logger.info("Comment %s added to %s by %s", comment.id, content_id, user.id)
        return CommentMutationResponse(
            message="Comment added successfully",
            comment=CommentResponse.model_validate(comment),
        )

    async def list_comments(
        self,
        db: AsyncSession,
        content_id: UUID,
        page: int = 1,
        limit: int = 20,
    ) -> CommentListResponse:
        await self._get_content(db, content_id)

        total = await db.scalar(
            select(func.count(Comment.id)).where(Comment.content_id == content_id)
        ) or 0
        result = await db.scalars(
            select(Comment)
            .options(selectinload(Comment.author))
            .where(Comment.content_id == content_id)
            .order_by(Comment.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )

        return CommentListResponse(
            comments=[CommentResponse.model_validate(c) for c in result.all()],
            pagination=build_pagination(total, page, limit),
        )

    async def update_comment(
        self,
        db: AsyncSession,
        user: User,
        content_id: UUID,
        comment_id: UUID,
        text: str,
    ) -> CommentMutationResponse:
        comment = await self._get_owned_comment(db, user, content_id, comment_id)

        comment.content = text
        comment.updated_at = utcnow()
        await db.flush()

        return CommentMutationResponse(
            message="Comment updated successfully",
            comment=CommentResponse.model_validate(comment),
        )

    async def delete_comment(
        self,
        db: AsyncSession,
        user: User,
        content_id: UUID,
        comment_id: UUID,
    ) -> MessageResponse:
        comment = await self._get_owned_comment(db, user, content_id, comment_id)

        await db.delete(comment)
        await db.execute(
            update(Content)
            .where(Content.id == content_id)
            .values(comments_count=func.greatest(Content.comments_count - 1, 0))
            .execution_options(synchronize_session=False)
        )
        await db.flush()

        logger.info("Comment %s deleted by %s", comment_id, user.id)
        return MessageResponse(message="Comment deleted successfully")


# ── Singleton Instance ────────────────────────────────────────────────────
comment_service = CommentService()
