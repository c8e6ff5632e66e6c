"""
Blue Whale Backend: Notification Service
==========================================

What:  Creates notifications for social events and serves the recipient's inbox.
Who:   notify() is called by UserService, ContentService and CommentService
       inside their own transactions; the read operations back /notifications.
"""

import logging
import uuid
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bluewhale.exceptions import NotFoundError
from bluewhale.models import Notification, User
from bluewhale.models.user import utcnow
from bluewhale.pagination import build_pagination, page_offset
from bluewhale.schemas.common import MessageResponse
from bluewhale.schemas.notification import (
    NotificationListResponse,
    NotificationMutationResponse,
    NotificationResponse,
    UnreadCountResponse,
)

logger = logging.getLogger(__name__)


def display_name(user: User) -> str:
    """Name used in notification messages; falls back to the email local part."""
    if user.name:
        return user.name
    return (user.email or "").split("@")[0] or "Someone"


class NotificationService:
    """
    Inbox operations are always scoped to the recipient: a notification that
    belongs to someone else behaves exactly like one that doesn't exist.
    """

    def notify(
        self,
        db: AsyncSession,
        recipient_id: UUID,
        sender_id: Optional[UUID],
        type: str,
        message: str,
        content_id: Optional[UUID] = None,
        comment_id: Optional[UUID] = None,
    ) -> Optional[Notification]:
        """
        Queue a notification in the caller's session (flushed with their changes).

        Returns None without adding anything when the sender is the recipient.
        """
        if sender_id is not None and sender_id == recipient_id:
            return None

        notification = Notification(
            id=uuid.uuid4(),
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            message=message,
            content_id=content_id,
            comment_id=comment_id,
            read=False,
            created_at=utcnow(),
        )
        db.add(notification)
        logger.debug("Queued %s notification for %s", type, recipient_id)
        return notification

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
    ) -> NotificationListResponse:
        """Newest first, with sender/content/comment summaries loaded eagerly."""
        total = await db.scalar(
            select(func.count(Notification.id)).where(Notification.recipient_id == user_id)
        ) or 0

        result = await db.scalars(
            select(Notification)
            .options(
                selectinload(Notification.sender),
                selectinload(Notification.content),
                selectinload(Notification.comment),
            )
            .where(Notification.recipient_id == user_id)
            .order_by(Notification.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )
        notifications = result.all()

        return NotificationListResponse(
            notifications=[NotificationResponse.model_validate(n) for n in notifications],
            pagination=build_pagination(total, page, limit),
        )

    async def unread_count(self, db: AsyncSession, user_id: UUID) -> UnreadCountResponse:
        count = await db.scalar(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == user_id,
                Notification.read.is_(False),
            )
        )
        return UnreadCountResponse(unread_count=count or 0)

    async def mark_all_read(self, db: AsyncSession, user_id: UUID) -> MessageResponse:
        result = await db.execute(
            update(Notification)
            .where(Notification.recipient_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        logger.info("Marked %s notifications read for %s", result.rowcount, user_id)
        return MessageResponse(message="All notifications marked as read")

    async def mark_read(
        self,
        db: AsyncSession,
        user_id: UUID,
        notification_id: UUID,
    ) -> NotificationMutationResponse:
        """
        Raises:
            NotFoundError: no such notification for this recipient
        """
        notification = await db.scalar(
            select(Notification)
            .options(
                selectinload(Notification.sender),
                selectinload(Notification.content),
                selectinload(Notification.comment),
            )
            .where(
                Notification.id == notification_id,
                Notification.recipient_id == user_id,
            )
        )
        if notification is None:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))

        notification.read = True
        await db.flush()

        return NotificationMutationResponse(
            message="Notification marked as read",
            notification=NotificationResponse.model_validate(notification),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
notification_service = NotificationService()
