"""
Blue Whale Backend: Notification SQLAlchemy Model
===================================================

What:  ORM model for the `notifications` table.
Who:   Written by UserService (follow), ContentService (like) and
       CommentService (comment); read by NotificationService.

Lifecycle:
    1. Created unread when another user follows, likes or comments
    2. Marked read individually or all at once by the recipient
    3. Deleted by the database together with the content/comment it points at

Index (recipient_id, read, created_at DESC) serves both the inbox listing
and the unread badge count.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from bluewhale.database import Base
from bluewhale.models.comment import Comment
from bluewhale.models.content import Content
from bluewhale.models.user import User, utcnow

NOTIFICATION_TYPES = ("follow", "like", "comment", "mention", "system")


class Notification(Base):
    """Something that happened to `recipient_id`, optionally caused by `sender_id`."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    recipient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # NULL for system notifications
    sender_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)

    content_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("contents.id", ondelete="CASCADE"),
        nullable=True,
    )

    comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)

    read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    sender: Mapped[Optional[User]] = relationship(User, foreign_keys=[sender_id])
    content: Mapped[Optional[Content]] = relationship(Content)
    comment: Mapped[Optional[Comment]] = relationship(Comment)

    __table_args__ = (
        Index(
            "idx_notifications_recipient_read_created",
            "recipient_id",
            "read",
            created_at.desc(),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, type='{self.type}', "
            f"recipient_id={self.recipient_id}, read={self.read})>"
        )
