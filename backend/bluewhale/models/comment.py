"""
Blue Whale Backend: Comment SQLAlchemy Model
==============================================

What:  ORM model for the `comments` table.
How:   Rows are removed by the database (ON DELETE CASCADE) when their content
       or author is deleted; Content.comments_count is kept in step by
       CommentService.
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from bluewhale.database import Base
from bluewhale.models.user import User, utcnow


class Comment(Base):
    """A comment left by `author_id` on content `content_id`."""

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("contents.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    author: Mapped[User] = relationship(User)

    __table_args__ = (
        Index("idx_comments_content_created", "content_id", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, content_id={self.content_id})>"
