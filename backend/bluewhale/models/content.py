"""
Blue Whale Backend: Content SQLAlchemy Models
===============================================

What:  ORM models for `contents`, `content_likes` and `saved_contents`.
Who:   Used by ContentService, DiscoveryService and CommentService.

Table Design:
    - body: required for every content_type except 'pdf' (enforced by
      ContentService; pdf posts carry file_url/file_name instead)
    - likes_count / comments_count: denormalized counters, changed only with
      single `UPDATE ... SET col = col +/- 1` statements next to the insert or
      delete of the row they count
    - longitude/latitude: 0/0 when the post has no location
    - tags: text[] with a GIN index for any-of filtering

Indexes:
    idx_contents_author_created   (author_id, created_at DESC)  profile pages
    idx_contents_created          (created_at DESC)             newest-first feeds
    idx_contents_tags             GIN(tags)                     tag filter
    idx_contents_location         (latitude, longitude)         bounding-box prefilter
    idx_contents_search           GIN(to_tsvector(title || body)) full-text search
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import ARRAY, UUID, TIMESTAMP

from bluewhale.database import Base
from bluewhale.models.user import User, utcnow

CONTENT_TYPES = ("text", "pdf", "article", "question", "discussion", "review", "news")

TITLE_MAX_LENGTH = 200


class Content(Base):
    """A user post: a text body or an uploaded PDF document."""

    __tablename__ = "contents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)

    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    content_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="text",
        server_default=text("'text'"),
    )

    # ── PDF attachment ────────────────────────────────────────────────────
    # Path relative to the upload root, served at /uploads/{file_url}
    file_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    author_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # ── Location ──────────────────────────────────────────────────────────
    longitude: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    latitude: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    location_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    tags: Mapped[List[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )

    # ── Engagement ────────────────────────────────────────────────────────
    ai_score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    views: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    likes_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    comments_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    # ── Timestamps ────────────────────────────────────────────────────────
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

    # ── Relationships ─────────────────────────────────────────────────────
    # Always eager-loaded explicitly (selectinload); async sessions can't lazy-load
    author: Mapped[User] = relationship(User)
    comments: Mapped[List["Comment"]] = relationship(  # noqa: F821
        "Comment",
        order_by="Comment.created_at.desc()",
        viewonly=True,
    )

    __table_args__ = (
        CheckConstraint("ai_score BETWEEN 0 AND 100", name="ck_contents_ai_score"),
        Index("idx_contents_author_created", "author_id", created_at.desc()),
        Index("idx_contents_created", created_at.desc()),
        Index("idx_contents_tags", "tags", postgresql_using="gin"),
        Index("idx_contents_location", "latitude", "longitude"),
    )

    @property
    def location(self) -> Dict[str, Any]:
        """GeoJSON-style point, longitude first, plus the optional place name."""
        return {
            "type": "Point",
            "coordinates": [self.longitude or 0.0, self.latitude or 0.0],
            "name": self.location_name,
        }

    def __repr__(self) -> str:
        return (
            f"<Content(id={self.id}, type='{self.content_type}', "
            f"title='{self.title[:30] if self.title else ''}')>"
        )


class ContentLike(Base):
    """One row per (content, user) like; the primary key forbids double likes."""

    __tablename__ = "content_likes"

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("contents.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class SavedContent(Base):
    """A user's bookmark of a content item."""

    __tablename__ = "saved_contents"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("contents.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
