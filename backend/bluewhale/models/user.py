"""
Blue Whale Backend: User & Follow SQLAlchemy Models
=====================================================

What:  ORM models for the `users` and `follows` tables.
Who:   Used by AuthService, UserService and the discovery queries.

Table Design:
    - email: unique, stored trimmed and lower-cased (normalized by AuthService)
    - password_hash: bcrypt hash; never serialized (schemas don't declare it)
    - longitude/latitude: 0/0 means "location unknown"
    - follows: one row per (follower, followed) pair; the composite primary
      key makes a duplicate follow impossible
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from bluewhale.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    bio: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Location ──────────────────────────────────────────────────────────
    longitude: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    latitude: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
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

    __table_args__ = (
        Index("idx_users_created_at", created_at.desc()),
    )

    @property
    def location(self) -> Dict[str, Any]:
        """GeoJSON-style point, longitude first."""
        return {
            "type": "Point",
            "coordinates": [self.longitude or 0.0, self.latitude or 0.0],
        }

    @property
    def has_location(self) -> bool:
        """Both coordinates set; 0 on either axis is treated as unknown."""
        return bool(self.longitude) and bool(self.latitude)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class Follow(Base):
    """Directed edge: `follower_id` follows `followed_id`."""

    __tablename__ = "follows"

    follower_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    followed_id: Mapped[uuid.UUID] = mapped_column(
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

    __table_args__ = (
        CheckConstraint("follower_id <> followed_id", name="ck_follows_not_self"),
        Index("idx_follows_followed", "followed_id"),
    )

    def __repr__(self) -> str:
        return f"<Follow({self.follower_id} -> {self.followed_id})>"
