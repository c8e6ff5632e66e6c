"""Create initial schema

Revision ID: 001
Revises: None
Create Date: 2024-05-17 00:00:00.000000+00:00

What:  users, follows, contents, content_likes, saved_contents, comments and
       notifications with their indexes, including the full-text GIN index.
How:   PostgreSQL-specific types: UUID keys (gen_random_uuid), TIMESTAMPTZ,
       text[] tags.

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Must match bluewhale.services.discovery_service.search_document()
SEARCH_DOCUMENT = (
    "to_tsvector('english'::regconfig, "
    "coalesce(title, '') || ' ' || coalesce(body, ''))"
)


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _user_fk(name: str, nullable: bool = False, primary_key: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=nullable,
        primary_key=primary_key,
    )


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("bio", sa.String(500), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("longitude", sa.Float(), server_default=sa.text("0"), nullable=False,
                  comment="0 together with latitude 0 means unknown"),
        sa.Column("latitude", sa.Float(), server_default=sa.text("0"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("idx_users_created_at", "users", [sa.text("created_at DESC")])

    # ── follows ───────────────────────────────────────────────────────────
    op.create_table(
        "follows",
        _user_fk("follower_id", primary_key=True),
        _user_fk("followed_id", primary_key=True),
        _timestamp("created_at"),
        sa.CheckConstraint("follower_id <> followed_id", name="ck_follows_not_self"),
    )
    op.create_index("idx_follows_followed", "follows", ["followed_id"])

    # ── contents ──────────────────────────────────────────────────────────
    op.create_table(
        "contents",
        _id_column(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("content_type", sa.String(20), server_default=sa.text("'text'"), nullable=False,
                  comment="text, pdf, article, question, discussion, review, news"),
        sa.Column("file_url", sa.String(255), nullable=True,
                  comment="PDF path relative to the upload root"),
        sa.Column("file_name", sa.String(255), nullable=True),
        _user_fk("author_id"),
        sa.Column("longitude", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("latitude", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("location_name", sa.String(255), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.Text()), server_default=sa.text("'{}'"), nullable=False),
        sa.Column("ai_score", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("views", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("likes_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("comments_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("ai_score BETWEEN 0 AND 100", name="ck_contents_ai_score"),
    )
    op.create_index(
        "idx_contents_author_created", "contents", ["author_id", sa.text("created_at DESC")]
    )
    op.create_index("idx_contents_created", "contents", [sa.text("created_at DESC")])
    op.create_index("idx_contents_tags", "contents", ["tags"], postgresql_using="gin")
    op.create_index("idx_contents_location", "contents", ["latitude", "longitude"])
    op.execute(f"CREATE INDEX idx_contents_search ON contents USING gin ({SEARCH_DOCUMENT})")

    # ── content_likes / saved_contents ────────────────────────────────────
    op.create_table(
        "content_likes",
        sa.Column(
            "content_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("contents.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _user_fk("user_id", primary_key=True),
        _timestamp("created_at"),
    )
    op.create_table(
        "saved_contents",
        _user_fk("user_id", primary_key=True),
        sa.Column(
            "content_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("contents.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _timestamp("created_at"),
    )

    # ── comments ──────────────────────────────────────────────────────────
    op.create_table(
        "comments",
        _id_column(),
        sa.Column("content", sa.Text(), nullable=False),
        _user_fk("author_id"),
        sa.Column(
            "content_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("contents.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_comments_content_created", "comments", ["content_id", sa.text("created_at DESC")]
    )

    # ── notifications ─────────────────────────────────────────────────────
    op.create_table(
        "notifications",
        _id_column(),
        _user_fk("recipient_id"),
        _user_fk("sender_id", nullable=True),
        sa.Column("type", sa.String(20), nullable=False,
                  comment="follow, like, comment, mention, system"),
        sa.Column(
            "content_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("contents.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "comment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("comments.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_notifications_recipient_read_created",
        "notifications",
        ["recipient_id", "read", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("comments")
    op.drop_table("saved_contents")
    op.drop_table("content_likes")
    op.execute("DROP INDEX IF EXISTS idx_contents_search")
    op.drop_table("contents")
    op.drop_table("follows")
    op.drop_table("users")
