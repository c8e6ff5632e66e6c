"""
Blue Whale Backend: Content Service
=====================================

What:  Create, read, update and delete posts; likes and bookmarks.
How:   Composes FileService (PDF uploads), NotificationService (likes) and
       async SQLAlchemy. Counters (views, likes_count) move with single
       UPDATE ... SET col = col + 1 statements, never read-modify-write.
Who:   Called by the /content route handlers.

Create Flow (POST /content, multipart):
    ┌──────────┐    ┌─────────────┐    ┌─────────────┐    ┌──────────┐
    │  Form    │───▶│  Validate   │───▶│  Store PDF  │───▶│  Insert  │
    │  (Route) │    │  type/body  │    │  (FileServ) │    │  (DB)    │
    └──────────┘    └─────────────┘    └─────────────┘    └──────────┘

    If the insert fails after the PDF was written, the file is removed again.

Ownership:
    update/delete are reserved for the author: 404 when the post doesn't
    exist, 403 when it belongs to someone else.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bluewhale.exceptions import (
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from bluewhale.geo import parse_coordinate
from bluewhale.models import (
    CONTENT_TYPES,
    TITLE_MAX_LENGTH,
    Comment,
    Content,
    ContentLike,
    SavedContent,
    User,
)
from bluewhale.models.user import utcnow
from bluewhale.pagination import build_pagination, page_offset
from bluewhale.schemas.common import MessageResponse
from bluewhale.schemas.content import (
    ContentDetailResponse,
    ContentMutationResponse,
    ContentPageResponse,
    ContentResponse,
    ContentUpdateRequest,
    LikeResponse,
)
from bluewhale.services.file_service import file_service
from bluewhale.services.notification_service import display_name, notification_service

logger = logging.getLogger(__name__)


def parse_tags(raw: Optional[str]) -> List[str]:
    """
    Tags arrive as a JSON array string in the multipart form.

    Anything that isn't a JSON list is ignored (logged) rather than rejected,
    so a bad tag field never blocks a post. Non-string and blank entries are
    dropped.
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring unparsable tags: %r", raw[:100])
        return []
    if not isinstance(parsed, list):
        logger.warning("Ignoring tags that are not a list: %r", raw[:100])
        return []
    return [tag.strip() for tag in parsed if isinstance(tag, str) and tag.strip()]


class ContentService:

    async def _get_content(self, db: AsyncSession, content_id: UUID) -> Content:
        content = await db.get(Content, content_id)
        if content is None:
            raise NotFoundError(resource="content", resource_id=str(content_id))
        return content

    async def _get_owned_content(self, db: AsyncSession, user: User, content_id: UUID) -> Content:
        content = await db.get(Content, content_id, options=[selectinload(Content.author)])
        if content is None:
            raise NotFoundError(resource="content", resource_id=str(content_id))
        if content.author_id != user.id:
            raise PermissionDeniedError(message="You can only modify your own content")
        return content

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create_content(
        self,
        db: AsyncSession,
        author: User,
        title: Optional[str],
        content_type: Optional[str] = "text",
        text_content: Optional[str] = None,
        filename: Optional[str] = None,
        file_bytes: Optional[bytes] = None,
        content_length: Optional[int] = None,
        latitude: Optional[str] = None,
        longitude: Optional[str] = None,
        location_name: Optional[str] = None,
        tags: Optional[str] = None,
    ) -> ContentMutationResponse:
        """
        Validate the form, store the PDF if there is one, insert the post.

        Args:
            filename/file_bytes: the multipart `file` part, if sent
            latitude/longitude:  raw form strings; unparsable values count as 0
            tags:                JSON array string, e.g. '["seoul", "food"]'

        Raises:
            ValidationError:  bad type, missing or overlong title, missing body/file, invalid PDF
            FileStorageError: the PDF couldn't be written
            DatabaseError:    the insert failed
        """
        content_type = (content_type or "text").strip().lower()
        if content_type not in CONTENT_TYPES:
            raise ValidationError(
                message=f"Invalid content type '{content_type}'",
                field="content_type",
                context={"allowed": list(CONTENT_TYPES)},
            )

        title = (title or "").strip()
        if not title:
            raise ValidationError(message="Title is required", field="title")
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(
                message=f"Title must be at most {TITLE_MAX_LENGTH} characters",
                field="title",
            )

        body = text_content.strip() if text_content and text_content.strip() else None
        absolute_path: Optional[str] = None
        file_url: Optional[str] = None
        file_name: Optional[str] = None

        if content_type == "pdf":
            if not filename or file_bytes is None:
                raise ValidationError(message="A PDF file is required for pdf content", field="file")
            absolute_path, file_url = await file_service.validate_and_store(
                filename=filename,
                content=file_bytes,
                content_length=content_length,
            )
            file_name = Path(filename).name
        elif body is None:
            raise ValidationError(message="Text content is required", field="text_content")

        now = utcnow()
        content = Content(
            id=uuid.uuid4(),
            title=title,
            body=body,
            content_type=content_type,
            file_url=file_url,
            file_name=file_name,
            author_id=author.id,
            longitude=parse_coordinate(longitude) or 0.0,
            latitude=parse_coordinate(latitude) or 0.0,
            location_name=(location_name or "").strip() or None,
            tags=parse_tags(tags),
            ai_score=0,
            views=0,
            likes_count=0,
            comments_count=0,
            created_at=now,
            updated_at=now,
        )
        content.author = author
        db.add(content)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            if absolute_path:
                await file_service.cleanup_file(absolute_path)
            logger.error("Failed to insert content: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="An error occurred while saving your content. Please try again.",
                context={"original_error": type(e).__name__},
            )

        logger.info("Content %s created by %s (type=%s)", content.id, author.id, content_type)
        return ContentMutationResponse(
            message="Content created successfully",
            content=ContentResponse.model_validate(content),
        )

    async def get_content(self, db: AsyncSession, content_id: UUID) -> ContentDetailResponse:
        """
        Count a view and return the post with its comments, newest first.

        Query plan:
            UPDATE contents SET views = views + 1 WHERE id = :id
            SELECT contents ... + selectin authors and comments(+authors)
        """
        result = await db.execute(
            update(Content)
            .where(Content.id == content_id)
            .values(views=Content.views + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="content", resource_id=str(content_id))

        content = await db.scalar(
            select(Content)
            .options(
                selectinload(Content.author),
                selectinload(Content.comments).selectinload(Comment.author),
            )
            .where(Content.id == content_id)
            .execution_options(populate_existing=True)
        )
        if content is None:
            raise NotFoundError(resource="content", resource_id=str(content_id))

        return ContentDetailResponse.model_validate(content)

    async def update_content(
        self,
        db: AsyncSession,
        user: User,
        content_id: UUID,
        data: ContentUpdateRequest,
    ) -> ContentMutationResponse:
        content = await self._get_owned_content(db, user, content_id)

        if data.title and data.title.strip():
            content.title = data.title.strip()
        if data.body:
            content.body = data.body
        if data.content_type:
            content.content_type = data.content_type
        if data.location is not None:
            content.longitude = data.location.longitude
            content.latitude = data.location.latitude
            if data.location.name:
                content.location_name = data.location.name
        if data.tags is not None:
            content.tags = data.tags
        content.updated_at = utcnow()

        await db.flush()
        logger.info("Content %s updated", content_id)

        return ContentMutationResponse(
            message="Content updated successfully",
            content=ContentResponse.model_validate(content),
        )

    async def delete_content(self, db: AsyncSession, user: User, content_id: UUID) -> MessageResponse:
        """
        Delete a post. Comments, likes, bookmarks and notifications pointing at
        it go with it (ON DELETE CASCADE). The transaction is committed here,
        before an attached PDF is removed from disk.
        """
        content = await self._get_owned_content(db, user, content_id)
        file_url = content.file_url

        await db.delete(content)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to delete content %s: %s", content_id, str(e), exc_info=True)
            raise DatabaseError(
                message="An error occurred while deleting your content. Please try again.",
                context={"original_error": type(e).__name__},
            )

        if file_url:
            await file_service.cleanup_file(str(file_service.storage_root / file_url))

        logger.info("Content %s deleted by %s", content_id, user.id)
        return MessageResponse(message="Content deleted successfully")

    # ── Likes ─────────────────────────────────────────────────────────────

    async def like_content(self, db: AsyncSession, user: User, content_id: UUID) -> LikeResponse:
        """
        Raises:
            NotFoundError:   no such content
            ValidationError: already liked
        """
        content = await self._get_content(db, content_id)

        existing = await db.get(ContentLike, (content_id, user.id))
        if existing is not None:
            raise ValidationError(message="You have already liked this content")

        db.add(ContentLike(content_id=content_id, user_id=user.id, created_at=utcnow()))
        try:
            likes_count = await db.scalar(
                update(Content)
                .where(Content.id == content_id)
                .values(likes_count=Content.likes_count + 1)
                .returning(Content.likes_count)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError:
            raise ValidationError(message="You have already liked this content")

        notification_service.notify(
            db,
            recipient_id=content.author_id,
            sender_id=user.id,
            type="like",
            message=f"{display_name(user)} liked your content \"{content.title}\"",
            content_id=content_id,
        )
        await db.flush()

        return LikeResponse(message="Content liked successfully", likes_count=likes_count or 0)

    async def unlike_content(self, db: AsyncSession, user: User, content_id: UUID) -> LikeResponse:
        await self._get_content(db, content_id)

        existing = await db.get(ContentLike, (content_id, user.id))
        if existing is None:
            raise ValidationError(message="You have not liked this content")

        await db.delete(existing)
        likes_count = await db.scalar(
            update(Content)
            .where(Content.id == content_id)
            .values(likes_count=func.greatest(Content.likes_count - 1, 0))
            .returning(Content.likes_count)
            .execution_options(synchronize_session=False)
        )

        return LikeResponse(message="Content unliked successfully", likes_count=likes_count or 0)

    # ── Bookmarks ─────────────────────────────────────────────────────────

    async def save_content(self, db: AsyncSession, user: User, content_id: UUID) -> MessageResponse:
        await self._get_content(db, content_id)

        existing = await db.get(SavedContent, (user.id, content_id))
        if existing is not None:
            raise ValidationError(message="Content is already saved")

        db.add(SavedContent(user_id=user.id, content_id=content_id, created_at=utcnow()))
        try:
            await db.flush()
        except IntegrityError:
            raise ValidationError(message="Content is already saved")

        return MessageResponse(message="Content saved successfully")

    async def unsave_content(self, db: AsyncSession, user: User, content_id: UUID) -> MessageResponse:
        """Idempotent: removing a bookmark that doesn't exist still succeeds."""
        existing = await db.get(SavedContent, (user.id, content_id))
        if existing is not None:
            await db.delete(existing)
            await db.flush()

        return MessageResponse(message="Content removed from saved")

    async def list_saved(
        self,
        db: AsyncSession,
        user: User,
        page: int = 1,
        limit: int = 10,
    ) -> ContentPageResponse:
        """The user's bookmarks, most recently saved first."""
        total = await db.scalar(
            select(func.count()).select_from(SavedContent).where(SavedContent.user_id == user.id)
        ) or 0
        result = await db.scalars(
            select(Content)
            .join(SavedContent, SavedContent.content_id == Content.id)
            .options(selectinload(Content.author))
            .where(SavedContent.user_id == user.id)
            .order_by(SavedContent.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )

        return ContentPageResponse(
            content=[ContentResponse.model_validate(c) for c in result.all()],
            pagination=build_pagination(total, page, limit),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
content_service = ContentService()
