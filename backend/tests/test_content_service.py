"""
Blue Whale Backend: Content Service Unit Tests
================================================

What:  Post CRUD, likes and bookmarks with a mocked session.
How:   FileService is patched where PDF storage would touch the disk.

Test Strategy:
    ✅ parse_tags: JSON list accepted, junk ignored
    ✅ create: type/title/body/file rules, title length, coordinates, tags,
       PDF cleanup on DB failure
    ✅ get: view counted, 404 when the UPDATE matched nothing
    ✅ update/delete: author only, attached PDF removed only after commit
    ✅ like/unlike: duplicates rejected, author notified unless liking own post
    ✅ save/unsave: duplicate save rejected, unsave idempotent
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.types import Text

from bluewhale.exceptions import (
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from bluewhale.models import Content, ContentLike, Notification, SavedContent
from bluewhale.schemas.content import ContentUpdateRequest
from bluewhale.services.content_service import ContentService, parse_tags


def added_of_type(session, cls):
    return [c.args[0] for c in session.add.call_args_list if isinstance(c.args[0], cls)]


class TestParseTags:

    def test_json_list(self):
        assert parse_tags('["seoul", " food ", ""]') == ["seoul", "food"]

    @pytest.mark.parametrize("raw", [None, "", "seoul,food", '{"a": 1}', '"seoul"'])
    def test_ignored(self, raw):
        assert parse_tags(raw) == []

    def test_non_strings_dropped(self):
        assert parse_tags('["whale", 3, null]') == ["whale"]


class TestCreateContent:

    def setup_method(self):
        self.service = ContentService()

    @pytest.mark.asyncio
    async def test_create_text_post(self, mock_db_session, make_user):
        author = make_user()

        result = await self.service.create_content(
            mock_db_session,
            author,
            title="  Gray whale spotted ",
            content_type="article",
            text_content="Near the pier.",
            latitude="37.5665",
            longitude="126.9780",
            location_name="Jongno",
            tags='["whale", "seoul"]',
        )

        assert result.message == "Content created successfully"
        content = result.content
        assert content.title == "Gray whale spotted"
        assert content.content_type == "article"
        assert content.location.coordinates == [126.978, 37.5665]
        assert content.location.name == "Jongno"
        assert content.tags == ["whale", "seoul"]
        assert content.author.id == author.id
        assert (content.views, content.likes_count, content.comments_count) == (0, 0, 0)
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unparsable_coordinates_default_to_zero(self, mock_db_session, make_user):
        result = await self.service.create_content(
            mock_db_session, make_user(), title="t", text_content="b", latitude="north", longitude=None
        )
        assert result.content.location.coordinates == [0.0, 0.0]

    @pytest.mark.asyncio
    async def test_invalid_type(self, mock_db_session, make_user):
        with pytest.raises(ValidationError, match="Invalid content type"):
            await self.service.create_content(
                mock_db_session, make_user(), title="t", content_type="video", text_content="b"
            )

    @pytest.mark.asyncio
    async def test_blank_title(self, mock_db_session, make_user):
        with pytest.raises(ValidationError, match="Title is required"):
            await self.service.create_content(mock_db_session, make_user(), title="   ", text_content="b")

    @pytest.mark.asyncio
    async def test_title_too_long(self, mock_db_session, make_user):
        with pytest.raises(ValidationError, match="at most 200 characters") as exc_info:
            await self.service.create_content(
                mock_db_session, make_user(), title="w" * 201, text_content="b"
            )

        assert exc_info.value.field == "title"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_title_at_limit(self, mock_db_session, make_user):
        result = await self.service.create_content(
            mock_db_session, make_user(), title="  " + "w" * 200 + "  ", text_content="b"
        )
        assert len(result.content.title) == 200

    @pytest.mark.asyncio
    async def test_long_tags_accepted(self, mock_db_session, make_user):
        long_tag = "bioluminescent-" * 4

        result = await self.service.create_content(
            mock_db_session, make_user(), title="t", text_content="b", tags=f'["{long_tag}"]'
        )

        assert result.content.tags == [long_tag]
        item_type = Content.__table__.c.tags.type.item_type
        assert isinstance(item_type, Text)
        assert item_type.length is None

    @pytest.mark.asyncio
    async def test_text_requires_body(self, mock_db_session, make_user):
        with pytest.raises(ValidationError, match="Text content is required"):
            await self.service.create_content(mock_db_session, make_user(), title="t", text_content="  ")

    @pytest.mark.asyncio
    async def test_pdf_requires_file(self, mock_db_session, make_user):
        with pytest.raises(ValidationError, match="PDF file is required"):
            await self.service.create_content(
                mock_db_session, make_user(), title="t", content_type="pdf"
            )

    @pytest.mark.asyncio
    async def test_pdf_post(self, mock_db_session, make_user, sample_pdf_bytes):
        with patch("bluewhale.services.content_service.file_service") as mock_files:
            mock_files.validate_and_store = AsyncMock(
                return_value=("/srv/uploads/2024/05/17/abc.pdf", "2024/05/17/abc.pdf")
            )

            result = await self.service.create_content(
                mock_db_session,
                make_user(),
                title="Survey results",
                content_type="pdf",
                filename="survey.pdf",
                file_bytes=sample_pdf_bytes,
                content_length=len(sample_pdf_bytes),
            )

        assert result.content.file_url == "2024/05/17/abc.pdf"
        assert result.content.file_name == "survey.pdf"
        assert result.content.body is None

    @pytest.mark.asyncio
    async def test_pdf_removed_when_insert_fails(self, mock_db_session, make_user, sample_pdf_bytes):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, MagicMock())

        with patch("bluewhale.services.content_service.file_service") as mock_files:
            mock_files.validate_and_store = AsyncMock(
                return_value=("/srv/uploads/2024/05/17/abc.pdf", "2024/05/17/abc.pdf")
            )
            mock_files.cleanup_file = AsyncMock()

            with pytest.raises(DatabaseError):
                await self.service.create_content(
                    mock_db_session,
                    make_user(),
                    title="Survey results",
                    content_type="pdf",
                    filename="survey.pdf",
                    file_bytes=sample_pdf_bytes,
                )

            mock_files.cleanup_file.assert_awaited_once_with("/srv/uploads/2024/05/17/abc.pdf")


class TestReadUpdateDelete:

    def setup_method(self):
        self.service = ContentService()

    @pytest.mark.asyncio
    async def test_get_content_counts_view(self, mock_db_session, make_content, make_comment):
        content = make_content(views=8)
        set_committed_value(content, "comments", [make_comment(content)])
        mock_db_session.scalar.return_value = content

        result = await self.service.get_content(mock_db_session, content.id)

        assert result.id == content.id
        assert result.views == 8
        assert len(result.comments) == 1
        update_stmt = mock_db_session.execute.call_args.args[0]
        assert "views" in str(update_stmt)

    @pytest.mark.asyncio
    async def test_get_content_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = MagicMock(rowcount=0)

        with pytest.raises(NotFoundError):
            await self.service.get_content(mock_db_session, uuid4())
        mock_db_session.scalar.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_by_other_user(self, mock_db_session, make_user, make_content):
        mock_db_session.get.return_value = make_content()

        with pytest.raises(PermissionDeniedError, match="your own content"):
            await self.service.update_content(
                mock_db_session, make_user(), uuid4(), ContentUpdateRequest(title="x")
            )

    @pytest.mark.asyncio
    async def test_update_content(self, mock_db_session, make_user, make_content):
        author = make_user()
        content = make_content(author=author, tags=["old"])
        mock_db_session.get.return_value = content
        data = ContentUpdateRequest.model_validate(
            {"title": "New title", "body": "", "contentType": "news", "tags": ["new", " "]}
        )

        result = await self.service.update_content(mock_db_session, author, content.id, data)

        assert result.content.title == "New title"
        assert result.content.body == "Three humpbacks surfaced near the harbor this morning."
        assert result.content.content_type == "news"
        assert result.content.tags == ["new"]

    @pytest.mark.asyncio
    async def test_delete_missing(self, mock_db_session, make_user):
        with pytest.raises(NotFoundError):
            await self.service.delete_content(mock_db_session, make_user(), uuid4())

    @pytest.mark.asyncio
    async def test_delete_removes_pdf(self, mock_db_session, make_user, make_content):
        author = make_user()
        content = make_content(author=author, content_type="pdf", file_url="2024/05/17/abc.pdf")
        mock_db_session.get.return_value = content

        with patch("bluewhale.services.content_service.file_service") as mock_files:
            mock_files.storage_root = Path("/srv/uploads")
            mock_files.cleanup_file = AsyncMock()
            mock_db_session.commit.side_effect = (
                lambda: mock_files.cleanup_file.assert_not_awaited()
            )
            result = await self.service.delete_content(mock_db_session, author, content.id)

        assert result.message == "Content deleted successfully"
        mock_db_session.delete.assert_awaited_once_with(content)
        mock_db_session.commit.assert_awaited_once()
        mock_files.cleanup_file.assert_awaited_once_with("/srv/uploads/2024/05/17/abc.pdf")

    @pytest.mark.asyncio
    async def test_delete_keeps_pdf_when_commit_fails(self, mock_db_session, make_user, make_content):
        author = make_user()
        content = make_content(author=author, content_type="pdf", file_url="2024/05/17/abc.pdf")
        mock_db_session.get.return_value = content
        mock_db_session.commit.side_effect = OperationalError("COMMIT", {}, MagicMock())

        with patch("bluewhale.services.content_service.file_service") as mock_files:
            mock_files.storage_root = Path("/srv/uploads")
            mock_files.cleanup_file = AsyncMock()
            with pytest.raises(DatabaseError):
                await self.service.delete_content(mock_db_session, author, content.id)

        mock_files.cleanup_file.assert_not_awaited()


class TestLikesAndBookmarks:

    def setup_method(self):
        self.service = ContentService()

    @pytest.mark.asyncio
    async def test_like_notifies_author(self, mock_db_session, make_user, make_content):
        fan = make_user(name="Fan")
        content = make_content(title="Orca pod")
        mock_db_session.get.side_effect = [content, None]
        mock_db_session.scalar.return_value = 5

        result = await self.service.like_content(mock_db_session, fan, content.id)

        assert result.message == "Content liked successfully"
        assert result.likes_count == 5
        assert len(added_of_type(mock_db_session, ContentLike)) == 1
        [notification] = added_of_type(mock_db_session, Notification)
        assert notification.recipient_id == content.author_id
        assert notification.type == "like"
        assert notification.content_id == content.id
        assert notification.message == 'Fan liked your content "Orca pod"'

    @pytest.mark.asyncio
    async def test_like_own_post_no_notification(self, mock_db_session, make_user, make_content):
        author = make_user()
        content = make_content(author=author)
        mock_db_session.get.side_effect = [content, None]
        mock_db_session.scalar.return_value = 1

        await self.service.like_content(mock_db_session, author, content.id)

        assert added_of_type(mock_db_session, Notification) == []

    @pytest.mark.asyncio
    async def test_like_twice(self, mock_db_session, make_user, make_content):
        user = make_user()
        content = make_content()
        mock_db_session.get.side_effect = [content, ContentLike(content_id=content.id, user_id=user.id)]

        with pytest.raises(ValidationError, match="already liked"):
            await self.service.like_content(mock_db_session, user, content.id)

    @pytest.mark.asyncio
    async def test_like_missing_content(self, mock_db_session, make_user):
        with pytest.raises(NotFoundError):
            await self.service.like_content(mock_db_session, make_user(), uuid4())

    @pytest.mark.asyncio
    async def test_unlike_not_liked(self, mock_db_session, make_user, make_content):
        mock_db_session.get.side_effect = [make_content(), None]

        with pytest.raises(ValidationError, match="have not liked"):
            await self.service.unlike_content(mock_db_session, make_user(), uuid4())

    @pytest.mark.asyncio
    async def test_unlike(self, mock_db_session, make_user, make_content):
        user = make_user()
        content = make_content(likes_count=3)
        like = ContentLike(content_id=content.id, user_id=user.id)
        mock_db_session.get.side_effect = [content, like]
        mock_db_session.scalar.return_value = 2

        result = await self.service.unlike_content(mock_db_session, user, content.id)

        assert result.likes_count == 2
        mock_db_session.delete.assert_awaited_once_with(like)

    @pytest.mark.asyncio
    async def test_save_twice(self, mock_db_session, make_user, make_content):
        user = make_user()
        content = make_content()
        mock_db_session.get.side_effect = [content, SavedContent(user_id=user.id, content_id=content.id)]

        with pytest.raises(ValidationError, match="already saved"):
            await self.service.save_content(mock_db_session, user, content.id)

    @pytest.mark.asyncio
    async def test_save(self, mock_db_session, make_user, make_content):
        user = make_user()
        content = make_content()
        mock_db_session.get.side_effect = [content, None]

        result = await self.service.save_content(mock_db_session, user, content.id)

        assert result.message == "Content saved successfully"
        [saved] = added_of_type(mock_db_session, SavedContent)
        assert (saved.user_id, saved.content_id) == (user.id, content.id)

    @pytest.mark.asyncio
    async def test_unsave_is_idempotent(self, mock_db_session, make_user):
        result = await self.service.unsave_content(mock_db_session, make_user(), uuid4())

        assert result.message == "Content removed from saved"
        mock_db_session.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_saved(self, mock_db_session, make_user, make_content, scalars_result):
        posts = [make_content(), make_content()]
        mock_db_session.scalar.return_value = 2
        mock_db_session.scalars.return_value = scalars_result(posts)

        result = await self.service.list_saved(mock_db_session, make_user(), page=1, limit=10)

        assert [c.id for c in result.content] == [p.id for p in posts]
        assert result.pagination.total == 2
