"""
Blue Whale Backend: Comment Service Unit Tests
================================================

Test Strategy:
    ✅ add: comments_count bumped, content author notified (not on own post)
    ✅ list: 404 for unknown content, pagination
    ✅ update/delete: author only, wrong content id treated as missing
"""

from uuid import uuid4

import pytest

from bluewhale.exceptions import NotFoundError, PermissionDeniedError
from bluewhale.models import Comment, Notification
from bluewhale.services.comment_service import CommentService


def added_of_type(session, cls):
    return [c.args[0] for c in session.add.call_args_list if isinstance(c.args[0], cls)]


class TestCommentService:

    def setup_method(self):
        self.service = CommentService()

    @pytest.mark.asyncio
    async def test_add_comment(self, mock_db_session, make_user, make_content):
        commenter = make_user(name="Diver")
        content = make_content(title="Reef report")
        mock_db_session.get.return_value = content

        result = await self.service.add_comment(mock_db_session, commenter, content.id, "Great find")

        assert result.message == "Comment added successfully"
        assert result.comment.content == "Great find"
        assert result.comment.author.id == commenter.id
        assert "comments_count" in str(mock_db_session.execute.await_args.args[0])

        [comment] = added_of_type(mock_db_session, Comment)
        [notification] = added_of_type(mock_db_session, Notification)
        assert notification.type == "comment"
        assert notification.recipient_id == content.author_id
        assert notification.comment_id == comment.id
        assert notification.message == 'Diver commented on your content "Reef report"'

    @pytest.mark.asyncio
    async def test_comment_on_own_post_no_notification(self, mock_db_session, make_user, make_content):
        author = make_user()
        content = make_content(author=author)
        mock_db_session.get.return_value = content

        await self.service.add_comment(mock_db_session, author, content.id, "Update: more whales")

        assert added_of_type(mock_db_session, Notification) == []

    @pytest.mark.asyncio
    async def test_add_comment_missing_content(self, mock_db_session, make_user):
        with pytest.raises(NotFoundError):
            await self.service.add_comment(mock_db_session, make_user(), uuid4(), "hello")
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_comments(self, mock_db_session, make_content, make_comment, scalars_result):
        content = make_content()
        comments = [make_comment(content), make_comment(content)]
        mock_db_session.get.return_value = content
        mock_db_session.scalar.return_value = 41
        mock_db_session.scalars.return_value = scalars_result(comments)

        result = await self.service.list_comments(mock_db_session, content.id, page=1, limit=20)

        assert len(result.comments) == 2
        assert result.pagination.pages == 3

    @pytest.mark.asyncio
    async def test_update_comment(self, mock_db_session, make_user, make_content, make_comment):
        author = make_user()
        content = make_content()
        comment = make_comment(content, author=author)
        mock_db_session.get.return_value = comment

        result = await self.service.update_comment(
            mock_db_session, author, content.id, comment.id, "Edited"
        )

        assert result.comment.content == "Edited"
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_someone_elses_comment(self, mock_db_session, make_user, make_content, make_comment):
        content = make_content()
        comment = make_comment(content)
        mock_db_session.get.return_value = comment

        with pytest.raises(PermissionDeniedError, match="your own comments"):
            await self.service.update_comment(mock_db_session, make_user(), content.id, comment.id, "x")

    @pytest.mark.asyncio
    async def test_comment_under_wrong_content(self, mock_db_session, make_user, make_content, make_comment):
        author = make_user()
        comment = make_comment(make_content(), author=author)
        mock_db_session.get.return_value = comment

        with pytest.raises(NotFoundError):
            await self.service.delete_comment(mock_db_session, author, uuid4(), comment.id)

    @pytest.mark.asyncio
    async def test_delete_comment(self, mock_db_session, make_user, make_content, make_comment):
        author = make_user()
        content = make_content(comments_count=1)
        comment = make_comment(content, author=author)
        mock_db_session.get.return_value = comment

        result = await self.service.delete_comment(mock_db_session, author, content.id, comment.id)

        assert result.message == "Comment deleted successfully"
        mock_db_session.delete.assert_awaited_once_with(comment)
        assert "greatest" in str(mock_db_session.execute.await_args.args[0])
