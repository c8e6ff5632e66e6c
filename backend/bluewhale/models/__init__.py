"""
Blue Whale Backend: ORM Models
================================

Importing this package registers every table with Base.metadata
(used by Alembic's env.py and by relationship string resolution).
"""

from bluewhale.models.user import Follow, User
from bluewhale.models.content import CONTENT_TYPES, TITLE_MAX_LENGTH, Content, ContentLike, SavedContent
from bluewhale.models.comment import Comment
from bluewhale.models.notification import NOTIFICATION_TYPES, Notification

__all__ = [
    "CONTENT_TYPES",
    "Comment",
    "Content",
    "ContentLike",
    "Follow",
    "NOTIFICATION_TYPES",
    "Notification",
    "SavedContent",
    "TITLE_MAX_LENGTH",
    "User",
]
