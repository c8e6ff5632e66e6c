"""
Blue Whale Backend: Notification Schemas
==========================================

Notifications embed small summaries of the sender, content and comment they
refer to, so the inbox renders without extra requests.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from bluewhale.schemas.common import Pagination


class SenderSummary(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class ContentSummary(BaseModel):
    id: uuid.UUID
    title: str

    model_config = {"from_attributes": True}


class CommentSummary(BaseModel):
    id: uuid.UUID
    content: str

    model_config = {"from_attributes": True}


class NotificationResponse(BaseModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    type: str
    message: str
    read: bool
    created_at: datetime
    sender: Optional[SenderSummary] = None
    content: Optional[ContentSummary] = None
    comment: Optional[CommentSummary] = None

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    pagination: Pagination


class UnreadCountResponse(BaseModel):
    unread_count: int


class NotificationMutationResponse(BaseModel):
    message: str
    notification: NotificationResponse
