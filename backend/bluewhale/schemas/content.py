"""
Blue Whale Backend: Content & Comment Schemas
===============================================

What:  API contracts for /content, /content/{id}/comments and saved content.

List endpoints return `{"data": [...], "pagination": {...}}` (feeds and
search) or `{"content": [...], "pagination": {...}}` (a user's posts and
bookmarks), matching what the web client already consumes.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from bluewhale.schemas.common import ContentLocation, Pagination
from bluewhale.schemas.user import UserResponse

ContentType = Literal["text", "pdf", "article", "question", "discussion", "review", "news"]


# ══════════════════════════════════════════════════════════════════════════
# Comments
# ══════════════════════════════════════════════════════════════════════════


class CommentResponse(BaseModel):
    id: uuid.UUID
    content: str
    author_id: uuid.UUID
    content_id: uuid.UUID
    author: Optional[UserResponse] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CommentListResponse(BaseModel):
    comments: List[CommentResponse]
    pagination: Pagination


class CommentMutationResponse(BaseModel):
    message: str
    comment: CommentResponse


class CommentRequest(BaseModel):
    """Body of POST and PUT on comments."""
    content: str = Field(min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("comment must not be blank")
        return stripped


# ══════════════════════════════════════════════════════════════════════════
# Content
# ══════════════════════════════════════════════════════════════════════════


class ContentResponse(BaseModel):
    """
    A post as shown in feeds.

    file_url is relative to the upload root; the client fetches the PDF
    from /uploads/{file_url}.
    """
    id: uuid.UUID
    title: str
    body: Optional[str] = None
    content_type: str
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    author_id: uuid.UUID
    author: Optional[UserResponse] = None
    location: ContentLocation = Field(default_factory=ContentLocation)
    tags: List[str] = Field(default_factory=list)
    ai_score: int = 0
    views: int = 0
    likes_count: int = 0
    comments_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ContentDetailResponse(ContentResponse):
    """GET /content/{id}: the post with its comments, newest first."""
    comments: List[CommentResponse] = Field(default_factory=list)


class ContentSearchItem(ContentResponse):
    """Search hit; `score` is the full-text relevance rank."""
    score: Optional[float] = None


class ContentFeedResponse(BaseModel):
    data: List[ContentResponse]
    pagination: Pagination


class ContentSearchResponse(BaseModel):
    data: List[ContentSearchItem]
    pagination: Pagination


class ContentPageResponse(BaseModel):
    content: List[ContentResponse]
    pagination: Pagination


class ContentMutationResponse(BaseModel):
    message: str
    content: ContentResponse


class ContentUpdateRequest(BaseModel):
    """PUT /content/{id}. Only supplied, non-empty fields change."""
    title: Optional[str] = Field(default=None, max_length=200)
    body: Optional[str] = None
    content_type: Optional[ContentType] = Field(default=None, alias="contentType")
    location: Optional[ContentLocation] = None
    tags: Optional[List[str]] = None

    model_config = {"populate_by_name": True}

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        return [tag.strip() for tag in v if tag and tag.strip()]


class LikeResponse(BaseModel):
    """POST/DELETE /content/{id}/like: the new like total."""
    message: str
    likes_count: int
