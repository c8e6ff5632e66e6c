"""
Blue Whale Backend: Content Route Handlers
============================================

What:  Everything under /content (feeds, search, CRUD, likes, bookmarks,
       comments) plus GET /uploads/{path} for stored PDF files.
How:   Thin handlers; query parameters and form fields go straight to
       ContentService, DiscoveryService and CommentService.

Route Order:
    The fixed paths (/global-top, /local, /personalized, /search, /saved)
    are registered before /{content_id}. Content ids are UUIDs, so a
    malformed id fails path validation with 422 instead of reaching a service.

Query Parameters:
    Coordinates and radius are taken as strings and parsed by the services,
    so a missing or non-numeric value on /local is the documented 400 rather
    than FastAPI's 422. Request names follow the web client (contentType,
    textContent, lng as an alias for lon).
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from bluewhale.database import get_db_session
from bluewhale.dependencies import get_current_user
from bluewhale.models import User
from bluewhale.schemas.common import ErrorResponse, MessageResponse
from bluewhale.schemas.content import (
    CommentListResponse,
    CommentMutationResponse,
    CommentRequest,
    ContentDetailResponse,
    ContentFeedResponse,
    ContentMutationResponse,
    ContentPageResponse,
    ContentSearchResponse,
    ContentUpdateRequest,
    LikeResponse,
)
from bluewhale.services.comment_service import comment_service
from bluewhale.services.content_service import content_service
from bluewhale.services.discovery_service import discovery_service
from bluewhale.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/content", tags=["Content"])
uploads_router = APIRouter(tags=["Uploads"])

NOT_FOUND = {404: {"description": "Content not found", "model": ErrorResponse}}
FORBIDDEN = {403: {"description": "Not the author", "model": ErrorResponse}}


def _with_total(response: Response, result):
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


# ══════════════════════════════════════════════════════════════════════════
# Feeds & Search
# ══════════════════════════════════════════════════════════════════════════


@router.get("", response_model=ContentFeedResponse, summary="All content, newest first")
async def list_content(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> ContentFeedResponse:
    return _with_total(response, await discovery_service.list_all(db, page=page, limit=limit))


@router.get(
    "/global-top",
    response_model=ContentFeedResponse,
    summary="Content ranked by 3 x likes + 2 x comments + views",
)
async def global_top(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> ContentFeedResponse:
    return _with_total(response, await discovery_service.global_top(db, page=page, limit=limit))


@router.get(
    "/local",
    response_model=ContentFeedResponse,
    responses={400: {"description": "Missing coordinates", "model": ErrorResponse}},
    summary="Content within a radius of a point",
)
async def local_content(
    response: Response,
    longitude: str | None = Query(default=None),
    latitude: str | None = Query(default=None),
    radius: str | None = Query(default=None, description="Kilometres, default 10"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> ContentFeedResponse:
    result = await discovery_service.local(
        db,
        longitude=longitude,
        latitude=latitude,
        radius=radius,
        page=page,
        limit=limit,
    )
    return _with_total(response, result)


@router.get(
    "/personalized",
    response_model=ContentFeedResponse,
    summary="Followed authors plus nearby content",
)
async def personalized_content(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentFeedResponse:
    result = await discovery_service.personalized(db, current_user, page=page, limit=limit)
    return _with_total(response, result)


@router.get(
    "/search",
    response_model=ContentSearchResponse,
    responses={400: {"description": "Missing query", "model": ErrorResponse}},
    summary="Full-text search with tag, type and location filters",
)
async def search_content(
    response: Response,
    query: str | None = Query(default=None),
    tags: str | None = Query(default=None, description="Comma-separated, any-of"),
    content_type: str | None = Query(default=None, alias="contentType"),
    sort: str = Query(default="relevance", description="relevance, date, aiScore, views, likes"),
    lat: str | None = Query(default=None),
    lon: str | None = Query(default=None),
    lng: str | None = Query(default=None),
    radius: str | None = Query(default=None, description="Kilometres, default 10"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> ContentSearchResponse:
    result = await discovery_service.search(
        db,
        query=query,
        tags=tags,
        content_type=content_type,
        sort=sort,
        lat=lat,
        lon=lon if lon is not None else lng,
        radius=radius,
        page=page,
        limit=limit,
    )
    return _with_total(response, result)


@router.get("/saved", response_model=ContentPageResponse, summary="Your bookmarks")
async def saved_content(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentPageResponse:
    result = await content_service.list_saved(db, current_user, page=page, limit=limit)
    return _with_total(response, result)


# ══════════════════════════════════════════════════════════════════════════
# CRUD
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "",
    status_code=201,
    response_model=ContentMutationResponse,
    responses={400: {"description": "Invalid form or file", "model": ErrorResponse}},
    summary="Create a text post or upload a PDF",
)
async def create_content(
    title: str = Form(default=""),
    content_type: str = Form(default="text", alias="contentType"),
    text_content: str | None = Form(default=None, alias="textContent"),
    latitude: str | None = Form(default=None),
    longitude: str | None = Form(default=None),
    location_name: str | None = Form(default=None, alias="locationName"),
    tags: str | None = Form(default=None, description='JSON array, e.g. ["seoul", "food"]'),
    file: UploadFile | None = File(default=None, description="PDF document, max 10MB"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentMutationResponse:
    filename = None
    file_bytes = None
    content_length = None
    if file is not None:
        try:
            file_bytes = await file.read()
            filename = file.filename or "upload.pdf"
            content_length = file.size
        finally:
            await file.close()
        logger.info("Received upload: filename=%s, size=%d bytes", filename, len(file_bytes))

    return await content_service.create_content(
        db,
        current_user,
        title=title,
        content_type=content_type,
        text_content=text_content,
        filename=filename,
        file_bytes=file_bytes,
        content_length=content_length,
        latitude=latitude,
        longitude=longitude,
        location_name=location_name,
        tags=tags,
    )


@router.get(
    "/{content_id}",
    response_model=ContentDetailResponse,
    responses=NOT_FOUND,
    summary="A post with its comments (counts a view)",
)
async def get_content(
    content_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ContentDetailResponse:
    return await content_service.get_content(db, content_id)


@router.put(
    "/{content_id}",
    response_model=ContentMutationResponse,
    responses={**FORBIDDEN, **NOT_FOUND},
)
async def update_content(
    content_id: UUID,
    payload: ContentUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentMutationResponse:
    return await content_service.update_content(db, current_user, content_id, payload)


@router.delete(
    "/{content_id}",
    response_model=MessageResponse,
    responses={**FORBIDDEN, **NOT_FOUND},
)
async def delete_content(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await content_service.delete_content(db, current_user, content_id)


# ══════════════════════════════════════════════════════════════════════════
# Likes & Bookmarks
# ══════════════════════════════════════════════════════════════════════════


@router.post("/{content_id}/like", response_model=LikeResponse, responses=NOT_FOUND)
async def like_content(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LikeResponse:
    return await content_service.like_content(db, current_user, content_id)


@router.delete("/{content_id}/like", response_model=LikeResponse, responses=NOT_FOUND)
async def unlike_content(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LikeResponse:
    return await content_service.unlike_content(db, current_user, content_id)


@router.post("/{content_id}/save", response_model=MessageResponse, responses=NOT_FOUND)
async def save_content(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await content_service.save_content(db, current_user, content_id)


@router.delete("/{content_id}/save", response_model=MessageResponse)
async def unsave_content(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await content_service.unsave_content(db, current_user, content_id)


# ══════════════════════════════════════════════════════════════════════════
# Comments
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/{content_id}/comments",
    status_code=201,
    response_model=CommentMutationResponse,
    responses=NOT_FOUND,
)
async def add_comment(
    content_id: UUID,
    payload: CommentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentMutationResponse:
    return await comment_service.add_comment(db, current_user, content_id, payload.content)


@router.get("/{content_id}/comments", response_model=CommentListResponse, responses=NOT_FOUND)
async def list_comments(
    content_id: UUID,
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> CommentListResponse:
    result = await comment_service.list_comments(db, content_id, page=page, limit=limit)
    return _with_total(response, result)


@router.put(
    "/{content_id}/comments/{comment_id}",
    response_model=CommentMutationResponse,
    responses={**FORBIDDEN, **NOT_FOUND},
)
async def update_comment(
    content_id: UUID,
    comment_id: UUID,
    payload: CommentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentMutationResponse:
    return await comment_service.update_comment(
        db, current_user, content_id, comment_id, payload.content
    )


@router.delete(
    "/{content_id}/comments/{comment_id}",
    response_model=MessageResponse,
    responses={**FORBIDDEN, **NOT_FOUND},
)
async def delete_comment(
    content_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await comment_service.delete_comment(db, current_user, content_id, comment_id)


# ══════════════════════════════════════════════════════════════════════════
# Stored Files
# ══════════════════════════════════════════════════════════════════════════


@uploads_router.get(
    "/uploads/{file_path:path}",
    summary="Serve an uploaded PDF",
    responses={404: {"description": "File not found", "model": ErrorResponse}},
)
async def serve_upload(file_path: str) -> FileResponse:
    full_path = file_service.resolve_stored_path(file_path)
    return FileResponse(
        path=str(full_path),
        media_type="application/pdf",
        headers={"Cache-Control": "public, max-age=86400"},
    )
