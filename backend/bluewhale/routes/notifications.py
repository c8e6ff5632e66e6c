"""
Blue Whale Backend: Notification Route Handlers
=================================================

What:  The authenticated user's inbox under /notifications.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from bluewhale.database import get_db_session
from bluewhale.dependencies import get_current_user
from bluewhale.models import User
from bluewhale.schemas.common import ErrorResponse, MessageResponse
from bluewhale.schemas.notification import (
    NotificationListResponse,
    NotificationMutationResponse,
    UnreadCountResponse,
)
from bluewhale.services.notification_service import notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse, summary="Your notifications, newest first")
async def list_notifications(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationListResponse:
    result = await notification_service.list_notifications(
        db, current_user.id, page=page, limit=limit
    )
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UnreadCountResponse:
    return await notification_service.unread_count(db, current_user.id)


@router.put("/read-all", response_model=MessageResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await notification_service.mark_all_read(db, current_user.id)


@router.put(
    "/{notification_id}/read",
    response_model=NotificationMutationResponse,
    responses={404: {"description": "Not found or not yours", "model": ErrorResponse}},
)
async def mark_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationMutationResponse:
    return await notification_service.mark_read(db, current_user.id, notification_id)
