"""
DevLink Backend — Notification Route Handlers
===============================================

What:  /api/notifications: the caller's feed, unread badge and housekeeping.
Who:   The frontend notification bell and notifications page.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from devlink.dependencies import get_current_user_id, get_notification_emitter
from devlink.schemas.common import ErrorResponse, StatusMessage
from devlink.schemas.notification import MarkReadRequest, NotificationResponse, UnreadCount
from devlink.services.notification_service import NotificationEmitter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=List[NotificationResponse],
    summary="My notifications, newest first",
)
async def list_notifications(
    request: Request,
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Items per page (max 100)"),
    user_id: UUID = Depends(get_current_user_id),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> List[NotificationResponse]:
    if limit is None:
        limit = request.app.state.settings.notification_page_size
    return await emitter.list_for_recipient(user_id, page=page, limit=limit)


@router.get(
    "/unread-count",
    response_model=UnreadCount,
    summary="Number of unread notifications",
)
async def unread_count(
    user_id: UUID = Depends(get_current_user_id),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> UnreadCount:
    return UnreadCount(count=await emitter.unread_count(user_id))


@router.put(
    "/mark-read",
    response_model=StatusMessage,
    summary="Mark notifications as read",
    description="Ids that do not belong to the caller are ignored.",
)
async def mark_read(
    body: MarkReadRequest,
    user_id: UUID = Depends(get_current_user_id),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> StatusMessage:
    await emitter.mark_read(body.notification_ids, owner_id=user_id)
    return StatusMessage(msg="Notifications marked as read")


@router.put(
    "/mark-all-read",
    response_model=StatusMessage,
    summary="Mark every notification as read",
)
async def mark_all_read(
    user_id: UUID = Depends(get_current_user_id),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> StatusMessage:
    await emitter.mark_all_read(owner_id=user_id)
    return StatusMessage(msg="All notifications marked as read")


@router.delete(
    "/{notification_id}",
    response_model=StatusMessage,
    responses={
        401: {"description": "Not the recipient", "model": ErrorResponse},
        404: {"description": "Notification not found", "model": ErrorResponse},
    },
    summary="Delete one notification",
)
async def delete_notification(
    notification_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> StatusMessage:
    await emitter.delete(notification_id, owner_id=user_id)
    return StatusMessage(msg="Notification removed")


@router.delete(
    "",
    response_model=StatusMessage,
    summary="Delete all my notifications",
)
async def delete_all(
    user_id: UUID = Depends(get_current_user_id),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> StatusMessage:
    await emitter.delete_all(owner_id=user_id)
    return StatusMessage(msg="All notifications removed")
