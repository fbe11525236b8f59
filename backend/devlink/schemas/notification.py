"""
DevLink Backend — Notification Schemas
========================================

What:  API contract for the /api/notifications routes.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field

from devlink.models.notification import NotificationType
from devlink.schemas.common import CamelModel
from devlink.schemas.user import UserSummary


def humanize_age(created_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Short relative age for feed display.

    Under a minute → "just now"; then "Nm ago", "Nh ago", "Nd ago" up to a
    week; older than that → the ISO calendar date.
    """
    now = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        # SQLite hands timestamps back naive; they are stored as UTC
        created_at = created_at.replace(tzinfo=timezone.utc)

    seconds = (now - created_at).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return created_at.date().isoformat()


class NotificationResponse(CamelModel):
    """
    One entry of the notification feed.

    `sender` is null when the triggering user no longer exists.
    """
    id: uuid.UUID
    recipient_id: uuid.UUID
    sender: Optional[UserSummary]
    type: NotificationType
    message: str
    related_post_id: Optional[uuid.UUID] = None
    related_connection_id: Optional[uuid.UUID] = None
    related_comment_id: Optional[uuid.UUID] = None
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None
    time_ago: str


class MarkReadRequest(CamelModel):
    """Body of PUT /api/notifications/mark-read."""
    notification_ids: List[uuid.UUID] = Field(description="Notifications to mark as read")


class UnreadCount(CamelModel):
    count: int = Field(ge=0)
