"""
DevLink Backend — Notification Emitter and Feed
=================================================

What:  Creates notification records and serves the recipient's feed.
Why:   Notifications are the side effect of connection (and, from other
       services sharing the database, post) activity. Creation is strictly
       best-effort: nothing that fails here may fail the action that
       triggered it.
How:   - NotificationEmitter.emit() persists one record, suppressing
         self-notifications.
       - NotificationHandler consumes NotificationEvents published by
         services. It runs after the triggering request committed, opens
         its own session, and logs (never raises) on failure.
       - Feed operations (list, unread count, mark read, delete) are
         scoped to the caller in every query.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Collection, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from devlink.database import Database
from devlink.events import NotificationEvent
from devlink.exceptions import DatabaseError, ForbiddenError, NotFoundError
from devlink.models.notification import Notification, NotificationType
from devlink.repositories.notifications import NotificationRepository
from devlink.schemas.notification import NotificationResponse, humanize_age

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """
    Notification persistence and the recipient-facing feed.

    Args:
        notifications: Repository bound to the current session
        enricher:      UserEnricher used to embed the sender in feed items.
                       Only the feed needs it; emit() does not.
    """

    def __init__(self, notifications: NotificationRepository, enricher=None):
        self.notifications = notifications
        self.enricher = enricher

    async def emit(
        self,
        recipient_id: uuid.UUID,
        sender_id: uuid.UUID,
        type: NotificationType,
        message: str,
        related_connection_id: Optional[uuid.UUID] = None,
        related_post_id: Optional[uuid.UUID] = None,
        related_comment_id: Optional[uuid.UUID] = None,
    ) -> Optional[Notification]:
        """
        Persist a new unread notification.

        Returns None, without writing anything, when the recipient is the
        sender: users are never notified about their own actions.
        """
        if recipient_id == sender_id:
            logger.debug("Suppressed self-notification (%s) for %s", type.value, sender_id)
            return None

        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type.value,
            message=message,
            related_connection_id=related_connection_id,
            related_post_id=related_post_id,
            related_comment_id=related_comment_id,
            is_read=False,
        )
        return await self.notifications.add(notification)

    async def list_for_recipient(
        self,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
    ) -> List[NotificationResponse]:
        """Newest-first page of the user's feed with the sender embedded."""
        try:
            rows = await self.notifications.list_for_recipient(
                user_id, offset=(page - 1) * limit, limit=limit
            )
            senders = await self.enricher.summaries(
                [n.sender_id for n in rows],
                with_picture=[n.sender_id for n in rows],
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing notifications for %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve notifications. Please try again.",
                context={"user_id": str(user_id)},
            )

        now = datetime.now(timezone.utc)
        return [
            NotificationResponse(
                id=n.id,
                recipient_id=n.recipient_id,
                sender=senders.get(n.sender_id),
                type=n.type,
                message=n.message,
                related_post_id=n.related_post_id,
                related_connection_id=n.related_connection_id,
                related_comment_id=n.related_comment_id,
                is_read=n.is_read,
                created_at=n.created_at,
                read_at=n.read_at,
                time_ago=humanize_age(n.created_at, now),
            )
            for n in rows
        ]

    async def unread_count(self, user_id: uuid.UUID) -> int:
        return await self.notifications.count_unread(user_id)

    async def mark_read(
        self,
        notification_ids: Collection[uuid.UUID],
        owner_id: uuid.UUID,
    ) -> int:
        """
        Mark the owner's notifications among `notification_ids` as read.

        Ids belonging to other users are skipped without error. Returns the
        number of notifications updated.
        """
        updated = await self.notifications.mark_read(
            notification_ids, owner_id, read_at=datetime.now(timezone.utc)
        )
        logger.info(
            "Marked %d/%d notifications read for %s",
            updated,
            len(set(notification_ids)),
            owner_id,
        )
        return updated

    async def mark_all_read(self, owner_id: uuid.UUID) -> int:
        return await self.notifications.mark_all_read(owner_id, read_at=datetime.now(timezone.utc))

    async def delete(self, notification_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        notification = await self.notifications.get(notification_id)
        if notification is None:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))
        if notification.recipient_id != owner_id:
            raise ForbiddenError(
                message="User not authorized",
                context={"notification_id": str(notification_id)},
            )
        await self.notifications.delete(notification_id)

    async def delete_all(self, owner_id: uuid.UUID) -> int:
        removed = await self.notifications.delete_all(owner_id)
        logger.info("Removed %d notifications for %s", removed, owner_id)
        return removed


class NotificationHandler:
    """
    Delivers published NotificationEvents.

    Each event is written in its own transaction. Any failure is logged
    with the stack trace and then dropped: notifications are never retried
    and never reported to the request that caused them.
    """

    def __init__(self, database: Database):
        self.database = database

    async def __call__(self, event: NotificationEvent) -> None:
        try:
            async with self.database.session() as session:
                emitter = NotificationEmitter(NotificationRepository(session))
                await emitter.emit(
                    recipient_id=event.recipient_id,
                    sender_id=event.sender_id,
                    type=event.type,
                    message=event.message,
                    related_connection_id=event.related_connection_id,
                    related_post_id=event.related_post_id,
                    related_comment_id=event.related_comment_id,
                )
        except Exception:
            logger.error(
                "Failed to deliver %s notification to %s",
                event.type.value,
                event.recipient_id,
                exc_info=True,
            )
