"""
DevLink Backend — Notification Repository
===========================================

What:  Persistence for the notification feed.
How:   Every read/update is scoped by recipient_id in the WHERE clause, so a
       caller can never touch another user's notifications even when it
       passes their ids (mark_read silently skips them).
"""

import uuid
from datetime import datetime
from typing import Collection, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from devlink.models.notification import Notification


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, notification: Notification) -> Notification:
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def get(self, notification_id: uuid.UUID) -> Optional[Notification]:
        return await self.session.get(Notification, notification_id)

    async def list_for_recipient(
        self,
        recipient_id: uuid.UUID,
        offset: int,
        limit: int,
    ) -> List[Notification]:
        result = await self.session.execute(
            select(Notification)
            .where(Notification.recipient_id == recipient_id)
            .order_by(Notification.created_at.desc(), Notification.id.asc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def count_unread(self, recipient_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_read(
        self,
        notification_ids: Collection[uuid.UUID],
        recipient_id: uuid.UUID,
        read_at: datetime,
    ) -> int:
        """Mark the caller's own notifications among `notification_ids` as read."""
        if not notification_ids:
            return 0
        result = await self.session.execute(
            update(Notification)
            .where(
                Notification.id.in_(set(notification_ids)),
                Notification.recipient_id == recipient_id,
            )
            .values(is_read=True, read_at=read_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def mark_all_read(self, recipient_id: uuid.UUID, read_at: datetime) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=read_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete(self, notification_id: uuid.UUID) -> None:
        await self.session.execute(
            delete(Notification)
            .where(Notification.id == notification_id)
            .execution_options(synchronize_session=False)
        )

    async def delete_all(self, recipient_id: uuid.UUID) -> int:
        result = await self.session.execute(
            delete(Notification)
            .where(Notification.recipient_id == recipient_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
