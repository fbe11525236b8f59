"""
DevLink Backend — Connection Repository
=========================================

What:  Queries and atomic updates for the `connections` table.
Why:   The state machine's safety under concurrent requests lives here:

    - insert_pending() relies on the unique pair_key index; a racing
      duplicate (in either direction) surfaces as IntegrityError, which
      the caller turns into a conflict.
    - transition() is a single conditional UPDATE guarded by
      `status = 'pending'`. Two concurrent accepts both issue it; the
      database serialises them on the row and only the first matches.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from devlink.models.connection import Connection, ConnectionStatus, make_pair_key


class ConnectionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, connection_id: uuid.UUID) -> Optional[Connection]:
        result = await self.session.execute(
            select(Connection).where(Connection.id == connection_id)
        )
        return result.scalar_one_or_none()

    async def find_between(self, a: uuid.UUID, b: uuid.UUID) -> Optional[Connection]:
        """Any connection linking the two users, in either direction and any status."""
        result = await self.session.execute(
            select(Connection).where(
                or_(
                    and_(Connection.requester_id == a, Connection.recipient_id == b),
                    and_(Connection.requester_id == b, Connection.recipient_id == a),
                )
            )
        )
        return result.scalars().first()

    async def insert_pending(
        self,
        requester_id: uuid.UUID,
        recipient_id: uuid.UUID,
    ) -> Connection:
        """
        Insert a new pending connection and flush.

        Raises:
            sqlalchemy.exc.IntegrityError: the pair is already connected
        """
        connection = Connection(
            requester_id=requester_id,
            recipient_id=recipient_id,
            pair_key=make_pair_key(requester_id, recipient_id),
            status=ConnectionStatus.PENDING.value,
        )
        self.session.add(connection)
        await self.session.flush()
        return connection

    async def transition(
        self,
        connection_id: uuid.UUID,
        new_status: ConnectionStatus,
        responded_at: datetime,
    ) -> bool:
        """
        Move a pending connection to `new_status`.

        Returns False when the row was not pending at the time of the
        update (someone else already responded), True otherwise.
        """
        result = await self.session.execute(
            update(Connection)
            .where(
                Connection.id == connection_id,
                Connection.status == ConnectionStatus.PENDING.value,
            )
            .values(status=new_status.value, responded_at=responded_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def commit(self) -> None:
        """End the unit of work early, before side effects are published."""
        await self.session.commit()

    async def refresh(self, connection: Connection) -> Connection:
        """Reload a connection after a bulk UPDATE bypassed the identity map."""
        await self.session.refresh(connection)
        return connection

    async def delete(self, connection_id: uuid.UUID) -> None:
        await self.session.execute(
            delete(Connection)
            .where(Connection.id == connection_id)
            .execution_options(synchronize_session=False)
        )

    async def list_accepted(self, user_id: uuid.UUID) -> List[Connection]:
        """Accepted connections involving the user, most recently accepted first."""
        result = await self.session.execute(
            select(Connection)
            .where(
                or_(Connection.requester_id == user_id, Connection.recipient_id == user_id),
                Connection.status == ConnectionStatus.ACCEPTED.value,
            )
            .order_by(Connection.responded_at.desc(), Connection.id.asc())
        )
        return list(result.scalars().all())

    async def list_pending_received(self, user_id: uuid.UUID) -> List[Connection]:
        result = await self.session.execute(
            select(Connection)
            .where(
                Connection.recipient_id == user_id,
                Connection.status == ConnectionStatus.PENDING.value,
            )
            .order_by(Connection.requested_at.desc(), Connection.id.asc())
        )
        return list(result.scalars().all())

    async def list_pending_sent(self, user_id: uuid.UUID) -> List[Connection]:
        result = await self.session.execute(
            select(Connection)
            .where(
                Connection.requester_id == user_id,
                Connection.status == ConnectionStatus.PENDING.value,
            )
            .order_by(Connection.requested_at.desc(), Connection.id.asc())
        )
        return list(result.scalars().all())

    async def counterpart_ids(self, user_id: uuid.UUID) -> Set[uuid.UUID]:
        """Ids of everyone linked to the user by a connection in any status."""
        result = await self.session.execute(
            select(Connection.requester_id, Connection.recipient_id).where(
                or_(Connection.requester_id == user_id, Connection.recipient_id == user_id)
            )
        )
        return {
            recipient if requester == user_id else requester
            for requester, recipient in result.all()
        }
