"""
DevLink Backend — Connection Service
======================================

What:  The connection request/accept/reject/remove workflow.
Why:   Centralises the state machine so every route enforces the same
       guards, in the same order, with the same errors.
How:
    State machine:

        (none) ──send_request──▶ pending ──accept──▶ accepted
                                    │
                                    └──reject──▶ rejected

    accepted and rejected are terminal; remove() deletes the record in any
    state. Guard order for accept/reject is NotFound → Forbidden →
    InvalidOperation, so a stranger never learns the status of someone
    else's request.

    The state change is committed before its notification event is
    published, so delivery always observes it and can never undo it.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from devlink.events import EventBus, NotificationEvent
from devlink.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from devlink.models.connection import Connection, ConnectionStatus
from devlink.models.notification import NotificationType
from devlink.repositories.connections import ConnectionRepository
from devlink.repositories.users import UserRepository
from devlink.schemas.common import StatusMessage
from devlink.schemas.connection import AcceptedConnection, ConnectionResponse
from devlink.services.enrichment import UserEnricher

logger = logging.getLogger(__name__)

PENDING_DIRECTIONS = ("sent", "received")


class ConnectionService:
    """
    Connection workflow for one request.

    Args:
        connections: Connection repository bound to the request session
        users:       User directory (existence checks, notification text)
        enricher:    Read-side DTO builder
        events:      Where notification events are published
    """

    def __init__(
        self,
        connections: ConnectionRepository,
        users: UserRepository,
        enricher: UserEnricher,
        events: EventBus,
    ):
        self.connections = connections
        self.users = users
        self.enricher = enricher
        self.events = events

    # ── Write path ─────────────────────────────────────────────────────

    async def send_request(
        self,
        requester_id: uuid.UUID,
        recipient_id: uuid.UUID,
    ) -> ConnectionResponse:
        """
        Create a pending connection from requester to recipient.

        Raises:
            NotFoundError:         Recipient does not exist
            InvalidOperationError: Requesting a connection with yourself
            ConflictError:         Any connection already links the pair,
                                   in either direction and any status
        """
        recipient = await self.users.get(recipient_id)
        if recipient is None:
            raise NotFoundError(resource="user", resource_id=str(recipient_id))

        if requester_id == recipient_id:
            raise InvalidOperationError(
                message="You cannot send a connection request to yourself",
                context={"user_id": str(requester_id)},
            )

        existing = await self.connections.find_between(requester_id, recipient_id)
        if existing is not None:
            raise ConflictError(
                message="Connection already exists",
                context={"connection_id": str(existing.id), "status": existing.status},
            )

        try:
            connection = await self.connections.insert_pending(requester_id, recipient_id)
        except IntegrityError:
            # Lost a race with a concurrent request for the same pair
            logger.info(
                "Concurrent connection request between %s and %s rejected by unique index",
                requester_id,
                recipient_id,
            )
            raise ConflictError(message="Connection already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating connection: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the connection request. Please try again.",
                context={"requester_id": str(requester_id), "recipient_id": str(recipient_id)},
            )

        requester = await self.users.get(requester_id)
        requester_name = requester.name if requester else "Someone"
        await self.connections.commit()
        self.events.publish(
            NotificationEvent(
                recipient_id=recipient_id,
                sender_id=requester_id,
                type=NotificationType.CONNECTION_REQUEST,
                message=f"{requester_name} sent you a connection request",
                related_connection_id=connection.id,
            )
        )

        logger.info(
            "Connection request %s: %s → %s", connection.id, requester_id, recipient_id
        )
        return await self._to_response(connection)

    async def accept(
        self,
        connection_id: uuid.UUID,
        acting_user_id: uuid.UUID,
    ) -> ConnectionResponse:
        """
        Accept a pending request addressed to the acting user.

        Raises:
            NotFoundError:         No such connection
            ForbiddenError:        The actor is not the recipient
            InvalidOperationError: The request was already answered
        """
        connection = await self._respond(connection_id, acting_user_id, ConnectionStatus.ACCEPTED)

        recipient = await self.users.get(connection.recipient_id)
        recipient_name = recipient.name if recipient else "Someone"
        await self.connections.commit()
        self.events.publish(
            NotificationEvent(
                recipient_id=connection.requester_id,
                sender_id=connection.recipient_id,
                type=NotificationType.CONNECTION_ACCEPTED,
                message=f"{recipient_name} accepted your connection request",
                related_connection_id=connection.id,
            )
        )

        return await self._to_response(connection)

    async def reject(
        self,
        connection_id: uuid.UUID,
        acting_user_id: uuid.UUID,
    ) -> StatusMessage:
        """Same guards as accept(); the requester is not notified."""
        await self._respond(connection_id, acting_user_id, ConnectionStatus.REJECTED)
        return StatusMessage(msg="Connection request rejected")

    async def remove(
        self,
        connection_id: uuid.UUID,
        acting_user_id: uuid.UUID,
    ) -> StatusMessage:
        """Delete a connection in any state; either party may do it."""
        connection = await self._get_or_404(connection_id)
        if not connection.involves(acting_user_id):
            raise ForbiddenError(
                message="User not authorized",
                context={"connection_id": str(connection_id)},
            )

        try:
            await self.connections.delete(connection_id)
        except SQLAlchemyError as e:
            logger.error("Database error deleting connection %s: %s", connection_id, str(e))
            raise DatabaseError(
                message="Could not remove the connection. Please try again.",
                context={"connection_id": str(connection_id)},
            )

        logger.info("Connection %s removed by %s", connection_id, acting_user_id)
        return StatusMessage(msg="Connection removed")

    # ── Read path ──────────────────────────────────────────────────────

    async def list_accepted(self, user_id: uuid.UUID) -> List[AcceptedConnection]:
        """
        The user's network: the other party of each accepted connection,
        most recently accepted first.
        """
        connections = await self.connections.list_accepted(user_id)
        others = await self.enricher.profiled_by_id(c.other_party(user_id) for c in connections)

        result = []
        for connection in connections:
            other = others.get(connection.other_party(user_id))
            if other is None:
                logger.warning(
                    "Connection %s references missing user %s",
                    connection.id,
                    connection.other_party(user_id),
                )
                continue
            result.append(
                AcceptedConnection(
                    connection_id=connection.id,
                    user=other,
                    connected_at=connection.responded_at,
                )
            )
        return result

    async def list_pending(self, user_id: uuid.UUID, direction: str) -> List[ConnectionResponse]:
        """
        Pending requests the user sent or received, newest first.

        The counter-party carries a profile picture; the user does not.
        """
        if direction == "sent":
            connections = await self.connections.list_pending_sent(user_id)
        elif direction == "received":
            connections = await self.connections.list_pending_received(user_id)
        else:
            raise ValidationError(
                message=f"Unknown direction '{direction}'",
                field="direction",
                context={"allowed": list(PENDING_DIRECTIONS)},
            )

        counterparts = [c.other_party(user_id) for c in connections]
        people = await self.enricher.summaries(
            counterparts + [user_id],
            with_picture=counterparts,
        )
        return [
            ConnectionResponse(
                id=c.id,
                requester=people.get(c.requester_id),
                recipient=people.get(c.recipient_id),
                status=c.status,
                requested_at=c.requested_at,
                responded_at=c.responded_at,
            )
            for c in connections
        ]

    # ── Helpers ────────────────────────────────────────────────────────

    async def _get_or_404(self, connection_id: uuid.UUID) -> Connection:
        connection = await self.connections.get(connection_id)
        if connection is None:
            raise NotFoundError(resource="connection", resource_id=str(connection_id))
        return connection

    async def _respond(
        self,
        connection_id: uuid.UUID,
        acting_user_id: uuid.UUID,
        new_status: ConnectionStatus,
    ) -> Connection:
        connection = await self._get_or_404(connection_id)

        if connection.recipient_id != acting_user_id:
            raise ForbiddenError(
                message="User not authorized",
                context={"connection_id": str(connection_id)},
            )

        if connection.status != ConnectionStatus.PENDING.value:
            raise InvalidOperationError(
                message="Connection request already processed",
                context={"connection_id": str(connection_id), "status": connection.status},
            )

        try:
            moved = await self.connections.transition(
                connection_id, new_status, responded_at=datetime.now(timezone.utc)
            )
        except SQLAlchemyError as e:
            logger.error("Database error updating connection %s: %s", connection_id, str(e))
            raise DatabaseError(
                message="Could not update the connection. Please try again.",
                context={"connection_id": str(connection_id)},
            )

        if not moved:
            # Someone answered between our read and the conditional update
            raise InvalidOperationError(
                message="Connection request already processed",
                context={"connection_id": str(connection_id)},
            )

        logger.info("Connection %s %s by %s", connection_id, new_status.value, acting_user_id)
        return await self.connections.refresh(connection)

    async def _to_response(self, connection: Connection) -> ConnectionResponse:
        people = await self.enricher.summaries(
            [connection.requester_id, connection.recipient_id]
        )
        return ConnectionResponse(
            id=connection.id,
            requester=people.get(connection.requester_id),
            recipient=people.get(connection.recipient_id),
            status=connection.status,
            requested_at=connection.requested_at,
            responded_at=connection.responded_at,
        )
