"""
DevLink Backend — Connection SQLAlchemy Model
===============================================

What:  ORM model representing the `connections` table.
Why:   A connection is a directed request between two users that may become
       a mutual relationship.
Who:   Used by ConnectionRepository and the SuggestionEngine.

Table Design Rationale:
    - pair_key: "<lower-id>:<higher-id>" with a UNIQUE index. The request
      handler checks both directions before inserting, but the check and
      the insert are two statements; the unique pair_key makes the database
      reject the second of two racing requests no matter which direction
      each one points.
    - (requester_id, recipient_id) UNIQUE kept as well, mirroring the
      direction-aware lookup the pending lists use.
    - CHECK requester_id <> recipient_id: self-connections are impossible
      even if a caller bypasses the service.

State Machine:
    pending → accepted   (terminal; recipient only)
    pending → rejected   (terminal; recipient only)
    any     → (deleted)  (either party; the row is removed)
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from devlink.database import Base
from devlink.models.user import utcnow


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def make_pair_key(a: uuid.UUID, b: uuid.UUID) -> str:
    """Order-independent key for an unordered pair of user ids."""
    low, high = sorted((str(a), str(b)))
    return f"{low}:{high}"


class Connection(Base):
    """A connection request between two users and its outcome."""

    __tablename__ = "connections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    pair_key: Mapped[str] = mapped_column(String(80), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ConnectionStatus.PENDING.value,
    )
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    responded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        UniqueConstraint("pair_key", name="uq_connections_pair_key"),
        UniqueConstraint("requester_id", "recipient_id", name="uq_connections_requester_recipient"),
        CheckConstraint("requester_id <> recipient_id", name="ck_connections_not_self"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')",
            name="ck_connections_status",
        ),
        Index("idx_connections_recipient_status", "recipient_id", "status"),
        Index("idx_connections_requester_status", "requester_id", "status"),
    )

    def other_party(self, user_id: uuid.UUID) -> uuid.UUID:
        """The id on the opposite side of the connection from `user_id`."""
        return self.recipient_id if self.requester_id == user_id else self.requester_id

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.requester_id, self.recipient_id)

    def __repr__(self) -> str:
        return (
            f"<Connection(id={self.id}, requester={self.requester_id}, "
            f"recipient={self.recipient_id}, status='{self.status}')>"
        )
