"""
DevLink Backend — Notification SQLAlchemy Model
=================================================

What:  ORM model representing the `notifications` table.
Why:   One-way, read-tracked events addressed to a single recipient.
Who:   Written by NotificationEmitter; read and cleaned up by the
       recipient through the notifications routes.

Lifecycle:
    1. Created after the triggering action commits (is_read = false)
    2. Only is_read / read_at ever change
    3. Deleted individually or in bulk by the recipient

Related ids are plain columns without foreign keys: removing a connection
(or a post, owned by another service) must not remove the history of
notifications that mentioned it.

Query Patterns:
    - Feed:          WHERE recipient_id = ? ORDER BY created_at DESC
    - Unread badge:  WHERE recipient_id = ? AND is_read = false
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Uuid,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column

from devlink.database import Base
from devlink.models.user import utcnow


class NotificationType(str, enum.Enum):
    CONNECTION_REQUEST = "connection_request"
    CONNECTION_ACCEPTED = "connection_accepted"
    POST_LIKE = "post_like"
    POST_COMMENT = "post_comment"
    CONNECTION_SUGGESTION = "connection_suggestion"


_TYPE_VALUES = ", ".join(f"'{t.value}'" for t in NotificationType)


class Notification(Base):
    """A notification addressed to `recipient_id`, triggered by `sender_id`."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # No FK: the sender may be deleted while the notification lives on
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)

    related_post_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    related_connection_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    related_comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        CheckConstraint("recipient_id <> sender_id", name="ck_notifications_not_self"),
        CheckConstraint(f"type IN ({_TYPE_VALUES})", name="ck_notifications_type"),
        Index("idx_notifications_recipient_unread", "recipient_id", "is_read"),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, recipient={self.recipient_id}, "
            f"type='{self.type}', is_read={self.is_read})>"
        )


# Newest-first feed per recipient
Index(
    "idx_notifications_recipient_created",
    Notification.recipient_id,
    Notification.created_at.desc(),
)
