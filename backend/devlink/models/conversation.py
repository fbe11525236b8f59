"""
DevLink Backend — Conversation and Message Models
===================================================

What:  ORM models for one-to-one messaging (`conversations`, `messages`).
How:   A conversation stores its two participants in canonical order
       (user_low_id < user_high_id as strings) with a unique constraint,
       so "get or create the conversation between A and B" is the same
       lookup regardless of who starts it.
"""

import uuid
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    Uuid,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column

from devlink.database import Base
from devlink.models.user import utcnow


def ordered_participants(a: uuid.UUID, b: uuid.UUID) -> Tuple[uuid.UUID, uuid.UUID]:
    """Return the pair in canonical (low, high) order."""
    return (a, b) if str(a) < str(b) else (b, a)


class Conversation(Base):
    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_low_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    user_high_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    last_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_message_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_conversations_participants"),
    )

    @property
    def participants(self) -> Tuple[uuid.UUID, uuid.UUID]:
        return (self.user_low_id, self.user_high_id)

    def other_participant(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.user_high_id if self.user_low_id == user_id else self.user_low_id

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, participants={self.participants})>"


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    recipient_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    __table_args__ = (
        Index("idx_messages_recipient_unread", "recipient_id", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, conversation={self.conversation_id})>"


Index("idx_conversations_last_message_at", Conversation.last_message_at.desc())
Index(
    "idx_messages_conversation_created",
    Message.conversation_id,
    Message.created_at.desc(),
)
