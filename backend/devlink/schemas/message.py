"""
Messaging request/response schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from devlink.schemas.common import CamelModel
from devlink.schemas.user import UserSummary

MAX_MESSAGE_LENGTH = 5000


class ConversationCreate(CamelModel):
    user_id: uuid.UUID = Field(description="The other participant")


class SendMessageRequest(CamelModel):
    recipient_id: uuid.UUID
    text: str = Field(max_length=MAX_MESSAGE_LENGTH)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Surrounding whitespace is not part of the message."""
        return v.strip()


class ConversationResponse(CamelModel):
    id: uuid.UUID
    participants: List[uuid.UUID]
    last_message: Optional[str] = None
    last_message_at: datetime


class ConversationSummary(ConversationResponse):
    """Inbox entry: the other participant and how many of their messages are unread."""
    other_user: Optional[UserSummary]
    unread_count: int = Field(ge=0)


class MessageResponse(CamelModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    sender_id: uuid.UUID
    recipient_id: uuid.UUID
    text: str
    created_at: datetime
    is_read: bool
