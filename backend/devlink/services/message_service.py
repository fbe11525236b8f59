"""
DevLink Backend — Messaging Service
=====================================

What:  One-to-one conversations between users: inbox, history, sending.
How:   - A conversation is created lazily the first time either side opens
         it or sends a message, and is unique per pair of users.
       - Reading a page of history marks the caller's incoming messages in
         that page as read, which is what drives the inbox unread counts.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from devlink.exceptions import DatabaseError, ForbiddenError, InvalidOperationError, NotFoundError
from devlink.models.conversation import Conversation, Message
from devlink.repositories.conversations import ConversationRepository
from devlink.repositories.users import UserRepository
from devlink.schemas.message import ConversationResponse, ConversationSummary, MessageResponse
from devlink.services.enrichment import UserEnricher

logger = logging.getLogger(__name__)


def _conversation_response(conversation: Conversation) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        participants=list(conversation.participants),
        last_message=conversation.last_message,
        last_message_at=conversation.last_message_at,
    )


def _message_response(message: Message, is_read: Optional[bool] = None) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_id=message.sender_id,
        recipient_id=message.recipient_id,
        text=message.text,
        created_at=message.created_at,
        is_read=message.is_read if is_read is None else is_read,
    )


class MessageService:
    def __init__(
        self,
        conversations: ConversationRepository,
        users: UserRepository,
        enricher: UserEnricher,
    ):
        self.conversations = conversations
        self.users = users
        self.enricher = enricher

    async def list_conversations(self, user_id: uuid.UUID) -> List[ConversationSummary]:
        """The user's inbox, most recently active conversation first."""
        conversations = await self.conversations.list_for_user(user_id)
        others = [c.other_participant(user_id) for c in conversations]
        people = await self.enricher.summaries(others, with_picture=others)
        unread = await self.conversations.unread_counts([c.id for c in conversations], user_id)

        return [
            ConversationSummary(
                id=c.id,
                participants=list(c.participants),
                last_message=c.last_message,
                last_message_at=c.last_message_at,
                other_user=people.get(c.other_participant(user_id)),
                unread_count=unread.get(c.id, 0),
            )
            for c in conversations
        ]

    async def get_or_create_conversation(
        self,
        user_id: uuid.UUID,
        other_id: uuid.UUID,
    ) -> ConversationResponse:
        """
        Return the conversation between the two users, creating it if needed.

        Raises:
            InvalidOperationError: Opening a conversation with yourself
            NotFoundError:         The other user does not exist
        """
        if user_id == other_id:
            raise InvalidOperationError(message="You cannot start a conversation with yourself")
        if await self.users.get(other_id) is None:
            raise NotFoundError(resource="user", resource_id=str(other_id))

        conversation = await self._find_or_create(user_id, other_id)
        return _conversation_response(conversation)

    async def list_messages(
        self,
        conversation_id: uuid.UUID,
        user_id: uuid.UUID,
        limit: int = 50,
        before: Optional[datetime] = None,
    ) -> List[MessageResponse]:
        """
        A page of history in chronological order.

        Messages in the page addressed to the caller are marked read.

        Raises:
            NotFoundError:  No such conversation
            ForbiddenError: The caller is not a participant
        """
        conversation = await self.conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundError(resource="conversation", resource_id=str(conversation_id))
        if user_id not in conversation.participants:
            raise ForbiddenError(
                message="User not authorized",
                context={"conversation_id": str(conversation_id)},
            )

        messages = await self.conversations.list_messages(conversation_id, limit, before)
        incoming_unread = {
            m.id for m in messages if m.recipient_id == user_id and not m.is_read
        }
        if incoming_unread:
            await self.conversations.mark_messages_read(incoming_unread)

        return [
            _message_response(m, is_read=True if m.id in incoming_unread else None)
            for m in reversed(messages)
        ]

    async def send_message(
        self,
        sender_id: uuid.UUID,
        recipient_id: uuid.UUID,
        text: str,
    ) -> MessageResponse:
        """
        Raises:
            InvalidOperationError: Blank text, or messaging yourself
            NotFoundError:         Unknown recipient
        """
        text = (text or "").strip()
        if not text:
            raise InvalidOperationError(message="Message text cannot be empty")
        if sender_id == recipient_id:
            raise InvalidOperationError(message="You cannot send a message to yourself")
        if await self.users.get(recipient_id) is None:
            raise NotFoundError(resource="user", resource_id=str(recipient_id))

        try:
            conversation = await self._find_or_create(sender_id, recipient_id)
            message = await self.conversations.add_message(
                conversation,
                sender_id=sender_id,
                recipient_id=recipient_id,
                text=text,
                now=datetime.now(timezone.utc),
            )
        except SQLAlchemyError as e:
            logger.error("Database error sending message: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not send the message. Please try again.",
                context={"sender_id": str(sender_id), "recipient_id": str(recipient_id)},
            )

        logger.info("Message %s sent in conversation %s", message.id, conversation.id)
        return _message_response(message)

    async def _find_or_create(self, a: uuid.UUID, b: uuid.UUID) -> Conversation:
        conversation = await self.conversations.find_between(a, b)
        if conversation is None:
            conversation = await self.conversations.create(a, b, now=datetime.now(timezone.utc))
            logger.info("Conversation %s created", conversation.id)
        return conversation
