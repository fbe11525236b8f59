"""
Conversation and message persistence for one-to-one messaging.
"""

import uuid
from datetime import datetime
from typing import Collection, Dict, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from devlink.models.conversation import Conversation, Message, ordered_participants


class ConversationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, conversation_id: uuid.UUID) -> Optional[Conversation]:
        return await self.session.get(Conversation, conversation_id)

    async def find_between(self, a: uuid.UUID, b: uuid.UUID) -> Optional[Conversation]:
        low, high = ordered_participants(a, b)
        result = await self.session.execute(
            select(Conversation).where(
                Conversation.user_low_id == low,
                Conversation.user_high_id == high,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, a: uuid.UUID, b: uuid.UUID, now: datetime) -> Conversation:
        low, high = ordered_participants(a, b)
        conversation = Conversation(user_low_id=low, user_high_id=high, last_message_at=now)
        self.session.add(conversation)
        await self.session.flush()
        return conversation

    async def list_for_user(self, user_id: uuid.UUID) -> List[Conversation]:
        result = await self.session.execute(
            select(Conversation)
            .where(or_(Conversation.user_low_id == user_id, Conversation.user_high_id == user_id))
            .order_by(Conversation.last_message_at.desc(), Conversation.id.asc())
        )
        return list(result.scalars().all())

    async def unread_counts(
        self,
        conversation_ids: Collection[uuid.UUID],
        recipient_id: uuid.UUID,
    ) -> Dict[uuid.UUID, int]:
        """Unread messages addressed to `recipient_id`, grouped by conversation."""
        if not conversation_ids:
            return {}
        result = await self.session.execute(
            select(Message.conversation_id, func.count(Message.id))
            .where(
                Message.conversation_id.in_(set(conversation_ids)),
                Message.recipient_id == recipient_id,
                Message.is_read.is_(False),
            )
            .group_by(Message.conversation_id)
        )
        return {conversation_id: count for conversation_id, count in result.all()}

    async def list_messages(
        self,
        conversation_id: uuid.UUID,
        limit: int,
        before: Optional[datetime] = None,
    ) -> List[Message]:
        """Newest `limit` messages (older than `before`), newest first."""
        query = select(Message).where(Message.conversation_id == conversation_id)
        if before is not None:
            query = query.where(Message.created_at < before)
        query = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)
        # Bulk read-marking bypasses the identity map; reload what it holds
        query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def mark_messages_read(self, message_ids: Collection[uuid.UUID]) -> int:
        if not message_ids:
            return 0
        result = await self.session.execute(
            update(Message)
            .where(Message.id.in_(set(message_ids)))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def add_message(
        self,
        conversation: Conversation,
        sender_id: uuid.UUID,
        recipient_id: uuid.UUID,
        text: str,
        now: datetime,
    ) -> Message:
        """Store a message and bump the conversation's preview fields."""
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            text=text,
            created_at=now,
        )
        self.session.add(message)
        conversation.last_message = text
        conversation.last_message_at = now
        await self.session.flush()
        return message
