"""
Route handlers for one-to-one messaging (/api/messages).
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from devlink.dependencies import get_current_user_id, get_message_service
from devlink.schemas.common import ErrorResponse
from devlink.schemas.message import (
    ConversationCreate,
    ConversationResponse,
    ConversationSummary,
    MessageResponse,
    SendMessageRequest,
)
from devlink.services.message_service import MessageService

router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.get(
    "/conversations",
    response_model=List[ConversationSummary],
    summary="My conversations, most recent first",
)
async def list_conversations(
    user_id: UUID = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
) -> List[ConversationSummary]:
    return await service.list_conversations(user_id)


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    responses={
        400: {"description": "Conversation with yourself", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Open (or create) the conversation with another user",
)
async def open_conversation(
    body: ConversationCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
) -> ConversationResponse:
    return await service.get_or_create_conversation(user_id, body.user_id)


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=List[MessageResponse],
    responses={
        401: {"description": "Not a participant", "model": ErrorResponse},
        404: {"description": "Conversation not found", "model": ErrorResponse},
    },
    summary="Message history",
    description=(
        "Returns up to `limit` messages older than `before` in chronological "
        "order. Incoming messages in the page are marked as read."
    ),
)
async def list_messages(
    conversation_id: UUID,
    limit: int = Query(default=50, ge=1, le=100),
    before: Optional[datetime] = Query(default=None, description="ISO 8601 timestamp cursor"),
    user_id: UUID = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
) -> List[MessageResponse]:
    return await service.list_messages(conversation_id, user_id, limit=limit, before=before)


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Empty message or messaging yourself", "model": ErrorResponse},
        404: {"description": "Recipient not found", "model": ErrorResponse},
    },
    summary="Send a message",
)
async def send_message(
    body: SendMessageRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    return await service.send_message(user_id, body.recipient_id, body.text)
