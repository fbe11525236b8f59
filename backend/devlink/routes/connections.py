"""
DevLink Backend — Connection Route Handlers
=============================================

What:  /api/connections: requests, responses, the user's network and
       "people you may know".
How:   Thin handlers; guards and state changes live in ConnectionService.

Route order matters: the fixed paths (/suggestions, /requests/...) are
registered before the /{connection_id} ones.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from devlink.dependencies import (
    get_connection_service,
    get_current_user_id,
    get_suggestion_engine,
)
from devlink.schemas.common import ErrorResponse, StatusMessage
from devlink.schemas.connection import (
    AcceptedConnection,
    ConnectionRequestCreate,
    ConnectionResponse,
)
from devlink.schemas.user import ProfiledUser
from devlink.services.connection_service import ConnectionService
from devlink.services.suggestion_service import SuggestionEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/connections", tags=["Connections"])

_errors = {
    400: {"description": "Invalid operation or duplicate connection", "model": ErrorResponse},
    401: {"description": "Not authenticated or not authorized", "model": ErrorResponse},
    404: {"description": "Connection or user not found", "model": ErrorResponse},
}


@router.post(
    "/request",
    response_model=ConnectionResponse,
    responses=_errors,
    summary="Send a connection request",
)
async def send_request(
    body: ConnectionRequestCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
) -> ConnectionResponse:
    """The recipient is notified once the request is stored."""
    return await service.send_request(requester_id=user_id, recipient_id=body.recipient_id)


@router.get(
    "/requests/received",
    response_model=List[ConnectionResponse],
    summary="Pending requests sent to me",
)
async def list_received(
    user_id: UUID = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
) -> List[ConnectionResponse]:
    return await service.list_pending(user_id, direction="received")


@router.get(
    "/requests/sent",
    response_model=List[ConnectionResponse],
    summary="Pending requests I sent",
)
async def list_sent(
    user_id: UUID = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
) -> List[ConnectionResponse]:
    return await service.list_pending(user_id, direction="sent")


@router.get(
    "/suggestions",
    response_model=List[ProfiledUser],
    summary="People you may know",
    description="Users not yet linked to the caller by any connection.",
)
async def suggestions(
    request: Request,
    user_id: UUID = Depends(get_current_user_id),
    engine: SuggestionEngine = Depends(get_suggestion_engine),
) -> List[ProfiledUser]:
    limit = request.app.state.settings.suggestion_limit
    return await engine.suggest(user_id, limit=limit)


@router.get(
    "",
    response_model=List[AcceptedConnection],
    summary="My connections",
)
async def list_connections(
    user_id: UUID = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
) -> List[AcceptedConnection]:
    return await service.list_accepted(user_id)


@router.put(
    "/{connection_id}/accept",
    response_model=ConnectionResponse,
    responses=_errors,
    summary="Accept a connection request",
)
async def accept(
    connection_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
) -> ConnectionResponse:
    return await service.accept(connection_id, acting_user_id=user_id)


@router.put(
    "/{connection_id}/reject",
    response_model=StatusMessage,
    responses=_errors,
    summary="Reject a connection request",
)
async def reject(
    connection_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
) -> StatusMessage:
    return await service.reject(connection_id, acting_user_id=user_id)


@router.delete(
    "/{connection_id}",
    response_model=StatusMessage,
    responses=_errors,
    summary="Remove a connection",
    description="Either party may remove a connection, whatever its status.",
)
async def remove(
    connection_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
) -> StatusMessage:
    return await service.remove(connection_id, acting_user_id=user_id)
