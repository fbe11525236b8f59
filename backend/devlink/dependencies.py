"""
DevLink Backend — Request Dependencies
========================================

What:  FastAPI dependencies shared by the /api routers: the caller's
       identity and per-request service instances.
Why:   Routes stay thin. Each request gets services bound to its own
       database session and its own BackgroundTasks, so published
       notification events are delivered after that session commits.
How:   Tokens are issued elsewhere; this service only verifies them. The
       `sub` claim carries the caller's user id.
"""

import logging
import uuid
from typing import Optional

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from devlink.database import get_db_session
from devlink.events import BackgroundTaskEventBus, EventBus
from devlink.exceptions import AuthenticationError
from devlink.repositories import (
    ConnectionRepository,
    ConversationRepository,
    NotificationRepository,
    ProfileRepository,
    UserRepository,
)
from devlink.services.connection_service import ConnectionService
from devlink.services.enrichment import UserEnricher
from devlink.services.message_service import MessageService
from devlink.services.notification_service import NotificationEmitter, NotificationHandler
from devlink.services.suggestion_service import SuggestionEngine

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through our own 401 handler
bearer_scheme = HTTPBearer(auto_error=False)


# ── Identity ──────────────────────────────────────────────────────────────

def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> uuid.UUID:
    """
    Resolve the caller's user id from `Authorization: Bearer <JWT>`.

    Raises:
        AuthenticationError: Missing header, bad signature, expired token,
                             or a `sub` claim that is not a user id
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="No token, authorization denied")

    settings = request.app.state.settings
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.info("Rejected bearer token: %s", str(e))
        raise AuthenticationError(message="Token is not valid")

    subject = payload.get("sub")
    try:
        return uuid.UUID(str(subject))
    except (TypeError, ValueError):
        raise AuthenticationError(message="Token is not valid")


# ── Services ──────────────────────────────────────────────────────────────

def get_event_bus(request: Request, background_tasks: BackgroundTasks) -> EventBus:
    handler = NotificationHandler(request.app.state.database)
    return BackgroundTaskEventBus(background_tasks, handler)


def get_enricher(db: AsyncSession = Depends(get_db_session)) -> UserEnricher:
    return UserEnricher(UserRepository(db), ProfileRepository(db))


def get_connection_service(
    db: AsyncSession = Depends(get_db_session),
    enricher: UserEnricher = Depends(get_enricher),
    events: EventBus = Depends(get_event_bus),
) -> ConnectionService:
    return ConnectionService(
        connections=ConnectionRepository(db),
        users=UserRepository(db),
        enricher=enricher,
        events=events,
    )


def get_suggestion_engine(
    db: AsyncSession = Depends(get_db_session),
    enricher: UserEnricher = Depends(get_enricher),
) -> SuggestionEngine:
    return SuggestionEngine(ConnectionRepository(db), UserRepository(db), enricher)


def get_notification_emitter(
    db: AsyncSession = Depends(get_db_session),
    enricher: UserEnricher = Depends(get_enricher),
) -> NotificationEmitter:
    return NotificationEmitter(NotificationRepository(db), enricher)


def get_message_service(
    db: AsyncSession = Depends(get_db_session),
    enricher: UserEnricher = Depends(get_enricher),
) -> MessageService:
    return MessageService(ConversationRepository(db), UserRepository(db), enricher)
