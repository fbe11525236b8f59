"""
DevLink Backend — In-Process Event Dispatch
=============================================

What:  Carries side-effect requests (notifications) out of the write path.
Why:   A connection state change must never fail, slow down or roll back
       because its notification could not be written. Services therefore
       only *publish* an event; delivery happens elsewhere and reports
       nothing back.
How:   `BackgroundTaskEventBus` hands each event to FastAPI's
       BackgroundTasks. Those run once the response is produced; producers
       commit before publishing, so the notification handler always sees
       the committed connection and uses its own transaction.

    ┌──────────────┐ publish ┌──────────┐ after commit ┌─────────────────────┐
    │ Service      │────────▶│ EventBus │─────────────▶│ NotificationHandler │
    │ (write path) │         └──────────┘              │ (own session, logs  │
    └──────────────┘                                   │  and drops errors)  │
                                                       └─────────────────────┘
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from fastapi import BackgroundTasks

from devlink.models.notification import NotificationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    """A request to notify `recipient_id` about something `sender_id` did."""

    recipient_id: uuid.UUID
    sender_id: uuid.UUID
    type: NotificationType
    message: str
    related_connection_id: Optional[uuid.UUID] = None
    related_post_id: Optional[uuid.UUID] = None
    related_comment_id: Optional[uuid.UUID] = None


EventHandler = Callable[[NotificationEvent], Awaitable[None]]


class EventBus(ABC):
    """
    Contract between services that produce events and whatever delivers them.

    Implementations must not raise from publish() because of delivery
    problems; the producer's operation has already succeeded.
    """

    @abstractmethod
    def publish(self, event: NotificationEvent) -> None:
        ...


class BackgroundTaskEventBus(EventBus):
    """Defers each event to a FastAPI background task for the current request."""

    def __init__(self, background_tasks: BackgroundTasks, handler: EventHandler):
        self.background_tasks = background_tasks
        self.handler = handler

    def publish(self, event: NotificationEvent) -> None:
        logger.debug(
            "Queued %s notification for %s", event.type.value, event.recipient_id
        )
        self.background_tasks.add_task(self.handler, event)
