"""
DevLink Backend — Data Access Layer
=====================================

What:  Thin query objects wrapping an AsyncSession, one per aggregate.
Why:   Services express business rules in terms of these methods and never
       build SQL themselves; tests can exercise services against a real
       (in-memory) database through the same objects.
How:   Each repository is constructed with the request's session by a
       FastAPI dependency (see devlink/dependencies.py). Repositories only
       flush; the session's owner decides when to commit.
       ConnectionRepository.commit() lets a service end its unit of work
       before publishing events.
"""

from devlink.repositories.users import UserRepository, ProfileRepository
from devlink.repositories.connections import ConnectionRepository
from devlink.repositories.notifications import NotificationRepository
from devlink.repositories.conversations import ConversationRepository

__all__ = [
    "UserRepository",
    "ProfileRepository",
    "ConnectionRepository",
    "NotificationRepository",
    "ConversationRepository",
]
