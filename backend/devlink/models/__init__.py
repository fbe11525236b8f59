"""
DevLink Backend — ORM Models
==============================

Importing this package registers every table with `Base.metadata`
(used by Alembic autogenerate and `Database.create_all()`).
"""

from devlink.models.user import User, Profile
from devlink.models.connection import Connection, ConnectionStatus
from devlink.models.notification import Notification, NotificationType
from devlink.models.conversation import Conversation, Message

__all__ = [
    "User",
    "Profile",
    "Connection",
    "ConnectionStatus",
    "Notification",
    "NotificationType",
    "Conversation",
    "Message",
]
