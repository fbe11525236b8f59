"""
DevLink Backend — Connection Request/Response Schemas
=======================================================

What:  API contract for the /api/connections routes.
Why:   Responses are assembled by the enrichment step, never by serializing
       ORM rows directly, so internal columns (pair_key) never leak.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from devlink.models.connection import ConnectionStatus
from devlink.schemas.common import CamelModel
from devlink.schemas.user import ProfiledUser, UserSummary


class ConnectionRequestCreate(CamelModel):
    """Body of POST /api/connections/request."""
    recipient_id: uuid.UUID = Field(description="User to connect with")


class ConnectionResponse(CamelModel):
    """
    A connection with both parties populated.

    Returned by sendRequest and accept, and as items of the pending lists
    (where the counter-party also carries its profile picture). A party is
    null only if their account has been removed in the meantime.
    """
    id: uuid.UUID
    requester: Optional[UserSummary]
    recipient: Optional[UserSummary]
    status: ConnectionStatus
    requested_at: datetime
    responded_at: Optional[datetime] = None


class AcceptedConnection(CamelModel):
    """One entry of GET /api/connections: the other party and when they connected."""
    connection_id: uuid.UUID
    user: ProfiledUser
    connected_at: Optional[datetime]
