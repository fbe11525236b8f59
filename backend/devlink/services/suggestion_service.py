"""
"People you may know" suggestions.

A user is a candidate unless they are the caller or already linked to the
caller by a connection in any state (pending either way, accepted or
rejected). Candidates come back oldest account first, ties broken by id,
so the list is stable while the data does not change.
"""

import logging
import uuid
from typing import List

from devlink.repositories.connections import ConnectionRepository
from devlink.repositories.users import UserRepository
from devlink.schemas.user import ProfiledUser
from devlink.services.enrichment import UserEnricher

logger = logging.getLogger(__name__)


class SuggestionEngine:
    def __init__(
        self,
        connections: ConnectionRepository,
        users: UserRepository,
        enricher: UserEnricher,
    ):
        self.connections = connections
        self.users = users
        self.enricher = enricher

    async def suggest(self, user_id: uuid.UUID, limit: int = 10) -> List[ProfiledUser]:
        if limit <= 0:
            return []

        excluded = await self.connections.counterpart_ids(user_id)
        excluded.add(user_id)

        candidates = await self.users.list_excluding(excluded, limit=limit)
        logger.debug(
            "Suggestions for %s: %d candidates (%d excluded)",
            user_id,
            len(candidates),
            len(excluded),
        )
        return await self.enricher.profiled(candidates)
