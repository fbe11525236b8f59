"""
User directory and profile store lookups (read-only).
"""

import uuid
from typing import Collection, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devlink.models.user import Profile, User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_many(self, user_ids: Collection[uuid.UUID]) -> Dict[uuid.UUID, User]:
        """Batch lookup keyed by id; unknown ids are simply absent."""
        if not user_ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(set(user_ids))))
        return {user.id: user for user in result.scalars().all()}

    async def list_excluding(
        self,
        excluded_ids: Collection[uuid.UUID],
        limit: int,
    ) -> List[User]:
        """
        Users whose id is not in `excluded_ids`, oldest account first.

        The (created_at, id) ordering keeps repeated calls stable while the
        underlying data is unchanged.
        """
        query = select(User)
        if excluded_ids:
            query = query.where(User.id.not_in(set(excluded_ids)))
        query = query.order_by(User.created_at.asc(), User.id.asc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())


class ProfileRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_for_user(self, user_id: uuid.UUID) -> Optional[Profile]:
        result = await self.session.execute(select(Profile).where(Profile.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_for_users(self, user_ids: Collection[uuid.UUID]) -> Dict[uuid.UUID, Profile]:
        """One query for a whole page of users instead of one per row."""
        if not user_ids:
            return {}
        result = await self.session.execute(
            select(Profile).where(Profile.user_id.in_(set(user_ids)))
        )
        return {profile.user_id: profile for profile in result.scalars().all()}
