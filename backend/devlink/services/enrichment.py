"""
DevLink Backend — Read-Side Enrichment
========================================

What:  Builds response DTOs for users from the User directory and the
       Profile store.
Why:   Responses embed the counter-party's name, email and public profile
       fields. Doing it here, with two batched queries per page, keeps the
       write path free of presentation concerns and avoids one profile
       lookup per row.
Who:   ConnectionService, SuggestionEngine, NotificationEmitter and
       MessageService, on their read paths only.
"""

import uuid
from typing import Collection, Dict, Iterable, List, Optional

from devlink.models.user import Profile, User
from devlink.repositories.users import ProfileRepository, UserRepository
from devlink.schemas.user import ProfiledUser, UserSummary


def to_summary(user: User, profile: Optional[Profile] = None) -> UserSummary:
    return UserSummary(
        id=user.id,
        name=user.name,
        email=user.email,
        profile_picture=profile.profile_picture if profile and profile.profile_picture else None,
    )


def to_profiled(user: User, profile: Optional[Profile] = None) -> ProfiledUser:
    """User summary plus bio/location/skills; null (or empty) when there is no profile."""
    return ProfiledUser(
        id=user.id,
        name=user.name,
        email=user.email,
        profile_picture=profile.profile_picture if profile and profile.profile_picture else None,
        bio=profile.bio if profile and profile.bio else None,
        location=profile.location if profile and profile.location else None,
        skills=list(profile.skills or []) if profile else [],
    )


class UserEnricher:
    def __init__(self, users: UserRepository, profiles: ProfileRepository):
        self.users = users
        self.profiles = profiles

    async def summaries(
        self,
        user_ids: Iterable[uuid.UUID],
        with_picture: Collection[uuid.UUID] = (),
    ) -> Dict[uuid.UUID, UserSummary]:
        """
        Summaries keyed by id. Only ids in `with_picture` get a profile
        lookup; the rest carry name and email only.
        """
        ids = set(user_ids)
        users = await self.users.get_many(ids)
        profiles = await self.profiles.get_for_users(set(with_picture) & ids)
        return {
            user_id: to_summary(user, profiles.get(user_id))
            for user_id, user in users.items()
        }

    async def profiled(self, users: List[User]) -> List[ProfiledUser]:
        """Attach profile fields to already-loaded users, preserving order."""
        profiles = await self.profiles.get_for_users([u.id for u in users])
        return [to_profiled(user, profiles.get(user.id)) for user in users]

    async def profiled_by_id(self, user_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, ProfiledUser]:
        ids = set(user_ids)
        users = await self.users.get_many(ids)
        profiles = await self.profiles.get_for_users(ids)
        return {
            user_id: to_profiled(user, profiles.get(user_id))
            for user_id, user in users.items()
        }
