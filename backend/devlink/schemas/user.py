"""
User DTOs embedded in connection, notification and messaging responses.
"""

import uuid
from typing import List, Optional

from pydantic import Field

from devlink.schemas.common import CamelModel


class UserSummary(CamelModel):
    """Public identity of a user; never includes credentials."""
    id: uuid.UUID
    name: str
    email: str
    profile_picture: Optional[str] = Field(default=None, description="Profile picture URL, if any")


class ProfiledUser(UserSummary):
    """UserSummary plus public profile fields (null when the user has no profile)."""
    bio: Optional[str] = None
    location: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
