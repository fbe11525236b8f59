"""
DevLink Backend — User Directory and Profile Models
=====================================================

What:  ORM models for the `users` and `profiles` tables.
Why:   The social graph references users everywhere and enriches responses
       with public profile fields.
Who:   Written by the auth and profile services that share this database;
       read-only from this backend (UserRepository / ProfileRepository).
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from devlink.database import Base


def utcnow() -> datetime:
    """Timezone-aware UTC now; used as the Python-side default for timestamps."""
    return datetime.now(timezone.utc)


class User(Base):
    """Identity record. Referenced by id from every other table."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # Credential hash is owned by the auth service; never serialized here
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class Profile(Base):
    """
    Public profile fields attached to a user.

    A user may not have a profile yet; enrichment falls back to null values
    (and an empty skills list) in that case.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Profile(user_id={self.user_id})>"
