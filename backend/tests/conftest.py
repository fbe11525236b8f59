"""
DevLink Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Services are tested against a real (in-memory SQLite) database
       through the same repositories the app uses, so constraint and
       query behaviour is exercised, not mocked.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    database ─┬─ session ─┬─ make_user
              │           ├─ events (RecordingEventBus)
              │           └─ connection_service, emitter, suggestions, messages
              └─ app ─── test_client, auth_headers
"""

import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set BEFORE any devlink import so the module-level settings never point
# at a real database
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from devlink.config import Settings  # noqa: E402
from devlink.database import Database  # noqa: E402
from devlink.events import EventBus, NotificationEvent  # noqa: E402
from devlink.models.user import Profile, User  # noqa: E402
from devlink.repositories import (  # noqa: E402
    ConnectionRepository,
    ConversationRepository,
    NotificationRepository,
    ProfileRepository,
    UserRepository,
)
from devlink.services.connection_service import ConnectionService  # noqa: E402
from devlink.services.enrichment import UserEnricher  # noqa: E402
from devlink.services.message_service import MessageService  # noqa: E402
from devlink.services.notification_service import NotificationEmitter  # noqa: E402
from devlink.services.suggestion_service import SuggestionEngine  # noqa: E402

JWT_SECRET = "test-secret-not-real"


class RecordingEventBus(EventBus):
    """Keeps published events in memory instead of delivering them."""

    def __init__(self):
        self.events: List[NotificationEvent] = []

    def publish(self, event: NotificationEvent) -> None:
        self.events.append(event)


def make_token(user_id, secret: str = JWT_SECRET, **claims) -> str:
    payload = {"sub": str(user_id), **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        jwt_secret=JWT_SECRET,
        log_level="WARNING",
        rate_limit_requests=10000,
    )


@pytest_asyncio.fixture
async def database(test_settings):
    """A fresh in-memory database with all tables, per test."""
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def make_user(session):
    """
    Factory creating users (optionally with a profile).

    Accounts get strictly increasing created_at values in creation order,
    which is the order suggestions are returned in.
    """
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    async def _make(
        name: str,
        email: Optional[str] = None,
        bio: Optional[str] = None,
        location: Optional[str] = None,
        skills: Optional[List[str]] = None,
        profile_picture: Optional[str] = None,
        with_profile: bool = False,
    ) -> User:
        counter["n"] += 1
        user = User(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            password_hash="x",
            created_at=base + timedelta(minutes=counter["n"]),
        )
        session.add(user)
        await session.flush()
        if with_profile or any(v is not None for v in (bio, location, skills, profile_picture)):
            session.add(
                Profile(
                    user_id=user.id,
                    bio=bio,
                    location=location,
                    skills=skills or [],
                    profile_picture=profile_picture,
                )
            )
        await session.commit()
        return user

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Service Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def events() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def enricher(session) -> UserEnricher:
    return UserEnricher(UserRepository(session), ProfileRepository(session))


@pytest.fixture
def connection_service(session, enricher, events) -> ConnectionService:
    return ConnectionService(
        connections=ConnectionRepository(session),
        users=UserRepository(session),
        enricher=enricher,
        events=events,
    )


@pytest.fixture
def emitter(session, enricher) -> NotificationEmitter:
    return NotificationEmitter(NotificationRepository(session), enricher)


@pytest.fixture
def suggestions(session, enricher) -> SuggestionEngine:
    return SuggestionEngine(ConnectionRepository(session), UserRepository(session), enricher)


@pytest.fixture
def message_service(session, enricher) -> MessageService:
    return MessageService(ConversationRepository(session), UserRepository(session), enricher)


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(test_settings, database):
    from devlink.main import create_app
    return create_app(settings=test_settings, database=database)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient wired straight into the app via ASGITransport.

    Background tasks (notification delivery) finish before each call
    returns.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {make_token(user.id)}"}
    return _headers
