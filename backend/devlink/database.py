"""
DevLink Backend — Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   A `Database` object owns the engine and session factory. The
       application factory builds exactly one and stores it on `app.state`;
       the `get_db_session` dependency pulls it from there for every request.
Who:   Route dependencies, the notification handler, Alembic and the tests.
When:  Database is built at app creation; sessions are created per-request.

Why an object instead of module-level engine:
    Tests build as many apps as they like, each with its own in-memory
    SQLite database, and nothing is bound at import time.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from devlink.config import Settings


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared metadata
    that Alembic and `Database.create_all()` read.
    """
    pass


def _engine_options(settings: Settings) -> dict:
    """
    Pool options for the configured backend.

    SQLite (tests, local dev) has no server-side pool; an in-memory database
    must share one connection or every session would see an empty database.
    """
    if settings.is_sqlite:
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in settings.database_url or settings.database_url.endswith("://"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


class Database:
    """
    Owns the async engine and hands out sessions.

    Attributes:
        engine:          The AsyncEngine (connection pool)
        session_factory: async_sessionmaker producing AsyncSession objects
                         with expire_on_commit=False so attributes stay
                         readable after commit.
    """

    def __init__(self, settings: Settings, engine: AsyncEngine | None = None):
        self.settings = settings
        self.engine = engine or create_async_engine(
            settings.database_url,
            echo=settings.log_level == "DEBUG",
            **_engine_options(settings),
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Transactional scope: commit on success, roll back on any error.

        Used by the request dependency and by background work that must run
        in its own transaction (notification delivery).
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                # Roll back for ANY failure, then let the caller see it
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create missing tables. Development and tests only; production uses Alembic."""
        # Import models so they register with Base.metadata
        import devlink.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Run SELECT 1; raises if the database is unreachable."""
        from sqlalchemy import text

        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Gracefully close all connections in the pool (shutdown)."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    """FastAPI dependency returning the app's Database."""
    return request.app.state.database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the app's Database
        2. Yields it to the route handler
        3. On success: commits; on error: rolls back and re-raises
        4. Always: closes the session (returns connection to pool)

    Services that publish events commit their own unit of work first;
    the commit here then finds nothing left to write.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
