"""
DevLink Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       with its own Database stored on app.state.
Who:   Called by uvicorn (uvicorn devlink.main:app) and by the tests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Rate Limit → Request ID → Access Log       │
    │                                                          │
    │  Routes:                                                 │
    │  ┌──────────────────┐ ┌────────────────────┐ ┌────────┐  │
    │  │ /api/connections │ │ /api/notifications │ │/health │  │
    │  └──────────────────┘ └────────────────────┘ └────────┘  │
    │  ┌──────────────────┐                                    │
    │  │ /api/messages    │                                    │
    │  └──────────────────┘                                    │
    │                                                          │
    │  Exception Handlers:                                     │
    │  InvalidOperation/Conflict/Validation→400                │
    │  Forbidden/Authentication→401  NotFound→404              │
    │  RateLimit→429  Database/unexpected→500                  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, optional table creation
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from devlink import __version__
from devlink.config import Settings
from devlink.config import settings as default_settings
from devlink.database import Database
from devlink.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    DevLinkError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from devlink.middleware.logging import RequestLoggingMiddleware
from devlink.middleware.rate_limit import RateLimitMiddleware
from devlink.middleware.request_id import RequestIDMiddleware, request_id_var
from devlink.routes import connections, health, messages, notifications

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Called once during startup, before anything else logs. Every module
    logs through `logging.getLogger(__name__)`; the access log uses
    "devlink.access".
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("DevLink Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so /health can report; every authenticated call will fail
        logger.error("Configuration error: %s", str(e))

    if settings.db_create_tables:
        await database.create_all()
        logger.info("Database tables created (DB_CREATE_TABLES=true)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("DevLink Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map service exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError         → 400 validation_error
        InvalidOperationError   → 400 invalid_operation
        ConflictError           → 400 conflict
        ForbiddenError          → 401 not_authorized
        AuthenticationError     → 401 authentication_required
        NotFoundError           → 404 not_found
        RateLimitExceededError  → 429 rate_limit_exceeded
        DatabaseError           → 500 server_error (generic message)
        DevLinkError (base)     → 500 server_error
        Exception (fallback)    → 500 internal_server_error

    Internal details (SQL, stack traces, context of 5xx errors) are logged
    server-side only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(InvalidOperationError)
    async def handle_invalid_operation(request: Request, exc: InvalidOperationError):
        logger.info("[%s] Invalid operation: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "invalid_operation", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error_response(400, "conflict", exc.message)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.warning(
            "[%s] Forbidden: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error_response(401, "not_authorized", exc.message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(request: Request, exc: AuthenticationError):
        return _error_response(
            401,
            "authentication_required",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429,
            "rate_limit_exceeded",
            exc.message,
            exc.context,
            headers={"Retry-After": str(exc.context.get("retry_after", 60))},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(DevLinkError)
    async def handle_devlink_error(request: Request, exc: DevLinkError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s", rid, exc.message)
        return _error_response(500, "server_error", "An internal error occurred.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to the environment-derived settings
        database: Database to use; built from `settings` when omitted.
                  Tests pass one backed by in-memory SQLite.
    """
    settings = settings or default_settings
    database = database or Database(settings)

    app = FastAPI(
        title="DevLink API",
        description=(
            "Developer social network backend: connection requests, "
            "notifications, suggestions and direct messages."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(connections.router)
    app.include_router(notifications.router)
    app.include_router(messages.router)
    app.include_router(health.router)

    return app


# uvicorn expects `devlink.main:app` to be importable
app = create_app()
