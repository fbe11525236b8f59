"""
DevLink Backend — Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    DevLinkError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── InvalidOperationError    → 400 Bad Request (state-machine violation)
    ├── ConflictError            → 400 Bad Request (duplicate relationship)
    ├── AuthenticationError      → 401 Unauthorized (no/invalid bearer token)
    ├── ForbiddenError           → 401 Unauthorized (caller not a party)
    ├── NotFoundError            → 404 Not Found
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests

Status codes for ForbiddenError and ConflictError follow the published
connections API (401 "Not authorized", 400 "already exists"), which
existing clients depend on.
"""

from typing import Any, Dict, Optional


class DevLinkError(Exception):
    """
    Base exception for all DevLink application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DevLinkError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request. Schema-level problems are still handled by
    FastAPI's automatic 422.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidOperationError(DevLinkError):
    """
    Raised when an action is not allowed in the record's current state.

    When:  Accepting a connection that is no longer pending, sending a
           connection request or a message to yourself.
    HTTP:  400 Bad Request
    """

    def __init__(
        self,
        message: str = "This operation is not allowed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConflictError(DevLinkError):
    """
    Raised when creating a relationship that already exists.

    When:  A connection (any status, either direction) already links the pair.
    HTTP:  400 Bad Request
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(DevLinkError):
    """
    Raised when the caller's identity cannot be established.

    When:  Missing Authorization header, malformed or expired token.
    HTTP:  401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(DevLinkError):
    """
    Raised when the caller lacks the required relationship to a record.

    When:  Accepting a request addressed to someone else, removing a
           connection you are not part of, reading another user's
           conversation or notification.
    HTTP:  401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DevLinkError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records (not an exception).
    We convert None → NotFoundError in the service layer.
    HTTP:  404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(DevLinkError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Detailed error info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(DevLinkError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP: 429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
