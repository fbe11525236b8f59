"""
DevLink Backend — Rate Limiting Middleware
============================================

What:  Per-client sliding window rate limiter for the API.
Why:   A single client hammering connection or messaging endpoints should
       not degrade the service for everyone else.
How:   Keeps the timestamps of each client's recent requests in memory.
       A request is rejected with 429 once the client already made
       `max_requests` within the last `window_seconds`.

Algorithm: Sliding Window Log
    1. Drop the client's timestamps older than the window
    2. If the remaining count reaches the limit, reject with Retry-After
       set to when the oldest timestamp leaves the window
    3. Otherwise record the request and let it through

Single-process only: each uvicorn worker keeps its own counters.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from devlink.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        max_requests:   Requests allowed per client per window
        window_seconds: Window length

    Health checks, API docs and CORS preflights are never limited.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
    CLEANUP_EVERY = 1000

    def __init__(self, app, max_requests: int = 1000, window_seconds: int = 3600):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS" or request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window_seconds

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            exc = RateLimitExceededError(retry_after=retry_after)
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip,
                len(recent),
                self.window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            self._forget_idle_clients(window_start)

        return await call_next(request)

    def _forget_idle_clients(self, window_start: float) -> None:
        """Drop clients with no request inside the current window."""
        idle = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in idle:
            del self._requests[ip]
        if idle:
            logger.debug("Forgot %d idle rate-limit clients", len(idle))
