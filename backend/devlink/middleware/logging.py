"""
DevLink Backend — Access Log Middleware
=========================================

What:  One log line per HTTP request: method, path, status, duration.
Why:   Severity follows the status class so 5xx responses can be alerted
       on and 4xx spikes (bad tokens, rejected requests) stand out.
How:   Logged on the "devlink.access" logger with the request ID from
       RequestIDMiddleware. Request bodies and the Authorization header
       are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from devlink.middleware.request_id import request_id_var

logger = logging.getLogger("devlink.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log; /health is skipped because probes would drown everything else."""

    QUIET_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        logger.log(
            level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
