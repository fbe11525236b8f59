"""
DevLink Backend — Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    - Rate limiting runs first so rejected clients cost almost nothing.
    - The request ID is set before the access log line is written, so both
      the log and error bodies carry it.
"""
