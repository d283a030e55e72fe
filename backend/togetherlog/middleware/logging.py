"""
TogetherLog Backend - Access Log Middleware
============================================

What:  One log line per HTTP request: method, path, status, duration, request id.
How:   Measures wall time around call_next and picks the level from the
       status class (5xx ERROR, 4xx WARNING, otherwise INFO).
When:  Runs inside RequestIDMiddleware, so the id is already set.

Never logged: request bodies (highlight texts, coordinates) and the
X-User-ID header.

Typical durations:
    - GET /health:                   1-5ms
    - POST /workers/compute-*:       10-50ms (one read, one write)
    - POST /workers/reverse-geocode: up to ~1.1s per queued caller
      (rate limiter) plus the Nominatim round trip
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from togetherlog.middleware.request_id import request_id_var

logger = logging.getLogger("togetherlog.access")

# Polled by load balancers every few seconds
QUIET_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
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
            request.method, path, status, duration_ms, rid, client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
