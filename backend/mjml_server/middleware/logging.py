"""
MJML Server — Request Logging Middleware
==========================================

What:  One access-log line per HTTP request, with status and duration.
Why:   Render latency grows with document size and batch length; the access
       log is where slow or failing callers show up first.
How:   Measures from middleware entry to response return and logs at a level
       chosen by status class.

What we log vs what we DON'T log:
    ✅ Log: method, path, status, duration, client IP, request ID
    ❌ Don't log: request bodies (customer email content) or rendered HTML
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mjml_server.middleware.request_id import request_id_var

logger = logging.getLogger("mjml_server.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Typical durations:
        - GET /health: 1-5ms
        - POST /render: 20-200ms (depends on document size)
        - POST /render-batch: scales with item count / batch_concurrency
    """

    # Health checks run every few seconds; logging them buries real traffic
    SKIPPED_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")

        # 5xx → ERROR, 4xx → WARNING, rest → INFO
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
