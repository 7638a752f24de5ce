"""
MJML Server — Request Body Size Limit Middleware
==================================================

What:  Rejects requests whose declared body size exceeds `max_body_bytes`.
Why:   The per-document limit (1 MiB) is only checked after the JSON is
       parsed; without a transport cap a client could still make the server
       buffer and decode an arbitrarily large body first.
How:   Compares the Content-Length header with the limit and answers 413
       CONTENT_TOO_LARGE, in the same envelope as every other error, before
       the body is read.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from mjml_server.exceptions import CONTENT_TOO_LARGE

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Transport-level payload cap.

    Requests without Content-Length (chunked uploads) are let through; the
    server's own limits and the per-document check still apply to them.
    """

    def __init__(self, app, max_body_bytes: int, **kwargs):
        super().__init__(app, **kwargs)
        self.max_body_bytes = max_body_bytes

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_body_bytes:
            logger.warning(
                "Request body too large: %s bytes (max %d) on %s",
                declared,
                self.max_body_bytes,
                request.url.path,
            )
            return JSONResponse(
                status_code=413,
                content={
                    "error": "Request body is too large",
                    "code": CONTENT_TOO_LARGE,
                },
            )

        return await call_next(request)
