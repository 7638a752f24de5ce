"""
MJML Server — Custom Exception Hierarchy
==========================================

What:  Defines application-specific exceptions for every failure category.
Why:   Each exception carries the wire `code` and HTTP status it maps to, so
       one global handler renders all of them as the same `{error, code}`
       envelope.
How:   Services raise these; `register_exception_handlers()` in main.py turns
       them into JSON responses. In a batch, RenderService catches them per
       item and embeds code and message into that item's result instead.

Exception Hierarchy:
    MjmlServerError (base)
    ├── InvalidInputError        → 400 INVALID_INPUT
    ├── ContentTooLargeError     → 413 CONTENT_TOO_LARGE
    ├── TooManyItemsError        → 413 TOO_MANY_ITEMS
    ├── CompilationError         → 400 COMPILATION_ERROR (+ diagnostics)
    ├── NoOutputError            → 500 NO_OUTPUT
    └── InternalError            → 500 INTERNAL_ERROR

    PROCESSING_ERROR and NOT_FOUND have no exception class: the first only
    exists embedded in a batch item, the second is produced by the 404
    handler for unmatched routes.
"""

from typing import Any, Dict, Optional, Sequence

# Wire codes
INVALID_INPUT = "INVALID_INPUT"
CONTENT_TOO_LARGE = "CONTENT_TOO_LARGE"
TOO_MANY_ITEMS = "TOO_MANY_ITEMS"
COMPILATION_ERROR = "COMPILATION_ERROR"
NO_OUTPUT = "NO_OUTPUT"
PROCESSING_ERROR = "PROCESSING_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"
NOT_FOUND = "NOT_FOUND"


class MjmlServerError(Exception):
    """
    Base exception for all MJML Server application errors.

    Attributes:
        message:      User-facing error description (safe to return in API response)
        code:         Machine-readable wire code, e.g. "INVALID_INPUT"
        status_code:  HTTP status used when the error ends a request
        context:      Additional debug info (logged but NOT returned to client)
    """

    code: str = INTERNAL_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(MjmlServerError):
    """Client sent a missing, empty or wrongly typed payload."""

    code = INVALID_INPUT
    status_code = 400

    def __init__(
        self,
        message: str = "MJML content is required and must be a string",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ContentTooLargeError(MjmlServerError):
    """
    A single MJML document, or the whole request body, is over its limit.

    The limit is included in the message in whole MB when it is a round
    number, matching what clients have historically been shown ("max 1MB").
    """

    code = CONTENT_TOO_LARGE
    status_code = 413

    def __init__(
        self,
        size: Optional[int] = None,
        limit: Optional[int] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = "MJML content is too large"
            if limit:
                message += f" (max {_format_limit(limit)})"
        ctx = context or {}
        if size is not None:
            ctx["size"] = size
        if limit is not None:
            ctx["limit"] = limit
        super().__init__(message=message, context=ctx)
        self.size = size
        self.limit = limit


class TooManyItemsError(MjmlServerError):
    """A batch request holds more items than the configured cap."""

    code = TOO_MANY_ITEMS
    status_code = 413

    def __init__(self, count: int, limit: int):
        super().__init__(
            message=f"Too many items (max {limit} at once)",
            context={"count": count, "limit": limit},
        )
        self.count = count
        self.limit = limit


class CompilationError(MjmlServerError):
    """
    The compiler reported one or more diagnostics.

    Any HTML the compiler produced alongside the diagnostics is discarded:
    a document with diagnostics is a failed document.
    """

    code = COMPILATION_ERROR
    status_code = 400

    def __init__(self, diagnostics: Sequence[Any]):
        super().__init__(
            message="MJML compilation failed",
            context={"error_count": len(diagnostics)},
        )
        self.diagnostics = list(diagnostics)


class NoOutputError(MjmlServerError):
    """The compiler reported no diagnostics but also produced no HTML."""

    code = NO_OUTPUT
    status_code = 500

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Failed to generate HTML", context=context)


class InternalError(MjmlServerError):
    """
    Wraps an unexpected exception raised while serving a request.

    `detail` holds the original exception text. It is only sent to clients
    when the service runs in development mode.
    """

    code = INTERNAL_ERROR
    status_code = 500

    def __init__(
        self,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="Internal server error", context=context)
        self.detail = detail


def _format_limit(limit: int) -> str:
    mebibyte = 1024 * 1024
    if limit % mebibyte == 0:
        return f"{limit // mebibyte}MB"
    return f"{limit} bytes"
