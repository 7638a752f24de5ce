"""
MJML Server — FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware registration, route mounting,
       error normalization and lifecycle management in one place.
How:   Factory pattern: create_app(settings, compiler) returns a configured
       FastAPI instance. Nothing is created at import time.
Who:   Called by uvicorn (`uvicorn --factory mjml_server.main:create_app`,
       or the `mjml-server` console script) and by the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌────────┐ ┌─────────┐ ┌────────────┐ ┌────────┐   │
    │  │ Req ID │→│ Logging │→│ Body limit │→│  GZip  │   │
    │  └────────┘ └─────────┘ └────────────┘ └────────┘   │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────────┐ ┌─────────┐  │
    │  │ POST /render │ │POST /render-batch│ │ /health │  │
    │  └──────────────┘ └──────────────────┘ │ /info   │  │
    │                                        └─────────┘  │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ MjmlServerError→own status │ Validation→400  │   │
    │  │ 404→NOT_FOUND │ 413→CONTENT_TOO_LARGE │ →500 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Application State (app.state):
    settings        Settings used to build this instance
    render_service  RenderService wrapping the compiler
    started_at      time.monotonic() at creation, for /info uptime

Lifecycle:
    uvicorn owns signals (SIGTERM/SIGINT) and graceful shutdown: it stops
    accepting connections, lets in-flight requests finish, then runs the
    shutdown half of `lifespan`.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mjml_server import __version__
from mjml_server.config import Settings, get_settings
from mjml_server.exceptions import (
    CONTENT_TOO_LARGE,
    INTERNAL_ERROR,
    INVALID_INPUT,
    NOT_FOUND,
    CompilationError,
    InternalError,
    MjmlServerError,
)
from mjml_server.middleware.body_limit import BodySizeLimitMiddleware
from mjml_server.middleware.logging import RequestLoggingMiddleware
from mjml_server.middleware.request_id import RequestIDMiddleware, request_id_var
from mjml_server.routes import health, render
from mjml_server.services.compiler_base import MarkupCompiler
from mjml_server.services.render_service import RenderService, diagnostics_response

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout, which the container runtime collects.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    base_url = f"http://{settings.host}:{settings.port}"
    logger.info("MJML Server %s running (environment=%s)", __version__, settings.environment)
    logger.info("Listening on %s", base_url)
    logger.info("Health check: GET %s/health", base_url)
    logger.info("Info: GET %s/info", base_url)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("MJML Server shutting down...")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Every failure leaves the service as `{error, code, ...}`:
        MjmlServerError         → its own status/code (+ errors for diagnostics)
        RequestValidationError  → 400 INVALID_INPUT (never FastAPI's native 422)
        HTTPException 404       → 404 NOT_FOUND with the requested path
        HTTPException 413       → 413 CONTENT_TOO_LARGE
        HTTPException (other)   → its status, code from the status phrase
        Exception (fallback)    → 500 INTERNAL_ERROR

    Security: internal exception text is only added (as `message`) when the
    service runs in development mode. It is always logged server-side.
    """

    @app.exception_handler(MjmlServerError)
    async def handle_service_error(request: Request, exc: MjmlServerError):
        rid = request_id_var.get("")
        content: Dict[str, Any] = {"error": exc.message, "code": exc.code}

        if isinstance(exc, CompilationError):
            content["errors"] = [d.model_dump(by_alias=True) for d in diagnostics_response(exc.diagnostics)]
        if isinstance(exc, InternalError) and _is_development(request) and exc.detail:
            content["message"] = exc.detail

        log = logger.error if exc.status_code >= 500 else logger.warning
        log("[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        message = _validation_message(exc)
        logger.warning("[%s] Validation error on %s: %s", rid, request.url.path, message)
        return JSONResponse(
            status_code=400,
            content={"error": message, "code": INVALID_INPUT},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = request_id_var.get("")
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Endpoint not found",
                    "code": NOT_FOUND,
                    "path": request.url.path,
                },
            )
        if exc.status_code == 413:
            return JSONResponse(
                status_code=413,
                content={"error": str(exc.detail or "Payload too large"), "code": CONTENT_TOO_LARGE},
            )

        logger.error(
            "[%s] Request error: status=%d, detail=%s, url=%s",
            rid,
            exc.status_code,
            exc.detail,
            request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": str(exc.detail),
                "code": _status_code_name(exc.status_code),
                "statusCode": exc.status_code,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all for truly unexpected errors. Stack trace goes to the log only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        content: Dict[str, Any] = {
            "error": "Internal server error",
            "code": INTERNAL_ERROR,
            "statusCode": 500,
        }
        if _is_development(request):
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)


def _is_development(request: Request) -> bool:
    settings: Optional[Settings] = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_development)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Validation error"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid value")
    if len(errors) > 1:
        message += f" (and {len(errors) - 1} more)"
    return f"{location}: {message}" if location else message


def _status_code_name(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).name
    except ValueError:
        return INTERNAL_ERROR


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    compiler: Optional[MarkupCompiler] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration for this instance. Defaults to the
                  environment-derived settings from get_settings().
        compiler: MJML engine. Defaults to MjmlCompiler; tests pass a stub.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    settings = settings or get_settings()
    if compiler is None:
        from mjml_server.services.mjml_compiler import MjmlCompiler

        compiler = MjmlCompiler(template_dir=settings.mjml_template_dir)

    app = FastAPI(
        title="MJML Rendering Server",
        description="Compiles MJML email templates to HTML, one at a time or in batches.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.render_service = RenderService(
        compiler=compiler,
        max_markup_bytes=settings.max_markup_bytes,
        max_batch_items=settings.max_batch_items,
        batch_concurrency=settings.batch_concurrency,
    )
    app.state.started_at = time.monotonic()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → BodyLimit → GZip
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(render.router)

    return app


def run() -> None:
    """Console entry point: serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "mjml_server.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
