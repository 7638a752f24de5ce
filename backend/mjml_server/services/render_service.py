"""
MJML Server — Render Service (Business Logic Orchestrator)
============================================================

What:  Validates MJML documents, drives the compiler, and shapes the results
       of single and batch renders.
Why:   Keeps every rule (limits, diagnostics policy, batch isolation) out of
       the HTTP layer so it can be tested without a server.
How:   Composes a MarkupCompiler with the configured limits. The compiler is
       CPU-bound and synchronous, so each call runs in a worker thread.

Orchestration Flow (POST /render):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Route   │───▶│  Validate   │───▶│   Compiler   │───▶│  Check   │
    │          │    │ empty/size  │    │ (thread)     │    │ result   │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

    Failures raise MjmlServerError subclasses; the global handlers in main.py
    render them. Unexpected compiler exceptions are wrapped in InternalError
    at the call site so they never escape as a bare framework 500.

Batch Flow (POST /render-batch):
    Every item goes through the same validate → compile → check steps, but
    inside its own capture: a failing item becomes an ItemResult with
    success=false and never touches its siblings. Items run concurrently,
    bounded by a per-request semaphore; asyncio.gather keeps input order.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from mjml_server.exceptions import (
    PROCESSING_ERROR,
    CompilationError,
    ContentTooLargeError,
    InternalError,
    InvalidInputError,
    MjmlServerError,
    NoOutputError,
    TooManyItemsError,
)
from mjml_server.schemas.render import (
    BatchItem,
    BatchRenderResponse,
    BatchSummary,
    DiagnosticResponse,
    ItemId,
    ItemResult,
    RenderResponse,
)
from mjml_server.services.compiler_base import MarkupCompiler

logger = logging.getLogger(__name__)


class RenderService:
    """
    Business logic for MJML rendering.

    Responsibilities:
        - render(): one document, errors raised as exceptions
        - render_batch(): many documents, errors embedded per item

    The service holds no per-request state; one instance serves the whole
    application.
    """

    def __init__(
        self,
        compiler: MarkupCompiler,
        max_markup_bytes: int,
        max_batch_items: int = 100,
        batch_concurrency: int = 8,
    ):
        self.compiler = compiler
        self.max_markup_bytes = max_markup_bytes
        self.max_batch_items = max_batch_items
        self.batch_concurrency = batch_concurrency

    # ── Single document ───────────────────────────────────────────────────

    async def render(self, markup: Optional[str]) -> RenderResponse:
        """
        Compile one document.

        Raises:
            InvalidInputError:    markup missing, empty or not a string
            ContentTooLargeError: markup over max_markup_bytes (UTF-8)
            CompilationError:     compiler reported diagnostics
            NoOutputError:        no diagnostics and no HTML
            InternalError:        anything else the compiler raised
        """
        try:
            html = await self._compile(markup)
        except MjmlServerError:
            raise
        except Exception as e:
            logger.error("Unexpected error during rendering: %s", str(e), exc_info=True)
            raise InternalError(detail=str(e), context={"error_type": type(e).__name__}) from e

        logger.info("MJML rendered successfully: html_size=%d", len(html))
        return RenderResponse(html=html)

    # ── Batch ─────────────────────────────────────────────────────────────

    async def render_batch(self, items: Sequence[BatchItem]) -> BatchRenderResponse:
        """
        Compile every item independently and summarize.

        Item ids are echoed verbatim; an item without id gets its position.
        `results[i]` always belongs to `items[i]`.
        """
        if not items:
            raise InvalidInputError("items array is required and must contain at least 1 item")
        if len(items) > self.max_batch_items:
            raise TooManyItemsError(count=len(items), limit=self.max_batch_items)

        logger.info("Processing batch render: item_count=%d", len(items))

        semaphore = asyncio.Semaphore(self.batch_concurrency)

        async def bounded(index: int, item: BatchItem) -> ItemResult:
            async with semaphore:
                return await self._render_item(index, item)

        results: List[ItemResult] = list(
            await asyncio.gather(*(bounded(i, item) for i, item in enumerate(items)))
        )

        success_count = sum(1 for r in results if r.success)
        failure_count = len(results) - success_count
        logger.info(
            "Batch render completed: success=%d, failed=%d",
            success_count,
            failure_count,
        )

        return BatchRenderResponse(
            summary=BatchSummary(
                total=len(results),
                success=success_count,
                failed=failure_count,
            ),
            results=results,
        )

    async def _render_item(self, index: int, item: BatchItem) -> ItemResult:
        item_id: ItemId = item.id if item.id is not None else index
        try:
            html = await self._compile(item.mjml)
        except CompilationError as e:
            return ItemResult(
                id=item_id,
                success=False,
                error=e.message,
                code=e.code,
                errors=diagnostics_response(e.diagnostics),
            )
        except MjmlServerError as e:
            return ItemResult(id=item_id, success=False, error=e.message, code=e.code)
        except Exception as e:
            logger.error("Batch item error: id=%s, message=%s", item_id, str(e))
            return ItemResult(id=item_id, success=False, error=str(e), code=PROCESSING_ERROR)

        return ItemResult(id=item_id, success=True, html=html)

    # ── Shared steps ──────────────────────────────────────────────────────

    def validate(self, markup: Optional[str]) -> int:
        """Check presence and size; returns the UTF-8 byte length."""
        if not markup or not isinstance(markup, str):
            logger.warning("Invalid MJML input")
            raise InvalidInputError()

        size = len(markup.encode("utf-8"))
        if size > self.max_markup_bytes:
            logger.warning("MJML content too large: size=%d, limit=%d", size, self.max_markup_bytes)
            raise ContentTooLargeError(size=size, limit=self.max_markup_bytes)
        return size

    async def _compile(self, markup: Optional[str]) -> str:
        size = self.validate(markup)
        logger.debug("Rendering MJML: size=%d", size)

        result = await asyncio.to_thread(self.compiler.compile, markup)

        if result.diagnostics:
            logger.warning(
                "MJML compilation errors: count=%d, first=%s",
                len(result.diagnostics),
                list(result.diagnostics[:5]),
            )
            raise CompilationError(result.diagnostics)

        if not result.html or not isinstance(result.html, str):
            logger.error("No HTML generated")
            raise NoOutputError(context={"size": size})

        return result.html


def diagnostics_response(diagnostics: Sequence) -> List[DiagnosticResponse]:
    """Client view of compiler diagnostics, shared by single and batch responses."""
    return [DiagnosticResponse(line=d.line, message=d.message, tag=d.tag) for d in diagnostics]
