"""FastAPI dependency providers for application services and request gates."""

import logging

from fastapi import HTTPException, Request

from mjml_server.config import Settings
from mjml_server.exceptions import TooManyItemsError
from mjml_server.services.render_service import RenderService

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise HTTPException(status_code=503, detail="CONFIG_UNAVAILABLE")
    return settings


def get_render_service(request: Request) -> RenderService:
    service = getattr(request.app.state, "render_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="SERVICE_UNAVAILABLE")
    return service


async def enforce_batch_item_limit(request: Request) -> None:
    """
    Reject oversized batches before the body is validated against the schema.

    Route-level dependencies are solved before body parameters, so a
    10 000-item payload is turned away without validating a single item.
    Anything unexpected in the body is left for schema validation to report.
    """
    try:
        body = await request.json()
    except ValueError:
        # Not JSON (or not UTF-8); validation produces the real error
        return

    items = body.get("items") if isinstance(body, dict) else None
    if not isinstance(items, list):
        return

    limit = get_settings(request).max_batch_items
    if len(items) > limit:
        logger.warning("Batch rejected before validation: %d items (max %d)", len(items), limit)
        raise TooManyItemsError(count=len(items), limit=limit)
