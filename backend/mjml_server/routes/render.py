"""
MJML Server — Render Route Handlers
=====================================

What:  POST /render (one document) and POST /render-batch (up to 100).
How:   Thin handlers: FastAPI validates the body, RenderService does the work,
       global exception handlers format failures.

Request Flow (POST /render-batch):
    1. enforce_batch_item_limit: >100 items → 413 TOO_MANY_ITEMS
    2. Schema validation: missing/empty items, wrong types → 400 INVALID_INPUT
    3. RenderService.render_batch: per-item results, always 200
"""

from fastapi import APIRouter, Depends

from mjml_server.dependencies import enforce_batch_item_limit, get_render_service
from mjml_server.schemas.render import (
    BatchRenderRequest,
    BatchRenderResponse,
    ErrorResponse,
    RenderRequest,
    RenderResponse,
)
from mjml_server.services.render_service import RenderService

router = APIRouter(tags=["Render"])


@router.post(
    "/render",
    response_model=RenderResponse,
    responses={
        400: {"description": "Invalid input or compilation errors", "model": ErrorResponse},
        413: {"description": "MJML content too large", "model": ErrorResponse},
        500: {"description": "No output or unexpected error", "model": ErrorResponse},
    },
    summary="Render one MJML document",
)
async def render(
    body: RenderRequest,
    service: RenderService = Depends(get_render_service),
) -> RenderResponse:
    return await service.render(body.mjml)


@router.post(
    "/render-batch",
    response_model=BatchRenderResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_batch_item_limit)],
    responses={
        400: {"description": "Malformed batch request", "model": ErrorResponse},
        413: {"description": "Too many items", "model": ErrorResponse},
    },
    summary="Render several MJML documents",
    description=(
        "Each item is rendered independently: a failing item is reported in its "
        "own result and never affects the others. Results keep the order of `items`."
    ),
)
async def render_batch(
    body: BatchRenderRequest,
    service: RenderService = Depends(get_render_service),
) -> BatchRenderResponse:
    return await service.render_batch(body.items)
