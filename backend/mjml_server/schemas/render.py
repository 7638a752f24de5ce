"""
MJML Server — Pydantic Request/Response Schemas
=================================================

What:  Pydantic models defining the API contract of the render service.
Why:   Strict input validation, automatic serialization, and OpenAPI doc generation.
How:   FastAPI validates request bodies against these models; routes return
       them with `response_model_exclude_none=True` so optional fields that
       do not apply (html on failure, errors on success) are left out.

Strictness:
    Markup fields are StrictStr and ids are StrictStr | StrictInt | StrictFloat
    (finite only: NaN or Infinity would be echoed back as null).
    Pydantic's lax mode would otherwise turn `true` into an id or `123` into
    markup; the contract says ids are echoed with their JSON type untouched.
"""

from datetime import datetime
from typing import Annotated, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr

ItemId = Union[StrictStr, StrictInt, Annotated[StrictFloat, Field(allow_inf_nan=False)]]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RenderRequest(BaseModel):
    """Body of POST /render."""

    mjml: StrictStr = Field(description="MJML content to render")


class BatchItem(BaseModel):
    """
    One document of a batch.

    `id` is optional. When it is missing (or null) the item's zero-based
    position in `items` is used as its identity in the response.
    """

    id: Optional[ItemId] = Field(
        default=None,
        description="Caller-chosen identifier, echoed verbatim (string or number)",
    )
    mjml: StrictStr = Field(description="MJML content to render")


class BatchRenderRequest(BaseModel):
    """Body of POST /render-batch. The upper bound is enforced before validation."""

    items: List[BatchItem] = Field(min_length=1, description="Documents to render (1-100)")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class DiagnosticResponse(BaseModel):
    """A compiler diagnostic as shown to clients."""

    model_config = ConfigDict(populate_by_name=True)

    line: Optional[int] = Field(default=None, description="Source line, when known")
    message: str = Field(description="What the compiler complained about")
    tag: Optional[str] = Field(
        default=None,
        alias="tagName",
        description="MJML tag the diagnostic refers to",
    )


class RenderResponse(BaseModel):
    """Successful POST /render result."""

    html: str = Field(description="Compiled HTML document")


class ItemResult(BaseModel):
    """
    Outcome of one batch item.

    Success:  {id, success: true, html}
    Failure:  {id, success: false, error, code[, errors]}
    """

    id: ItemId
    success: bool
    html: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    errors: Optional[List[DiagnosticResponse]] = None


class BatchSummary(BaseModel):
    total: int
    success: int
    failed: int


class BatchRenderResponse(BaseModel):
    """POST /render-batch result; `results` follows the order of `items`."""

    summary: BatchSummary
    results: List[ItemResult]


class ErrorResponse(BaseModel):
    """
    Uniform error envelope for every failed request.

    Example:
        {
            "error": "MJML compilation failed",
            "code": "COMPILATION_ERROR",
            "errors": [{"line": 3, "message": "...", "tagName": "mj-text"}]
        }
    """

    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    statusCode: Optional[int] = Field(default=None, description="HTTP status, for generic errors")
    errors: Optional[List[DiagnosticResponse]] = Field(default=None, description="Compiler diagnostics")
    message: Optional[str] = Field(default=None, description="Internal detail (development only)")
    path: Optional[str] = Field(default=None, description="Requested path (404 only)")


# ══════════════════════════════════════════════════════════════════════════
# Health / Info Models
# ══════════════════════════════════════════════════════════════════════════


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Always 'ok' while the process serves requests")
    timestamp: datetime = Field(description="Server time (UTC ISO 8601)")


class EndpointInfo(BaseModel):
    method: str
    path: str


class InfoResponse(BaseModel):
    """Static service identity returned by GET /info."""

    name: str
    version: str
    mjmlVersion: str
    pythonVersion: str
    uptime: float = Field(description="Seconds since the application instance was created")
    timestamp: datetime
    endpoints: Dict[str, EndpointInfo]
