"""
MJML Server — Health & Info Routes
====================================

What:  GET /health for probes and GET /info for service identity.
Why:   Container orchestrators and load balancers need a cheap liveness probe;
       operators need to know which service and MJML engine version answered.

Health Check Philosophy:
    The service has no dependencies to probe (no database, no network
    upstream; the compiler is an in-process library). If the process can
    answer HTTP, it can render, so /health always returns "ok".
"""

import platform
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from mjml_server import __version__
from mjml_server.schemas.render import EndpointInfo, HealthResponse, InfoResponse

router = APIRouter(tags=["Health"])

SERVICE_NAME = "MJML Rendering Server"

ENDPOINTS = {
    "health": EndpointInfo(method="GET", path="/health"),
    "render": EndpointInfo(method="POST", path="/render"),
    "renderBatch": EndpointInfo(method="POST", path="/render-batch"),
    "info": EndpointInfo(method="GET", path="/info"),
}


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))


@router.get(
    "/info",
    response_model=InfoResponse,
    summary="Service information",
    description="Static metadata: service name and version, MJML engine version, uptime and routes.",
)
async def info(request: Request) -> InfoResponse:
    state = request.app.state
    return InfoResponse(
        name=SERVICE_NAME,
        version=__version__,
        mjmlVersion=state.render_service.compiler.version,
        pythonVersion=platform.python_version(),
        uptime=round(time.monotonic() - state.started_at, 3),
        timestamp=datetime.now(timezone.utc),
        endpoints=ENDPOINTS,
    )
