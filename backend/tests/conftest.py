"""
MJML Server — Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (settings, stub compiler, API client).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── settings:        Settings built from arguments only (no env, no .env)
    ├── stub_compiler:   Deterministic MarkupCompiler, no MJML engine needed
    ├── render_service:  RenderService over the stub compiler
    ├── app:             FastAPI instance from create_app(settings, stub)
    └── test_client:     HTTPX AsyncClient talking to `app` in-process

Stub compiler behaviour (driven by markers in the markup):
    "RAISE"     → raises RuntimeError("compiler exploded")
    "BROKEN"    → two diagnostics, plus partial HTML
    "NO_OUTPUT" → no diagnostics and an empty html string
    "SLOW:<ms>" → sleeps before answering (ordering tests)
    otherwise   → "<html><body>{markup}</body></html>"
"""

import re
import threading
import time

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from mjml_server.config import Settings
from mjml_server.main import create_app
from mjml_server.services.compiler_base import CompilationResult, Diagnostic, MarkupCompiler
from mjml_server.services.render_service import RenderService

SLOW_MARKER = re.compile(r"SLOW:(\d+)")


class StubCompiler(MarkupCompiler):
    """MarkupCompiler double that records every markup it is asked to compile."""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    @property
    def version(self) -> str:
        return "stub-1.0"

    def compile(self, markup: str) -> CompilationResult:
        with self._lock:
            self.calls.append(markup)

        slow = SLOW_MARKER.search(markup)
        if slow:
            time.sleep(int(slow.group(1)) / 1000)

        if "RAISE" in markup:
            raise RuntimeError("compiler exploded")
        if "BROKEN" in markup:
            return CompilationResult(
                html="<html>partial</html>",
                diagnostics=(
                    Diagnostic(message="mj-column cannot be used inside mj-body", line=3, tag="mj-column"),
                    Diagnostic(message="Attribute foo is illegal", line=4, tag="mj-text"),
                ),
            )
        if "NO_OUTPUT" in markup:
            return CompilationResult(html="", diagnostics=())
        return CompilationResult(html=f"<html><body>{markup}</body></html>")


@pytest.fixture
def settings():
    """Production-mode settings with default limits, isolated from the environment."""
    return Settings(_env_file=None, environment="production", log_level="WARNING")


@pytest.fixture
def stub_compiler():
    return StubCompiler()


@pytest.fixture
def render_service(stub_compiler):
    return RenderService(
        compiler=stub_compiler,
        max_markup_bytes=1024 * 1024,
        max_batch_items=100,
        batch_concurrency=4,
    )


@pytest.fixture
def app(settings, stub_compiler):
    return create_app(settings=settings, compiler=stub_compiler)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_mjml():
    return """<mjml>
  <mj-head>
    <mj-title>Test</mj-title>
  </mj-head>
  <mj-body>
    <mj-section>
      <mj-column>
        <mj-text>Hello</mj-text>
      </mj-column>
    </mj-section>
  </mj-body>
</mjml>"""
