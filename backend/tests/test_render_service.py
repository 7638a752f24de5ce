"""
MJML Server — Render Service Unit Tests
=========================================

What:  Tests for RenderService business logic without HTTP.
How:   Uses the StubCompiler from conftest.py (no MJML engine involved).

What we test:
    ✅ Validation: empty markup, byte-length limit (multi-byte aware)
    ✅ Diagnostics policy: any diagnostic fails the document, partial HTML dropped
    ✅ NO_OUTPUT and unexpected exceptions
    ✅ Batch isolation, identity assignment, ordering and summary
"""

import pytest

from mjml_server.exceptions import (
    CompilationError,
    ContentTooLargeError,
    InternalError,
    InvalidInputError,
    NoOutputError,
    TooManyItemsError,
)
from mjml_server.schemas.render import BatchItem


class TestRender:
    """Tests for single-document rendering."""

    @pytest.mark.asyncio
    async def test_render_success(self, render_service):
        result = await render_service.render("<mjml>Hello</mjml>")
        assert "Hello" in result.html

    @pytest.mark.asyncio
    async def test_empty_markup_rejected(self, render_service, stub_compiler):
        with pytest.raises(InvalidInputError):
            await render_service.render("")
        assert stub_compiler.calls == []

    @pytest.mark.asyncio
    async def test_none_markup_rejected(self, render_service):
        with pytest.raises(InvalidInputError):
            await render_service.render(None)

    @pytest.mark.asyncio
    async def test_markup_at_limit_accepted(self, render_service):
        markup = "a" * (1024 * 1024)
        result = await render_service.render(markup)
        assert result.html

    @pytest.mark.asyncio
    async def test_markup_over_limit_rejected(self, render_service, stub_compiler):
        with pytest.raises(ContentTooLargeError) as exc_info:
            await render_service.render("a" * (1024 * 1024 + 1))
        assert exc_info.value.status_code == 413
        assert "max 1MB" in exc_info.value.message
        assert stub_compiler.calls == []

    @pytest.mark.asyncio
    async def test_limit_counts_utf8_bytes_not_characters(self, render_service):
        # 600k characters, 1.2 MB once encoded
        with pytest.raises(ContentTooLargeError):
            await render_service.render("é" * 600_000)

    @pytest.mark.asyncio
    async def test_diagnostics_fail_the_document(self, render_service):
        with pytest.raises(CompilationError) as exc_info:
            await render_service.render("<mjml>BROKEN</mjml>")
        assert len(exc_info.value.diagnostics) == 2
        assert exc_info.value.diagnostics[0].tag == "mj-column"

    @pytest.mark.asyncio
    async def test_no_output(self, render_service):
        with pytest.raises(NoOutputError):
            await render_service.render("<mjml>NO_OUTPUT</mjml>")

    @pytest.mark.asyncio
    async def test_unexpected_exception_wrapped(self, render_service):
        with pytest.raises(InternalError) as exc_info:
            await render_service.render("<mjml>RAISE</mjml>")
        assert exc_info.value.detail == "compiler exploded"
        assert exc_info.value.message == "Internal server error"

    @pytest.mark.asyncio
    async def test_same_markup_same_html(self, render_service):
        first = await render_service.render("<mjml>Hello</mjml>")
        second = await render_service.render("<mjml>Hello</mjml>")
        assert first.html == second.html


class TestRenderBatch:
    """Tests for batch rendering and per-item isolation."""

    @pytest.mark.asyncio
    async def test_all_items_succeed(self, render_service):
        items = [BatchItem(id="1", mjml="<mjml>Email 1</mjml>"), BatchItem(id="2", mjml="<mjml>Email 2</mjml>")]
        response = await render_service.render_batch(items)

        assert response.summary.total == 2
        assert response.summary.success == 2
        assert response.summary.failed == 0
        assert [r.id for r in response.results] == ["1", "2"]
        assert "Email 1" in response.results[0].html
        assert "Email 2" in response.results[1].html

    @pytest.mark.asyncio
    async def test_failing_item_is_isolated(self, render_service):
        items = [
            BatchItem(mjml="<mjml>one</mjml>"),
            BatchItem(mjml="<mjml>RAISE</mjml>"),
            BatchItem(mjml="<mjml>three</mjml>"),
        ]
        response = await render_service.render_batch(items)

        assert [r.success for r in response.results] == [True, False, True]
        failed = response.results[1]
        assert failed.code == "PROCESSING_ERROR"
        assert failed.error == "compiler exploded"
        assert failed.html is None
        assert response.summary.success + response.summary.failed == 3

    @pytest.mark.asyncio
    async def test_each_failure_kind_reported_per_item(self, render_service):
        items = [
            BatchItem(id="empty", mjml=""),
            BatchItem(id="huge", mjml="a" * (1024 * 1024 + 1)),
            BatchItem(id="broken", mjml="<mjml>BROKEN</mjml>"),
            BatchItem(id="blank", mjml="<mjml>NO_OUTPUT</mjml>"),
            BatchItem(id="fine", mjml="<mjml>ok</mjml>"),
        ]
        response = await render_service.render_batch(items)
        codes = {r.id: r.code for r in response.results}

        assert codes == {
            "empty": "INVALID_INPUT",
            "huge": "CONTENT_TOO_LARGE",
            "broken": "COMPILATION_ERROR",
            "blank": "NO_OUTPUT",
            "fine": None,
        }
        assert len(response.results[2].errors) == 2
        assert response.results[2].html is None
        assert response.summary.failed == 4

    @pytest.mark.asyncio
    async def test_positional_ids_for_items_without_id(self, render_service):
        items = [
            BatchItem(id="a", mjml="<mjml>x</mjml>"),
            BatchItem(mjml="<mjml>y</mjml>"),
            BatchItem(id=None, mjml="<mjml>z</mjml>"),
        ]
        response = await render_service.render_batch(items)
        assert [r.id for r in response.results] == ["a", 1, 2]

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_not_merged(self, render_service):
        items = [BatchItem(id="same", mjml="<mjml>first</mjml>"), BatchItem(id="same", mjml="<mjml>second</mjml>")]
        response = await render_service.render_batch(items)
        assert len(response.results) == 2
        assert "first" in response.results[0].html
        assert "second" in response.results[1].html

    @pytest.mark.asyncio
    async def test_results_keep_input_order(self, render_service):
        # Earlier items finish last
        items = [BatchItem(id=i, mjml=f"<mjml>SLOW:{(5 - i) * 20} item {i}</mjml>") for i in range(5)]
        response = await render_service.render_batch(items)

        assert [r.id for r in response.results] == [0, 1, 2, 3, 4]
        for i, result in enumerate(response.results):
            assert f"item {i}" in result.html

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, render_service):
        with pytest.raises(InvalidInputError):
            await render_service.render_batch([])

    @pytest.mark.asyncio
    async def test_too_many_items_rejected_before_compiling(self, render_service, stub_compiler):
        items = [BatchItem(mjml="<mjml>x</mjml>") for _ in range(101)]
        with pytest.raises(TooManyItemsError):
            await render_service.render_batch(items)
        assert stub_compiler.calls == []
