"""
MJML Server — Configuration & Exception Tests
===============================================

What:  Tests for Settings parsing and the exception hierarchy's wire mapping.
"""

import pytest
from pydantic import ValidationError

from mjml_server.config import Settings
from mjml_server.exceptions import (
    CompilationError,
    ContentTooLargeError,
    InternalError,
    InvalidInputError,
    MjmlServerError,
    NoOutputError,
    TooManyItemsError,
)
from mjml_server.services.compiler_base import Diagnostic


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.host == "0.0.0.0"
        assert settings.port == 3000
        assert settings.log_level == "INFO"
        assert settings.max_markup_bytes == 1024 * 1024
        assert settings.max_batch_items == 100
        assert settings.is_development is False

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("HOST", "127.0.0.1")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("ENVIRONMENT", "Development")
        settings = Settings(_env_file=None)
        assert settings.port == 8080
        assert settings.host == "127.0.0.1"
        assert settings.log_level == "DEBUG"
        assert settings.is_development is True

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_body_limit_cannot_undercut_one_document(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_body_bytes=1024)


class TestExceptionMapping:
    """Each domain error knows its own wire code and HTTP status."""

    @pytest.mark.parametrize(
        "exc, code, status",
        [
            (InvalidInputError(), "INVALID_INPUT", 400),
            (ContentTooLargeError(size=2, limit=1), "CONTENT_TOO_LARGE", 413),
            (TooManyItemsError(count=101, limit=100), "TOO_MANY_ITEMS", 413),
            (CompilationError([Diagnostic(message="bad")]), "COMPILATION_ERROR", 400),
            (NoOutputError(), "NO_OUTPUT", 500),
            (InternalError(detail="boom"), "INTERNAL_ERROR", 500),
        ],
    )
    def test_code_and_status(self, exc, code, status):
        assert isinstance(exc, MjmlServerError)
        assert exc.code == code
        assert exc.status_code == status

    def test_content_too_large_message(self):
        assert ContentTooLargeError(limit=1024 * 1024).message == "MJML content is too large (max 1MB)"
        assert ContentTooLargeError(limit=1500).message == "MJML content is too large (max 1500 bytes)"

    def test_internal_error_keeps_detail_out_of_message(self):
        exc = InternalError(detail="stack details")
        assert exc.message == "Internal server error"
        assert exc.detail == "stack details"
