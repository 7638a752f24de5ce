"""
MJML Server — Application Configuration
=========================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and produces an immutable `Settings` value.
Who:   Built once by `get_settings()` and handed to `create_app()`, which
       stores it on `app.state`. Handlers receive it through dependencies.
When:  Loaded when the application instance is created.

Design Decision:
    There is no module-level settings singleton. Tests (and embedders) build
    their own `Settings(...)` and pass it to `create_app(settings=...)`, so
    two app instances with different limits can coexist in one process.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ONE_MEBIBYTE = 1024 * 1024


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults; a container only needs to override
    what differs from them (typically PORT and LOG_LEVEL).
    """

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)

    # What: Controls verbosity of application logging
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL (any case)
    log_level: str = Field(default="INFO")

    # What: Deployment mode. Only "development" echoes internal error
    # messages back to clients.
    environment: str = Field(default="production")

    # ── Limits ────────────────────────────────────────────────────────────
    # What: Maximum UTF-8 encoded size of a single MJML document
    max_markup_bytes: int = Field(default=ONE_MEBIBYTE, ge=1)

    # What: Maximum number of items accepted by POST /render-batch
    max_batch_items: int = Field(default=100, ge=1, le=10_000)

    # What: Maximum request body size, checked from Content-Length.
    # Must leave room for a full-size document plus JSON framing.
    max_body_bytes: int = Field(default=16 * ONE_MEBIBYTE, ge=ONE_MEBIBYTE)

    # What: How many batch items compile at the same time (per request)
    batch_concurrency: int = Field(default=8, ge=1, le=64)

    # ── Compiler ──────────────────────────────────────────────────────────
    # What: Base directory used to resolve <mj-include path="..."> tags
    mjml_template_dir: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings read from the environment."""
    return Settings()
