"""Environment-driven settings for sqlspine.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    A service opening a ``Database`` should not hand-parse env vars for the
    URL, the debug flag or the statement deadline.

    - **Pydantic validation:** Type-checked at startup, not at query time
    - **Environment-driven:** Reads ``SQLSPINE_*`` env vars and ``.env``
    - **Sensible defaults:** In-memory SQLite, 5 second deadline

Examples:
    >>> from sqlspine.core.settings import SqlSpineSettings
    >>> settings = SqlSpineSettings(url="mysql://app:secret@db:3306/shop")
    >>> settings.default_timeout
    5.0

Tags:
    settings, configuration, pydantic, environment, sqlspine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_TIMEOUT = 1.0
DEFAULT_TIMEOUT = 5.0


class SqlSpineSettings(BaseSettings):
    """Settings for opening a ``Database``.

    Fields
    ──────
    url              : Database URL (``sqlite:///path`` or ``mysql://...``)
    debug            : Log every statement with redacted parameters
    log_level        : Structlog log level
    json_logs        : JSON rendering; ``None`` auto-detects from the tty
    default_timeout  : Statement deadline in seconds (minimum 1)
    pool_size        : MySQL connection pool size
    load_schema      : Introspect the schema cache when opening
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────
    url: str = "sqlite:///:memory:"
    pool_size: int = Field(default=5, ge=1)
    default_timeout: float = DEFAULT_TIMEOUT
    load_schema: bool = True

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("default_timeout")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if value < MIN_TIMEOUT:
            raise ValueError(f"default_timeout must be at least {MIN_TIMEOUT:g}s")
        return value


@lru_cache
def get_settings() -> SqlSpineSettings:
    """Process-wide settings, read once from the environment."""
    return SqlSpineSettings()


__all__ = [
    "DEFAULT_TIMEOUT",
    "MIN_TIMEOUT",
    "SqlSpineSettings",
    "get_settings",
]
