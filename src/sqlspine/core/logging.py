"""
sqlspine logging - structured logging for statements and gateway failures.

Manifesto:
    A query library is only debuggable if you can see the SQL it sent.
    This module provides:

    - **Structured:** structlog events with keyword fields
    - **Gated:** statement logging only when the debug toggle is on
    - **Redacted:** long string parameters are truncated before logging
    - **Clean traces:** thread-pool frames dropped from error stack traces

Architecture:
    ::

        QueryBuilder ──► Database.fetch/write ──► log_sql(sql, params)
                                 │                   │ debug_mode_enabled()?
                                 │                   ▼
                                 │            logger.debug("sql_statement",
                                 │                         sql=..., params=[...])
                                 ▼
                          on failure: log_db_error(error)
                                 │
                                 ▼
                          logger.error("db_error", error=..., stacktrace=...)

Examples:
    >>> from sqlspine.core.logging import configure_logging, set_debug_mode
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> set_debug_mode(True)

Guardrails:
    - The debug toggle is process-wide and set once at startup
    - Parameters are redacted, never dropped: positions stay aligned with ``?``

Tags:
    logging, structlog, observability, sql-debug, sqlspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
import traceback
from collections.abc import Sequence
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

MAX_PARAM_LENGTH = 64

_SERVICE_NAME = "sqlspine"
_DEBUG_MODE = False

# Frames from these paths are noise in a gateway stack trace.
_NOISY_FRAMES = (
    "concurrent/futures",
    "threading.py",
    "sqlspine/core/timeout.py",
)


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "sqlspine",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer(default=str)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        # A PrintLogger keeps the sys.stdout it was created with.
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger."""
    return structlog.get_logger(name)


# ── Debug toggle ─────────────────────────────────────────────────────────


def set_debug_mode(enabled: bool) -> None:
    """Turn statement logging on or off for the whole process."""
    global _DEBUG_MODE
    _DEBUG_MODE = bool(enabled)


def debug_mode_enabled() -> bool:
    return _DEBUG_MODE


# ── Statement logging ────────────────────────────────────────────────────


def redact_params(params: Sequence[Any]) -> list[Any]:
    """Copy of ``params`` safe for logs.

    Strings longer than 64 characters are cut to 64 and suffixed with
    ``...``; binary values are replaced by their length.
    """
    redacted: list[Any] = []
    for value in params:
        if isinstance(value, str) and len(value) > MAX_PARAM_LENGTH:
            redacted.append(value[:MAX_PARAM_LENGTH] + "...")
        elif isinstance(value, (bytes, bytearray)):
            redacted.append(f"<{len(value)} bytes>")
        else:
            redacted.append(value)
    return redacted


def log_sql(sql: str, params: Sequence[Any] = ()) -> None:
    """Log a rendered statement at debug level when debug mode is on."""
    if not _DEBUG_MODE:
        return
    get_logger("sqlspine.sql").debug("sql_statement", sql=sql, params=redact_params(params))


def clean_stacktrace(error: BaseException) -> str | None:
    """Render the traceback of ``error`` without thread-pool plumbing frames."""
    tb = error.__traceback__
    if tb is None:
        return None
    frames = [
        frame
        for frame in traceback.extract_tb(tb)
        if not any(noise in frame.filename.replace("\\", "/") for noise in _NOISY_FRAMES)
    ]
    if not frames:
        return None
    return "".join(traceback.format_list(frames)).rstrip()


def log_db_error(error: BaseException, **fields: Any) -> None:
    """Log a gateway failure with its context and a cleaned stack trace."""
    payload: dict[str, Any] = dict(fields)
    to_dict = getattr(error, "to_dict", None)
    if callable(to_dict):
        payload.update(to_dict())
    else:
        payload["message"] = str(error)
    stacktrace = clean_stacktrace(error)
    if stacktrace:
        payload["stacktrace"] = stacktrace
    get_logger("sqlspine.gateway").error("db_error", **payload)


__all__ = [
    "MAX_PARAM_LENGTH",
    "configure_logging",
    "get_logger",
    "set_debug_mode",
    "debug_mode_enabled",
    "redact_params",
    "log_sql",
    "clean_stacktrace",
    "log_db_error",
]
