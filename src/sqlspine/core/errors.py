"""
Structured error types for sqlspine.

Every failure that leaves the execution gateway is one of four kinds:
configuration, statement, timeout or mapping.  Driver exceptions are wrapped
exactly once into ``StatementError``; an error that already belongs to the
hierarchy passes through untouched.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure kind, never a bare Exception
    - **Single Wrap:** ``to_db_error`` never double-wraps
    - **Rich Context:** Errors carry the SQL, table and operation that failed
    - **Error Chaining:** The driver exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       SqlSpineError                          │
        │            (category, context, cause)                        │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigError      StatementError     QueryTimeoutError       │
        │  (CONFIG)         (DATABASE)         (TIMEOUT)               │
        │                        │                                     │
        │                   DatabaseConnectionError                    │
        │                   NoDataError                                │
        │                                                              │
        │  MappingError                                                │
        │  (MAPPING)                                                   │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> try:
    ...     cursor.execute(sql, params)
    ... except sqlite3.Error as e:
    ...     raise to_db_error(e, sql=sql)
    Traceback (most recent call last):
    ...
    StatementError: no such table: users

Guardrails:
    ❌ DON'T: Raise driver exceptions out of the gateway
    ✅ DO: Pass them through ``to_db_error``

    ❌ DON'T: Wrap a ``SqlSpineError`` a second time
    ✅ DO: Let ``to_db_error`` return it unchanged

Tags:
    error-handling, exception-hierarchy, error-context, sqlspine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    CONFIG = "CONFIG"             # No executor, bad URL, missing driver
    DATABASE = "DATABASE"         # Driver rejected or failed a statement
    TIMEOUT = "TIMEOUT"           # Statement deadline elapsed
    MAPPING = "MAPPING"           # Result shape did not match the target
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        sql: Statement text that was being executed
        table: Primary table of the statement
        operation: Terminal operation name (``get``, ``insert``, ...)
        timeout: Effective deadline in seconds
        metadata: Additional key-value pairs
    """

    sql: str | None = None
    table: str | None = None
    operation: str | None = None
    timeout: float | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["sql", "table", "operation", "timeout"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SqlSpineError(Exception):
    """
    Base exception for all sqlspine errors.

    Subclasses set ``default_category``.  Retry is not part of this library,
    so no error is retryable.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    @property
    def retryable(self) -> bool:
        return False

    def with_context(self, **kwargs: Any) -> SqlSpineError:
        """
        Add context to this error (fluent API).

        Known keys fill the typed fields; anything else lands in
        ``context.metadata``.  Fields that are already set are kept.
        """
        for key, value in kwargs.items():
            if value is None:
                continue
            if hasattr(self.context, key) and key != "metadata":
                if getattr(self.context, key) is None:
                    setattr(self.context, key, value)
            else:
                self.context.metadata.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SqlSpineError):
    """
    Configuration error: no executor, unknown adapter, missing driver.

    Never fixed by running the statement again.
    """

    default_category = ErrorCategory.CONFIG


# =============================================================================
# STATEMENT ERRORS
# =============================================================================


class StatementError(SqlSpineError):
    """The driver rejected or failed the statement."""

    default_category = ErrorCategory.DATABASE


class DatabaseConnectionError(StatementError):
    """Could not open or reach the database."""


class NoDataError(StatementError):
    """A record count check found no matching rows."""

    def __init__(self, message: str = "no data", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# TIMEOUT ERRORS
# =============================================================================


class QueryTimeoutError(SqlSpineError):
    """The statement deadline elapsed before the driver returned."""

    default_category = ErrorCategory.TIMEOUT

    def __init__(self, timeout: float, *, elapsed: float | None = None, **kwargs: Any):
        self.timeout = timeout
        self.elapsed = elapsed
        msg = f"statement timed out after {timeout:g}s"
        if elapsed is not None:
            msg += f" (ran for {elapsed:.2f}s)"
        super().__init__(msg, **kwargs)
        self.with_context(timeout=timeout)


# =============================================================================
# MAPPING ERRORS
# =============================================================================


class MappingError(SqlSpineError):
    """Result rows could not be mapped onto the requested shape."""

    default_category = ErrorCategory.MAPPING


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def to_db_error(error: BaseException, **context: Any) -> SqlSpineError:
    """Wrap any exception into the sqlspine hierarchy.

    A ``SqlSpineError`` is returned as-is (context is merged, the kind is
    never changed).  Anything else becomes a ``StatementError`` whose
    message is the driver's message.
    """
    if isinstance(error, SqlSpineError):
        return error.with_context(**context)
    message = str(error) or error.__class__.__name__
    return StatementError(message, cause=error).with_context(**context)


def is_retryable(error: BaseException) -> bool:
    """Always False: statements are never retried."""
    return False


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SqlSpineError):
        return error.category
    if isinstance(error, TimeoutError):
        return ErrorCategory.TIMEOUT
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SqlSpineError",
    "ConfigError",
    "StatementError",
    "DatabaseConnectionError",
    "NoDataError",
    "QueryTimeoutError",
    "MappingError",
    "to_db_error",
    "is_retryable",
    "categorize_error",
]
