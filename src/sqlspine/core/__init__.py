"""sqlspine core - the plumbing under the query layer.

Manifesto:
    The query layer builds statements and maps rows; everything it needs
    from the outside world lives here, behind small explicit seams: a
    typed error hierarchy, structlog plumbing, pydantic settings, one SQL
    dialect, the adapter capability that runs statements under a deadline,
    and the schema cache the conventions read.

    - **Protocol-first:** Executor, Transaction and SchemaSource are protocols
    - **Import-guarded drivers:** mysql-connector-python is loaded at connect time
    - **Explicit registries:** the schema cache is passed, never global

Architecture::

    Layer 1 -- Types & Errors
        errors.py          SqlSpineError hierarchy, to_db_error()
        protocols.py       Connection, Executor, Transaction, SchemaSource

    Layer 2 -- Cross-Cutting Concerns
        logging.py         structlog setup, debug toggle, SQL and error logging
        settings.py        SqlSpineSettings (pydantic-settings)
        timeout.py         Statement deadlines (one-shot worker thread)

    Layer 3 -- Database
        dialect.py         Backtick quoting, qmark -> driver paramstyle
        adapters/          SQLite and MySQL adapters, registry, URL parsing
        schema.py          DESCRIBE parsing, SchemaCache

Tags:
    sqlspine, core, package-overview

Doc-Types:
    - Package Overview
"""

from sqlspine.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ErrorContext,
    MappingError,
    NoDataError,
    QueryTimeoutError,
    SqlSpineError,
    StatementError,
    to_db_error,
)
from sqlspine.core.logging import configure_logging, get_logger, set_debug_mode
from sqlspine.core.schema import ColumnSchema, SchemaCache, parse_describe_row
from sqlspine.core.settings import SqlSpineSettings, get_settings

__all__ = [
    # Errors
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
    # Logging
    "configure_logging",
    "get_logger",
    "set_debug_mode",
    # Settings
    "SqlSpineSettings",
    "get_settings",
    # Schema
    "ColumnSchema",
    "SchemaCache",
    "parse_describe_row",
]
