"""
Protocol definitions for the capabilities sqlspine consumes.

The query engine never talks to a driver directly.  It sees an ``Executor``
(a pool or a transaction handle) that can run a read or a write under a
deadline, and a ``SchemaSource`` that lists tables and describes columns.
Adapters in ``sqlspine.core.adapters`` implement both.

Manifesto:
    Protocols define contracts without inheritance. They enable:

    - **Decoupling:** The builder depends on shape, not on sqlite3/mysql
    - **Testability:** A stub executor is enough to test timeouts and errors
    - **One seam:** Pool and transaction share the same read/write entry points

Architecture:
    ::

        protocols.py
        ├── Connection     - DB-API connection subset (cursor/commit/rollback)
        ├── Executor       - fetch(sql, params) / write(sql, params)
        ├── Transaction    - Executor + commit/rollback
        └── SchemaSource   - table_names() / describe_table(name)

Guardrails:
    ❌ DON'T: Import a driver in query code
    ✅ DO: Accept an ``Executor`` and let the adapter translate placeholders

Tags:
    protocol, executor, transaction, schema-source, sqlspine, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlspine.core.adapters.types import DescribeRow, ResultSet, WriteResult


@runtime_checkable
class Connection(Protocol):
    """Subset of a DB-API 2.0 connection used by adapters."""

    def cursor(self, *args: Any, **kwargs: Any) -> Any: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class Executor(Protocol):
    """
    Runs one statement and returns its outcome.

    SQL arrives in qmark style (``?``) with a parameter sequence in
    placeholder order.  Implementations translate the paramstyle, run the
    statement under the deadline and report driver failures by raising;
    an elapsed deadline raises ``QueryTimeoutError``.
    """

    def fetch(
        self, sql: str, params: Sequence[Any] = (), timeout: float | None = None
    ) -> ResultSet:
        """Run a row-returning statement, cancelling it after `timeout` seconds."""
        ...

    def write(
        self, sql: str, params: Sequence[Any] = (), timeout: float | None = None
    ) -> WriteResult:
        """Run a statement and report affected rows and the last insert id."""
        ...


@runtime_checkable
class Transaction(Executor, Protocol):
    """An executor bound to one connection inside BEGIN ... COMMIT/ROLLBACK."""

    @property
    def is_active(self) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@runtime_checkable
class SchemaSource(Protocol):
    """Producer of the data that fills a ``SchemaCache``."""

    def table_names(self) -> list[str]: ...

    def describe_table(self, table: str) -> list[DescribeRow]: ...


__all__ = [
    "Connection",
    "Executor",
    "Transaction",
    "SchemaSource",
]
