"""Database adapter base class.

Manifesto:
    The query engine consumes one capability: run a statement (read or
    write) with parameters under a deadline, against a pool or inside a
    transaction.  The abstract base class implements that capability once;
    concrete adapters only say how to open connections, how to describe
    result columns and how to cancel a running statement.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``acquire()``, ``release()``
    - ``fetch()`` / ``write()`` with optional deadline and cancellation
    - ``begin()`` returns an explicit ``AdapterTransaction`` handle
    - Schema-source methods for populating the schema cache
    - Context-manager protocol for connection lifecycle

Tags:
    sqlspine, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlspine.core.dialect import Dialect, get_dialect
from sqlspine.core.errors import StatementError
from sqlspine.core.protocols import Connection
from sqlspine.core.timeout import run_with_timeout

from .types import ColumnInfo, DatabaseConfig, DatabaseType, DescribeRow, ResultSet, WriteResult

T = TypeVar("T")


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    ``fetch`` and ``write`` acquire a connection, run one statement and
    give the connection back.  Writes outside a transaction are committed
    immediately.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    # ── Lifecycle ────────────────────────────────────────────────────

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to database."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to database."""
        ...

    @abstractmethod
    def acquire(self) -> Connection:
        """Get a connection (may be from pool)."""
        ...

    @abstractmethod
    def release(self, conn: Connection) -> None:
        """Give a connection obtained with ``acquire`` back."""
        ...

    # ── Driver hooks ─────────────────────────────────────────────────

    @abstractmethod
    def describe_columns(self, cursor: Any, rows: Sequence[tuple[Any, ...]]) -> list[ColumnInfo]:
        """Column names, database type names and nullability of a result."""
        ...

    @abstractmethod
    def interrupt(self, conn: Connection) -> None:
        """Abort the statement running on ``conn``.  Called from another thread."""
        ...

    def _transaction_connection(self) -> Connection:
        """Connection a new transaction is bound to; released with ``release``."""
        return self.acquire()

    def _begin(self, conn: Connection) -> None:
        conn.cursor().execute("BEGIN")

    def _commit(self, conn: Connection) -> None:
        conn.commit()

    def _rollback(self, conn: Connection) -> None:
        conn.rollback()

    def _autocommit(self, conn: Connection) -> None:
        """Make a write outside a transaction durable."""
        conn.commit()

    # ── Statement execution ──────────────────────────────────────────

    def _fetch_on(self, conn: Connection, sql: str, params: tuple[Any, ...]) -> ResultSet:
        cursor = conn.cursor()
        try:
            cursor.execute(sql, params)
            rows = [tuple(row) for row in cursor.fetchall()] if cursor.description else []
            columns = self.describe_columns(cursor, rows) if cursor.description else []
            return ResultSet(columns=columns, rows=rows)
        finally:
            cursor.close()

    def _write_on(self, conn: Connection, sql: str, params: tuple[Any, ...]) -> WriteResult:
        cursor = conn.cursor()
        try:
            cursor.execute(sql, params)
            rowcount = cursor.rowcount if cursor.rowcount is not None and cursor.rowcount >= 0 else 0
            return WriteResult(rowcount=rowcount, lastrowid=cursor.lastrowid or None)
        finally:
            cursor.close()

    def run(
        self,
        conn: Connection,
        func: Callable[[Connection, str, tuple[Any, ...]], T],
        sql: str,
        params: Sequence[Any],
        timeout: float | None,
        *,
        after: Callable[[], None] | None = None,
    ) -> T:
        """Run ``func`` on ``conn`` with the translated SQL, under ``timeout``.

        ``after`` runs in the same thread as the statement once it finishes,
        even when the caller has already given up on it.
        """
        translated = self._dialect.translate(sql)
        bound = tuple(params)

        def work() -> T:
            try:
                return func(conn, translated, bound)
            finally:
                if after is not None:
                    after()

        if timeout is None:
            return work()
        return run_with_timeout(
            work,
            timeout,
            operation=sql.split(" ", 1)[0].lower(),
            on_timeout=lambda: self.interrupt(conn),
        )

    def fetch(self, sql: str, params: Sequence[Any] = (), timeout: float | None = None) -> ResultSet:
        """Run a read statement on a pooled connection."""
        conn = self.acquire()
        return self.run(conn, self._fetch_on, sql, params, timeout, after=lambda: self.release(conn))

    def write(self, sql: str, params: Sequence[Any] = (), timeout: float | None = None) -> WriteResult:
        """Run a write statement on a pooled connection and commit it."""
        conn = self.acquire()

        def write_and_commit(c: Connection, s: str, p: tuple[Any, ...]) -> WriteResult:
            result = self._write_on(c, s, p)
            self._autocommit(c)
            return result

        return self.run(conn, write_and_commit, sql, params, timeout, after=lambda: self.release(conn))

    # ── Transactions ─────────────────────────────────────────────────

    def begin(self) -> AdapterTransaction:
        """Start a transaction on a dedicated connection."""
        conn = self._transaction_connection()
        try:
            self._begin(conn)
        except Exception:
            self.release(conn)
            raise
        return AdapterTransaction(self, conn)

    @contextmanager
    def transaction(self) -> Iterator[AdapterTransaction]:
        """Transaction context manager."""
        tx = self.begin()
        try:
            yield tx
            tx.commit()
        except Exception:
            if tx.is_active:
                tx.rollback()
            raise

    # ── Schema source ────────────────────────────────────────────────

    @abstractmethod
    def table_names(self) -> list[str]:
        """Names of all user tables."""
        ...

    @abstractmethod
    def describe_table(self, table: str) -> list[DescribeRow]:
        """``DESCRIBE``-style column metadata for ``table``."""
        ...

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


class AdapterTransaction:
    """
    Explicit transaction handle.

    Bound to one connection from ``begin()`` until ``commit()`` or
    ``rollback()``, after which the connection is released and the handle
    refuses further statements.
    """

    def __init__(self, adapter: DatabaseAdapter, conn: Connection):
        self._adapter = adapter
        self._conn = conn
        self._active = True

    @property
    def is_active(self) -> bool:
        return self._active

    def _check_active(self) -> None:
        if not self._active:
            raise StatementError("transaction is already committed or rolled back")

    def fetch(self, sql: str, params: Sequence[Any] = (), timeout: float | None = None) -> ResultSet:
        self._check_active()
        return self._adapter.run(self._conn, self._adapter._fetch_on, sql, params, timeout)

    def write(self, sql: str, params: Sequence[Any] = (), timeout: float | None = None) -> WriteResult:
        self._check_active()
        return self._adapter.run(self._conn, self._adapter._write_on, sql, params, timeout)

    def commit(self) -> None:
        self._check_active()
        self._active = False
        try:
            self._adapter._commit(self._conn)
        finally:
            self._adapter.release(self._conn)

    def rollback(self) -> None:
        self._check_active()
        self._active = False
        try:
            self._adapter._rollback(self._conn)
        finally:
            self._adapter.release(self._conn)


__all__ = [
    "DatabaseAdapter",
    "AdapterTransaction",
]
