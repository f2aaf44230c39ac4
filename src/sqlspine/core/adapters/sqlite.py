"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
import threading
import uuid
from collections.abc import Sequence
from typing import Any

from sqlspine.core.dialect import quote_identifier
from sqlspine.core.errors import DatabaseConnectionError
from sqlspine.core.protocols import Connection

from .base import DatabaseAdapter
from .types import ColumnInfo, DatabaseConfig, DatabaseType, DescribeRow

# SQLite reports no column types for a result; the storage class of the
# first non-NULL value stands in for it.
_STORAGE_TYPES: list[tuple[type, str]] = [
    (bool, "BOOLEAN"),
    (int, "BIGINT"),
    (float, "DOUBLE"),
    (str, "TEXT"),
    (bytes, "BLOB"),
]


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module in autocommit mode.  Statements outside
    a transaction share one connection, one at a time; every transaction
    gets a dedicated connection opened by ``begin()`` and closed by its
    commit or rollback, so a rollback never discards other statements.
    ``:memory:`` becomes a named shared-cache database so that transaction
    connections see the same data.

    Suitable for:
    - Development and testing
    - Single-process applications
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()
        path = path or ":memory:"
        if path == ":memory:":
            self._target = f"file:sqlspine-{uuid.uuid4().hex}?mode=memory&cache=shared"
        else:
            self._target = path

    def _open(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self._target,
                timeout=self._timeout,
                check_same_thread=False,
                isolation_level=None,
                uri=self._target.startswith("file:"),
            )
            conn.execute("PRAGMA foreign_keys = ON")
            if self._config.readonly:
                conn.execute("PRAGMA query_only = ON")
            return conn
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    def connect(self) -> None:
        """Connect to SQLite database."""
        self._conn = self._open()
        self._connected = True

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False

    def acquire(self) -> Connection:
        """Take the shared SQLite connection, waiting up to the busy timeout."""
        if not self._conn:
            self.connect()
        if not self._lock.acquire(timeout=self._timeout):
            raise DatabaseConnectionError(
                f"SQLite connection still busy after {self._timeout}s",
            )
        return self._conn

    def release(self, conn: Connection) -> None:
        """Give the shared connection back; transaction connections are closed."""
        if conn is self._conn:
            self._lock.release()
        else:
            conn.close()

    def _transaction_connection(self) -> Connection:
        if not self._conn:
            self.connect()
        return self._open()

    def interrupt(self, conn: Connection) -> None:
        conn.interrupt()

    def _commit(self, conn: Connection) -> None:
        conn.execute("COMMIT")

    def _rollback(self, conn: Connection) -> None:
        conn.execute("ROLLBACK")

    def _autocommit(self, conn: Connection) -> None:
        """Autocommit mode: nothing pending outside an explicit BEGIN."""

    def describe_columns(self, cursor: Any, rows: Sequence[tuple[Any, ...]]) -> list[ColumnInfo]:
        columns = []
        for index, desc in enumerate(cursor.description):
            type_name = ""
            for row in rows:
                value = row[index]
                if value is None:
                    continue
                type_name = next((name for cls, name in _STORAGE_TYPES if isinstance(value, cls)), "")
                break
            columns.append(ColumnInfo(name=desc[0], type_name=type_name, nullable=True))
        return columns

    # ── Schema source ────────────────────────────────────────────────

    def table_names(self) -> list[str]:
        result = self.fetch(
            "SELECT name FROM sqlite_master WHERE type = 'table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row[0] for row in result.rows]

    def describe_table(self, table: str) -> list[DescribeRow]:
        """Translate ``PRAGMA table_info`` into DESCRIBE-style rows."""
        result = self.fetch(f"PRAGMA table_info({quote_identifier(table)})")
        pk_count = sum(1 for row in result.rows if row[5])
        described = []
        for _cid, name, decl_type, notnull, default, pk in result.rows:
            decl_type = (decl_type or "").lower()
            rowid_alias = bool(pk) and pk_count == 1 and decl_type == "integer"
            described.append(
                DescribeRow(
                    field=name,
                    type=decl_type,
                    null="NO" if notnull or rowid_alias else "YES",
                    key="PRI" if pk else "",
                    default=default,
                    extra="auto_increment" if rowid_alias else "",
                )
            )
        return described


__all__ = [
    "SQLiteAdapter",
]
