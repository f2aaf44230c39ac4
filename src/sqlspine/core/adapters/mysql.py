"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style; the dialect rewrites the
synthesizer's ``?`` placeholders before execution.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install sqlspine[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~sqlspine.core.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlspine.core.dialect import quote_identifier
from sqlspine.core.errors import ConfigError, DatabaseConnectionError
from sqlspine.core.logging import get_logger
from sqlspine.core.protocols import Connection

from .base import DatabaseAdapter
from .types import ColumnInfo, DatabaseConfig, DatabaseType, DescribeRow

logger = get_logger(__name__)


def _text(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return value


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter.

    Uses a ``mysql.connector`` connection pool.  Pooled connections run in
    autocommit mode; ``begin()`` starts an explicit transaction on one of
    them.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        pool_size: int = 5,
        charset: str = "utf8mb4",
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            pool_size=pool_size,
            options={**(kwargs or {}), "charset": charset},
        )
        super().__init__(config)
        self._pool: Any = None
        self._field_type: Any = None

    def connect(self) -> None:
        """Create the MySQL connection pool."""
        try:
            from mysql.connector import pooling
            from mysql.connector.constants import FieldType
        except ImportError:
            raise ConfigError(
                "mysql-connector-python is required for MySQL. "
                "Install with: pip install mysql-connector-python"
            ) from None

        try:
            self._pool = pooling.MySQLConnectionPool(
                pool_name=f"sqlspine_{self._config.database or 'mysql'}",
                pool_size=self._config.pool_size,
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                charset=self._config.options.get("charset", "utf8mb4"),
                connect_timeout=self._config.connect_timeout,
                autocommit=True,
            )
            self._field_type = FieldType
            self._connected = True
        except Exception as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Drop the pool; pooled connections close when garbage collected."""
        self._pool = None
        self._connected = False

    def acquire(self) -> Connection:
        """Get connection from pool."""
        if not self._pool:
            self.connect()
        return self._pool.get_connection()

    def release(self, conn: Connection) -> None:
        """Return connection to pool."""
        conn.close()  # mysql.connector returns to pool on close

    def interrupt(self, conn: Connection) -> None:
        """Kill the running query from a second pooled connection."""
        killer = None
        try:
            killer = self.acquire()
            cursor = killer.cursor()
            cursor.execute(f"KILL QUERY {int(conn.connection_id)}")
            cursor.close()
        except Exception as e:
            logger.warning("mysql_kill_query_failed", error=str(e))
        finally:
            if killer is not None:
                self.release(killer)

    def _begin(self, conn: Connection) -> None:
        conn.start_transaction()

    def _autocommit(self, conn: Connection) -> None:
        """Pool connections are in autocommit mode."""

    def describe_columns(self, cursor: Any, rows: Sequence[tuple[Any, ...]]) -> list[ColumnInfo]:
        # description: (name, type_code, display_size, internal_size, precision, scale, null_ok, flags, ...)
        columns = []
        for desc in cursor.description:
            type_name = self._field_type.get_info(desc[1]) if self._field_type else ""
            nullable = bool(desc[6]) if len(desc) > 6 else True
            columns.append(ColumnInfo(name=desc[0], type_name=(type_name or "").upper(), nullable=nullable))
        return columns

    # ── Schema source ────────────────────────────────────────────────

    def table_names(self) -> list[str]:
        return [_text(row[0]) for row in self.fetch("SHOW TABLES").rows]

    def describe_table(self, table: str) -> list[DescribeRow]:
        result = self.fetch(f"DESCRIBE {quote_identifier(table)}")
        described = []
        for row in result.rows:
            name, col_type, null, key, default, extra = (_text(v) for v in row[:6])
            described.append(
                DescribeRow(
                    field=name,
                    type=col_type or "",
                    null=null or "YES",
                    key=key or "",
                    default=None if default is None else str(default),
                    extra=extra or "",
                )
            )
        return described


__all__ = [
    "MySQLAdapter",
]
