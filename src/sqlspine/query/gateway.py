"""
Execution gateway - the ``Database`` session object.

Manifesto:
    Builders synthesize statements; something has to run them.  The gateway
    is the one place where a statement meets the executor, so it is also
    the one place that applies the deadline, logs the statement, and turns
    driver failures into sqlspine errors.

    - **One deadline rule:** override if at least one second, else the default
    - **One error funnel:** everything raised here is a ``SqlSpineError``
    - **Logged once:** failures are logged here, right before they are raised
    - **Explicit transactions:** callers own the handle; ``run_in_transaction``
      is the only place the library begins one itself

Architecture:
    ::

        QueryBuilder / raw SQL helpers
                 │ Statement(sql, params)
                 ▼
        Database.fetch / write ──► log_sql (debug toggle)
                 │
                 ├── tx given?  AdapterTransaction.fetch/write
                 └── otherwise  DatabaseAdapter.fetch/write (pooled)
                                    │
                                    ▼  deadline: run_with_timeout
                              ResultSet / WriteResult
                 │
                 └── on failure: to_db_error ──► log_db_error ──► raise

Examples:
    >>> db = Database.open("sqlite:///:memory:")
    >>> db.execute_sql("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    >>> db.insert_by_sql("INSERT INTO users (name) VALUES (?)", "ada")
    1
    >>> db.table("users").where("id", 1).value("name")
    'ada'

Tags:
    gateway, execution, timeout, transactions, sqlspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from sqlspine.core.adapters import AdapterTransaction, DatabaseAdapter, ResultSet, WriteResult, create_adapter
from sqlspine.core.errors import ConfigError, NoDataError, SqlSpineError, to_db_error
from sqlspine.core.logging import get_logger, log_db_error, log_sql, set_debug_mode
from sqlspine.core.schema import SchemaCache
from sqlspine.core.settings import DEFAULT_TIMEOUT, SqlSpineSettings, get_settings
from sqlspine.core.timeout import effective_timeout

from .conventions import ConventionResolver
from .decoder import decode_record, decode_records, decode_rows
from .records import RecordMeta
from .synthesizer import Statement

if TYPE_CHECKING:
    from .builder import QueryBuilder

logger = get_logger(__name__)

T = TypeVar("T")


class Database:
    """
    A database session: executor, schema cache and conventions.

    ``Database`` is safe to share between threads as long as the adapter
    is; builders created by ``table()`` are not.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        schema: SchemaCache | None = None,
        *,
        default_timeout: float = DEFAULT_TIMEOUT,
    ):
        self._adapter = adapter
        self._schema = schema if schema is not None else SchemaCache()
        self._conventions = ConventionResolver(self._schema)
        self._default_timeout = default_timeout

    @classmethod
    def open(cls, target: str | SqlSpineSettings | None = None, **overrides: Any) -> Database:
        """Connect from a URL or settings, introspecting the schema when enabled.

        ``overrides`` are passed to the adapter constructor.
        """
        if isinstance(target, SqlSpineSettings):
            settings = target
        elif isinstance(target, str):
            settings = get_settings().model_copy(update={"url": target})
        else:
            settings = get_settings()

        set_debug_mode(settings.debug)
        if settings.url.lower().startswith(("mysql", "mariadb")):
            overrides.setdefault("pool_size", settings.pool_size)
        adapter = create_adapter(settings.url, **overrides)
        adapter.connect()

        schema = SchemaCache()
        if settings.load_schema:
            schema.load(adapter)
        schema.freeze()

        logger.info(
            "database_opened",
            url=adapter.config.to_connection_string(),
            tables=len(schema),
        )
        return cls(adapter, schema, default_timeout=settings.default_timeout)

    def close(self) -> None:
        self._adapter.disconnect()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    @property
    def schema(self) -> SchemaCache:
        return self._schema

    @property
    def conventions(self) -> ConventionResolver:
        return self._conventions

    @property
    def default_timeout(self) -> float:
        return self._default_timeout

    def effective_timeout(self, override: float | None = None) -> float:
        return effective_timeout(override, self._default_timeout)

    # ── Statement execution ──────────────────────────────────────────

    @contextmanager
    def _guarded(self, stmt: Statement, operation: str, timeout: float) -> Iterator[None]:
        """Log and re-raise any failure as a ``SqlSpineError``."""
        try:
            yield
        except SqlSpineError as e:
            e.with_context(sql=stmt.sql, operation=operation, timeout=timeout)
            log_db_error(e)
            raise
        except Exception as e:
            error = to_db_error(e, sql=stmt.sql, operation=operation, timeout=timeout)
            log_db_error(error)
            raise error from e

    def fetch(
        self,
        stmt: Statement,
        *,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
    ) -> ResultSet:
        """Run a read statement and return the raw result set."""
        seconds = self.effective_timeout(timeout)
        log_sql(stmt.sql, stmt.params)
        executor = tx if tx is not None else self._adapter
        with self._guarded(stmt, "fetch", seconds):
            return executor.fetch(stmt.sql, stmt.params, seconds)

    def write(
        self,
        stmt: Statement,
        *,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
    ) -> WriteResult:
        """Run a write statement and return its row count and last id."""
        seconds = self.effective_timeout(timeout)
        log_sql(stmt.sql, stmt.params)
        executor = tx if tx is not None else self._adapter
        with self._guarded(stmt, "write", seconds):
            return executor.write(stmt.sql, stmt.params, seconds)

    def select(
        self,
        stmt: Statement,
        *,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch and decode into row mappings."""
        result = self.fetch(stmt, tx=tx, timeout=timeout)
        with self._guarded(stmt, "decode", self.effective_timeout(timeout)):
            return decode_rows(result)

    def select_records(
        self,
        stmt: Statement,
        meta: RecordMeta,
        *,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
        instance: Any | None = None,
    ) -> list[Any]:
        """Fetch and decode into records; ``instance`` receives the first row."""
        result = self.fetch(stmt, tx=tx, timeout=timeout)
        with self._guarded(stmt, "decode", self.effective_timeout(timeout)):
            if instance is not None:
                if not result.rows:
                    return []
                return [decode_record(result.rows[0], result.columns, meta, instance)]
            return decode_records(result, meta)

    # ── Raw SQL helpers ──────────────────────────────────────────────

    def select_by_sql(
        self,
        sql: str,
        *params: Any,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
    ) -> list[dict[str, Any]]:
        return self.select(Statement(sql, params), tx=tx, timeout=timeout)

    def insert_by_sql(
        self,
        sql: str,
        *params: Any,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
    ) -> int:
        """Run an INSERT; returns the generated id, or 0."""
        result = self.write(Statement(sql, params), tx=tx, timeout=timeout)
        return result.lastrowid or 0

    def update_by_sql(
        self,
        sql: str,
        *params: Any,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
    ) -> int:
        """Run an UPDATE; returns the affected row count."""
        return self.write(Statement(sql, params), tx=tx, timeout=timeout).rowcount

    def delete_by_sql(
        self,
        sql: str,
        *params: Any,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
    ) -> int:
        """Run a DELETE; returns the affected row count."""
        return self.write(Statement(sql, params), tx=tx, timeout=timeout).rowcount

    def execute_sql(
        self,
        sql: str,
        *params: Any,
        tx: AdapterTransaction | None = None,
        timeout: float | None = None,
    ) -> None:
        self.write(Statement(sql, params), tx=tx, timeout=timeout)

    # ── Transactions ─────────────────────────────────────────────────

    def begin(self) -> AdapterTransaction:
        """Start a transaction; the caller commits or rolls it back."""
        try:
            return self._adapter.begin()
        except SqlSpineError as e:
            log_db_error(e.with_context(operation="begin"))
            raise
        except Exception as e:
            error = to_db_error(e, operation="begin")
            log_db_error(error)
            raise error from e

    @contextmanager
    def transaction(self) -> Iterator[AdapterTransaction]:
        """Commit when the block succeeds, roll back and raise when it fails."""
        tx = self.begin()
        try:
            yield tx
        except Exception as e:
            if tx.is_active:
                try:
                    tx.rollback()
                except Exception as rollback_error:
                    logger.warning("rollback_failed", error=str(rollback_error))
            if isinstance(e, SqlSpineError):
                raise
            error = to_db_error(e, operation="transaction")
            log_db_error(error)
            raise error from e

        if not tx.is_active:
            return
        try:
            tx.commit()
        except Exception as e:
            error = to_db_error(e, operation="commit")
            log_db_error(error)
            if error is e:
                raise
            raise error from e

    def run_in_transaction(self, fn: Callable[[AdapterTransaction], T]) -> T:
        """Run ``fn(tx)`` in a transaction and return its result."""
        with self.transaction() as tx:
            return fn(tx)

    # ── Builders and helpers ─────────────────────────────────────────

    def table(self, name: str) -> QueryBuilder:
        from .builder import QueryBuilder

        return QueryBuilder(self).table(name)

    def is_field_value_exists(
        self,
        table: str,
        field: str,
        value: Any,
        pk_value: Any = None,
        *,
        tx: AdapterTransaction | None = None,
    ) -> bool:
        """Whether another row of ``table`` already has ``field == value``.

        The row whose primary key equals ``pk_value`` is left out, which is
        what a uniqueness check on update needs.
        """
        query = self.table(table)
        if pk_value is not None:
            pk = self._conventions.primary_key_column(table) or "id"
            query.where(pk, "<>", pk_value)
        query.where(field, value)
        return query.exists(tx=tx)

    def check_record_total(
        self,
        query: QueryBuilder | str,
        column: str = "*",
        *,
        tx: AdapterTransaction | None = None,
    ) -> int:
        """Count matching rows, raising ``NoDataError`` when there are none."""
        if isinstance(query, str):
            query = self.table(query)
        total = query.count(column, tx=tx)
        if total < 1:
            raise NoDataError().with_context(table=query.table_name)
        return total


# ── Default database ─────────────────────────────────────────────────────

_default_database: Database | None = None


def set_default_database(db: Database | None) -> None:
    """Make ``db`` the database used by builders created without one."""
    global _default_database
    _default_database = db


def default_database() -> Database | None:
    """The default database, or None when none is set."""
    return _default_database


def get_default_database() -> Database:
    if _default_database is None:
        raise ConfigError("no database configured; call set_default_database() first")
    return _default_database


def table(name: str, db: Database | None = None) -> QueryBuilder:
    """Start a builder on ``name``.

    Without ``db`` the builder resolves the default database when a
    terminal operation runs, not now.
    """
    from .builder import QueryBuilder

    return QueryBuilder(db).table(name)


__all__ = [
    "Database",
    "set_default_database",
    "default_database",
    "get_default_database",
    "table",
]
