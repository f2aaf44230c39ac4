"""
Fluent query builder.

Manifesto:
    A statement is built by chaining small, forgiving calls and finished by
    one terminal operation.  Building never raises: a call with an invalid
    or empty input (a ``None`` value, an empty IN list, a bad page number)
    leaves the builder unchanged.  Running always reports: driver failures,
    timeouts and mapping problems are raised as sqlspine errors.

    - **Forgiving construction:** invalid input is a no-op, never an error
    - **Strict execution:** terminal operations raise typed errors
    - **Nearest-neighbour OR:** ``or_*`` folds into the previous condition only
    - **Reusable:** terminal operations never change conditions or projection

Architecture:
    ::

        db.table("users")                  QueryState
          .where("age", ">", 18)     ──►   conditions: ["`age` > ?"]
          .or_where("vip", 1)              conditions: ["(`age` > ? OR `vip` = ?)"]
          .order_by("id desc")             orders:     ["`id` DESC"]
          .page(2, 10)                     limit:      (10, 10)
          .get()
             │
             ▼ build_select(state)
        SELECT * FROM `users` WHERE (`age` > ? OR `vip` = ?) ORDER BY `id` DESC LIMIT 10, 10
             │ params [18, 1]
             ▼
        Database.select ──► [{"id": 11, ...}, ...]

Examples:
    >>> q = QueryBuilder().table("users").where("name", "ada").or_where("name", "bob")
    >>> q.to_sql().sql
    'SELECT * FROM `users` WHERE (`name` = ? OR `name` = ?)'
    >>> q.page(2, 10).to_sql().params
    ('ada', 'bob')

Guardrails:
    - A builder is not thread-safe; use one per statement or serialize access
    - The timeout override applies to the next terminal operation only
    - Include/exclude field filters apply to the next record operation only

Tags:
    query-builder, fluent-api, orm, sql, sqlspine

Doc-Types:
    - API Reference
    - Usage Guide
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlspine.core.adapters import AdapterTransaction
from sqlspine.core.dialect import quote_identifier
from sqlspine.core.errors import MappingError
from sqlspine.core.logging import log_db_error
from sqlspine.core.schema import SchemaCache

from .clauses import ColumnRef, JoinClause, JoinKind, TableRef, parse_limit, parse_order, split_list
from .conventions import ConventionResolver, Skip, SoftDeleteKind
from .gateway import default_database, get_default_database
from .records import FieldKind, FieldMeta, RecordMeta, lcfirst, record_meta, resolve_target
from .synthesizer import (
    QueryState,
    Statement,
    build_count,
    build_delete,
    build_insert,
    build_select,
    build_sum,
    build_update,
)
from .values import (
    DATE_FORMAT,
    BindValue,
    Raw,
    ValueKind,
    format_date,
    now_string,
    parse_datetime,
    to_decimal_string,
    to_float,
    to_int,
)

if TYPE_CHECKING:
    from .gateway import Database

_IN_KINDS = (ValueKind.INT, ValueKind.FLOAT, ValueKind.STRING)

_EMPTY_CONVENTIONS = ConventionResolver(SchemaCache())


def _is_column(column: Any) -> bool:
    return isinstance(column, str) and bool(column.strip())


class QueryBuilder:
    """Accumulates clauses for one table and runs terminal operations."""

    def __init__(self, db: Database | None = None):
        self._db = db
        self._state = QueryState()
        self._include: list[str] = []
        self._exclude: list[str] = []
        self._timeout: float | None = None

    def clone(self) -> QueryBuilder:
        """Independent copy sharing only the database."""
        other = QueryBuilder(self._db)
        other._state = self._state.copy()
        other._include = list(self._include)
        other._exclude = list(self._exclude)
        other._timeout = self._timeout
        return other

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def table_name(self) -> str | None:
        return self._state.table.name if self._state.table else None

    def __repr__(self) -> str:
        return f"QueryBuilder(table={self.table_name!r}, conditions={len(self._state.conditions)})"

    # ── Tables and projection ────────────────────────────────────────

    def table(self, name: str) -> QueryBuilder:
        """Add a table; a name already present is replaced, not duplicated."""
        if isinstance(name, str) and name.strip():
            self._state.add_table(TableRef.parse(name))
        return self

    def select(self, columns: str | Sequence[str]) -> QueryBuilder:
        """Replace the projection with ``"a, b AS c"`` or ``["a", "b AS c"]``."""
        names = split_list(columns)
        if not names:
            return self
        selected: list[ColumnRef] = []
        for name in names:
            ref = ColumnRef.parse(name)
            index = next((i for i, c in enumerate(selected) if c.name == ref.name), None)
            if index is None:
                selected.append(ref)
            else:
                selected[index] = ref
        self._state.columns = selected
        return self

    # ── Joins ────────────────────────────────────────────────────────

    def join(self, table: str, *on: str, kind: str | JoinKind = JoinKind.INNER) -> QueryBuilder:
        """``join("posts p", "p.user_id = users.id")`` or ``join("posts p", "p.user_id", "=", "users.id")``."""
        if len(on) == 1:
            predicate = on[0]
        elif len(on) == 3:
            predicate = " ".join(str(part) for part in on)
        else:
            return self
        join_kind = JoinKind.parse(kind)
        if join_kind is None or not isinstance(table, str) or not table.strip() or not predicate.strip():
            return self
        self._state.joins.append(JoinClause(TableRef.parse(table), join_kind, predicate.strip()))
        return self

    def left_join(self, table: str, *on: str) -> QueryBuilder:
        return self.join(table, *on, kind=JoinKind.LEFT)

    def right_join(self, table: str, *on: str) -> QueryBuilder:
        return self.join(table, *on, kind=JoinKind.RIGHT)

    def cross_join(self, table: str, *on: str) -> QueryBuilder:
        return self.join(table, *on, kind=JoinKind.CROSS)

    def outer_join(self, table: str, *on: str) -> QueryBuilder:
        return self.join(table, *on, kind=JoinKind.OUTER)

    def left_outer_join(self, table: str, *on: str) -> QueryBuilder:
        return self.join(table, *on, kind=JoinKind.LEFT_OUTER)

    def right_outer_join(self, table: str, *on: str) -> QueryBuilder:
        return self.join(table, *on, kind=JoinKind.RIGHT_OUTER)

    # ── Condition primitives ─────────────────────────────────────────

    def _add(self, fragment: str, params: Sequence[Any] = (), *, or_: bool) -> QueryBuilder:
        self._state.add_condition(fragment, list(params), or_=or_)
        return self

    @staticmethod
    def _operator_and_value(args: tuple[Any, ...]) -> tuple[str | None, Any]:
        if len(args) == 1:
            return "=", args[0]
        if len(args) >= 2 and isinstance(args[0], str) and args[0].strip():
            return args[0].strip(), args[1]
        return None, None

    def _compare(self, column: str, args: tuple[Any, ...], *, or_: bool) -> QueryBuilder:
        operator, value = self._operator_and_value(args)
        bound = BindValue.of(value)
        if operator is None or bound.is_null or not _is_column(column):
            return self
        if bound.kind is ValueKind.SEQUENCE:
            upper = " ".join(operator.upper().split())
            if upper in ("IN", "NOT IN"):
                return self._in(column, bound, negate=upper == "NOT IN", or_=or_)
            return self
        if bound.is_raw:
            return self._add(f"{quote_identifier(column)} {operator} {bound.value.expr}", or_=or_)
        return self._add(f"{quote_identifier(column)} {operator} ?", [bound.param()], or_=or_)

    def _in(self, column: str, values: Any, *, negate: bool, or_: bool) -> QueryBuilder:
        if not _is_column(column):
            return self
        if isinstance(values, BindValue):
            bound = values
        elif isinstance(values, Iterable) and not isinstance(values, (str, bytes, Mapping)):
            bound = BindValue.of(tuple(values))
        else:
            return self
        if bound.kind is not ValueKind.SEQUENCE:
            return self
        params = [v.param() for v in bound.items() if v.kind in _IN_KINDS and not v.is_blank]
        if not params:
            return self
        operator = "NOT IN" if negate else "IN"
        placeholders = ", ".join("?" for _ in params)
        return self._add(f"{quote_identifier(column)} {operator} ({placeholders})", params, or_=or_)

    def _between(self, column: str, low: Any, high: Any, *, negate: bool, or_: bool) -> QueryBuilder:
        lo, hi = BindValue.of(low), BindValue.of(high)
        if not _is_column(column) or lo.is_null or hi.is_null or ValueKind.SEQUENCE in (lo.kind, hi.kind):
            return self
        operator = "NOT BETWEEN" if negate else "BETWEEN"
        return self._add(f"{quote_identifier(column)} {operator} ? AND ?", [lo.param(), hi.param()], or_=or_)

    def _like(self, column: str, pattern: Any, *, negate: bool, or_: bool) -> QueryBuilder:
        if not _is_column(column) or pattern is None or pattern == "":
            return self
        pattern = str(pattern)
        if not pattern.startswith("%"):
            pattern = "%" + pattern
        if not pattern.endswith("%"):
            pattern += "%"
        operator = "NOT LIKE" if negate else "LIKE"
        return self._add(f"{quote_identifier(column)} {operator} ?", [pattern], or_=or_)

    def _regexp(self, column: str, pattern: Any, *, negate: bool, or_: bool) -> QueryBuilder:
        if not _is_column(column) or pattern is None or pattern == "":
            return self
        operator = "NOT REGEXP" if negate else "REGEXP"
        return self._add(f"{quote_identifier(column)} {operator} ?", [str(pattern)], or_=or_)

    def _null(self, column: str, *, negate: bool, or_: bool) -> QueryBuilder:
        if not _is_column(column):
            return self
        test = "IS NOT NULL" if negate else "IS NULL"
        return self._add(f"{quote_identifier(column)} {test}", or_=or_)

    def _blank(self, column: str, *, negate: bool, or_: bool) -> QueryBuilder:
        if not _is_column(column):
            return self
        q = quote_identifier(column)
        if negate:
            return self._add(f"({q} IS NOT NULL AND {q} <> '')", or_=or_)
        return self._add(f"({q} IS NULL OR {q} = '')", or_=or_)

    def _date(self, column: str, args: tuple[Any, ...], *, or_: bool) -> QueryBuilder:
        operator, value = self._operator_and_value(args)
        if operator is None or not _is_column(column):
            return self
        if isinstance(value, (dt.date, dt.datetime)):
            value = format_date(value)
        if not isinstance(value, str) or not value.strip():
            return self
        return self._add(f"DATE({quote_identifier(column)}) {operator} ?", [value.strip()], or_=or_)

    @staticmethod
    def _day(value: Any) -> str | None:
        if isinstance(value, (dt.date, dt.datetime)):
            return format_date(value)
        if isinstance(value, str):
            parsed = parse_datetime(value)
            return parsed.strftime(DATE_FORMAT) if parsed else None
        return None

    def _date_between(self, column: str, start: Any, end: Any, *, or_: bool) -> QueryBuilder:
        first, last = self._day(start), self._day(end)
        if first is None or last is None:
            return self
        return self._between(column, f"{first} 00:00:00", f"{last} 23:59:59", negate=False, or_=or_)

    def _soft_delete(self, flag: bool, *, or_: bool) -> QueryBuilder:
        if self.table_name is None:
            return self
        found = self._conventions().soft_delete_column(self.table_name)
        if found is None:
            return self
        if found.kind is SoftDeleteKind.FLAG:
            return self._compare(found.name, (1 if flag else 0,), or_=or_)
        return self._null(found.name, negate=flag, or_=or_)

    def _raw(self, sql: str, params: tuple[Any, ...], *, or_: bool) -> QueryBuilder:
        if not isinstance(sql, str) or not sql.strip():
            return self
        return self._add(sql.strip(), [BindValue.of(p).param() for p in params], or_=or_)

    # ── Conditions (AND) ─────────────────────────────────────────────

    def where(self, column: str, *args: Any) -> QueryBuilder:
        """``where(col, value)`` or ``where(col, op, value)``; ``None`` skips the predicate."""
        return self._compare(column, args, or_=False)

    def where_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(column, values, negate=False, or_=False)

    def where_not_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(column, values, negate=True, or_=False)

    def where_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(column, low, high, negate=False, or_=False)

    def where_not_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(column, low, high, negate=True, or_=False)

    def where_like(self, column: str, pattern: str) -> QueryBuilder:
        """``LIKE`` with the pattern wrapped in ``%`` unless it already is."""
        return self._like(column, pattern, negate=False, or_=False)

    def where_not_like(self, column: str, pattern: str) -> QueryBuilder:
        return self._like(column, pattern, negate=True, or_=False)

    def where_regexp(self, column: str, pattern: str) -> QueryBuilder:
        return self._regexp(column, pattern, negate=False, or_=False)

    def where_not_regexp(self, column: str, pattern: str) -> QueryBuilder:
        return self._regexp(column, pattern, negate=True, or_=False)

    def where_null(self, column: str) -> QueryBuilder:
        return self._null(column, negate=False, or_=False)

    def where_not_null(self, column: str) -> QueryBuilder:
        return self._null(column, negate=True, or_=False)

    def where_blank(self, column: str) -> QueryBuilder:
        """NULL or empty string."""
        return self._blank(column, negate=False, or_=False)

    def where_not_blank(self, column: str) -> QueryBuilder:
        return self._blank(column, negate=True, or_=False)

    def where_date(self, column: str, *args: Any) -> QueryBuilder:
        """``DATE(col) op ?``: ``where_date(col, "2024-01-31")`` or ``where_date(col, ">=", day)``."""
        return self._date(column, args, or_=False)

    def where_date_between(self, column: str, start: Any, end: Any) -> QueryBuilder:
        """Whole days from ``start`` 00:00:00 through ``end`` 23:59:59."""
        return self._date_between(column, start, end, or_=False)

    def where_soft_delete(self, flag: bool = True) -> QueryBuilder:
        """Rows marked deleted (``flag=True``) or live ones, by the table's convention."""
        return self._soft_delete(flag, or_=False)

    def where_raw(self, sql: str, *params: Any) -> QueryBuilder:
        return self._raw(sql, params, or_=False)

    # ── Conditions (OR-folded into the previous one) ─────────────────

    def or_where(self, column: str, *args: Any) -> QueryBuilder:
        return self._compare(column, args, or_=True)

    def or_where_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(column, values, negate=False, or_=True)

    def or_where_not_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(column, values, negate=True, or_=True)

    def or_where_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(column, low, high, negate=False, or_=True)

    def or_where_not_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(column, low, high, negate=True, or_=True)

    def or_where_like(self, column: str, pattern: str) -> QueryBuilder:
        return self._like(column, pattern, negate=False, or_=True)

    def or_where_not_like(self, column: str, pattern: str) -> QueryBuilder:
        return self._like(column, pattern, negate=True, or_=True)

    def or_where_regexp(self, column: str, pattern: str) -> QueryBuilder:
        return self._regexp(column, pattern, negate=False, or_=True)

    def or_where_not_regexp(self, column: str, pattern: str) -> QueryBuilder:
        return self._regexp(column, pattern, negate=True, or_=True)

    def or_where_null(self, column: str) -> QueryBuilder:
        return self._null(column, negate=False, or_=True)

    def or_where_not_null(self, column: str) -> QueryBuilder:
        return self._null(column, negate=True, or_=True)

    def or_where_blank(self, column: str) -> QueryBuilder:
        return self._blank(column, negate=False, or_=True)

    def or_where_not_blank(self, column: str) -> QueryBuilder:
        return self._blank(column, negate=True, or_=True)

    def or_where_date(self, column: str, *args: Any) -> QueryBuilder:
        return self._date(column, args, or_=True)

    def or_where_date_between(self, column: str, start: Any, end: Any) -> QueryBuilder:
        return self._date_between(column, start, end, or_=True)

    def or_where_soft_delete(self, flag: bool = True) -> QueryBuilder:
        return self._soft_delete(flag, or_=True)

    def or_where_raw(self, sql: str, *params: Any) -> QueryBuilder:
        return self._raw(sql, params, or_=True)

    # ── Ordering, grouping, pagination ───────────────────────────────

    def order_by(self, orders: str | Sequence[str]) -> QueryBuilder:
        """``"score desc, id"`` or ``["score DESC", "id"]``; bad entries are skipped."""
        for entry in split_list(orders):
            rendered = parse_order(entry)
            if rendered:
                self._state.orders.append(rendered)
        return self

    def group_by(self, columns: str | Sequence[str]) -> QueryBuilder:
        for entry in split_list(columns):
            self._state.groups.append(quote_identifier(entry))
        return self

    def limit(self, *args: Any) -> QueryBuilder:
        """``limit(n)``, ``limit(offset, n)`` or ``limit("offset,n")``."""
        parsed = parse_limit(*args)
        if parsed is not None:
            self._state.limit = parsed
        return self

    def page(self, page: int, size: int) -> QueryBuilder:
        """Page ``page`` (1-based) of ``size`` rows."""
        if not isinstance(page, int) or not isinstance(size, int) or page < 1 or size < 1:
            return self
        return self.limit((page - 1) * size, size)

    # ── Per-call options ─────────────────────────────────────────────

    def with_include_fields(self, fields: str | Sequence[str]) -> QueryBuilder:
        """Restrict the next record insert/update to these record fields."""
        names = split_list(fields)
        if names:
            self._include = names
        return self

    def with_exclude_fields(self, fields: str | Sequence[str]) -> QueryBuilder:
        """Leave these record fields out of the next record insert/update."""
        names = split_list(fields)
        if names:
            self._exclude = names
        return self

    def with_timeout(self, seconds: float | dt.timedelta) -> QueryBuilder:
        """Deadline for the next terminal operation; values under one second are ignored."""
        if isinstance(seconds, dt.timedelta):
            seconds = seconds.total_seconds()
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool) and seconds >= 1:
            self._timeout = float(seconds)
        return self

    # ── Synthesis ────────────────────────────────────────────────────

    def _conventions(self) -> ConventionResolver:
        db = self._db if self._db is not None else default_database()
        return db.conventions if db is not None else _EMPTY_CONVENTIONS

    def _timestamp_column(self, kind: str) -> str | None:
        if self.table_name is None:
            return None
        conventions = self._conventions()
        if kind == "create":
            return conventions.create_time_column(self.table_name)
        return conventions.update_time_column(self.table_name)

    def _projected(self, columns: str | Sequence[str] | None, limit: tuple[int, ...] | None = None) -> QueryState:
        if columns is None and limit is None:
            return self._state
        other = QueryBuilder()
        other._state = self._state.copy()
        if columns is not None:
            other.select(columns)
        if limit is not None:
            other._state.limit = limit
        return other._state

    def to_sql(self) -> Statement:
        return build_select(self._state)

    def to_count_sql(self, column: str = "*") -> Statement:
        return build_count(self._state, column)

    def to_sum_sql(self, column: str) -> Statement:
        return build_sum(self._state, column)

    def to_insert_sql(self, data: Mapping[str, Any]) -> Statement | None:
        return build_insert(self._state, data, timestamp_column=self._timestamp_column("create"))

    def to_update_sql(self, data: Mapping[str, Any]) -> Statement | None:
        return build_update(self._state, data, timestamp_column=self._timestamp_column("update"))

    def to_delete_sql(self) -> Statement:
        return build_delete(self._state)

    # ── Terminal operations ──────────────────────────────────────────

    @contextmanager
    def _terminal(self, *, record: bool = False) -> Iterator[Database]:
        """Yield the database; reset per-call options afterwards, even on failure."""
        try:
            if self._db is not None:
                yield self._db
            else:
                try:
                    db = get_default_database()
                except Exception as e:
                    log_db_error(e, table=self.table_name)
                    raise
                yield db
        finally:
            self._timeout = None
            if record:
                self._include = []
                self._exclude = []

    def get(self, columns: str | Sequence[str] | None = None, *, tx: AdapterTransaction | None = None) -> list[dict[str, Any]]:
        """All matching rows as column -> value mappings."""
        with self._terminal() as db:
            stmt = build_select(self._projected(columns))
            return db.select(stmt, tx=tx, timeout=self._timeout)

    def get_records(
        self,
        cls: type,
        each: Callable[[Any], None] | None = None,
        *,
        tx: AdapterTransaction | None = None,
    ) -> list[Any]:
        """All matching rows as ``cls`` records; ``each`` is called per record."""
        with self._terminal() as db:
            meta = record_meta(cls)
            records = db.select_records(build_select(self._state), meta, tx=tx, timeout=self._timeout)
        if each is not None:
            for record in records:
                each(record)
        return records

    def first(self, columns: str | Sequence[str] | None = None, *, tx: AdapterTransaction | None = None) -> dict[str, Any] | None:
        """First matching row, or None."""
        with self._terminal() as db:
            stmt = build_select(self._projected(columns, limit=(1,)))
            rows = db.select(stmt, tx=tx, timeout=self._timeout)
        return rows[0] if rows else None

    def first_record(self, target: Any, *, tx: AdapterTransaction | None = None) -> Any | None:
        """First matching row as a record.

        ``target`` is a record type (a new record is returned) or a record
        instance (filled in place and returned).  None when nothing matches.
        """
        with self._terminal() as db:
            meta, instance = resolve_target(target)
            stmt = build_select(self._projected(None, limit=(1,)))
            records = db.select_records(stmt, meta, tx=tx, timeout=self._timeout, instance=instance)
        return records[0] if records else None

    def value(self, column: str, default: Any = None, *, tx: AdapterTransaction | None = None) -> Any:
        """One column of the first matching row, or ``default``."""
        row = self.first(column, tx=tx)
        if not row:
            return default
        value = next(iter(row.values()))
        return default if value is None else value

    def string_value(self, column: str, default: str = "", *, tx: AdapterTransaction | None = None) -> str:
        value = self.value(column, tx=tx)
        if value is None:
            return default
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8", errors="replace")
        return str(value) or default

    def int_value(self, column: str, default: int = 0, *, tx: AdapterTransaction | None = None) -> int:
        return to_int(self.value(column, tx=tx), default)

    def count(self, column: str = "*", *, tx: AdapterTransaction | None = None) -> int:
        with self._terminal() as db:
            result = db.fetch(build_count(self._state, column or "*"), tx=tx, timeout=self._timeout)
        return to_int(result.rows[0][0]) if result.rows else 0

    def exists(self, column: str = "*", *, tx: AdapterTransaction | None = None) -> bool:
        return self.count(column, tx=tx) > 0

    def _sum(self, column: str, tx: AdapterTransaction | None) -> Any:
        with self._terminal() as db:
            result = db.fetch(build_sum(self._state, column), tx=tx, timeout=self._timeout)
        return result.rows[0][0] if result.rows else None

    def sum_int(self, column: str, *, tx: AdapterTransaction | None = None) -> int:
        return to_int(self._sum(column, tx))

    def sum_float(self, column: str, *, tx: AdapterTransaction | None = None) -> float:
        return to_float(self._sum(column, tx))

    def insert(self, data: Mapping[str, Any], *, tx: AdapterTransaction | None = None) -> int:
        """Insert one row; returns the generated id, or 0."""
        with self._terminal() as db:
            stmt = self.to_insert_sql(data)
            if stmt is None:
                return 0
            return db.write(stmt, tx=tx, timeout=self._timeout).lastrowid or 0

    def update(self, data: Mapping[str, Any], *, tx: AdapterTransaction | None = None) -> int:
        """Update matching rows; returns the affected row count."""
        with self._terminal() as db:
            stmt = self.to_update_sql(data)
            if stmt is None:
                return 0
            return db.write(stmt, tx=tx, timeout=self._timeout).rowcount

    def delete(self, *, tx: AdapterTransaction | None = None) -> int:
        with self._terminal() as db:
            return db.write(build_delete(self._state), tx=tx, timeout=self._timeout).rowcount

    def soft_delete(self, *, tx: AdapterTransaction | None = None) -> int:
        """Mark matching rows deleted; 0 without a statement when the table has no convention."""
        with self._terminal() as db:
            found = db.conventions.soft_delete_column(self.table_name) if self.table_name else None
            if found is None:
                return 0
            mark = 1 if found.kind is SoftDeleteKind.FLAG else now_string()
            stmt = build_update(
                self._state,
                {found.name: mark},
                timestamp_column=db.conventions.update_time_column(self.table_name),
            )
            return db.write(stmt, tx=tx, timeout=self._timeout).rowcount

    def _step(self, column: str, amount: Any, sign: str, tx: AdapterTransaction | None) -> int:
        if isinstance(amount, bool) or not _is_column(column):
            text = None
        elif isinstance(amount, int):
            text = str(amount) if amount > 0 else None
        elif isinstance(amount, (float, Decimal, str)):
            number = to_float(amount, default=-1.0)
            text = to_decimal_string(number) if number > 0 else None
        else:
            text = None
        if text is None:
            self._timeout = None
            return 0
        return self.update({column: Raw(f"{quote_identifier(column)} {sign} {text}")}, tx=tx)

    def increment(self, column: str, amount: Any = 1, *, tx: AdapterTransaction | None = None) -> int:
        """``col = col + amount`` on matching rows; a non-positive amount does nothing."""
        return self._step(column, amount, "+", tx)

    def decrement(self, column: str, amount: Any = 1, *, tx: AdapterTransaction | None = None) -> int:
        """``col = col - amount`` on matching rows; a non-positive amount does nothing."""
        return self._step(column, amount, "-", tx)

    # ── Records ──────────────────────────────────────────────────────

    def _record_columns(
        self, meta: RecordMeta, record: Any
    ) -> tuple[dict[str, Any], FieldMeta | None, str | None]:
        """Column -> value data for a record write, plus its primary-key field and column."""
        table = self.table_name or ""
        conventions = self._conventions()
        data: dict[str, Any] = {}
        pk_field: FieldMeta | None = None
        pk_column: str | None = None
        # Unset auto timestamps are left to the synthesizer, which fills them in.
        stamped = {conventions.create_time_column(table), conventions.update_time_column(table)} if table else set()
        for field in meta.fields:
            if self._include and field.name not in self._include:
                continue
            if self._exclude and field.name in self._exclude:
                continue
            column = conventions.column_for_field(table, field) if table else (field.column or lcfirst(field.name))
            if pk_field is None and conventions.is_primary_key(table, column, field):
                pk_field, pk_column = field, column
                continue
            value = field.get(record)
            if value is None and column in stamped:
                continue
            if field.kind in (FieldKind.DATETIME, FieldKind.DATE) or isinstance(value, dt.date):
                rendered = conventions.datetime_field_value(table, column, value)
                if isinstance(rendered, Skip):
                    continue
                data[column] = rendered
                continue
            data[column] = value
        return data, pk_field, pk_column

    @staticmethod
    def _instance(target: Any, operation: str) -> tuple[RecordMeta, Any]:
        meta, instance = resolve_target(target)
        if instance is None:
            raise MappingError(f"{operation} needs a record instance, not a type")
        return meta, instance

    def insert_record(self, record: Any, *, tx: AdapterTransaction | None = None) -> int:
        """Insert a record; the generated id is written back to its primary-key field."""
        with self._terminal(record=True) as db:
            meta, instance = self._instance(record, "insert_record")
            data, pk_field, _ = self._record_columns(meta, instance)
            stmt = self.to_insert_sql(data)
            if stmt is None:
                return 0
            new_id = db.write(stmt, tx=tx, timeout=self._timeout).lastrowid or 0
        if new_id > 0 and pk_field is not None:
            pk_field.set(instance, new_id)
        return new_id

    def update_record(self, record: Any, *, tx: AdapterTransaction | None = None) -> int:
        """Update the row identified by the record's primary key.

        The key becomes the only condition of this statement; the builder's
        own conditions are used only when the record has no key field.
        """
        with self._terminal(record=True) as db:
            meta, instance = self._instance(record, "update_record")
            data, pk_field, pk_column = self._record_columns(meta, instance)
            state = self._state
            if pk_field is not None:
                pk_value = pk_field.get(instance)
                if pk_value is None:
                    raise MappingError(f"primary key field {pk_field.name!r} has no value")
                state = self._state.copy()
                state.conditions, state.params = [], []
                state.add_condition(f"{quote_identifier(pk_column)} = ?", [BindValue.of(pk_value).param()])
            stmt = build_update(state, data, timestamp_column=self._timestamp_column("update"))
            if stmt is None:
                return 0
            return db.write(stmt, tx=tx, timeout=self._timeout).rowcount


__all__ = [
    "QueryBuilder",
]
