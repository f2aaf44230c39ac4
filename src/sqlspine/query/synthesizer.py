"""SQL synthesizer: accumulated clauses into (SQL text, parameters).

Pure functions over a ``QueryState``.  Nothing here touches a database or
the schema cache; convention-derived inputs (the auto timestamp column)
are passed in by the builder.

Statement shapes::

    SELECT <cols|*> FROM <table> [<joins>] [WHERE ...] [GROUP BY ...] [ORDER BY ...] [LIMIT ...]
    SELECT COUNT(<col|*>) FROM <table> [<joins>] [WHERE ...]
    SELECT SUM(<col>) FROM <table> [<joins>] [WHERE ...] LIMIT 1
    INSERT INTO <table> (<cols>) VALUES (<values>)
    UPDATE <table> SET <assignments> [WHERE ...]
    DELETE FROM <table> [WHERE ...]

Assigned values follow one rule: ``None`` renders ``NULL``, ``Raw`` is
inlined, anything else is a ``?`` placeholder with a bound parameter.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlspine.core.dialect import quote_identifier
from sqlspine.core.errors import ConfigError

from .clauses import ColumnRef, JoinClause, TableRef
from .values import BindValue, ValueKind, now_string


@dataclass(frozen=True)
class Statement:
    """Synthesized SQL text and its positional parameters."""

    sql: str
    params: tuple[Any, ...] = ()

    def __str__(self) -> str:
        return self.sql


@dataclass
class QueryState:
    """Everything a builder has accumulated so far."""

    tables: list[TableRef] = field(default_factory=list)
    columns: list[ColumnRef] = field(default_factory=list)
    joins: list[JoinClause] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    params: list[Any] = field(default_factory=list)
    groups: list[str] = field(default_factory=list)
    orders: list[str] = field(default_factory=list)
    limit: tuple[int, ...] | None = None

    def copy(self) -> QueryState:
        return copy.deepcopy(self)

    @property
    def table(self) -> TableRef | None:
        """The statement's target: the first table added."""
        return self.tables[0] if self.tables else None

    def add_table(self, ref: TableRef) -> None:
        for index, existing in enumerate(self.tables):
            if existing.name == ref.name:
                self.tables[index] = ref
                return
        self.tables.append(ref)

    def add_condition(self, fragment: str, params: list[Any] | tuple[Any, ...] = (), *, or_: bool = False) -> None:
        """Append a predicate, or OR-fold it into the previous one."""
        if or_ and self.conditions:
            self.conditions[-1] = f"({self.conditions[-1]} OR {fragment})"
        else:
            self.conditions.append(fragment)
        self.params.extend(params)


def _target(state: QueryState) -> TableRef:
    if state.table is None:
        raise ConfigError("no table specified")
    return state.table


def _from_clause(state: QueryState, *, joins: bool = True) -> str:
    sql = _target(state).render()
    if joins and state.joins:
        sql += " " + " ".join(j.render() for j in state.joins)
    return sql


def _where_clause(state: QueryState) -> str:
    if not state.conditions:
        return ""
    return " WHERE " + " AND ".join(state.conditions)


def render_limit(limit: tuple[int, ...] | None) -> str:
    if not limit:
        return ""
    if len(limit) > 1:
        return f"LIMIT {limit[0]}, {limit[1]}"
    return f"LIMIT {limit[0]}"


def _assigned(value: Any) -> tuple[str, tuple[Any, ...]]:
    bound = BindValue.of(value)
    if bound.is_null:
        return "NULL", ()
    if bound.kind is ValueKind.RAW:
        return bound.value.expr, ()
    return "?", (bound.param(),)


def _with_timestamp(data: Mapping[str, Any], column: str | None, now: str | None) -> dict[str, Any]:
    out = dict(data)
    if column and column not in out:
        out[column] = now or now_string()
    return out


# ── Statements ───────────────────────────────────────────────────────────


def build_select(state: QueryState) -> Statement:
    columns = ", ".join(c.render() for c in state.columns) or "*"
    sql = f"SELECT {columns} FROM {_from_clause(state)}{_where_clause(state)}"
    if state.groups:
        sql += " GROUP BY " + ", ".join(state.groups)
    if state.orders:
        sql += " ORDER BY " + ", ".join(state.orders)
    limit = render_limit(state.limit)
    if limit:
        sql += " " + limit
    return Statement(sql, tuple(state.params))


def build_count(state: QueryState, column: str = "*") -> Statement:
    target = "*" if column.strip() in ("", "*") else quote_identifier(column)
    sql = f"SELECT COUNT({target}) FROM {_from_clause(state)}{_where_clause(state)}"
    return Statement(sql, tuple(state.params))


def build_sum(state: QueryState, column: str) -> Statement:
    sql = f"SELECT SUM({quote_identifier(column)}) FROM {_from_clause(state)}{_where_clause(state)} LIMIT 1"
    return Statement(sql, tuple(state.params))


def build_insert(
    state: QueryState,
    data: Mapping[str, Any],
    *,
    timestamp_column: str | None = None,
    now: str | None = None,
) -> Statement | None:
    """INSERT from a column -> value mapping; None when there is nothing to write."""
    table = _target(state)
    if not data:
        return None
    data = _with_timestamp(data, timestamp_column, now)
    columns: list[str] = []
    values: list[str] = []
    params: list[Any] = []
    for name, value in data.items():
        placeholder, bound = _assigned(value)
        columns.append(quote_identifier(name))
        values.append(placeholder)
        params.extend(bound)
    sql = f"INSERT INTO {table.render()} ({', '.join(columns)}) VALUES ({', '.join(values)})"
    return Statement(sql, tuple(params))


def build_update(
    state: QueryState,
    data: Mapping[str, Any],
    *,
    timestamp_column: str | None = None,
    now: str | None = None,
) -> Statement | None:
    """UPDATE from a column -> value mapping; SET parameters precede WHERE parameters."""
    table = _target(state)
    if not data:
        return None
    data = _with_timestamp(data, timestamp_column, now)
    assignments: list[str] = []
    params: list[Any] = []
    for name, value in data.items():
        placeholder, bound = _assigned(value)
        assignments.append(f"{quote_identifier(name)} = {placeholder}")
        params.extend(bound)
    params.extend(state.params)
    sql = f"UPDATE {table.render()} SET {', '.join(assignments)}{_where_clause(state)}"
    return Statement(sql, tuple(params))


def build_delete(state: QueryState) -> Statement:
    sql = f"DELETE FROM {_from_clause(state, joins=False)}{_where_clause(state)}"
    return Statement(sql, tuple(state.params))


__all__ = [
    "Statement",
    "QueryState",
    "render_limit",
    "build_select",
    "build_count",
    "build_sum",
    "build_insert",
    "build_update",
    "build_delete",
]
