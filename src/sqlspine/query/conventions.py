"""Convention resolution over the schema cache.

Tables that follow the naming conventions below get soft delete and
automatic timestamps for free.  A table that is missing from the schema
cache, or has no matching column, gets ordinary behaviour: every lookup
here returns ``None`` instead of raising.

=================  ==========================================  ===========
Convention         Recognized column names                     Column type
=================  ==========================================  ===========
soft-delete flag   ``del_flag``, ``delFlag``                   any ``*int``
soft-delete time   ``delete_at``, ``deleteAt``                 ``datetime``
create timestamp   ``ctime``, ``create_at``, ``createAt``,     ``datetime``
                   ``create_time``, ``createTime``
update timestamp   ``update_at``, ``updateAt``                 ``datetime``
=================  ==========================================  ===========
"""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass
from typing import Any

from sqlspine.core.schema import ColumnSchema, SchemaCache

from .records import FieldMeta, RecordMeta, lcfirst, squash
from .values import format_date, format_datetime

SOFT_DELETE_FLAG_COLUMNS = ("del_flag", "delFlag")
SOFT_DELETE_TIME_COLUMNS = ("delete_at", "deleteAt")
CREATE_TIME_COLUMNS = ("ctime", "create_at", "createAt", "create_time", "createTime")
UPDATE_TIME_COLUMNS = ("update_at", "updateAt")


class SoftDeleteKind(enum.Enum):
    FLAG = "flag"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class SoftDeleteColumn:
    name: str
    kind: SoftDeleteKind


class Skip(enum.Enum):
    """Why a date field of a record was left out of an insert/update."""

    NOT_EXISTS = "not_exists"
    NOT_MATCHED = "not_matched"
    NOT_NULLABLE = "not_nullable"


class ConventionResolver:
    """Answers convention questions for one schema cache."""

    def __init__(self, schema: SchemaCache):
        self._schema = schema

    @property
    def schema(self) -> SchemaCache:
        return self._schema

    def _find(self, table: str, names: tuple[str, ...], type_test) -> str | None:
        for col in self._schema.get(table):
            if col.name in names and type_test(col.type):
                return col.name
        return None

    def soft_delete_column(self, table: str) -> SoftDeleteColumn | None:
        """Integer flag column first, then a datetime delete marker."""
        name = self._find(table, SOFT_DELETE_FLAG_COLUMNS, lambda t: "int" in t)
        if name:
            return SoftDeleteColumn(name, SoftDeleteKind.FLAG)
        name = self._find(table, SOFT_DELETE_TIME_COLUMNS, lambda t: t == "datetime")
        if name:
            return SoftDeleteColumn(name, SoftDeleteKind.TIMESTAMP)
        return None

    def create_time_column(self, table: str) -> str | None:
        return self._find(table, CREATE_TIME_COLUMNS, lambda t: t == "datetime")

    def update_time_column(self, table: str) -> str | None:
        return self._find(table, UPDATE_TIME_COLUMNS, lambda t: t == "datetime")

    # ── Record fields ────────────────────────────────────────────────

    def column_for_field(self, table: str, field: FieldMeta) -> str:
        """Explicit hint, else a separator-insensitive schema match, else lower-camel."""
        if field.column:
            return field.column
        key = squash(field.name)
        for col in self._schema.get(table):
            if squash(col.name) == key:
                return col.name
        return lcfirst(field.name)

    def is_primary_key(self, table: str, column: str, field: FieldMeta) -> bool:
        if field.primary_key:
            return True
        col = self._schema.column(table, column)
        return bool(col and col.primary_key)

    def primary_key_column(self, table: str, meta: RecordMeta | None = None) -> str | None:
        """Column of the first primary-key field of ``meta``, else the schema's key."""
        if meta is not None:
            for field in meta.fields:
                column = self.column_for_field(table, field)
                if self.is_primary_key(table, column, field):
                    return column
        for col in self._schema.get(table):
            if col.primary_key:
                return col.name
        return None

    def datetime_field_value(self, table: str, column: str, value: dt.date | None) -> Any:
        """Render a date/datetime field for a write, or a ``Skip`` reason.

        The column type decides the format: ``datetime``/``timestamp`` get
        ``YYYY-MM-DD HH:MM:SS``, ``date`` gets ``YYYY-MM-DD``.  ``None`` is
        only written to nullable columns.
        """
        col: ColumnSchema | None = self._schema.column(table, column)
        if col is None:
            return Skip.NOT_EXISTS
        if "datetime" in col.type or "timestamp" in col.type:
            formatter = format_datetime
        elif "date" in col.type:
            formatter = format_date
        else:
            return Skip.NOT_MATCHED
        if value is None:
            return None if col.nullable else Skip.NOT_NULLABLE
        return formatter(value)


__all__ = [
    "SOFT_DELETE_FLAG_COLUMNS",
    "SOFT_DELETE_TIME_COLUMNS",
    "CREATE_TIME_COLUMNS",
    "UPDATE_TIME_COLUMNS",
    "SoftDeleteKind",
    "SoftDeleteColumn",
    "Skip",
    "ConventionResolver",
]
