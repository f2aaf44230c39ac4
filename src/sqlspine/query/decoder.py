"""Row decoder: result sets into mappings or typed records.

Every result column gets a ``ScanKind`` from the type name and nullability
the driver reports.  Cells are first *scanned* into a native value of that
kind, then either rendered for a generic mapping or assigned to a record
field through the field's kind rule.

Mapping rendering:

============  ==========================================  ==========
scan kind     non-null value                              NULL
============  ==========================================  ==========
string        text (bytes decoded, Decimal via ``str``)   ``""``
bool          ``bool``                                    ``False``
int           ``int``                                     ``0``
float         decimal string, see ``to_decimal_string``   ``"0.00"``
time          text, format chosen by the column type      ``None``
any           raw driver value                            ``None``
============  ==========================================  ==========

Examples:
    >>> result = ResultSet([ColumnInfo("price", "DOUBLE", True)], [(12.345,)])
    >>> decode_rows(result)
    [{'price': '12.34'}]
"""

from __future__ import annotations

import datetime as dt
import enum
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from sqlspine.core.adapters.types import ColumnInfo, ResultSet
from sqlspine.core.errors import MappingError

from .records import FieldKind, FieldMeta, RecordMeta, squash
from .values import format_date, format_datetime, parse_datetime, to_decimal, to_decimal_string

NULL_FLOAT_TEXT = "0.00"

_EPOCH = dt.datetime(1970, 1, 1)


class ScanKind(enum.Enum):
    NULL_STRING = "null_string"
    NULL_BOOL = "null_bool"
    NULL_INT32 = "null_int32"
    NULL_INT64 = "null_int64"
    NULL_FLOAT64 = "null_float64"
    NULL_TIME = "null_time"
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    INT64 = "int64"
    FLOAT64 = "float64"
    TIME = "time"
    ANY = "any"

    @property
    def group(self) -> str:
        return _GROUPS[self]


_GROUPS = {
    ScanKind.NULL_STRING: "string",
    ScanKind.STRING: "string",
    ScanKind.NULL_BOOL: "bool",
    ScanKind.BOOL: "bool",
    ScanKind.NULL_INT32: "int",
    ScanKind.NULL_INT64: "int",
    ScanKind.INT: "int",
    ScanKind.INT64: "int",
    ScanKind.NULL_FLOAT64: "float",
    ScanKind.FLOAT64: "float",
    ScanKind.NULL_TIME: "time",
    ScanKind.TIME: "time",
    ScanKind.ANY: "any",
}

# type name -> (nullable kind, non-null kind)
_TYPE_KINDS: dict[str, tuple[ScanKind, ScanKind]] = {}


def _register(names: str, nullable: ScanKind, plain: ScanKind) -> None:
    for name in names.split():
        _TYPE_KINDS[name] = (nullable, plain)


_register("TINY SHORT LONG INT24 YEAR TINYINT SMALLINT MEDIUMINT INT INTEGER", ScanKind.NULL_INT32, ScanKind.INT)
_register("LONGLONG BIGINT", ScanKind.NULL_INT64, ScanKind.INT64)
_register("BOOL BOOLEAN", ScanKind.NULL_BOOL, ScanKind.BOOL)
_register("FLOAT DOUBLE REAL", ScanKind.NULL_FLOAT64, ScanKind.FLOAT64)
_register("DECIMAL NEWDECIMAL", ScanKind.NULL_STRING, ScanKind.NULL_STRING)
_register("DATE NEWDATE DATETIME TIMESTAMP", ScanKind.NULL_TIME, ScanKind.TIME)
_register(
    "CHAR VARCHAR VAR_STRING STRING TEXT TINY_BLOB MEDIUM_BLOB LONG_BLOB BLOB JSON ENUM SET TIME BIT",
    ScanKind.NULL_STRING,
    ScanKind.STRING,
)

_DATE_ONLY_TYPES = frozenset({"DATE", "NEWDATE"})


def scan_kind(column: ColumnInfo) -> ScanKind:
    """Decode target for one result column."""
    name = (column.type_name or "").strip().upper().split("(", 1)[0]
    if name.startswith("UNSIGNED "):
        name = name[len("UNSIGNED ") :]
    kinds = _TYPE_KINDS.get(name)
    if kinds is None:
        return ScanKind.ANY
    return kinds[0] if column.nullable else kinds[1]


# ── Scanning ─────────────────────────────────────────────────────────────


def _scan_error(column: ColumnInfo, kind: ScanKind, value: Any) -> MappingError:
    return MappingError(
        f"cannot scan {type(value).__name__} value into {kind.value} column {column.name!r}"
    )


def _scan_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dt.datetime):
        return format_datetime(value)
    if isinstance(value, dt.date):
        return format_date(value)
    return str(value)


def scan_value(value: Any, kind: ScanKind, column: ColumnInfo) -> Any:
    """Convert one driver value to the native type of ``kind``; NULL stays None."""
    if value is None or kind is ScanKind.ANY:
        return value
    group = kind.group
    if group == "string":
        return _scan_text(value)
    if group == "bool":
        if isinstance(value, (bool, int)):
            return bool(value)
        if isinstance(value, (bytes, bytearray)) and len(value) == 1:
            return value != b"\x00"
        raise _scan_error(column, kind, value)
    if group == "int":
        if isinstance(value, (bool, int)):
            return int(value)
        if isinstance(value, Decimal) and value == value.to_integral_value():
            return int(value)
        if isinstance(value, (str, bytes, bytearray)):
            try:
                return int(_scan_text(value).strip())
            except ValueError:
                raise _scan_error(column, kind, value) from None
        raise _scan_error(column, kind, value)
    if group == "float":
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, (str, bytes, bytearray)):
            try:
                return float(_scan_text(value).strip())
            except ValueError:
                raise _scan_error(column, kind, value) from None
        raise _scan_error(column, kind, value)
    # time
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    if isinstance(value, (str, bytes, bytearray)):
        parsed = parse_datetime(_scan_text(value))
        if parsed is not None:
            return parsed
    raise _scan_error(column, kind, value)


def _epoch_seconds(value: dt.datetime) -> float:
    if value.tzinfo is not None:
        return value.timestamp()
    return (value - _EPOCH).total_seconds()


# ── Mappings ─────────────────────────────────────────────────────────────


def render_value(value: Any, kind: ScanKind, column: ColumnInfo) -> Any:
    """Render a scanned value for a generic row mapping."""
    group = kind.group
    if value is None:
        return {
            "string": "",
            "bool": False,
            "int": 0,
            "float": NULL_FLOAT_TEXT,
        }.get(group)
    if group == "float":
        return to_decimal_string(value)
    if group == "time":
        if _epoch_seconds(value) <= 0:
            return None
        type_name = (column.type_name or "").strip().upper()
        return format_date(value) if type_name in _DATE_ONLY_TYPES else format_datetime(value)
    return value


def _check_width(row: Sequence[Any], columns: Sequence[ColumnInfo]) -> None:
    if len(row) != len(columns):
        raise MappingError(f"row has {len(row)} values for {len(columns)} columns")


def decode_row(row: Sequence[Any], columns: Sequence[ColumnInfo], kinds: Sequence[ScanKind] | None = None) -> dict[str, Any]:
    _check_width(row, columns)
    if kinds is None:
        kinds = [scan_kind(c) for c in columns]
    return {
        column.name: render_value(scan_value(cell, kind, column), kind, column)
        for cell, column, kind in zip(row, columns, kinds)
    }


def decode_rows(result: ResultSet) -> list[dict[str, Any]]:
    """Every row of ``result`` as an ordered column -> value mapping."""
    kinds = [scan_kind(c) for c in result.columns]
    return [decode_row(row, result.columns, kinds) for row in result.rows]


# ── Records ──────────────────────────────────────────────────────────────


def match_fields(columns: Sequence[ColumnInfo], meta: RecordMeta) -> list[tuple[int, FieldMeta]]:
    """Pair record fields with result columns.

    An explicit column hint matches case-insensitively; otherwise the
    column and field names match ignoring case and ``_``/``-`` separators.
    """
    plan: list[tuple[int, FieldMeta]] = []
    for field in meta.fields:
        for index, column in enumerate(columns):
            if field.column:
                hit = column.name.lower() == field.column.lower()
            else:
                hit = squash(column.name) == squash(field.name)
            if hit:
                plan.append((index, field))
                break
    return plan


def _runtime_group(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, (dt.date, dt.datetime)):
        return "time"
    if isinstance(value, (str, bytes, bytearray, Decimal)):
        return "string"
    return "any"


_UNSET = object()


def convert_field(value: Any, group: str, field: FieldMeta) -> Any:
    """Apply the field-kind rule table; ``_UNSET`` leaves the field alone."""
    if value is None:
        return None if field.optional else _UNSET
    if group == "any":
        group = _runtime_group(value)
        if group == "string":
            value = _scan_text(value)
    kind = field.kind
    if kind is FieldKind.STRING:
        return value if group == "string" else _UNSET
    if kind is FieldKind.BOOL:
        if group == "bool":
            return value
        if group == "int":
            return value == 1
        return _UNSET
    if kind is FieldKind.INT:
        if group in ("int", "bool"):
            return int(value)
        if group == "string":
            try:
                return int(value.strip())
            except ValueError:
                return _UNSET
        return _UNSET
    if kind in (FieldKind.FLOAT, FieldKind.DECIMAL):
        if group in ("float", "int", "string"):
            number = to_decimal(value)
            if number is None or not number.is_finite():
                return _UNSET
            return number if kind is FieldKind.DECIMAL else float(number)
        return _UNSET
    if kind in (FieldKind.DATETIME, FieldKind.DATE):
        if group == "time":
            parsed = value
        elif group == "string":
            parsed = parse_datetime(value)
            if parsed is None:
                return _UNSET
        else:
            return _UNSET
        return parsed.date() if kind is FieldKind.DATE else parsed
    return value


def decode_record(
    row: Sequence[Any],
    columns: Sequence[ColumnInfo],
    meta: RecordMeta,
    instance: Any | None = None,
    *,
    plan: list[tuple[int, FieldMeta]] | None = None,
    kinds: Sequence[ScanKind] | None = None,
) -> Any:
    """Populate ``instance`` (or a new record) from one row."""
    _check_width(row, columns)
    if kinds is None:
        kinds = [scan_kind(c) for c in columns]
    if plan is None:
        plan = match_fields(columns, meta)
    record = instance if instance is not None else meta.new()
    for index, field in plan:
        kind = kinds[index]
        value = scan_value(row[index], kind, columns[index])
        converted = convert_field(value, kind.group, field)
        if converted is not _UNSET:
            field.set(record, converted)
    return record


def decode_records(result: ResultSet, meta: RecordMeta) -> list[Any]:
    kinds = [scan_kind(c) for c in result.columns]
    plan = match_fields(result.columns, meta)
    return [decode_record(row, result.columns, meta, plan=plan, kinds=kinds) for row in result.rows]


__all__ = [
    "ScanKind",
    "scan_kind",
    "scan_value",
    "render_value",
    "decode_row",
    "decode_rows",
    "match_fields",
    "convert_field",
    "decode_record",
    "decode_records",
]
