"""Bind values and scalar conversions.

Every value handed to a fluent method is normalized once into a
``BindValue``, a closed variant: null, bool, int, float, string, raw SQL,
sequence, or a driver scalar (date, datetime, Decimal, bytes).  The
synthesizer switches on ``kind`` instead of probing arbitrary objects.

``Raw`` marks text that must be inlined into the statement verbatim
instead of being bound to a placeholder::

    >>> db.table("posts").where("id", 7).update({"views": Raw("`views` + 1")})
"""

from __future__ import annotations

import datetime as dt
import enum
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

_INT_RE = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class Raw:
    """SQL expression inlined verbatim, never parameterized."""

    expr: str

    def __str__(self) -> str:
        return self.expr


class ValueKind(enum.Enum):
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    RAW = "raw"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


_SCALAR_TYPES = (dt.datetime, dt.date, dt.time, Decimal, bytes, bytearray)


@dataclass(frozen=True)
class BindValue:
    """A normalized filter or assignment value."""

    kind: ValueKind
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> BindValue:
        if isinstance(value, BindValue):
            return value
        if value is None:
            return NULL
        if isinstance(value, Raw):
            return cls(ValueKind.RAW, value)
        if isinstance(value, enum.Enum):
            return cls.of(value.value)
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls(ValueKind.BOOL, value)
        if isinstance(value, int):
            return cls(ValueKind.INT, value)
        if isinstance(value, float):
            return cls(ValueKind.FLOAT, value)
        if isinstance(value, str):
            return cls(ValueKind.STRING, value)
        if isinstance(value, _SCALAR_TYPES):
            return cls(ValueKind.SCALAR, value)
        if isinstance(value, (list, tuple, set, frozenset)):
            return cls(ValueKind.SEQUENCE, tuple(cls.of(v) for v in value))
        return cls(ValueKind.SCALAR, value)

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    @property
    def is_raw(self) -> bool:
        return self.kind is ValueKind.RAW

    @property
    def is_blank(self) -> bool:
        """Null, or an empty string."""
        return self.kind is ValueKind.NULL or (self.kind is ValueKind.STRING and self.value == "")

    def items(self) -> tuple[BindValue, ...]:
        """Members of a sequence; a scalar is a sequence of one."""
        if self.kind is ValueKind.SEQUENCE:
            return self.value
        return (self,)

    def param(self) -> Any:
        """Value to hand to the driver."""
        if self.kind is ValueKind.SEQUENCE:
            return [v.param() for v in self.value]
        if self.kind is ValueKind.RAW:
            return self.value.expr
        return self.value


NULL = BindValue(ValueKind.NULL)


# ── Scalar conversions ───────────────────────────────────────────────────


def to_decimal_string(value: Any) -> str:
    """Fixed-form decimal text: two fractional digits, truncated, zeros trimmed.

    >>> to_decimal_string(12.0), to_decimal_string(12.345), to_decimal_string(0.5)
    ('12', '12.34', '0.5')
    """
    text = f"{to_float(value):.12f}"
    whole, _, frac = text.partition(".")
    frac = frac[:2].rstrip("0")
    if whole == "-0" and not frac:
        whole = "0"
    return f"{whole}.{frac}" if frac else whole


def to_int(value: Any, default: int = 0) -> int:
    """Best-effort int conversion; ``default`` when the value is not numeric."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return int(value)
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        text = value.strip()
        if _INT_RE.match(text):
            return int(text)
        try:
            return int(float(text))
        except ValueError:
            return default
    return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Best-effort float conversion; ``default`` when the value is not numeric."""
    if value is None:
        return default
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def parse_datetime(text: str) -> dt.datetime | None:
    """Parse ``YYYY-MM-DD HH:MM:SS`` or ``YYYY-MM-DD`` (``/`` separators accepted)."""
    text = text.strip().replace("/", "-")
    for fmt in (DATETIME_FORMAT, DATE_FORMAT):
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_datetime(value: dt.datetime | dt.date) -> str:
    if not isinstance(value, dt.datetime):
        value = dt.datetime(value.year, value.month, value.day)
    return value.strftime(DATETIME_FORMAT)


def format_date(value: dt.datetime | dt.date) -> str:
    return value.strftime(DATE_FORMAT)


def now_string() -> str:
    return format_datetime(dt.datetime.now())


__all__ = [
    "DATETIME_FORMAT",
    "DATE_FORMAT",
    "Raw",
    "ValueKind",
    "BindValue",
    "NULL",
    "to_decimal_string",
    "to_int",
    "to_float",
    "to_decimal",
    "parse_datetime",
    "format_datetime",
    "format_date",
    "now_string",
]
