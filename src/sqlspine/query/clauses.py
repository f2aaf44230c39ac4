"""Clause value objects and the small parsers the fluent API relies on."""

from __future__ import annotations

import enum
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlspine.core.dialect import quote_identifier

_COMMA_SEP = re.compile(r"[ \t]*,[ \t]*")
_AS_SEP = re.compile(r"\s+as\s+", re.IGNORECASE)
_SPACE = re.compile(r"\s+")

ORDER_DIRECTIONS = ("ASC", "DESC")


class JoinKind(str, enum.Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    CROSS = "CROSS"
    OUTER = "OUTER"
    LEFT_OUTER = "LEFT OUTER"
    RIGHT_OUTER = "RIGHT OUTER"

    @classmethod
    def parse(cls, value: str | JoinKind) -> JoinKind | None:
        if isinstance(value, JoinKind):
            return value
        try:
            return cls(_SPACE.sub(" ", value.strip().upper()))
        except ValueError:
            return None


def split_list(value: str | Sequence[str] | None) -> list[str]:
    """``"a, b ,c"`` or ``["a", "b"]`` -> non-empty trimmed names."""
    if value is None:
        return []
    if isinstance(value, str):
        items = _COMMA_SEP.split(value.strip()) if value.strip() else []
    else:
        items = [v for v in value if isinstance(v, str)]
    return [item.strip() for item in items if item and item.strip()]


def split_name_alias(text: str) -> tuple[str, str]:
    """``"users AS u"`` / ``"users u"`` -> ``("users", "u")``."""
    text = text.strip()
    if _AS_SEP.search(text):
        parts = _AS_SEP.split(text, maxsplit=1)
    else:
        parts = _SPACE.split(text, maxsplit=1)
    if len(parts) > 1:
        return parts[0], parts[1].strip()
    return parts[0], ""


@dataclass(frozen=True)
class TableRef:
    name: str
    alias: str = ""

    @classmethod
    def parse(cls, text: str) -> TableRef:
        return cls(*split_name_alias(text))

    def render(self) -> str:
        name = quote_identifier(self.name)
        return f"{name} AS {self.alias}" if self.alias else name


@dataclass(frozen=True)
class ColumnRef:
    name: str
    alias: str = ""

    @classmethod
    def parse(cls, text: str) -> ColumnRef:
        return cls(*split_name_alias(text))

    def render(self) -> str:
        name = quote_identifier(self.name)
        return f"{name} AS {self.alias}" if self.alias else name


@dataclass(frozen=True)
class JoinClause:
    table: TableRef
    kind: JoinKind
    on: str

    def render(self) -> str:
        return f"{self.kind.value} JOIN {self.table.render()} ON {self.on}"


def parse_order(text: str) -> str | None:
    """``"score desc"`` -> ``"`score` DESC"``; unknown directions give None."""
    parts = _SPACE.split(text.strip())
    if not parts or not parts[0]:
        return None
    direction = parts[1].upper() if len(parts) > 1 else "ASC"
    if direction not in ORDER_DIRECTIONS:
        return None
    return f"{quote_identifier(parts[0])} {direction}"


def _as_count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    return None


def parse_limit(*args: Any) -> tuple[int, ...] | None:
    """Accepted shapes: ``(n)``, ``(offset, n)``, ``("n")``, ``("offset,n")``.

    Returns ``(n,)`` or ``(offset, n)``, or None when the input is invalid.
    """
    if len(args) == 1 and isinstance(args[0], str):
        args = tuple(_COMMA_SEP.split(args[0].strip()))
    if len(args) == 1:
        count = _as_count(args[0])
        return (count,) if count is not None and count > 0 else None
    if len(args) == 2:
        offset, count = _as_count(args[0]), _as_count(args[1])
        if offset is None or count is None or offset < 0 or count < 1:
            return None
        return (offset, count)
    return None


__all__ = [
    "JoinKind",
    "TableRef",
    "ColumnRef",
    "JoinClause",
    "split_list",
    "split_name_alias",
    "parse_order",
    "parse_limit",
]
