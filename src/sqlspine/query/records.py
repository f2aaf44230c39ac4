"""Typed records: dataclasses plus a per-type field metadata table.

A record type is a plain dataclass.  Fields may carry a column hint and a
primary-key marker through ``column()``::

    @dataclass
    class User:
        id: int = column(primary_key=True, default=0)
        user_name: str = ""
        nick: str = column("nickname", default="")
        created_at: datetime | None = None

``record_meta(User)`` inspects the type once (resolved type hints, dataclass
fields) and caches a ``RecordMeta`` the decoder and the model-based
insert/update use from then on.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import enum
import types
import typing
from dataclasses import dataclass
from decimal import Decimal
from functools import cache
from typing import Any

from sqlspine.core.errors import MappingError

COLUMN_KEY = "sqlspine.column"
PRIMARY_KEY = "sqlspine.primary_key"


class FieldKind(enum.Enum):
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    DATE = "date"
    OTHER = "other"


# Order matters: bool before int, datetime before date.
_KINDS: list[tuple[type, FieldKind]] = [
    (bool, FieldKind.BOOL),
    (int, FieldKind.INT),
    (float, FieldKind.FLOAT),
    (Decimal, FieldKind.DECIMAL),
    (str, FieldKind.STRING),
    (dt.datetime, FieldKind.DATETIME),
    (dt.date, FieldKind.DATE),
]


def column(
    name: str | None = None,
    *,
    primary_key: bool = False,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
    **kwargs: Any,
) -> Any:
    """``dataclasses.field`` with an explicit column name and/or primary-key flag."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[COLUMN_KEY] = name
    metadata[PRIMARY_KEY] = primary_key
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **kwargs,
    )


@dataclass(frozen=True)
class FieldMeta:
    """What the mapper needs to know about one record field."""

    name: str
    kind: FieldKind
    optional: bool = False
    column: str | None = None
    primary_key: bool = False

    def get(self, record: Any) -> Any:
        return getattr(record, self.name)

    def set(self, record: Any, value: Any) -> None:
        setattr(record, self.name, value)


@dataclass(frozen=True)
class RecordMeta:
    cls: type
    fields: tuple[FieldMeta, ...]

    def field(self, name: str) -> FieldMeta | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def new(self) -> Any:
        """Instantiate the record with its defaults.

        Fields without a default get the zero value of their kind.
        """
        kwargs: dict[str, Any] = {}
        for f in dataclasses.fields(self.cls):
            if not f.init:
                continue
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                meta = self.field(f.name)
                kwargs[f.name] = zero_value(meta) if meta else None
        return self.cls(**kwargs)


def zero_value(meta: FieldMeta) -> Any:
    if meta.optional:
        return None
    return {
        FieldKind.STRING: "",
        FieldKind.BOOL: False,
        FieldKind.INT: 0,
        FieldKind.FLOAT: 0.0,
        FieldKind.DECIMAL: Decimal(0),
    }.get(meta.kind)


def _classify(tp: Any) -> tuple[FieldKind, bool]:
    optional = False
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        optional = len(args) < len(typing.get_args(tp))
        tp = args[0] if len(args) == 1 else Any
    if isinstance(tp, type):
        for base, kind in _KINDS:
            if issubclass(tp, base):
                return kind, optional
    return FieldKind.OTHER, optional


@cache
def record_meta(cls: type) -> RecordMeta:
    """Field metadata table for a dataclass record type, built once."""
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise MappingError(f"{cls!r} is not a dataclass record type")
    hints = typing.get_type_hints(cls)
    fields = []
    for f in dataclasses.fields(cls):
        kind, optional = _classify(hints.get(f.name, Any))
        fields.append(
            FieldMeta(
                name=f.name,
                kind=kind,
                optional=optional,
                column=f.metadata.get(COLUMN_KEY) or None,
                primary_key=bool(f.metadata.get(PRIMARY_KEY, False)),
            )
        )
    return RecordMeta(cls=cls, fields=tuple(fields))


def resolve_target(target: Any) -> tuple[RecordMeta, Any | None]:
    """Record type or record instance -> (meta, instance or None)."""
    if isinstance(target, type):
        return record_meta(target), None
    if target is not None and dataclasses.is_dataclass(target):
        return record_meta(type(target)), target
    raise MappingError(f"expected a dataclass record or record type, got {type(target).__name__}")


def lcfirst(name: str) -> str:
    return name[:1].lower() + name[1:]


def squash(name: str) -> str:
    """Case and separator insensitive key: ``User-Name`` -> ``username``."""
    return name.replace("-", "").replace("_", "").lower()


__all__ = [
    "FieldKind",
    "FieldMeta",
    "RecordMeta",
    "column",
    "record_meta",
    "resolve_target",
    "zero_value",
    "lcfirst",
    "squash",
]
