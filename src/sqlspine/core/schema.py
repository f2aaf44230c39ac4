"""Schema cache: column descriptors per table.

The cache is filled once, usually right after connecting, from a
``SchemaSource`` (``SHOW TABLES`` + ``DESCRIBE`` on MySQL, ``sqlite_master``
+ ``PRAGMA table_info`` on SQLite).  It is then frozen and only read.
Builders consult it through the convention resolver to find soft-delete
columns, auto timestamps and primary keys; a table that is missing from the
cache simply gets none of those conveniences.

Lifecycle:
    single writer (``load``/``register``) -> ``freeze()`` -> many readers.
    Reads take no lock, so population must finish before builders run.

Examples:
    >>> cache = SchemaCache()
    >>> cache.register("users", [parse_describe_row(
    ...     DescribeRow("id", "int(11) unsigned", "NO", "PRI", None, "auto_increment"))])
    >>> cache.column("users", "id").size
    11
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from sqlspine.core.adapters.types import DescribeRow
from sqlspine.core.errors import ConfigError
from sqlspine.core.logging import get_logger
from sqlspine.core.protocols import SchemaSource

logger = get_logger(__name__)

_SIZE_RE = re.compile(r"\((\d+)")


@dataclass(frozen=True)
class ColumnSchema:
    """One column of a table as the database describes it."""

    name: str
    type: str
    size: int = 0
    unsigned: bool = False
    nullable: bool = True
    default: str | None = None
    auto_increment: bool = False
    primary_key: bool = False


def parse_describe_row(row: DescribeRow) -> ColumnSchema:
    """Turn a ``DESCRIBE`` row into a ``ColumnSchema``.

    ``int(11) unsigned`` gives type ``int``, size 11, unsigned.
    """
    declared = (row.type or "").strip().lower()
    base = declared.split(" ", 1)[0].split("(", 1)[0]
    match = _SIZE_RE.search(declared)
    return ColumnSchema(
        name=row.field,
        type=base,
        size=int(match.group(1)) if match else 0,
        unsigned="unsigned" in declared,
        nullable=(row.null or "").upper() == "YES",
        default=row.default,
        auto_increment="auto_increment" in (row.extra or "").lower(),
        primary_key=(row.key or "").upper() == "PRI",
    )


def normalize_table_name(table: str) -> str:
    """``db.`users` AS u`` -> ``users``."""
    name = table.replace("`", "").strip()
    name = re.split(r"\s+", name, maxsplit=1)[0] if name else name
    return name.rsplit(".", 1)[-1]


class SchemaCache:
    """
    Registry of table name -> ordered column descriptors.

    Passed explicitly to every ``Database``; there is no module-level
    cache.  Writes after ``freeze()`` raise ``ConfigError``.
    """

    def __init__(self) -> None:
        self._tables: dict[str, list[ColumnSchema]] = {}
        self._frozen = False

    @classmethod
    def from_source(cls, source: SchemaSource) -> SchemaCache:
        """Build and freeze a cache from every table of ``source``."""
        cache = cls()
        cache.load(source)
        cache.freeze()
        return cache

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """End the write phase; the cache is read-only afterwards."""
        self._frozen = True

    def _check_writable(self) -> None:
        if self._frozen:
            raise ConfigError("schema cache is frozen")

    def register(self, table: str, columns: Iterable[ColumnSchema]) -> None:
        """Set the columns of one table, replacing what was there."""
        self._check_writable()
        self._tables[normalize_table_name(table)] = list(columns)

    def load(self, source: SchemaSource, tables: Iterable[str] | None = None) -> int:
        """Describe ``tables`` (default: all) from ``source``; returns the table count."""
        self._check_writable()
        names = list(tables) if tables is not None else source.table_names()
        for name in names:
            self.register(name, [parse_describe_row(row) for row in source.describe_table(name)])
        logger.debug("schema_cache_loaded", tables=len(names))
        return len(names)

    def has_table(self, table: str) -> bool:
        return normalize_table_name(table) in self._tables

    def get(self, table: str) -> list[ColumnSchema]:
        """Columns of ``table`` in declaration order; empty if unknown."""
        return list(self._tables.get(normalize_table_name(table), ()))

    def column(self, table: str, name: str) -> ColumnSchema | None:
        for col in self._tables.get(normalize_table_name(table), ()):
            if col.name == name:
                return col
        return None

    def tables(self) -> list[str]:
        return list(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, table: object) -> bool:
        return isinstance(table, str) and self.has_table(table)


__all__ = [
    "ColumnSchema",
    "SchemaCache",
    "normalize_table_name",
    "parse_describe_row",
]
