"""SQL dialect: identifier quoting and placeholder translation.

sqlspine targets one engine's SQL (MySQL: backtick identifiers, ``LIMIT
offset, count``).  The synthesizer always writes ``?`` placeholders; the
dialect rewrites them into the driver's paramstyle right before execution.
SQLite accepts the same quoting and LIMIT forms, which is what makes it the
test and development backend.

Manifesto:
    - **One quoting rule:** every identifier goes through ``quote_identifier``
    - **One placeholder:** synthesized SQL is always qmark style
    - **Late translation:** paramstyle is a driver concern, applied by the adapter

Architecture::

    Synthesizer                 Adapter
    ┌──────────────────────┐    ┌──────────────────────────────────────┐
    │ SELECT * FROM `t`    │    │ dialect.translate(sql)               │
    │ WHERE `a` = ?        │───►│   SQLite: unchanged                  │
    │ params: [1]          │    │   MySQL:  WHERE `a` = %s             │
    └──────────────────────┘    └──────────────────────────────────────┘

Examples:
    >>> from sqlspine.core.dialect import quote_identifier, MySQLDialect
    >>> quote_identifier("users.name")
    'users.`name`'
    >>> MySQLDialect().translate("SELECT * FROM `t` WHERE `a` = ? AND b = '?'")
    "SELECT * FROM `t` WHERE `a` = %s AND b = '?'"

Tags:
    dialect, sql, quoting, placeholders, sqlspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlspine.core.errors import ConfigError

QUOTE_CHAR = "`"


def quote_identifier(name: str) -> str:
    """Quote a column or table name with backticks.

    Existing backticks are stripped first.  A bare ``*`` stays bare.  For a
    qualified name only the part after the first dot is quoted.
    """
    name = name.replace(QUOTE_CHAR, "").strip()
    if not name or name == "*":
        return name
    if "." not in name:
        return f"{QUOTE_CHAR}{name}{QUOTE_CHAR}"
    left, right = name.split(".", 1)
    if right == "*":
        return f"{left}.*"
    return f"{left}.{QUOTE_CHAR}{right}{QUOTE_CHAR}"


def _replace_placeholders(sql: str, marker: str) -> str:
    """Swap ``?`` outside quoted literals and identifiers for ``marker``."""
    out: list[str] = []
    quote: str | None = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            out.append(ch)
            if ch == "\\" and quote != QUOTE_CHAR and i + 1 < len(sql):
                out.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"', QUOTE_CHAR):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append(marker)
        else:
            out.append(ch)
        i += 1
    return "".join(out)


@runtime_checkable
class Dialect(Protocol):
    """Engine-specific SQL rules used by adapters."""

    @property
    def name(self) -> str: ...

    def quote_identifier(self, name: str) -> str: ...

    def translate(self, sql: str) -> str:
        """Rewrite qmark placeholders into the driver's paramstyle."""
        ...


class SQLiteDialect:
    """SQLite dialect: qmark paramstyle, so translation is the identity."""

    @property
    def name(self) -> str:
        return "sqlite"

    def quote_identifier(self, name: str) -> str:
        return quote_identifier(name)

    def translate(self, sql: str) -> str:
        return sql


class MySQLDialect:
    """MySQL dialect: ``%s`` placeholders for ``mysql.connector``."""

    @property
    def name(self) -> str:
        return "mysql"

    def quote_identifier(self, name: str) -> str:
        return quote_identifier(name)

    def translate(self, sql: str) -> str:
        return _replace_placeholders(sql, "%s")


_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get the dialect registered for ``db_type``."""
    try:
        return _DIALECTS[db_type.lower()]
    except KeyError:
        raise ConfigError(f"Unknown SQL dialect: {db_type}") from None


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "QUOTE_CHAR",
    "quote_identifier",
    "Dialect",
    "SQLiteDialect",
    "MySQLDialect",
    "get_dialect",
    "register_dialect",
]
