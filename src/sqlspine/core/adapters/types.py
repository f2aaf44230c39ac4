"""Database types, configuration and the value objects adapters return."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import unquote, urlsplit

from sqlspine.core.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    MYSQL = "mysql"


@dataclass
class DatabaseConfig:
    """
    Configuration for database connection.

    Different fields are used by different database types.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # MySQL
    host: str = "localhost"
    port: int = 3306
    database: str = ""
    username: str | None = None
    password: str | None = None

    # Connection pool
    pool_size: int = 5

    # Options
    connect_timeout: int = 10
    readonly: bool = False

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_url(cls, url: str) -> DatabaseConfig:
        """Parse ``sqlite:///path``, ``sqlite://:memory:`` or ``mysql://u:p@h:port/db``."""
        scheme, sep, rest = url.partition("://")
        if not sep:
            raise ConfigError(f"Invalid database URL: {url!r}")
        scheme = scheme.lower()

        if scheme == "sqlite":
            if rest in ("", ":memory:", "/:memory:"):
                return cls(db_type=DatabaseType.SQLITE, path=":memory:")
            # sqlite:///relative.db -> relative.db, sqlite:////abs.db -> /abs.db
            return cls(db_type=DatabaseType.SQLITE, path=rest[1:] if rest.startswith("/") else rest)

        if scheme in ("mysql", "mariadb"):
            parts = urlsplit(url)
            return cls(
                db_type=DatabaseType.MYSQL,
                host=parts.hostname or "localhost",
                port=parts.port or 3306,
                database=parts.path.lstrip("/"),
                username=unquote(parts.username) if parts.username else None,
                password=unquote(parts.password) if parts.password else None,
            )

        raise ConfigError(f"Unsupported database URL scheme: {scheme}")

    def to_connection_string(self) -> str:
        """Connection string with the password masked, for logs."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return f"sqlite:///{self.path or ':memory:'}"
            case DatabaseType.MYSQL:
                user = self.username or ""
                return f"mysql://{user}:***@{self.host}:{self.port}/{self.database}"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


# ── Values exchanged with the gateway ────────────────────────────────────


@dataclass(frozen=True)
class ColumnInfo:
    """A result column as reported by the driver.

    ``type_name`` is the database type name (``DATETIME``, ``BIGINT``,
    ``VARCHAR``...), upper-cased.  An empty string means the driver did not
    report one.
    """

    name: str
    type_name: str = ""
    nullable: bool = True


@dataclass
class ResultSet:
    """Rows fetched by a read statement, with their column descriptions."""

    columns: list[ColumnInfo]
    rows: list[tuple[Any, ...]]

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a write statement."""

    rowcount: int = 0
    lastrowid: int | None = None


@dataclass(frozen=True)
class DescribeRow:
    """One row of ``DESCRIBE <table>`` output."""

    field: str
    type: str
    null: str = "YES"
    key: str = ""
    default: str | None = None
    extra: str = ""


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
    "ColumnInfo",
    "ResultSet",
    "WriteResult",
    "DescribeRow",
]
