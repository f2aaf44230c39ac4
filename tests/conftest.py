"""
Shared pytest fixtures for sqlspine tests.

This module provides:
- Process-wide state resets (debug toggle, default database)
- An in-memory SQLite ``Database`` with convention-following tables
- Sample dataclass record types

Usage:
    def test_something(db):
        db.table("users").insert({"user_name": "ada"})
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Generator
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

import pytest
import structlog

from sqlspine.core.adapters import SQLiteAdapter
from sqlspine.core.logging import set_debug_mode
from sqlspine.core.schema import SchemaCache
from sqlspine.query.gateway import Database, set_default_database
from sqlspine.query.records import column

SCHEMA_DDL = [
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY,
        user_name VARCHAR(64) NOT NULL DEFAULT '',
        age INTEGER,
        score DOUBLE,
        nickname TEXT,
        birthday DATE,
        create_at DATETIME,
        update_at DATETIME,
        del_flag TINYINT NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE posts (
        id INTEGER PRIMARY KEY,
        user_id INTEGER,
        title TEXT,
        views INTEGER NOT NULL DEFAULT 0,
        price DECIMAL(10,2),
        delete_at DATETIME
    )
    """,
    "CREATE TABLE tags (name TEXT, weight INTEGER)",
]


# =============================================================================
# Markers
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Tests using the ``db`` fixture are integration tests; the rest are unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if "db" in getattr(item, "fixturenames", ()):
            item.add_marker(pytest.mark.integration)
        elif not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# State cleanup
# =============================================================================


@pytest.fixture(autouse=True)
def reset_process_state() -> Generator[None, None, None]:
    """Debug toggle off, default structlog config and no default database around every test."""
    set_debug_mode(False)
    set_default_database(None)
    yield
    set_debug_mode(False)
    set_default_database(None)
    structlog.reset_defaults()


# =============================================================================
# Databases
# =============================================================================


def build_database(adapter: SQLiteAdapter, ddl: list[str] = SCHEMA_DDL) -> Database:
    adapter.connect()
    for statement in ddl:
        adapter.write(statement)
    schema = SchemaCache.from_source(adapter)
    return Database(adapter, schema)


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """In-memory SQLite database with ``users``, ``posts`` and ``tags``."""
    database = build_database(SQLiteAdapter(":memory:"))
    yield database
    database.close()


@pytest.fixture
def db_file(tmp_path: Path) -> Path:
    """SQLite file with the sample tables and two users, for CLI tests."""
    path = tmp_path / "app.db"
    database = build_database(SQLiteAdapter(str(path)))
    database.table("users").insert({"user_name": "ada", "age": 36})
    database.table("users").insert({"user_name": "bob", "age": 17})
    database.close()
    return path


# =============================================================================
# Records
# =============================================================================


@dataclass
class User:
    id: int = column(primary_key=True, default=0)
    user_name: str = ""
    age: int = 0
    score: float = 0.0
    nick: str = column("nickname", default="")
    birthday: dt.date | None = None
    create_at: dt.datetime | None = None


@dataclass
class Post:
    id: int = 0
    user_id: int = 0
    title: str | None = None
    views: int = 0
    price: Decimal = Decimal(0)


@pytest.fixture
def seeded(db: Database) -> Database:
    """``db`` with three users and four posts."""
    users = db.table("users")
    users.insert({"user_name": "ada", "age": 36, "score": 91.5, "nickname": "countess", "birthday": "1815-12-10"})
    users.insert({"user_name": "bob", "age": 17, "score": 60.25})
    users.insert({"user_name": "cyd", "age": None, "del_flag": 1})
    posts = db.table("posts")
    posts.insert({"user_id": 1, "title": "engines", "views": 10, "price": "9.90"})
    posts.insert({"user_id": 1, "title": "notes", "views": 5})
    posts.insert({"user_id": 2, "title": "hello", "views": 0})
    posts.insert({"user_id": 2, "title": None, "views": 3})
    return db
