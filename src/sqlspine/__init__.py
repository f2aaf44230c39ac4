"""
sqlspine - a fluent SQL statement builder with a dataclass record mapper.

Quick start::

    from dataclasses import dataclass
    from sqlspine import Database, Raw, column

    db = Database.open("sqlite:///app.db")

    rows = db.table("users").where("age", ">=", 18).order_by("id desc").page(1, 20).get()

    @dataclass
    class User:
        id: int = column(primary_key=True, default=0)
        name: str = ""

    user = User(name="ada")
    db.table("users").insert_record(user)      # user.id now holds the new id
    db.table("posts").where("id", 7).update({"views": Raw("`views` + 1")})
"""

__version__ = "0.1.0"

from sqlspine.core.errors import (
    ConfigError,
    MappingError,
    NoDataError,
    QueryTimeoutError,
    SqlSpineError,
    StatementError,
)
from sqlspine.query import (
    Database,
    QueryBuilder,
    Raw,
    Statement,
    column,
    get_default_database,
    set_default_database,
    table,
)

__all__ = [
    "__version__",
    "Database",
    "QueryBuilder",
    "Statement",
    "Raw",
    "column",
    "table",
    "set_default_database",
    "get_default_database",
    "SqlSpineError",
    "ConfigError",
    "StatementError",
    "QueryTimeoutError",
    "MappingError",
    "NoDataError",
]
