"""Database adapters -- the connection capability the query engine consumes.

Manifesto:
    The builder only needs "run this statement with these parameters under
    this deadline", against a pool or inside a transaction.  Adapters
    supply exactly that, plus the table listing and ``DESCRIBE`` rows the
    schema cache is built from.

    Each optional driver is **import-guarded**: it is only required at
    ``connect()`` time, not at import time.  Install the corresponding extra::

        pip install sqlspine[mysql]        # mysql-connector-python

Architecture::

    DatabaseAdapter (base.py)        fetch/write under deadline, begin()
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- MySQLAdapter             mysql.connector pool (optional)
    AdapterTransaction (base.py)     explicit transaction handle

    AdapterRegistry (registry.py)    name -> adapter class, create_adapter(url)
    DatabaseConfig (types.py)        connection parameters, URL parsing
    ResultSet / WriteResult          what fetch/write return

Modules
-------
base            Abstract DatabaseAdapter and AdapterTransaction
types           DatabaseType, DatabaseConfig and result value objects
registry        AdapterRegistry + get_adapter() / create_adapter()
sqlite          SQLite adapter (stdlib, always available)
mysql           MySQL / MariaDB adapter (requires mysql-connector-python)

Guardrails:
    ❌ ``conn.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``adapter.fetch("SELECT * FROM t WHERE id = ?", [user_input])``
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``

Tags:
    sqlspine, database, adapters, import-guarded, registry-pattern,
    sqlite, mysql

Doc-Types:
    package-overview, module-index
"""

from sqlspine.core.dialect import Dialect, get_dialect
from sqlspine.core.protocols import Connection

from .base import AdapterTransaction, DatabaseAdapter
from .mysql import MySQLAdapter
from .registry import AdapterRegistry, adapter_registry, create_adapter, get_adapter
from .sqlite import SQLiteAdapter
from .types import ColumnInfo, DatabaseConfig, DatabaseType, DescribeRow, ResultSet, WriteResult

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    "ColumnInfo",
    "ResultSet",
    "WriteResult",
    "DescribeRow",
    # Protocols / Abstractions
    "Connection",
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseAdapter",
    "AdapterTransaction",
    # Implementations
    "SQLiteAdapter",
    "MySQLAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
    "create_adapter",
]
