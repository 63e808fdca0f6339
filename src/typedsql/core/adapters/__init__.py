"""Database adapters -- the execution engine's view of a database.

Manifesto:
    The query builder and compiler are pure; only the adapter touches a
    driver.  Each adapter is **import-guarded**: the driver is imported at
    ``connect()`` time, so SQLite-only users never need psycopg2::

        pip install typedsql[postgresql]   # psycopg2-binary

Architecture::

    DatabaseAdapter (base.py)        connect / transaction boundaries / interrupt
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- PostgreSQLAdapter        psycopg2 (optional)

    adapter_from_url (registry.py)   URL -> configured adapter
    DatabaseConfig (types.py)        connection parameters, URL parsing
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ ``cursor.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ build statements with the query builder; literals become parameters

Tags:
    database, adapters, import-guarded, typedsql

Doc-Types:
    package-overview, module-index
"""

from typedsql.core.dialect import Dialect, get_dialect
from typedsql.core.protocols import Connection, Cursor

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .registry import adapter_from_config, adapter_from_url
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    # Protocols / Abstractions
    "Connection",
    "Cursor",
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseAdapter",
    # Implementations
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    # Factories
    "adapter_from_config",
    "adapter_from_url",
]
