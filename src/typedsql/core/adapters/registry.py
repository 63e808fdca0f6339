"""Building adapters from configuration.

``Database.connect(url)`` goes through :func:`adapter_from_url`; the
backend named by the URL scheme picks the adapter class.
"""

from __future__ import annotations

from typing import Any

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

ADAPTERS: dict[DatabaseType, type[DatabaseAdapter]] = {
    DatabaseType.SQLITE: SQLiteAdapter,
    DatabaseType.POSTGRESQL: PostgreSQLAdapter,
}


def adapter_from_config(config: DatabaseConfig) -> DatabaseAdapter:
    """Create the adapter for ``config.db_type``; nothing connects yet."""
    return ADAPTERS[config.db_type].from_config(config)


def adapter_from_url(url: str, **overrides: Any) -> DatabaseAdapter:
    """Build an adapter from a database URL (``sqlite:///x.db``...)."""
    return adapter_from_config(DatabaseConfig.from_url(url, **overrides))


__all__ = ["ADAPTERS", "adapter_from_config", "adapter_from_url"]
