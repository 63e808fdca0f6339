"""Database types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import unquote, urlparse

from typedsql.core.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


@dataclass
class DatabaseConfig:
    """
    Configuration for a database connection.

    Different fields are used by different database types.
    """

    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # PostgreSQL
    host: str = "localhost"
    port: int = 5432
    database: str = ""
    username: str | None = None
    password: str | None = None

    connect_timeout: int = 10
    autocommit: bool = True
    readonly: bool = False

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_url(cls, url: str, **overrides: Any) -> DatabaseConfig:
        """Parse ``sqlite:///path`` or ``postgresql://user:pw@host:port/db``."""
        parsed = urlparse(url)
        scheme = parsed.scheme.split("+", 1)[0]
        match scheme:
            case "sqlite":
                # sqlite:///relative.db, sqlite:////abs/path.db, sqlite:///:memory:
                path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
                return cls(db_type=DatabaseType.SQLITE, path=path or ":memory:", **overrides)
            case "postgresql" | "postgres":
                return cls(
                    db_type=DatabaseType.POSTGRESQL,
                    host=parsed.hostname or "localhost",
                    port=parsed.port or 5432,
                    database=parsed.path.lstrip("/"),
                    username=unquote(parsed.username) if parsed.username else None,
                    password=unquote(parsed.password) if parsed.password else None,
                    **overrides,
                )
            case _:
                raise ConfigError(f"Unsupported database URL scheme: {parsed.scheme!r}")

    def to_connection_string(self) -> str:
        """Generate connection string for the database type."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return self.path or ":memory:"
            case DatabaseType.POSTGRESQL:
                return f"postgresql://{self.username}:***@{self.host}:{self.port}/{self.database}"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
