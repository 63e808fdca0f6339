"""PostgreSQL database adapter."""

from __future__ import annotations

from typing import Any

from typedsql.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    IntegrityError,
    QueryError,
)
from typedsql.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    Uses psycopg2 with a single connection (pooling is left to the
    application).  Requires the ``postgresql`` extra.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        autocommit: bool = True,
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            autocommit=autocommit,
            connect_timeout=connect_timeout,
            options=kwargs,
        )
        super().__init__(config)
        self._conn: Any = None

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> PostgreSQLAdapter:
        return cls(
            config.host,
            config.port,
            config.database,
            config.username,
            config.password,
            autocommit=config.autocommit,
            connect_timeout=config.connect_timeout,
            **config.options,
        )

    def connect(self) -> None:
        """Connect to PostgreSQL database."""
        try:
            import psycopg2
        except ImportError:
            raise ConfigError(
                "psycopg2 is required for PostgreSQL. "
                "Install with: pip install typedsql[postgresql]"
            ) from None

        try:
            self._conn = psycopg2.connect(
                host=self._config.host,
                port=self._config.port,
                dbname=self._config.database,
                user=self._config.username,
                password=self._config.password,
                connect_timeout=self._config.connect_timeout,
                **self._config.options,
            )
            self._conn.autocommit = self._config.autocommit
            self._connected = True
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False

    def get_connection(self) -> Connection:
        if not self._conn:
            self.connect()
        return self._conn

    def interrupt(self) -> None:
        if self._conn:
            self._conn.cancel()

    def is_cancellation(self, exc: Exception) -> bool:
        from psycopg2 import extensions

        return isinstance(exc, extensions.QueryCanceledError)

    def translate_error(self, exc: Exception) -> DatabaseError:
        import psycopg2

        if isinstance(exc, psycopg2.IntegrityError):
            return IntegrityError(str(exc), cause=exc)
        if isinstance(exc, psycopg2.OperationalError):
            return DatabaseConnectionError(str(exc), cause=exc)
        return QueryError(str(exc), cause=exc)


__all__ = [
    "PostgreSQLAdapter",
]
