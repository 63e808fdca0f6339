"""SQLite database adapter."""

from __future__ import annotations

from typing import Any

from typedsql.core.errors import (
    DatabaseConnectionError,
    DatabaseError,
    IntegrityError,
    QueryError,
)
from typedsql.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module.  With ``autocommit`` (the default) the
    driver never opens implicit transactions; transaction scopes issue an
    explicit ``BEGIN``.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        autocommit: bool = True,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            autocommit=autocommit,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: Any = None

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> SQLiteAdapter:
        return cls(
            config.path or ":memory:",
            readonly=config.readonly,
            autocommit=config.autocommit,
            **config.options,
        )

    def connect(self) -> None:
        """Connect to SQLite database."""
        import sqlite3

        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
                isolation_level=None if self._config.autocommit else "DEFERRED",
            )
            self._conn.execute("PRAGMA foreign_keys = ON")

            if self._config.readonly:
                self._conn.execute("PRAGMA query_only = ON")

            self._connected = True

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close SQLite connection."""
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
            self._conn.interrupt()

    def begin(self) -> None:
        conn = self.get_connection()
        # an implicit transaction may already be open without autocommit
        if not conn.in_transaction:
            self._run_control("BEGIN")

    def is_cancellation(self, exc: Exception) -> bool:
        import sqlite3

        return isinstance(exc, sqlite3.OperationalError) and "interrupt" in str(exc)

    def translate_error(self, exc: Exception) -> DatabaseError:
        import sqlite3

        if isinstance(exc, sqlite3.IntegrityError):
            return IntegrityError(str(exc), cause=exc)
        return QueryError(str(exc), cause=exc)


__all__ = [
    "SQLiteAdapter",
]
