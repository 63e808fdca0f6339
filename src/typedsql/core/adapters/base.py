"""Database adapter base class.

Manifesto:
    The execution engine needs exactly four things from a database: a
    connection, transaction boundaries, a way to interrupt an in-flight
    statement and a translation of driver exceptions into the library's
    error hierarchy.  ``DatabaseAdapter`` is that narrow contract; drivers
    are only imported inside ``connect()``.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``get_connection()``
    - ``begin()`` / ``commit()`` / ``rollback()`` honouring ``autocommit``
    - ``interrupt()`` for timeout-driven cancellation
    - ``translate_error()`` mapping driver exceptions to ``DatabaseError``
    - Context-manager protocol for connection lifecycle

Tags:
    database, abstract-base, adapter-pattern, typedsql

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from typedsql.core.dialect import Dialect, get_dialect
from typedsql.core.errors import DatabaseError, QueryError
from typedsql.core.protocols import Connection

from .types import DatabaseConfig, DatabaseType


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    One adapter owns one connection; callers that work concurrently use one
    adapter each.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def autocommit(self) -> bool:
        """Whether statements outside a transaction scope commit on their own."""
        return self._config.autocommit

    @classmethod
    @abstractmethod
    def from_config(cls, config: DatabaseConfig) -> DatabaseAdapter:
        """Build the adapter from a :class:`DatabaseConfig`."""
        ...

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to database."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to database."""
        ...

    @abstractmethod
    def get_connection(self) -> Connection:
        """Get the active connection, connecting lazily."""
        ...

    @abstractmethod
    def interrupt(self) -> None:
        """Abort the statement currently running on the connection."""
        ...

    def is_cancellation(self, exc: Exception) -> bool:
        """Whether ``exc`` is the driver's report of an ``interrupt()``."""
        return False

    def translate_error(self, exc: Exception) -> DatabaseError:
        """Wrap a driver exception in the matching ``DatabaseError`` subclass."""
        return QueryError(str(exc), cause=exc)

    # -- Transaction boundaries ---------------------------------------------

    def begin(self) -> None:
        """Open a transaction on the active connection."""
        if self._config.autocommit:
            self._run_control("BEGIN")

    def commit(self) -> None:
        if self._config.autocommit:
            self._run_control("COMMIT")
        else:
            self.get_connection().commit()

    def rollback(self) -> None:
        if self._config.autocommit:
            self._run_control("ROLLBACK")
        else:
            self.get_connection().rollback()

    def _run_control(self, statement: str) -> None:
        cursor = self.get_connection().cursor()
        try:
            cursor.execute(statement)
        except Exception as exc:
            raise self.translate_error(exc) from exc
        finally:
            cursor.close()

    def execute_script(self, statements: list[str]) -> None:
        """Run parameterless statements (DDL, seed data) in order."""
        cursor = self.get_connection().cursor()
        try:
            for statement in statements:
                cursor.execute(statement)
            if not self._config.autocommit:
                self.get_connection().commit()
        except Exception as exc:
            raise self.translate_error(exc) from exc
        finally:
            cursor.close()

    def __enter__(self) -> DatabaseAdapter:
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.disconnect()


__all__ = [
    "DatabaseAdapter",
]
