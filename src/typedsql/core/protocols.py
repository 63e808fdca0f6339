"""
Canonical protocol definitions for the database collaborator.

The execution engine talks to the database only through these shapes, so
any DB-API 2.0 driver (``sqlite3``, ``psycopg2``) satisfies them without a
wrapper.

Architecture:
    ::

        Connection Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ cursor()     → Cursor                                  │
        │ commit()     → Commit transaction                      │
        │ rollback()   → Rollback transaction                    │
        │ close()      → Release the connection                  │
        └────────────────────────────────────────────────────────┘

        Cursor Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ execute(sql, params)   → Execute single statement      │
        │ fetchall()             → All remaining rows            │
        │ description            → Column metadata (or None)     │
        │ rowcount               → Affected rows                 │
        └────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations go in adapters

Tags:
    protocol, connection, cursor, database, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """DB-API 2.0 cursor subset used by the execution engine."""

    @property
    def description(self) -> Any:
        ...

    @property
    def rowcount(self) -> int:
        ...

    def execute(self, sql: str, params: Any = ()) -> Any:
        ...

    def fetchall(self) -> list[Any]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Connection(Protocol):
    """DB-API 2.0 connection subset used by adapters and the engine."""

    def cursor(self) -> Cursor:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


__all__ = [
    "Connection",
    "Cursor",
]
