"""
Execution engine: runs compiled statements on an adapter's connection.

Manifesto:
    - **One statement at a time:** the executor uses the adapter's single
      active connection and blocks until the statement finishes
    - **Wrap, never swallow:** driver exceptions become ``DatabaseError``
      subclasses with the driver exception as ``cause``
    - **No retries:** a failure is reported once; retrying is the
      caller's decision
    - **Cancellation by timeout:** a timer interrupts the in-flight call;
      the transaction outcome is left to the caller

Architecture:
    ::

        CompiledStatement ──► Executor._run ──► cursor.execute(sql, params)
                                   │                    │
                             threading.Timer     driver exception
                             adapter.interrupt()  adapter.translate_error()
                                   │
                              decode_row ──► Row (values coerced, multisets
                                                  decoded from JSON)

Tags:
    execution, engine, timeout, cancellation, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any

from typedsql.core.adapters import DatabaseAdapter
from typedsql.core.errors import DatabaseError, MappingError, QueryCancelledError
from typedsql.core.logging import get_logger
from typedsql.query.compiler import CompiledStatement, ProjectionColumn
from typedsql.rows import Row

logger = get_logger(__name__)


class Executor:
    """Runs compiled statements through a :class:`DatabaseAdapter`."""

    def __init__(self, adapter: DatabaseAdapter, default_timeout: float | None = None):
        self.adapter = adapter
        self.default_timeout = default_timeout

    def fetch(self, compiled: CompiledStatement, timeout: float | None = None) -> list[Row]:
        """Run a row-returning statement and decode its rows."""
        raw, _ = self._run(compiled, timeout)
        return [decode_row(values, compiled.columns) for values in raw]

    def execute(self, compiled: CompiledStatement, timeout: float | None = None) -> int:
        """Run a statement and return the affected-row count."""
        raw, rowcount = self._run(compiled, timeout)
        if compiled.returns_rows and rowcount < 0:
            return len(raw)
        return rowcount

    def _run(
        self, compiled: CompiledStatement, timeout: float | None
    ) -> tuple[list[Any], int]:
        timeout = timeout if timeout is not None else self.default_timeout
        conn = self.adapter.get_connection()
        cursor = conn.cursor()
        timer = None
        if timeout is not None:
            timer = threading.Timer(timeout, self.adapter.interrupt)
            timer.daemon = True

        start = time.perf_counter()
        try:
            if timer is not None:
                timer.start()
            cursor.execute(compiled.sql, compiled.params)
            rows = cursor.fetchall() if cursor.description is not None else []
            rowcount = cursor.rowcount
        except Exception as exc:
            error: DatabaseError
            if timeout is not None and self.adapter.is_cancellation(exc):
                error = QueryCancelledError(timeout, cause=exc)
            else:
                error = self.adapter.translate_error(exc)
            error.with_context(statement=compiled.kind, sql=compiled.sql)
            logger.warning(
                "statement_failed",
                kind=compiled.kind,
                sql=compiled.sql,
                error_type=type(error).__name__,
                error=str(exc),
            )
            raise error from exc
        finally:
            if timer is not None:
                timer.cancel()
            cursor.close()

        logger.debug(
            "statement_executed",
            kind=compiled.kind,
            sql=compiled.sql,
            params=len(compiled.params),
            rows=len(rows) if rows else rowcount,
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
        )
        return rows, rowcount


def decode_row(values: Any, columns: tuple[ProjectionColumn, ...]) -> Row:
    """Build a :class:`Row` from raw driver (or decoded JSON) values."""
    if len(values) != len(columns):
        raise MappingError(
            f"Row has {len(values)} values for a projection of {len(columns)} columns"
        )
    decoded = []
    for column, value in zip(columns, values):
        if column.nested is not None:
            decoded.append(decode_nested(value, column.nested))
        elif column.type is not None:
            decoded.append(column.type.coerce(value))
        else:
            decoded.append(value)
    return Row(columns, tuple(decoded))


def decode_nested(value: Any, columns: tuple[ProjectionColumn, ...]) -> tuple[Row, ...]:
    """Decode a multiset value (JSON array of arrays) into nested rows."""
    if value is None:
        return ()
    if isinstance(value, (str, bytes)):
        value = json.loads(value)
    return tuple(decode_row(item, columns) for item in value)


__all__ = ["Executor", "decode_nested", "decode_row"]
