"""SQL dialect abstraction for the statement compiler.

The compiler renders statements through a ``Dialect`` so the query builder
never embeds backend-specific syntax: placeholders, identifier quoting,
JSON aggregation for nested (multiset) projections and the few DDL
fragments the sample schema needs.

Architecture::

    Statement ──► StatementCompiler ──► Dialect fragments ──► SQL + params

    ┌───────────────────────────┐   ┌──────────────────────────────┐
    │ SQLiteDialect             │   │ PostgreSQLDialect            │
    │ ?  placeholders           │   │ %s placeholders (psycopg2)   │
    │ json_group_array(...)     │   │ json_agg(...)                │
    │ json_array(...)           │   │ json_build_array(...)        │
    │ RETURNING (3.35+)         │   │ RETURNING                    │
    └───────────────────────────┘   └──────────────────────────────┘

Examples:
    >>> from typedsql.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.quote("first_name")
    '"first_name"'

Guardrails:
    ❌ DON'T: interpolate literal values into SQL
    ✅ DO: emit ``dialect.placeholder(i)`` and pass the value as a parameter

Tags:
    dialect, sql, abstraction, portability, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment valid for the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    @property
    def supports_returning(self) -> bool:
        """Whether INSERT/UPDATE/DELETE accept a RETURNING clause."""
        ...

    # -- Placeholders --------------------------------------------------------

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    # -- Identifiers ---------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote a table, column or alias name."""
        ...

    # -- Nested projections --------------------------------------------------

    def json_array_agg(self, items: list[str]) -> str:
        """Aggregate expression collecting one JSON array per row.

        Must yield an empty JSON array (never NULL) over zero rows.
        """
        ...

    def json_nested(self, expression: str) -> str:
        """Wrap an already-JSON value so it nests instead of being quoted."""
        ...

    # -- Parameters and paging ----------------------------------------------

    def adapt_param(self, value: Any) -> Any:
        """Convert a Python literal into a value the driver binds."""
        ...

    def limit_clause(self, limit: str | None, offset: str | None) -> str:
        """LIMIT/OFFSET fragment from already-rendered placeholders."""
        ...

    # -- DDL -----------------------------------------------------------------

    def type_name(self, kind: str) -> str:
        """Column type for a ``ColumnType`` value name (``'STRING'``...)."""
        ...

    def auto_increment(self) -> str:
        """Column type for an auto-incrementing integer primary key."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, JSON1 aggregation."""

    _TYPES = {
        "STRING": "TEXT",
        "INTEGER": "INTEGER",
        "FLOAT": "REAL",
        "DECIMAL": "NUMERIC",
        "BOOLEAN": "INTEGER",
        "DATE": "TEXT",
        "DATETIME": "TEXT",
        "BYTES": "BLOB",
    }

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def supports_returning(self) -> bool:
        return True

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def json_array_agg(self, items: list[str]) -> str:
        return f"COALESCE(json_group_array(json_array({', '.join(items)})), '[]')"

    def json_nested(self, expression: str) -> str:
        return f"json({expression})"

    def adapt_param(self, value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, Decimal):
            return str(value)
        return value

    def limit_clause(self, limit: str | None, offset: str | None) -> str:
        if limit is None and offset is None:
            return ""
        # SQLite needs a LIMIT before OFFSET
        sql = f" LIMIT {limit if limit is not None else '-1'}"
        if offset is not None:
            sql += f" OFFSET {offset}"
        return sql

    def type_name(self, kind: str) -> str:
        return self._TYPES[kind]

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2), ``json_agg``."""

    _TYPES = {
        "STRING": "TEXT",
        "INTEGER": "INTEGER",
        "FLOAT": "DOUBLE PRECISION",
        "DECIMAL": "NUMERIC",
        "BOOLEAN": "BOOLEAN",
        "DATE": "DATE",
        "DATETIME": "TIMESTAMP",
        "BYTES": "BYTEA",
    }

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def supports_returning(self) -> bool:
        return True

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def json_array_agg(self, items: list[str]) -> str:
        return f"COALESCE(json_agg(json_build_array({', '.join(items)})), '[]'::json)"

    def json_nested(self, expression: str) -> str:
        return expression

    def adapt_param(self, value: Any) -> Any:
        return value

    def limit_clause(self, limit: str | None, offset: str | None) -> str:
        sql = ""
        if limit is not None:
            sql += f" LIMIT {limit}"
        if offset is not None:
            sql += f" OFFSET {offset}"
        return sql

    def type_name(self, kind: str) -> str:
        return self._TYPES[kind]

    def auto_increment(self) -> str:
        return "SERIAL PRIMARY KEY"


# =========================================================================
# Registry / Factory
# =========================================================================

# Dialects are stateless
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (lower-cased key)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
    "register_dialect",
]
