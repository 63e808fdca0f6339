"""typedsql core -- the ambient layer under the query builder.

Manifesto:
    The builder, compiler and mapper are pure Python over immutable values.
    Everything that touches the outside world (drivers, environment,
    logs) or is shared by every layer (errors, the Result envelope, the
    dialect contract) lives here, so the upper layers stay small.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (TypedSQLError ...)
        result.py          Result[T] envelope (Ok / Err / try_result)
        protocols.py       DB-API Connection / Cursor protocols

    Layer 2 -- Database
        dialect.py         SQL dialect abstraction (SQLite, PostgreSQL)
        adapters/          Database adapters (sqlite3, psycopg2)

    Layer 3 -- Ambient
        logging.py         structlog configuration and context binding
        settings.py        TYPEDSQL_* environment settings (pydantic-settings)
"""

from typedsql.core.dialect import Dialect, PostgreSQLDialect, SQLiteDialect, get_dialect
from typedsql.core.errors import (
    CardinalityError,
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    ErrorCategory,
    IntegrityError,
    MappingError,
    MissingColumnError,
    NoResultError,
    QueryBuildError,
    QueryCancelledError,
    QueryError,
    SchemaError,
    ScopeError,
    TooManyResultsError,
    TypedSQLError,
    TypeMismatchError,
    UnknownColumnError,
    UnknownRelationshipError,
)
from typedsql.core.result import Err, Ok, Result, as_result, try_result

__all__ = [
    "CardinalityError",
    "ConfigError",
    "DatabaseConnectionError",
    "DatabaseError",
    "Dialect",
    "Err",
    "ErrorCategory",
    "IntegrityError",
    "MappingError",
    "MissingColumnError",
    "NoResultError",
    "Ok",
    "PostgreSQLDialect",
    "QueryBuildError",
    "QueryCancelledError",
    "QueryError",
    "Result",
    "SQLiteDialect",
    "SchemaError",
    "ScopeError",
    "TooManyResultsError",
    "TypeMismatchError",
    "TypedSQLError",
    "UnknownColumnError",
    "UnknownRelationshipError",
    "as_result",
    "get_dialect",
    "try_result",
]
