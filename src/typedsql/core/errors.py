"""
Structured error types for typedsql.

Every failure the library surfaces is a ``TypedSQLError`` subclass carrying a
category, a retryable flag, structured context and the chained cause.  The
library never retries on its own: ``retryable`` is always ``False`` for the
built-in types and exists so callers can plug the errors into their own
retry policy.

Manifesto:
    - **Typed hierarchy:** load-time, build-time, fetch-time and execution
      failures are distinct types a caller can catch separately
    - **Fail at build time:** anything detectable without a database
      (unknown relationship, wrong literal type, missing insert column)
      is raised before SQL is sent
    - **Never swallow:** driver exceptions are wrapped with ``cause=``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      TypedSQLError                           │
        │  (category, retryable, context, cause)                       │
        ├─────────────────────────────────────────────────────────────┤
        │  SchemaError          QueryBuildError      CardinalityError  │
        │  (SCHEMA)             (BUILD)              (CARDINALITY)     │
        │                           │                     │            │
        │                  UnknownRelationshipError  NoResultError     │
        │                  UnknownColumnError                          │
        │                  TypeMismatchError         TooManyResults    │
        │                  MissingColumnError                          │
        │                  ScopeError                                  │
        │                                                              │
        │  MappingError         ConfigError          DatabaseError     │
        │  (MAPPING)            (CONFIG)             (DATABASE)        │
        │                                                 │            │
        │                              DatabaseConnectionError         │
        │                              QueryError / IntegrityError     │
        │                              QueryCancelledError             │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = TypeMismatchError("bad literal", column="actor.actor_id", value="x")
    >>> err.category
    <ErrorCategory.BUILD: 'BUILD'>
    >>> err.to_dict()["column"]
    'actor.actor_id'

Guardrails:
    ❌ DON'T: ``except Exception: pass`` around execution calls
    ✅ DO: catch the narrowest ``TypedSQLError`` subclass you can handle

    ❌ DON'T: wrap a driver exception without ``cause=``
    ✅ DO: ``raise QueryError("...", cause=exc) from exc``

Tags:
    error-handling, exception-hierarchy, typedsql, query-builder

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Classification of errors for logging and routing."""

    SCHEMA = "SCHEMA"
    BUILD = "BUILD"
    CARDINALITY = "CARDINALITY"
    MAPPING = "MAPPING"
    CONFIG = "CONFIG"
    DATABASE = "DATABASE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only the fields that are relevant are set; anything else goes into
    ``metadata``.
    """

    table: str | None = None
    statement: str | None = None
    sql: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in ("table", "statement", "sql"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TypedSQLError(Exception):
    """
    Base exception for all typedsql errors.

    Subclasses set ``default_category``; ``retryable`` defaults to ``False``
    everywhere because the library performs no retries itself.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TypedSQLError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("failed").with_context(sql=compiled.sql)
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# =============================================================================
# SCHEMA ERRORS
# =============================================================================


class SchemaError(TypedSQLError):
    """
    Malformed schema declaration.

    Raised at load time; fatal for the declaration being registered.
    """

    default_category = ErrorCategory.SCHEMA

    def __init__(self, message: str, *, table: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.table = table
        if table is not None:
            self.context.table = table


# =============================================================================
# STATEMENT BUILD ERRORS
# =============================================================================


class QueryBuildError(TypedSQLError):
    """A statement cannot be built as requested.  Caller-correctable."""

    default_category = ErrorCategory.BUILD


class UnknownRelationshipError(QueryBuildError):
    """Navigation through a relationship the schema does not declare."""

    def __init__(self, table: str, relationship: str, message: str | None = None):
        self.table = table
        self.relationship = relationship
        super().__init__(
            message or f"Table '{table}' declares no relationship '{relationship}'"
        )
        self.context.table = table


class UnknownColumnError(QueryBuildError, AttributeError):
    """A column name the table does not declare.

    Also an ``AttributeError`` so ``hasattr(table.c, name)`` behaves.
    """

    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(f"Table '{table}' has no column '{column}'")
        self.context.table = table


class TypeMismatchError(QueryBuildError):
    """A value or operand is incompatible with a column's declared type."""

    def __init__(
        self,
        message: str,
        *,
        column: str | None = None,
        value: Any = None,
        expected: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.column = column
        self.value = value
        self.expected = expected

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.column:
            result["column"] = self.column
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.expected:
            result["expected"] = self.expected
        return result


class MissingColumnError(QueryBuildError):
    """An insert lacks a value for a required column."""

    def __init__(self, table: str, columns: list[str]):
        self.table = table
        self.columns = columns
        super().__init__(
            f"Insert into '{table}' is missing required columns: {', '.join(columns)}"
        )
        self.context.table = table


class ScopeError(QueryBuildError):
    """A column references a table that is not part of the statement."""

    pass


# =============================================================================
# CARDINALITY ERRORS
# =============================================================================


class CardinalityError(TypedSQLError):
    """A fetch returned a row count the caller did not expect."""

    default_category = ErrorCategory.CARDINALITY


class NoResultError(CardinalityError):
    """Exactly one row was expected, none was returned."""

    def __init__(self, message: str = "Query returned no rows, expected exactly one"):
        super().__init__(message)


class TooManyResultsError(CardinalityError):
    """At most one row was expected, more were returned."""

    def __init__(self, count: int, message: str | None = None):
        self.count = count
        super().__init__(message or f"Query returned {count} rows, expected at most one")


# =============================================================================
# MAPPING ERRORS
# =============================================================================


class MappingError(TypedSQLError):
    """A result row does not fit the target record type."""

    default_category = ErrorCategory.MAPPING

    def __init__(self, message: str, *, target: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.target = target
        if target is not None:
            self.context.metadata["target"] = target


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(TypedSQLError):
    """Configuration is missing or invalid."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(TypedSQLError):
    """
    Failure reported by the database or its driver.

    Always carries the driver exception as ``cause``.
    """

    default_category = ErrorCategory.DATABASE


class DatabaseConnectionError(DatabaseError):
    """The connection could not be established or was lost."""

    pass


class QueryError(DatabaseError):
    """The database rejected or failed to run a statement."""

    pass


class IntegrityError(DatabaseError):
    """A constraint (unique, foreign key, not null, check) was violated."""

    pass


class QueryCancelledError(DatabaseError):
    """The in-flight statement was interrupted by a timeout."""

    def __init__(self, timeout: float, **kwargs: Any):
        self.timeout = timeout
        super().__init__(f"Statement cancelled after {timeout}s", **kwargs)


def categorize_error(error: Exception) -> ErrorCategory:
    """Return the category of ``error`` (``INTERNAL`` for foreign exceptions)."""
    if isinstance(error, TypedSQLError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TypedSQLError",
    "SchemaError",
    "QueryBuildError",
    "UnknownRelationshipError",
    "UnknownColumnError",
    "TypeMismatchError",
    "MissingColumnError",
    "ScopeError",
    "CardinalityError",
    "NoResultError",
    "TooManyResultsError",
    "MappingError",
    "ConfigError",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "IntegrityError",
    "QueryCancelledError",
    "categorize_error",
]
