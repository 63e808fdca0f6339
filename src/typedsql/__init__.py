"""
typedsql -- typed query construction and result mapping.

Model a schema with typed columns and declared relationships, build
queries against it (joins, implicit relationship joins, nested multiset
projections, inserts, updates, deletes), execute them with every literal
parameterised, and map the rows into dataclasses or pydantic models.

Examples:
    >>> from typedsql import Database, select
    >>> from typedsql.sakila import ACTOR, FILM_ACTOR, create_schema
    >>> db = Database.from_url("sqlite:///:memory:")
    >>> create_schema(db)
    >>> db.select(FILM_ACTOR.rel("actor").c.last_name).from_(FILM_ACTOR).fetch()
    []
"""

__version__ = "0.1.0"

from typedsql.core.errors import (
    CardinalityError,
    ConfigError,
    DatabaseError,
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
from typedsql.core.result import Err, Ok, Result
from typedsql.core.settings import TypedSQLSettings
from typedsql.execution import Database
from typedsql.mapping import RecordMapping, mapping
from typedsql.model import (
    Cardinality,
    Column,
    ColumnType,
    Relationship,
    SchemaRegistry,
    Table,
    TableDefinition,
    load_schema,
    load_schema_file,
)
from typedsql.query import (
    and_,
    delete,
    insert_into,
    multiset,
    not_,
    or_,
    select,
    select_from,
    update,
)
from typedsql.records import TableRecord
from typedsql.rows import Row

__all__ = [
    "Cardinality",
    "CardinalityError",
    "Column",
    "ColumnType",
    "ConfigError",
    "Database",
    "DatabaseError",
    "Err",
    "IntegrityError",
    "MappingError",
    "MissingColumnError",
    "NoResultError",
    "Ok",
    "QueryBuildError",
    "QueryCancelledError",
    "QueryError",
    "RecordMapping",
    "Relationship",
    "Result",
    "Row",
    "SchemaError",
    "SchemaRegistry",
    "ScopeError",
    "Table",
    "TableDefinition",
    "TableRecord",
    "TooManyResultsError",
    "TypeMismatchError",
    "TypedSQLError",
    "TypedSQLSettings",
    "UnknownColumnError",
    "UnknownRelationshipError",
    "and_",
    "delete",
    "insert_into",
    "load_schema",
    "load_schema_file",
    "mapping",
    "multiset",
    "not_",
    "or_",
    "select",
    "select_from",
    "update",
]
