"""Schema model: typed tables, columns and declared relationships."""

from typedsql.model.registry import (
    SchemaRegistry,
    TableDefinition,
    create_all,
    ddl,
    default_registry,
    load_schema,
    load_schema_file,
    register_table,
    resolve_relationship,
)
from typedsql.model.table import Cardinality, Column, Relationship, Table
from typedsql.types import ColumnType

__all__ = [
    "Cardinality",
    "Column",
    "ColumnType",
    "Relationship",
    "SchemaRegistry",
    "Table",
    "TableDefinition",
    "create_all",
    "ddl",
    "default_registry",
    "load_schema",
    "load_schema_file",
    "register_table",
    "resolve_relationship",
]
