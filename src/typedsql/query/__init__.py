"""Query construction: expressions, statements and the SQL compiler."""

from typedsql.query.compiler import CompiledStatement, ProjectionColumn, StatementCompiler
from typedsql.query.expressions import (
    AliasedTable,
    BooleanOp,
    ColumnRef,
    Comparison,
    ComparisonOp,
    Literal,
    Multiset,
    SortField,
    TablePath,
    TableRef,
    and_,
    multiset,
    not_,
    or_,
)
from typedsql.query.statements import (
    Delete,
    Insert,
    Join,
    JoinKind,
    Select,
    Update,
    delete,
    insert_into,
    select,
    select_from,
    update,
)

__all__ = [
    "AliasedTable",
    "BooleanOp",
    "ColumnRef",
    "Comparison",
    "ComparisonOp",
    "CompiledStatement",
    "Delete",
    "Insert",
    "Join",
    "JoinKind",
    "Literal",
    "Multiset",
    "ProjectionColumn",
    "Select",
    "SortField",
    "StatementCompiler",
    "TablePath",
    "TableRef",
    "Update",
    "and_",
    "delete",
    "insert_into",
    "multiset",
    "not_",
    "or_",
    "select",
    "select_from",
    "update",
]
