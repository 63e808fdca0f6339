"""
Statement compiler: statements to parameterised SQL.

The compiler walks a built statement and renders it for a :class:`Dialect`.
Every literal becomes a placeholder and its value is appended to the
parameter list in the order the placeholders appear in the text.

Multisets:
    A multiset renders as a correlated scalar sub-select that aggregates
    the inner rows into one JSON array of arrays::

        (SELECT COALESCE(json_group_array(json_array("film"."title")), '[]')
           FROM "film_actor" JOIN "film" AS "film_actor__film" ON ...
          WHERE "film_actor"."actor_id" = "actor"."actor_id") AS "films"

    When the inner select orders, groups, limits or is DISTINCT, the rows
    are produced by a derived table first and aggregated from it, so the
    aggregate sees them in order.

Examples:
    >>> from typedsql.core.dialect import SQLiteDialect
    >>> from typedsql.sakila import ACTOR
    >>> from typedsql.query.statements import select
    >>> stmt = select(ACTOR.c.last_name).from_(ACTOR).where(ACTOR.c.actor_id.eq(1))
    >>> compiled = StatementCompiler(SQLiteDialect()).compile(stmt)
    >>> compiled.sql
    'SELECT "actor"."last_name" FROM "actor" WHERE "actor"."actor_id" = ?'
    >>> compiled.params
    (1,)

Tags:
    compiler, sql, parameters, multiset, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from typedsql.core.dialect import Dialect
from typedsql.core.errors import QueryBuildError
from typedsql.types import ColumnType

from .expressions import (
    BooleanOp,
    BoolOperator,
    ColumnRef,
    Comparison,
    ComparisonOp,
    Field,
    Literal,
    Multiset,
    Predicate,
    TableRef,
)
from .statements import Delete, Insert, JoinKind, Select, Statement, Update


@dataclass(frozen=True)
class ProjectionColumn:
    """
    One column of a result.

    ``nested`` is set for multiset columns and describes the inner rows.
    ``key`` is the field that produced the column, for lookup by reference.
    """

    label: str
    type: ColumnType | None
    nested: tuple[ProjectionColumn, ...] | None = None
    key: Any = None


@dataclass(frozen=True)
class CompiledStatement:
    """SQL text, parameters in placeholder order, and the result shape."""

    sql: str
    params: tuple[Any, ...]
    columns: tuple[ProjectionColumn, ...]
    kind: str

    @property
    def returns_rows(self) -> bool:
        return bool(self.columns)


class StatementCompiler:
    """Renders built statements for one dialect."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect

    def compile(self, statement: Statement) -> CompiledStatement:
        render = _Render(self.dialect)
        match statement:
            case Select():
                built = statement.build()
                sql = render.select(built)
                columns = projection(built)
                kind = "select"
            case Insert():
                built = statement.build()
                sql = render.insert(built)
                columns = _returning(built.returning_fields)
                kind = "insert"
            case Update():
                built = statement.build()
                sql = render.update(built)
                columns = _returning(built.returning_fields)
                kind = "update"
            case Delete():
                built = statement.build()
                sql = render.delete(built)
                columns = _returning(built.returning_fields)
                kind = "delete"
            case _:
                raise QueryBuildError(f"Cannot compile {type(statement).__name__}")
        return CompiledStatement(sql, tuple(render.params), columns, kind)


def projection(select: Select) -> tuple[ProjectionColumn, ...]:
    """Result shape of a built select."""
    columns = []
    for item in select.fields:
        match item:
            case ColumnRef():
                columns.append(ProjectionColumn(item.label, item.type, key=item))
            case Multiset():
                columns.append(
                    ProjectionColumn(item.label, None, nested=projection(item.select), key=item)
                )
    return tuple(columns)


def _returning(fields: tuple[ColumnRef, ...]) -> tuple[ProjectionColumn, ...]:
    return tuple(ProjectionColumn(ref.label, ref.type, key=ref) for ref in fields)


class _Render:
    """Single-use renderer collecting parameters as it goes."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect
        self.params: list[Any] = []

    def q(self, identifier: str) -> str:
        return self.dialect.quote(identifier)

    def bind(self, value: Any) -> str:
        placeholder = self.dialect.placeholder(len(self.params))
        self.params.append(self.dialect.adapt_param(value))
        return placeholder

    # -- Expressions ---------------------------------------------------------

    def column(self, ref: ColumnRef) -> str:
        return f"{self.q(ref.source.alias)}.{self.q(ref.name)}"

    def operand(self, operand: ColumnRef | Literal) -> str:
        match operand:
            case ColumnRef():
                return self.column(operand)
            case Literal(value=value):
                return self.bind(value)

    def predicate(self, expression: Predicate, nested: bool = False) -> str:
        match expression:
            case Comparison(op=ComparisonOp.IS_NULL | ComparisonOp.IS_NOT_NULL as op, left=left):
                return f"{self.column(left)} {op.value}"
            case Comparison(op=ComparisonOp.IN, left=left, right=right):
                if not right:
                    return "1 = 0"
                items = ", ".join(self.bind(literal.value) for literal in right)
                return f"{self.column(left)} IN ({items})"
            case Comparison(op=op, left=left, right=right):
                return f"{self.column(left)} {op.value} {self.operand(right)}"
            case BooleanOp(op=BoolOperator.NOT, operands=(operand,)):
                return f"NOT ({self.predicate(operand)})"
            case BooleanOp(op=op, operands=operands):
                sql = f" {op.value} ".join(self.predicate(o, nested=True) for o in operands)
                return f"({sql})" if nested else sql
            case _:
                raise QueryBuildError(f"Not a predicate: {expression!r}")

    def field(self, item: Field) -> str:
        match item:
            case ColumnRef(alias=None):
                return self.column(item)
            case ColumnRef():
                return f"{self.column(item)} AS {self.q(item.label)}"
            case Multiset():
                return f"{self.multiset(item.select)} AS {self.q(item.label)}"
            case _:
                raise QueryBuildError(f"Not a projectable field: {item!r}")

    def multiset_item(self, item: Field) -> str:
        """A field as an element of the JSON array built for one inner row."""
        match item:
            case Multiset():
                return self.dialect.json_nested(self.multiset(item.select))
            case _:
                return self.column(item)

    def multiset(self, select: Select) -> str:
        derived = (
            select.orders
            or select.groups
            or select.is_distinct
            or select.row_limit is not None
            or select.row_offset is not None
        )
        if not derived:
            items = [self.multiset_item(item) for item in select.fields]
            return f"(SELECT {self.dialect.json_array_agg(items)}{self.tail(select)})"

        labels = [f"c{i}" for i in range(len(select.fields))]
        items = []
        for label, item in zip(labels, select.fields):
            ref = f"{self.q('m')}.{self.q(label)}"
            items.append(self.dialect.json_nested(ref) if isinstance(item, Multiset) else ref)
        aggregate = self.dialect.json_array_agg(items)
        inner = self.select_body(select, labels)
        return f"(SELECT {aggregate} FROM ({inner}) AS {self.q('m')})"

    # -- Statements ----------------------------------------------------------

    def select(self, select: Select) -> str:
        return self.select_body(select)

    def select_body(self, select: Select, labels: list[str] | None = None) -> str:
        if labels is None:
            fields = [self.field(item) for item in select.fields]
        else:
            fields = [
                f"{self.field_value(item)} AS {self.q(label)}"
                for item, label in zip(select.fields, labels)
            ]
        distinct = "DISTINCT " if select.is_distinct else ""
        return f"SELECT {distinct}{', '.join(fields)}{self.tail(select)}"

    def field_value(self, item: Field) -> str:
        match item:
            case Multiset():
                return self.multiset(item.select)
            case _:
                return self.column(item)

    def tail(self, select: Select) -> str:
        """Everything from FROM onwards."""
        assert select.source is not None
        sql = f" FROM {self.source(select.source)}{self.paths_from(select, select.source)}"
        for join in select.joins:
            condition = self.predicate(join.condition)
            sql += f" {join.kind.value} {self.source(join.target)} ON {condition}"
            sql += self.paths_from(select, join.target, outer=join.kind is JoinKind.LEFT)
        if select.predicate is not None:
            sql += f" WHERE {self.predicate(select.predicate)}"
        if select.groups:
            sql += " GROUP BY " + ", ".join(self.column(c) for c in select.groups)
        if select.orders:
            sql += " ORDER BY " + ", ".join(
                self.column(o.expression) + (" DESC" if o.descending else " ASC")
                for o in select.orders
            )
        limit = self.bind(select.row_limit) if select.row_limit is not None else None
        offset = self.bind(select.row_offset) if select.row_offset is not None else None
        return sql + self.dialect.limit_clause(limit, offset)

    def source(self, ref: TableRef) -> str:
        if ref.alias == ref.table.name:
            return self.q(ref.table.name)
        return f"{self.q(ref.table.name)} AS {self.q(ref.alias)}"

    def paths_from(self, select: Select, root: TableRef, outer: bool = False) -> str:
        """Implicit joins rooted at ``root``; all LEFT when the root was outer-joined."""
        sql = ""
        for path in select.paths:
            if path.root != root:
                continue
            kind = JoinKind.LEFT if outer or path.outer else JoinKind.INNER
            sql += f" {kind.value} {self.source(path)} ON {self.predicate(path.join_condition)}"
        return sql

    def insert(self, insert: Insert) -> str:
        columns = ", ".join(self.q(ref.name) for ref in insert.target_columns)
        rows = ", ".join(
            "(" + ", ".join(self.bind(literal.value) for literal in row) + ")"
            for row in insert.rows
        )
        sql = f"INSERT INTO {self.q(insert.table.name)} ({columns}) VALUES {rows}"
        return sql + self.returning(insert.returning_fields)

    def update(self, update: Update) -> str:
        assignments = ", ".join(
            f"{self.q(ref.name)} = {self.operand(value)}" for ref, value in update.assignments
        )
        sql = f"UPDATE {self.q(update.table.name)} SET {assignments}"
        if update.predicate is not None:
            sql += f" WHERE {self.predicate(update.predicate)}"
        return sql + self.returning(update.returning_fields)

    def delete(self, delete: Delete) -> str:
        sql = f"DELETE FROM {self.q(delete.table.name)}"
        if delete.predicate is not None:
            sql += f" WHERE {self.predicate(delete.predicate)}"
        return sql + self.returning(delete.returning_fields)

    def returning(self, fields: tuple[ColumnRef, ...]) -> str:
        if not fields:
            return ""
        if not self.dialect.supports_returning:
            raise QueryBuildError(f"The {self.dialect.name} dialect does not support RETURNING")
        return " RETURNING " + ", ".join(self.q(ref.name) for ref in fields)


__all__ = [
    "CompiledStatement",
    "ProjectionColumn",
    "StatementCompiler",
    "projection",
]
