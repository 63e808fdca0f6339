"""
Expression nodes and table references.

Everything a statement can hold in a projection, predicate, grouping or
ordering is one of a closed set of frozen dataclasses.  Compiler and scope
walkers ``match`` over them exhaustively; there is no open extension point.

Architecture:
    ::

        TableRef ─┬─ Table            (typedsql.model)
                  ├─ AliasedTable     film AS f
                  └─ TablePath        film_actor → actor  (implicit join)

        Expression ─┬─ ColumnRef      "film"."title"
                    ├─ Literal        bound parameter
                    ├─ Comparison     left <op> right
                    ├─ BooleanOp      AND / OR / NOT
                    └─ Multiset       nested rows (projection only)

Examples:
    >>> from typedsql.sakila import ACTOR
    >>> pred = ACTOR.c.first_name.eq("PENELOPE") & ACTOR.c.actor_id.lt(10)
    >>> type(pred).__name__
    'BooleanOp'

Guardrails:
    ❌ DON'T: compare a column with a Python value of another kind
    ✅ DO: let ``TypeMismatchError`` surface at build time

    ❌ DON'T: pass ``None`` to ``eq``
    ✅ DO: ``column.is_null()``

Tags:
    expression, predicate, column, implicit-join, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from typedsql.core.errors import QueryBuildError, TypeMismatchError, UnknownColumnError
from typedsql.types import ColumnType

if TYPE_CHECKING:
    from typedsql.model.table import Column, Relationship, Table


# =============================================================================
# TABLE REFERENCES
# =============================================================================


class TableRef:
    """Anything columns can be qualified by.

    Subclasses provide ``alias`` (the name used in SQL) and ``table`` (the
    schema table behind the reference).
    """

    __slots__ = ()

    alias: str
    table: Table

    @property
    def c(self) -> ColumnNamespace:
        """Bound column references: ``ref.c.title`` or ``ref.c["title"]``."""
        return ColumnNamespace(self)

    def field(self, name: str) -> ColumnRef:
        column = self.table.columns_by_name.get(name)
        if column is None:
            raise UnknownColumnError(self.table.name, name)
        return ColumnRef(self, column)

    def fields(self) -> tuple[ColumnRef, ...]:
        """A reference to every column, in declaration order."""
        return tuple(ColumnRef(self, column) for column in self.table.columns)

    def rel(self, name: str) -> TablePath:
        """Navigate a declared relationship, producing an implicit join."""
        relationship = self.table.relationship(name)
        return TablePath(self, relationship, self.table.target_of(relationship))

    def as_(self, alias: str) -> AliasedTable:
        return AliasedTable(self.table, alias)

    @property
    def root(self) -> TableRef:
        """The explicit source a navigation path starts from."""
        return self


@dataclass(frozen=True, eq=False)
class AliasedTable(TableRef):
    """A table under another name, for self-joins and correlation."""

    table: Table
    name: str

    @property
    def alias(self) -> str:
        return self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AliasedTable):
            return NotImplemented
        return self.table is other.table and self.name == other.name

    def __hash__(self) -> int:
        return hash((id(self.table), self.name))

    def __repr__(self) -> str:
        return f"AliasedTable({self.table.name!r} AS {self.name!r})"


@dataclass(frozen=True, eq=False)
class TablePath(TableRef):
    """
    A relationship navigated from another reference.

    Two paths are equal when they start from the same reference and follow
    the same relationship, which is what lets a statement register each
    navigation once however many columns use it.
    """

    parent: TableRef
    relationship: Relationship
    target: Table

    @property
    def table(self) -> Table:  # type: ignore[override]
        return self.target

    @property
    def alias(self) -> str:
        return f"{self.parent.alias}__{self.relationship.name}"

    @property
    def root(self) -> TableRef:
        return self.parent.root

    @property
    def ancestry(self) -> tuple[TablePath, ...]:
        """Every path from the root down to (and including) this one."""
        if isinstance(self.parent, TablePath):
            return (*self.parent.ancestry, self)
        return (self,)

    @property
    def outer(self) -> bool:
        """Whether the implicit join must be a LEFT OUTER join.

        Once a hop is outer every hop below it is too, so extending a path
        never removes rows the shorter path kept.
        """
        if isinstance(self.parent, TablePath) and self.parent.outer:
            return True
        if self.relationship.to_many:
            return True
        return self.parent.table.columns_by_name[self.relationship.column].nullable

    @property
    def join_condition(self) -> Comparison:
        local = self.parent.field(self.relationship.column)
        remote = self.field(self.relationship.target_column)
        return local.eq(remote)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TablePath):
            return NotImplemented
        return self.parent == other.parent and self.relationship == other.relationship

    def __hash__(self) -> int:
        return hash((self.parent, self.relationship))

    def __repr__(self) -> str:
        return f"TablePath({self.alias!r})"


class ColumnNamespace:
    """Attribute and item access to a reference's columns."""

    __slots__ = ("_ref",)

    def __init__(self, ref: TableRef):
        self._ref = ref

    def __getattr__(self, name: str) -> ColumnRef:
        if name.startswith("__"):
            raise AttributeError(name)
        return self._ref.field(name)

    def __getitem__(self, name: str) -> ColumnRef:
        return self._ref.field(name)

    def __contains__(self, name: object) -> bool:
        return name in self._ref.table.columns_by_name

    def __iter__(self) -> Iterator[ColumnRef]:
        return iter(self._ref.fields())

    def __len__(self) -> int:
        return len(self._ref.table.columns)

    def __dir__(self) -> list[str]:
        return [column.name for column in self._ref.table.columns]


# =============================================================================
# EXPRESSIONS
# =============================================================================


class ComparisonOp(str, Enum):
    EQ = "="
    NE = "<>"
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    LIKE = "LIKE"
    IN = "IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"


class BoolOperator(str, Enum):
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class _Predicate:
    """Operator sugar shared by boolean expressions."""

    __slots__ = ()

    def __and__(self, other: Any) -> BooleanOp:
        return and_(self, other)

    def __or__(self, other: Any) -> BooleanOp:
        return or_(self, other)

    def __invert__(self) -> BooleanOp:
        return not_(self)


@dataclass(frozen=True)
class Literal:
    """A bound parameter value; never rendered inline."""

    value: Any
    type: ColumnType


@dataclass(frozen=True)
class ColumnRef:
    """A column bound to the reference that qualifies it."""

    source: TableRef
    column: Column
    alias: str | None = None

    @property
    def name(self) -> str:
        return self.column.name

    @property
    def type(self) -> ColumnType:
        return self.column.type

    @property
    def label(self) -> str:
        """Result label: the alias if one was given, else the column name."""
        return self.alias or self.column.name

    @property
    def qualified_name(self) -> str:
        return f"{self.source.alias}.{self.column.name}"

    def as_(self, label: str) -> ColumnRef:
        return replace(self, alias=label)

    # -- Comparisons ---------------------------------------------------------

    def eq(self, other: Any) -> Comparison:
        return Comparison(ComparisonOp.EQ, self, self.operand(other))

    def ne(self, other: Any) -> Comparison:
        return Comparison(ComparisonOp.NE, self, self.operand(other))

    def lt(self, other: Any) -> Comparison:
        return Comparison(ComparisonOp.LT, self, self.operand(other))

    def le(self, other: Any) -> Comparison:
        return Comparison(ComparisonOp.LE, self, self.operand(other))

    def gt(self, other: Any) -> Comparison:
        return Comparison(ComparisonOp.GT, self, self.operand(other))

    def ge(self, other: Any) -> Comparison:
        return Comparison(ComparisonOp.GE, self, self.operand(other))

    def like(self, pattern: str) -> Comparison:
        if self.type is not ColumnType.STRING:
            raise TypeMismatchError(
                f"LIKE requires a STRING column, {self.qualified_name} is {self.type.value}",
                column=self.qualified_name,
                expected=ColumnType.STRING.value,
            )
        return Comparison(ComparisonOp.LIKE, self, self.operand(pattern))

    def in_(self, *values: Any) -> Comparison:
        """Membership test; accepts values or a single iterable of values."""
        if len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
            values = tuple(values[0])
        operands = tuple(self.literal(value) for value in values)
        return Comparison(ComparisonOp.IN, self, operands)

    def is_null(self) -> Comparison:
        return Comparison(ComparisonOp.IS_NULL, self, None)

    def is_not_null(self) -> Comparison:
        return Comparison(ComparisonOp.IS_NOT_NULL, self, None)

    # -- Ordering ------------------------------------------------------------

    def asc(self) -> SortField:
        return SortField(self, descending=False)

    def desc(self) -> SortField:
        return SortField(self, descending=True)

    # -- Operand checks ------------------------------------------------------

    def operand(self, other: Any) -> ColumnRef | Literal:
        """Check ``other`` as the right-hand side of a comparison with this column."""
        if isinstance(other, ColumnRef):
            if not self.type.comparable_with(other.type):
                raise TypeMismatchError(
                    f"Cannot compare {self.qualified_name} ({self.type.value}) "
                    f"with {other.qualified_name} ({other.type.value})",
                    column=self.qualified_name,
                    expected=self.type.value,
                )
            return other
        return self.literal(other)

    def literal(self, value: Any) -> Literal:
        """Bind ``value`` as a parameter of this column's type."""
        if isinstance(value, (Comparison, BooleanOp, Multiset, Literal, SortField)):
            raise TypeMismatchError(
                f"{type(value).__name__} is not a valid operand for {self.qualified_name}",
                column=self.qualified_name,
            )
        if value is None:
            raise TypeMismatchError(
                f"Use is_null()/is_not_null() to test {self.qualified_name} against NULL",
                column=self.qualified_name,
            )
        if not self.type.accepts(value):
            raise TypeMismatchError(
                f"{type(value).__name__} value is not valid for "
                f"{self.qualified_name} ({self.type.value})",
                column=self.qualified_name,
                value=value,
                expected=self.type.value,
            )
        return Literal(value, self.type)


@dataclass(frozen=True)
class Comparison(_Predicate):
    """``left <op> right``; ``right`` is a tuple for IN and None for NULL tests."""

    op: ComparisonOp
    left: ColumnRef
    right: ColumnRef | Literal | tuple[Literal, ...] | None


@dataclass(frozen=True)
class BooleanOp(_Predicate):
    """AND / OR over two or more predicates, or NOT over exactly one."""

    op: BoolOperator
    operands: tuple[Predicate, ...]


@dataclass(frozen=True)
class SortField:
    expression: ColumnRef
    descending: bool = False


@dataclass(frozen=True)
class Multiset:
    """
    A nested projection: the rows of a correlated select, as one value.

    Only valid in a select's projection.  ``select`` is a
    :class:`typedsql.query.statements.Select`.
    """

    select: Any
    alias: str = "multiset"

    @property
    def label(self) -> str:
        return self.alias

    def as_(self, label: str) -> Multiset:
        return replace(self, alias=label)


Predicate = Union[Comparison, BooleanOp]
Expression = Union[ColumnRef, Literal, Comparison, BooleanOp, Multiset]
Field = Union[ColumnRef, Multiset]


# =============================================================================
# COMBINATORS
# =============================================================================


def _check_predicate(value: Any, combinator: str) -> Predicate:
    if not isinstance(value, (Comparison, BooleanOp)):
        raise TypeMismatchError(
            f"{combinator} accepts boolean expressions only, got {type(value).__name__}",
            value=value,
            expected="predicate",
        )
    return value


def _combine(op: BoolOperator, predicates: Iterable[Any]) -> Predicate:
    operands: list[Predicate] = []
    for predicate in predicates:
        checked = _check_predicate(predicate, f"{op.value.lower()}_()")
        if isinstance(checked, BooleanOp) and checked.op is op:
            operands.extend(checked.operands)
        else:
            operands.append(checked)
    if not operands:
        raise QueryBuildError(f"{op.value.lower()}_() needs at least one predicate")
    if len(operands) == 1:
        return operands[0]
    return BooleanOp(op, tuple(operands))


def and_(*predicates: Any) -> Predicate:
    """Conjunction; nested AND trees are flattened."""
    return _combine(BoolOperator.AND, predicates)


def or_(*predicates: Any) -> Predicate:
    """Disjunction; nested OR trees are flattened."""
    return _combine(BoolOperator.OR, predicates)


def not_(predicate: Any) -> BooleanOp:
    return BooleanOp(BoolOperator.NOT, (_check_predicate(predicate, "not_()"),))


def multiset(select: Any) -> Multiset:
    """Wrap a select so its rows become one nested projection value."""
    return Multiset(select)


# =============================================================================
# WALKERS
# =============================================================================


def column_refs(expression: Expression | SortField | None) -> Iterator[ColumnRef]:
    """Every column an expression references at its own level.

    A multiset's inner select is its own scope and is not descended into.
    """
    match expression:
        case None | Literal() | Multiset():
            return
        case ColumnRef():
            yield expression
        case SortField(expression=inner):
            yield inner
        case Comparison(left=left, right=right):
            yield left
            if isinstance(right, ColumnRef):
                yield right
        case BooleanOp(operands=operands):
            for operand in operands:
                yield from column_refs(operand)
        case _:
            raise QueryBuildError(f"Not an expression: {expression!r}")


__all__ = [
    "AliasedTable",
    "BoolOperator",
    "BooleanOp",
    "ColumnNamespace",
    "ColumnRef",
    "Comparison",
    "ComparisonOp",
    "Expression",
    "Field",
    "Literal",
    "Multiset",
    "Predicate",
    "SortField",
    "TablePath",
    "TableRef",
    "and_",
    "column_refs",
    "multiset",
    "not_",
    "or_",
]
