"""
Statement builders: SELECT, INSERT, UPDATE and DELETE.

Every statement is a frozen dataclass and every builder method returns a
new statement, so partially built statements can be shared and extended
freely.  ``build()`` validates the statement (scope, required columns) and
returns the finalized form the compiler renders.

Implicit joins:
    Columns reached through ``ref.rel("name")`` carry a :class:`TablePath`.
    Whenever a clause is added, the paths its columns use are registered in
    the statement's ordered ``paths`` tuple, ancestors first and each path
    once.  The compiler renders them right after the source they are
    rooted in: INNER for a to-one relationship over a non-nullable key,
    LEFT OUTER otherwise.

Scope:
    A column may reference the FROM source, an explicit join, a path
    rooted in either, or (inside a multiset) a reference visible in the
    immediately enclosing select.  Anything else fails ``build()`` with
    ``ScopeError``.

Examples:
    >>> from typedsql.sakila import FILM
    >>> stmt = select(FILM.c.title).from_(FILM).where(FILM.c.film_id.eq(1))
    >>> stmt.build().predicate.op.value
    '='

Tags:
    query-builder, select, insert, update, delete, implicit-join, multiset

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from typedsql.core.errors import (
    MissingColumnError,
    QueryBuildError,
    ScopeError,
    TypeMismatchError,
)

from .expressions import (
    AliasedTable,
    BooleanOp,
    ColumnRef,
    Comparison,
    Field,
    Literal,
    Multiset,
    Predicate,
    SortField,
    TablePath,
    TableRef,
    and_,
    column_refs,
    multiset,
)

if TYPE_CHECKING:
    from typedsql.execution.context import Database
    from typedsql.mapping import RecordMapping
    from typedsql.model.table import Table
    from typedsql.records import TableRecord
    from typedsql.rows import Row

T = TypeVar("T")


class JoinKind(str, Enum):
    INNER = "JOIN"
    LEFT = "LEFT JOIN"


@dataclass(frozen=True)
class Join:
    """An explicit join."""

    target: TableRef
    kind: JoinKind
    condition: Predicate


def _check_predicate(predicate: Any) -> Predicate:
    if not isinstance(predicate, (Comparison, BooleanOp)):
        raise TypeMismatchError(
            f"Expected a boolean expression, got {type(predicate).__name__}",
            value=predicate,
            expected="predicate",
        )
    return predicate


def _conjunction(clause: str, current: Predicate | None, predicates: tuple[Any, ...]) -> Predicate:
    """AND new predicates onto ``current``; a clause call with none is a mistake."""
    if not predicates:
        raise QueryBuildError(f"{clause}() needs at least one predicate")
    checked = [_check_predicate(p) for p in predicates]
    if current is not None:
        checked.insert(0, current)
    return and_(*checked)


def _check_field(value: Any) -> Field:
    if not isinstance(value, (ColumnRef, Multiset)):
        raise TypeMismatchError(
            f"Cannot project {type(value).__name__}; expected a column or multiset",
            value=value,
            expected="field",
        )
    return value


def _check_scope(refs: Iterable[ColumnRef], visible: Mapping[str, TableRef], where: str) -> None:
    for ref in refs:
        if visible.get(ref.source.alias) != ref.source:
            raise ScopeError(
                f"Column {ref.qualified_name} in {where} references a table that is "
                f"not part of the statement"
            )


class _Attached:
    """Execution entry points for statements bound to a :class:`Database`."""

    context: Database | None

    def attach(self: T, context: Database) -> T:
        return replace(self, context=context)  # type: ignore[type-var]

    def _database(self) -> Database:
        if self.context is None:
            raise QueryBuildError(
                "Statement is not attached to a Database; "
                "build it from one or pass it to Database.fetch()/execute()"
            )
        return self.context


# =============================================================================
# SELECT
# =============================================================================


@dataclass(frozen=True)
class Select(_Attached):
    """A SELECT statement."""

    fields: tuple[Field, ...] = ()
    source: TableRef | None = None
    joins: tuple[Join, ...] = ()
    paths: tuple[TablePath, ...] = ()
    predicate: Predicate | None = None
    groups: tuple[ColumnRef, ...] = ()
    orders: tuple[SortField, ...] = ()
    row_limit: int | None = None
    row_offset: int | None = None
    is_distinct: bool = False
    context: Database | None = field(default=None, compare=False, repr=False)

    # -- Builder -------------------------------------------------------------

    def from_(self, source: TableRef) -> Select:
        if isinstance(source, TablePath):
            raise QueryBuildError(
                f"Implicit join {source.alias} cannot be a FROM source; "
                f"select its columns instead"
            )
        fields = self.fields or source.fields()
        return replace(self, source=source, fields=fields, paths=self._register(*fields))

    def join(self, target: TableRef) -> JoinStep:
        return JoinStep(self, target, JoinKind.INNER)

    def left_join(self, target: TableRef) -> JoinStep:
        return JoinStep(self, target, JoinKind.LEFT)

    def where(self, *predicates: Predicate) -> Select:
        """Add predicates; repeated calls combine with AND."""
        combined = _conjunction("where", self.predicate, predicates)
        return replace(self, predicate=combined, paths=self._register(combined))

    def group_by(self, *columns: ColumnRef) -> Select:
        for column in columns:
            if not isinstance(column, ColumnRef):
                raise TypeMismatchError(
                    f"Cannot group by {type(column).__name__}", value=column, expected="column"
                )
        return replace(self, groups=self.groups + columns, paths=self._register(*columns))

    def order_by(self, *items: ColumnRef | SortField) -> Select:
        orders = []
        for item in items:
            if isinstance(item, ColumnRef):
                item = item.asc()
            if not isinstance(item, SortField):
                raise TypeMismatchError(
                    f"Cannot order by {type(item).__name__}", value=item, expected="sort field"
                )
            orders.append(item)
        return replace(self, orders=self.orders + tuple(orders), paths=self._register(*orders))

    def limit(self, count: int) -> Select:
        return replace(self, row_limit=_non_negative(count, "limit"))

    def offset(self, count: int) -> Select:
        return replace(self, row_offset=_non_negative(count, "offset"))

    def distinct(self) -> Select:
        return replace(self, is_distinct=True)

    def _register(self, *expressions: Any) -> tuple[TablePath, ...]:
        paths = list(self.paths)
        for expression in expressions:
            if isinstance(expression, Multiset):
                continue
            for ref in column_refs(expression):
                if isinstance(ref.source, TablePath):
                    for path in ref.source.ancestry:
                        if path not in paths:
                            paths.append(path)
        return tuple(paths)

    def _with_join(self, join: Join) -> Select:
        return replace(self, joins=self.joins + (join,), paths=self._register(join.condition))

    # -- Validation ----------------------------------------------------------

    def build(self, outer: Mapping[str, TableRef] | None = None) -> Select:
        """
        Validate scope and return the finalized statement.

        ``outer`` is the visible scope of the enclosing select when this
        select is the body of a multiset.
        """
        if self.source is None:
            raise ScopeError("Select has no FROM source")
        outer = outer or {}

        roots: dict[str, TableRef] = {self.source.alias: self.source}
        for join in self.joins:
            if isinstance(join.target, TablePath):
                raise QueryBuildError(f"Cannot join implicit path {join.target.alias} explicitly")
            if join.target.alias in roots:
                raise ScopeError(f"Alias '{join.target.alias}' is declared twice")
            roots[join.target.alias] = join.target

        own_paths: list[TablePath] = []
        for path in self.paths:
            if roots.get(path.root.alias) == path.root:
                own_paths.append(path)
            elif outer.get(path.alias) != path:
                raise ScopeError(
                    f"Implicit join {path.alias} is not rooted in a table of the statement"
                )

        def rooted_at(source: TableRef) -> dict[str, TableRef]:
            return {p.alias: p for p in own_paths if p.root == source}

        visible: dict[str, TableRef] = {self.source.alias: self.source, **rooted_at(self.source)}
        for join in self.joins:
            visible[join.target.alias] = join.target
            _check_scope(
                column_refs(join.condition),
                {**outer, **visible},
                f"join condition of {join.target.alias}",
            )
            visible.update(rooted_at(join.target))

        scope = {**outer, **visible}
        fields: list[Field] = []
        for item in self.fields:
            if isinstance(item, Multiset):
                if not isinstance(item.select, Select):
                    raise TypeMismatchError("multiset() expects a select", value=item.select)
                # nested selects see this level only
                fields.append(replace(item, select=item.select.build(outer=visible)))
            else:
                _check_scope((item,), scope, "the projection")
                fields.append(item)
        _check_scope(column_refs(self.predicate), scope, "the where clause")
        _check_scope(self.groups, scope, "group by")
        _check_scope((o.expression for o in self.orders), scope, "order by")

        return replace(self, fields=tuple(fields), paths=tuple(own_paths))

    # -- Execution -----------------------------------------------------------

    def fetch(self, timeout: float | None = None) -> list[Row]:
        return self._database().fetch(self, timeout=timeout)

    def fetch_one(self, timeout: float | None = None) -> Row:
        """Exactly one row, else ``NoResultError`` / ``TooManyResultsError``."""
        return self._database().fetch_one(self, timeout=timeout)

    def fetch_optional(self, timeout: float | None = None) -> Row | None:
        return self._database().fetch_optional(self, timeout=timeout)

    def fetch_into(self, target: type[T], timeout: float | None = None) -> list[T]:
        return self._database().fetch_into(self, target, timeout=timeout)

    def fetch_mapped(self, mapping: RecordMapping[T], timeout: float | None = None) -> list[T]:
        return self._database().fetch_mapped(self, mapping, timeout=timeout)

    def fetch_records(self, timeout: float | None = None) -> list[TableRecord]:
        return self._database().fetch_records(self, timeout=timeout)


@dataclass(frozen=True)
class JoinStep:
    """A join waiting for its condition."""

    select: Select
    target: TableRef
    kind: JoinKind

    def on(self, *predicates: Predicate) -> Select:
        condition = _conjunction("on", None, predicates)
        return self.select._with_join(Join(self.target, self.kind, condition))

    def on_key(self, path: TablePath) -> Select:
        """Join on a declared relationship, e.g. ``.on_key(FILM_ACTOR.rel("actor"))``."""
        if not isinstance(path, TablePath):
            raise TypeMismatchError(
                "on_key() expects a relationship path such as table.rel('name')",
                value=path,
            )
        if path.table is not self.target.table:
            raise QueryBuildError(
                f"Relationship {path.alias} leads to '{path.table.name}', "
                f"not to '{self.target.table.name}'"
            )
        rel = path.relationship
        condition = path.parent.field(rel.column).eq(self.target.field(rel.target_column))
        return self.select._with_join(Join(self.target, self.kind, condition))


def _non_negative(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QueryBuildError(f"{what} must be a non-negative integer, got {value!r}")
    return value


# =============================================================================
# MUTATIONS
# =============================================================================


def _own_table(target: Any) -> Table:
    if not isinstance(target, TableRef) or isinstance(target, (AliasedTable, TablePath)):
        raise QueryBuildError(f"Expected a registered table, got {target!r}")
    return target  # type: ignore[return-value]


def _own_column(table: Table, column: ColumnRef | str) -> ColumnRef:
    if isinstance(column, str):
        return table.field(column)
    if not isinstance(column, ColumnRef):
        raise TypeMismatchError(f"Expected a column of '{table.name}'", value=column)
    if column.source != table:
        raise ScopeError(f"Column {column.qualified_name} does not belong to '{table.name}'")
    return column


def _bind(column: ColumnRef, value: Any) -> Literal:
    if value is None:
        if not column.column.nullable:
            raise TypeMismatchError(
                f"{column.qualified_name} is not nullable",
                column=column.qualified_name,
                expected=column.type.value,
            )
        return Literal(None, column.type)
    return column.literal(value)


class _Mutation(_Attached):
    table: Table
    returning_fields: tuple[ColumnRef, ...]

    def returning(self: T, *columns: ColumnRef | str) -> T:
        """Return the affected rows; no arguments returns every column."""
        table = self.table  # type: ignore[attr-defined]
        fields = tuple(_own_column(table, c) for c in columns) or table.fields()
        return replace(self, returning_fields=fields)  # type: ignore[type-var]

    def execute(self, timeout: float | None = None) -> int:
        """Run the statement and return the affected-row count."""
        return self._database().execute(self, timeout=timeout)

    def fetch(self, timeout: float | None = None) -> list[Row]:
        return self._database().fetch(self, timeout=timeout)

    def fetch_one(self, timeout: float | None = None) -> Row:
        return self._database().fetch_one(self, timeout=timeout)

    def fetch_into(self, target: type[T], timeout: float | None = None) -> list[T]:
        return self._database().fetch_into(self, target, timeout=timeout)

    def _check_returning(self) -> None:
        for ref in self.returning_fields:
            _own_column(self.table, ref)


@dataclass(frozen=True)
class Insert(_Mutation):
    """An INSERT, either ``columns(...).values(...)`` rows or ``set()`` pairs."""

    table: Table
    target_columns: tuple[ColumnRef, ...] = ()
    rows: tuple[tuple[Literal, ...], ...] = ()
    assignments: tuple[tuple[ColumnRef, Literal], ...] = ()
    returning_fields: tuple[ColumnRef, ...] = ()
    context: Database | None = field(default=None, compare=False, repr=False)

    def columns(self, *columns: ColumnRef | str) -> Insert:
        if self.rows:
            raise QueryBuildError("columns() must come before values()")
        return replace(self, target_columns=tuple(_own_column(self.table, c) for c in columns))

    def values(self, *values: Any) -> Insert:
        """Add one row; call repeatedly for a multi-row insert."""
        if self.assignments:
            raise QueryBuildError("Cannot mix values() with set() in one insert")
        columns = self.target_columns or self.table.fields()
        if len(values) != len(columns):
            raise QueryBuildError(
                f"Insert into '{self.table.name}' expects {len(columns)} values, got {len(values)}"
            )
        row = tuple(_bind(column, value) for column, value in zip(columns, values))
        return replace(self, target_columns=columns, rows=self.rows + (row,))

    def set(self, column: ColumnRef | str, value: Any) -> Insert:
        if self.rows:
            raise QueryBuildError("Cannot mix set() with values() in one insert")
        ref = _own_column(self.table, column)
        kept = tuple(a for a in self.assignments if a[0].name != ref.name)
        return replace(self, assignments=kept + ((ref, _bind(ref, value)),))

    def build(self) -> Insert:
        columns, rows = self.target_columns, self.rows
        if self.assignments:
            columns = tuple(ref for ref, _ in self.assignments)
            rows = (tuple(value for _, value in self.assignments),)
        if not rows:
            raise QueryBuildError(f"Insert into '{self.table.name}' has no values")

        names = [ref.name for ref in columns]
        if len(set(names)) != len(names):
            raise QueryBuildError(f"Insert into '{self.table.name}' repeats a column")
        missing = [c.name for c in self.table.columns if c.required and c.name not in names]
        if missing:
            raise MissingColumnError(self.table.name, missing)
        self._check_returning()
        return replace(self, target_columns=columns, rows=rows, assignments=())


@dataclass(frozen=True)
class Update(_Mutation):
    table: Table
    assignments: tuple[tuple[ColumnRef, ColumnRef | Literal], ...] = ()
    predicate: Predicate | None = None
    returning_fields: tuple[ColumnRef, ...] = ()
    context: Database | None = field(default=None, compare=False, repr=False)

    def set(self, column: ColumnRef | str, value: Any) -> Update:
        """Assign a literal (``None`` for NULL) or another column of the table."""
        ref = _own_column(self.table, column)
        if isinstance(value, ColumnRef):
            bound: ColumnRef | Literal = ref.operand(_own_column(self.table, value))
        else:
            bound = _bind(ref, value)
        kept = tuple(a for a in self.assignments if a[0].name != ref.name)
        return replace(self, assignments=kept + ((ref, bound),))

    def where(self, *predicates: Predicate) -> Update:
        return replace(self, predicate=_conjunction("where", self.predicate, predicates))

    def build(self) -> Update:
        if not self.assignments:
            raise QueryBuildError(f"Update of '{self.table.name}' sets no columns")
        _check_scope(column_refs(self.predicate), {self.table.name: self.table}, "the where clause")
        self._check_returning()
        return self


@dataclass(frozen=True)
class Delete(_Mutation):
    table: Table
    predicate: Predicate | None = None
    returning_fields: tuple[ColumnRef, ...] = ()
    context: Database | None = field(default=None, compare=False, repr=False)

    def where(self, *predicates: Predicate) -> Delete:
        return replace(self, predicate=_conjunction("where", self.predicate, predicates))

    def build(self) -> Delete:
        _check_scope(column_refs(self.predicate), {self.table.name: self.table}, "the where clause")
        self._check_returning()
        return self


Statement = Select | Insert | Update | Delete


# =============================================================================
# ENTRY POINTS
# =============================================================================


def select(*fields: Field) -> Select:
    """Start a select; with no fields, ``from_()`` selects every column."""
    return Select(fields=tuple(_check_field(f) for f in fields))


def select_from(source: TableRef) -> Select:
    return Select().from_(source)


def insert_into(table: Table, *columns: ColumnRef | str) -> Insert:
    insert = Insert(_own_table(table))
    return insert.columns(*columns) if columns else insert


def update(table: Table) -> Update:
    return Update(_own_table(table))


def delete(table: Table) -> Delete:
    return Delete(_own_table(table))


__all__ = [
    "Delete",
    "Insert",
    "Join",
    "JoinKind",
    "JoinStep",
    "Select",
    "Statement",
    "Update",
    "delete",
    "insert_into",
    "multiset",
    "select",
    "select_from",
    "update",
]
