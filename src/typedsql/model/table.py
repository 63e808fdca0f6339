"""Tables, columns and relationships."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from typedsql.core.errors import SchemaError, UnknownRelationshipError
from typedsql.query.expressions import TableRef
from typedsql.types import ColumnType

if TYPE_CHECKING:
    from typedsql.model.registry import SchemaRegistry


class Cardinality(str, Enum):
    ONE = "ONE"
    MANY = "MANY"


@dataclass(frozen=True, eq=False)
class Column:
    """
    A typed column.

    ``table`` is filled in when the owning :class:`Table` is built; columns
    compare by identity so two tables never share a column object.
    """

    name: str
    type: ColumnType
    nullable: bool = True
    primary_key: bool = False
    server_default: str | None = None
    autoincrement: bool = False
    table: Table | None = field(default=None, repr=False)

    @property
    def has_default(self) -> bool:
        """Whether the database supplies a value when an insert omits it."""
        return self.autoincrement or self.server_default is not None

    @property
    def required(self) -> bool:
        """Whether an insert must supply a value."""
        return not self.nullable and not self.has_default

    def accepts(self, value: Any) -> bool:
        if value is None:
            return self.nullable
        return self.type.accepts(value)


@dataclass(frozen=True)
class Relationship:
    """
    A declared foreign-key navigation from one table to another.

    ``column`` is the local column, ``target_column`` the column it matches
    on ``target`` (the target's single primary-key column when omitted).
    ``MANY`` relationships point from the referenced side to the
    referencing rows.
    """

    name: str
    column: str
    target: str
    target_column: str | None = None
    cardinality: Cardinality = Cardinality.ONE

    @property
    def to_many(self) -> bool:
        return self.cardinality is Cardinality.MANY


class Table(TableRef):
    """
    An immutable table definition owned by a :class:`SchemaRegistry`.

    Tables are usable directly as statement sources; ``table.c.<name>``
    gives bound column references and ``table.rel(<name>)`` navigates a
    declared relationship.
    """

    __slots__ = (
        "name",
        "columns",
        "columns_by_name",
        "relationships",
        "primary_key",
        "registry",
    )

    def __init__(
        self,
        name: str,
        columns: tuple[Column, ...],
        relationships: Mapping[str, Relationship],
        primary_key: tuple[str, ...],
        registry: SchemaRegistry,
    ):
        bound = tuple(replace(column, table=self) for column in columns)
        self.name = name
        self.columns = bound
        self.columns_by_name: Mapping[str, Column] = MappingProxyType(
            {column.name: column for column in bound}
        )
        self.relationships: Mapping[str, Relationship] = MappingProxyType(dict(relationships))
        self.primary_key = primary_key
        self.registry = registry

    @property
    def alias(self) -> str:  # type: ignore[override]
        return self.name

    @property
    def table(self) -> Table:  # type: ignore[override]
        return self

    def column(self, name: str) -> Column:
        try:
            return self.columns_by_name[name]
        except KeyError:
            raise SchemaError(
                f"Table '{self.name}' has no column '{name}'", table=self.name
            ) from None

    def relationship(self, name: str) -> Relationship:
        try:
            return self.relationships[name]
        except KeyError:
            raise UnknownRelationshipError(self.name, name) from None

    def target_of(self, relationship: Relationship) -> Table:
        return self.registry.table(relationship.target)

    @property
    def primary_key_columns(self) -> tuple[Column, ...]:
        return tuple(self.columns_by_name[name] for name in self.primary_key)

    def __repr__(self) -> str:
        return f"Table({self.name!r})"


__all__ = ["Cardinality", "Column", "ColumnType", "Relationship", "Table"]
