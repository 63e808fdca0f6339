"""
Schema registry: load-time table registration and relationship resolution.

Tables are registered once, validated as a unit, and then the registry is
frozen.  After that it is read-only and safe to share between callers.

Manifesto:
    - **Validate at load time:** a relationship to an undeclared table or
      column is a ``SchemaError`` when it is registered, never a failed
      join later
    - **Batch registration:** mutually-referencing tables (actor and
      film_actor) are declared together with ``register_tables``
    - **Declarations from data:** ``load_schema`` accepts the plain mapping
      a YAML or JSON file yields, and ``load_schema_file`` reads one

Examples:
    >>> registry = SchemaRegistry()
    >>> author = registry.register_table(
    ...     "author",
    ...     [Column("author_id", ColumnType.INTEGER, nullable=False, primary_key=True)],
    ... )
    >>> author.primary_key
    ('author_id',)

Tags:
    schema, registry, relationships, ddl, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from typedsql.core.dialect import Dialect
from typedsql.core.errors import SchemaError
from typedsql.query.expressions import Comparison
from typedsql.types import ColumnType

from .table import Cardinality, Column, Relationship, Table


@dataclass
class TableDefinition:
    """A table declaration waiting to be registered."""

    name: str
    columns: Sequence[Column]
    relationships: Sequence[Relationship] = field(default_factory=tuple)
    primary_key: Sequence[str] | None = None


@dataclass
class _Checked:
    name: str
    columns: tuple[Column, ...]
    by_name: dict[str, Column]
    primary_key: tuple[str, ...]
    relationships: Sequence[Relationship]


class SchemaRegistry:
    """Owner of every :class:`Table` in a schema."""

    def __init__(self) -> None:
        self._tables: dict[str, Table] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> SchemaRegistry:
        """Make the registry read-only."""
        self._frozen = True
        return self

    def register_table(
        self,
        name: str,
        columns: Sequence[Column],
        relationships: Sequence[Relationship] = (),
        primary_key: Sequence[str] | None = None,
    ) -> Table:
        """Register one table. Relationship targets must already be registered."""
        return self.register_tables(
            [TableDefinition(name, columns, relationships, primary_key)]
        )[0]

    def register_tables(self, definitions: Iterable[TableDefinition]) -> list[Table]:
        """Register a batch of tables, validated together.

        Nothing is registered when any definition in the batch is invalid.
        """
        if self._frozen:
            raise SchemaError("Schema registry is frozen; register tables at load time")

        checked: dict[str, _Checked] = {}
        for definition in definitions:
            if definition.name in self._tables or definition.name in checked:
                raise SchemaError(
                    f"Table '{definition.name}' is already registered", table=definition.name
                )
            checked[definition.name] = self._check_columns(definition)

        resolved = {
            name: self._resolve_relationships(entry, checked) for name, entry in checked.items()
        }

        tables = []
        for name, entry in checked.items():
            table = Table(name, entry.columns, resolved[name], entry.primary_key, self)
            self._tables[name] = table
            tables.append(table)
        return tables

    def _check_columns(self, definition: TableDefinition) -> _Checked:
        name = definition.name
        if not definition.columns:
            raise SchemaError(f"Table '{name}' declares no columns", table=name)

        by_name: dict[str, Column] = {}
        for column in definition.columns:
            if column.name in by_name:
                raise SchemaError(
                    f"Column '{column.name}' is declared twice in table '{name}'", table=name
                )
            by_name[column.name] = column

        if definition.primary_key is None:
            primary_key = tuple(c.name for c in definition.columns if c.primary_key)
        else:
            primary_key = tuple(definition.primary_key)
            for key in primary_key:
                if key not in by_name:
                    raise SchemaError(
                        f"Primary key column '{key}' is not declared in table '{name}'",
                        table=name,
                    )

        columns = tuple(
            replace(c, primary_key=True) if c.name in primary_key and not c.primary_key else c
            for c in definition.columns
        )
        by_name = {c.name: c for c in columns}

        for column in columns:
            if column.autoincrement and (
                column.type is not ColumnType.INTEGER or primary_key != (column.name,)
            ):
                raise SchemaError(
                    f"Only a single INTEGER primary key can auto-increment ({name}.{column.name})",
                    table=name,
                )

        return _Checked(name, columns, by_name, primary_key, definition.relationships)

    def _resolve_relationships(
        self, entry: _Checked, batch: Mapping[str, _Checked]
    ) -> dict[str, Relationship]:
        resolved: dict[str, Relationship] = {}
        for rel in entry.relationships:
            where = f"{entry.name}.{rel.name}"
            if rel.name in resolved:
                raise SchemaError(f"Relationship '{where}' is declared twice", table=entry.name)

            local = entry.by_name.get(rel.column)
            if local is None:
                raise SchemaError(
                    f"Relationship '{where}' uses undeclared column '{rel.column}'",
                    table=entry.name,
                )

            target_columns, target_pk = self._target_shape(rel.target, batch)
            if target_columns is None:
                raise SchemaError(
                    f"Relationship '{where}' targets undeclared table '{rel.target}'",
                    table=entry.name,
                )

            target_column = rel.target_column
            if target_column is None:
                if len(target_pk) != 1:
                    raise SchemaError(
                        f"Relationship '{where}' must name a target column: "
                        f"'{rel.target}' has no single-column primary key",
                        table=entry.name,
                    )
                target_column = target_pk[0]

            remote = target_columns.get(target_column)
            if remote is None:
                raise SchemaError(
                    f"Relationship '{where}' targets undeclared column "
                    f"'{rel.target}.{target_column}'",
                    table=entry.name,
                )
            if not local.type.comparable_with(remote.type):
                raise SchemaError(
                    f"Relationship '{where}' joins {local.type.value} to {remote.type.value}",
                    table=entry.name,
                )

            resolved[rel.name] = replace(rel, target_column=target_column)
        return resolved

    def _target_shape(
        self, name: str, batch: Mapping[str, _Checked]
    ) -> tuple[Mapping[str, Column] | None, tuple[str, ...]]:
        if name in batch:
            return batch[name].by_name, batch[name].primary_key
        if name in self._tables:
            table = self._tables[name]
            return table.columns_by_name, table.primary_key
        return None, ()

    # -- Lookup --------------------------------------------------------------

    def table(self, name: str) -> Table:
        try:
            return self._tables[name]
        except KeyError:
            raise SchemaError(f"Unknown table '{name}'", table=name) from None

    def resolve_relationship(
        self, table: Table | str, relationship: str
    ) -> tuple[Table, Comparison]:
        """Target table and join predicate of a declared relationship.

        Raises:
            UnknownRelationshipError: if ``table`` declares no such relationship.
        """
        source = self.table(table) if isinstance(table, str) else table
        rel = source.relationship(relationship)
        target = self.table(rel.target)
        return target, source.field(rel.column).eq(target.field(rel.target_column))

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"SchemaRegistry({len(self._tables)} tables, {state})"


# =============================================================================
# DECLARATIONS FROM DATA
# =============================================================================


class _ColumnDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    type: ColumnType
    nullable: bool = True
    primary_key: bool = False
    default: str | None = None
    autoincrement: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ColumnType.parse(value)
        return value


class _RelationshipDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    column: str
    target: str
    target_column: str | None = None
    cardinality: Cardinality = Cardinality.ONE

    @field_validator("cardinality", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class _TableDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    columns: list[_ColumnDecl] = Field(min_length=1)
    relationships: list[_RelationshipDecl] = Field(default_factory=list)
    primary_key: list[str] | None = None


class _SchemaDecl(BaseModel):
    tables: list[_TableDecl]


def load_schema(
    declarations: Mapping[str, Any], registry: SchemaRegistry | None = None
) -> SchemaRegistry:
    """
    Register the tables described by a plain mapping.

    The mapping has a ``tables`` list; each table has ``name``, ``columns``
    (``name``, ``type``, ``nullable``, ``primary_key``, ``default``,
    ``autoincrement``), optional ``relationships`` (``name``, ``column``,
    ``target``, ``target_column``, ``cardinality``) and optional
    ``primary_key``.  All tables are registered as one batch.

    Raises:
        SchemaError: if the mapping is malformed or fails validation.
    """
    try:
        schema = _SchemaDecl.model_validate(declarations)
    except (ValidationError, ValueError) as exc:
        raise SchemaError(f"Invalid schema declaration: {exc}", cause=exc) from exc

    registry = registry if registry is not None else SchemaRegistry()
    registry.register_tables(
        TableDefinition(
            name=decl.name,
            columns=[
                Column(
                    c.name,
                    c.type,
                    nullable=c.nullable,
                    primary_key=c.primary_key,
                    server_default=c.default,
                    autoincrement=c.autoincrement,
                )
                for c in decl.columns
            ],
            relationships=[
                Relationship(r.name, r.column, r.target, r.target_column, r.cardinality)
                for r in decl.relationships
            ],
            primary_key=decl.primary_key,
        )
        for decl in schema.tables
    )
    return registry


def load_schema_file(path: Path | str, registry: SchemaRegistry | None = None) -> SchemaRegistry:
    """Register the tables declared in a YAML (or JSON) file; see :func:`load_schema`."""
    path = Path(path)
    if not path.exists():
        raise SchemaError(f"Schema file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise SchemaError(f"Invalid YAML in {path}: {exc}", cause=exc) from exc

    if not isinstance(data, dict):
        raise SchemaError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return load_schema(data, registry)


# =============================================================================
# DDL
# =============================================================================


def ddl(table: Table, dialect: Dialect) -> str:
    """CREATE TABLE statement for a registered table.

    Foreign keys are emitted for to-one relationships.
    """
    q = dialect.quote
    lines: list[str] = []
    for column in table.columns:
        if column.autoincrement:
            lines.append(f"{q(column.name)} {dialect.auto_increment()}")
            continue
        line = f"{q(column.name)} {dialect.type_name(column.type.value)}"
        if not column.nullable:
            line += " NOT NULL"
        if column.server_default is not None:
            line += f" DEFAULT {column.server_default}"
        lines.append(line)

    if table.primary_key and not any(c.autoincrement for c in table.columns):
        lines.append(f"PRIMARY KEY ({', '.join(q(k) for k in table.primary_key)})")

    for rel in table.relationships.values():
        if rel.to_many:
            continue
        lines.append(
            f"FOREIGN KEY ({q(rel.column)}) "
            f"REFERENCES {q(rel.target)} ({q(rel.target_column)})"
        )

    body = ",\n    ".join(lines)
    return f"CREATE TABLE {q(table.name)} (\n    {body}\n)"


def create_all(registry: SchemaRegistry, dialect: Dialect) -> list[str]:
    """CREATE TABLE statements for every table, in registration order."""
    return [ddl(table, dialect) for table in registry]


# =============================================================================
# DEFAULT REGISTRY
# =============================================================================

default_registry = SchemaRegistry()


def register_table(
    name: str,
    columns: Sequence[Column],
    relationships: Sequence[Relationship] = (),
    primary_key: Sequence[str] | None = None,
) -> Table:
    """Register a table with the process-wide :data:`default_registry`."""
    return default_registry.register_table(name, columns, relationships, primary_key)


def resolve_relationship(table: Table | str, relationship: str) -> tuple[Table, Comparison]:
    return default_registry.resolve_relationship(table, relationship)


__all__ = [
    "SchemaRegistry",
    "TableDefinition",
    "create_all",
    "ddl",
    "default_registry",
    "load_schema",
    "load_schema_file",
    "register_table",
    "resolve_relationship",
]
