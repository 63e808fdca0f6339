"""
Active records: one mutable row of one table.

A :class:`TableRecord` tracks which columns were assigned and writes them
back with ``store()``: an INSERT for a new record, an UPDATE by primary key
for a fetched or stored one.  Generated values (identity keys, server
defaults) are read back through RETURNING.

Examples:
    >>> film = db.new_record(FILM)
    >>> film.title = "MALTESE HOPE"
    >>> film.language_id = 1
    >>> film.store()
    1
    >>> film.film_id is not None
    True
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from typedsql.core.errors import QueryBuildError, TypeMismatchError, UnknownColumnError
from typedsql.model.table import Column, Table
from typedsql.query.expressions import ColumnRef, Predicate, and_

if TYPE_CHECKING:
    from typedsql.execution.context import Database


class TableRecord:
    """A row of ``table`` bound to a :class:`Database`."""

    __slots__ = ("_db", "_table", "_values", "_changed", "_persisted", "_key")

    def __init__(
        self,
        db: Database,
        table: Table,
        values: Mapping[str, Any] | None = None,
        *,
        persisted: bool = False,
    ):
        object.__setattr__(self, "_db", db)
        object.__setattr__(self, "_table", table)
        object.__setattr__(self, "_values", {})
        object.__setattr__(self, "_changed", [])
        object.__setattr__(self, "_persisted", persisted)
        for name, value in (values or {}).items():
            self._values[self._column(name).name] = value
        object.__setattr__(self, "_key", self._current_key() if persisted else {})

    @property
    def table(self) -> Table:
        return self._table

    @property
    def persisted(self) -> bool:
        """Whether the record corresponds to a stored row."""
        return self._persisted

    @property
    def changed(self) -> tuple[str, ...]:
        return tuple(self._changed)

    def _column(self, key: str | ColumnRef) -> Column:
        if isinstance(key, ColumnRef):
            if key.source != self._table:
                raise QueryBuildError(
                    f"Column {key.qualified_name} does not belong to '{self._table.name}'"
                )
            return key.column
        column = self._table.columns_by_name.get(key)
        if column is None:
            raise UnknownColumnError(self._table.name, key)
        return column

    # -- Value access --------------------------------------------------------

    def get(self, key: str | ColumnRef) -> Any:
        return self._values.get(self._column(key).name)

    def set(self, key: str | ColumnRef, value: Any) -> TableRecord:
        """Assign a column value, type-checked against the column."""
        column = self._column(key)
        if not column.accepts(value):
            raise TypeMismatchError(
                f"{type(value).__name__} value is not valid for "
                f"{self._table.name}.{column.name} ({column.type.value})",
                column=f"{self._table.name}.{column.name}",
                value=value,
                expected=column.type.value,
            )
        self._values[column.name] = value
        if column.name not in self._changed:
            self._changed.append(column.name)
        return self

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __getitem__(self, key: str | ColumnRef) -> Any:
        return self.get(key)

    def __setitem__(self, key: str | ColumnRef, value: Any) -> None:
        self.set(key, value)

    def as_dict(self) -> dict[str, Any]:
        return {c.name: self._values.get(c.name) for c in self._table.columns}

    # -- Persistence ---------------------------------------------------------

    def store(self) -> int:
        """Insert or update the record; returns the affected-row count."""
        if self._persisted:
            if not self._changed:
                return 0
            statement = self._db.update(self._table)
            for name in self._changed:
                statement = statement.set(name, self._values[name])
            statement = statement.where(self._key_predicate())
        else:
            statement = self._db.insert_into(self._table)
            for name in self._changed:
                statement = statement.set(name, self._values[name])

        row = statement.returning().fetch_one()
        self._load(row.as_dict())
        return 1

    def delete(self) -> int:
        """Delete the stored row; the record becomes new again."""
        if not self._persisted:
            raise QueryBuildError(f"Cannot delete an unsaved {self._table.name} record")
        count = self._db.delete(self._table).where(self._key_predicate()).execute()
        object.__setattr__(self, "_persisted", False)
        object.__setattr__(self, "_key", {})
        self._changed[:] = [
            c.name for c in self._table.columns if self._values.get(c.name) is not None
        ]
        return count

    def refresh(self) -> None:
        """Reload every column from the database."""
        if not self._persisted:
            raise QueryBuildError(f"Cannot refresh an unsaved {self._table.name} record")
        row = self._db.select_from(self._table).where(self._key_predicate()).fetch_one()
        self._load(row.as_dict())

    def _load(self, values: Mapping[str, Any]) -> None:
        self._values.clear()
        self._values.update(values)
        self._changed.clear()
        object.__setattr__(self, "_persisted", True)
        object.__setattr__(self, "_key", self._current_key())

    def _current_key(self) -> dict[str, Any]:
        return {name: self._values.get(name) for name in self._table.primary_key}

    def _key_predicate(self) -> Predicate:
        """Match the stored row by the key it was loaded with, not by edits since."""
        if not self._table.primary_key:
            raise QueryBuildError(f"Table '{self._table.name}' has no primary key")
        comparisons = []
        for name in self._table.primary_key:
            value = self._key.get(name)
            if value is None:
                raise QueryBuildError(f"{self._table.name}.{name} is not set")
            comparisons.append(self._table.field(name).eq(value))
        return and_(*comparisons)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TableRecord):
            return NotImplemented
        return self._table is other._table and self.as_dict() == other.as_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"TableRecord({self._table.name}: {values})"


__all__ = ["TableRecord"]
