"""Result rows."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typedsql.query.compiler import ProjectionColumn


class Row(Sequence[Any]):
    """
    One result row: values aligned with the projection.

    Values are reachable by position, by label, or by the column reference
    that produced them.  A multiset position holds a tuple of nested rows
    (empty when the correlated select matched nothing).
    """

    __slots__ = ("_columns", "_values")

    def __init__(self, columns: tuple[ProjectionColumn, ...], values: tuple[Any, ...]):
        self._columns = columns
        self._values = values

    @property
    def columns(self) -> tuple[ProjectionColumn, ...]:
        return self._columns

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(column.label for column in self._columns)

    @property
    def values(self) -> tuple[Any, ...]:
        return self._values

    def index_of(self, key: Any) -> int:
        """Position of a label or column reference."""
        for position, column in enumerate(self._columns):
            if column.key is not None and column.key == key:
                return position
        label = key if isinstance(key, str) else getattr(key, "label", None)
        for position, column in enumerate(self._columns):
            if column.label == label:
                return position
        raise KeyError(key)

    def __getitem__(self, key: Any) -> Any:  # type: ignore[override]
        if isinstance(key, (int, slice)):
            return self._values[key]
        return self._values[self.index_of(key)]

    def get(self, key: Any, default: Any = None) -> Any:
        try:
            return self[key]
        except (KeyError, IndexError):
            return default

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def as_dict(self) -> dict[str, Any]:
        """Label → value; nested rows become lists of dicts."""
        result: dict[str, Any] = {}
        for column, value in zip(self._columns, self._values):
            if column.nested is not None:
                value = [row.as_dict() for row in value]
            result[column.label] = value
        return result

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._values == other._values
        if isinstance(other, tuple):
            return self._values == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{label}={value!r}" for label, value in zip(self.labels, self._values))
        return f"Row({pairs})"


__all__ = ["Row"]
