"""
Result mapping: rows into dataclasses and pydantic models.

A :class:`RecordMapping` is a declarative list of ``source → field`` pairs
resolved once per target type and cached.  Positional mappings take the
row's values in projection order; by-name mappings look each field up by
its result label.  Fields typed ``list[X]`` or ``tuple[X, ...]`` take a
multiset column: each nested row is mapped into ``X`` (a record type) or,
for a scalar ``X``, contributes its single value.

Examples:
    >>> @dataclass
    ... class FilmName:
    ...     name: str
    >>> @dataclass
    ... class ActorWithFilms:
    ...     first_name: str
    ...     last_name: str
    ...     films: list[FilmName]
    >>> RecordMapping.positional(ActorWithFilms).map_row(row)
    ActorWithFilms(first_name='PENELOPE', last_name='GUINESS', films=[FilmName(name=...)])

Guardrails:
    ❌ DON'T: build a mapping per row
    ✅ DO: ``RecordMapping.positional(cls)`` (cached) or ``mapping(cls)``

Tags:
    mapping, dataclass, pydantic, multiset, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ValidationError

from typedsql.core.errors import MappingError
from typedsql.rows import Row

T = TypeVar("T")


@dataclass(frozen=True)
class FieldMapping:
    """One ``source → target`` pair of a record mapping."""

    source: int | str
    target: str
    annotation: Any
    optional: bool = False
    sequence: type | None = None
    nested: RecordMapping[Any] | None = None

    def convert(self, row: Row, owner: str) -> Any:
        try:
            value = row[self.source]
        except (KeyError, IndexError):
            raise MappingError(
                f"{owner}.{self.target}: row has no column {self.source!r}", target=owner
            ) from None

        if value is None:
            if self.optional:
                return None
            raise MappingError(f"{owner}.{self.target} is not optional but got NULL", target=owner)

        if self.sequence is not None:
            if not isinstance(value, tuple) or not all(isinstance(r, Row) for r in value):
                raise MappingError(
                    f"{owner}.{self.target} expects nested rows, got {type(value).__name__}",
                    target=owner,
                )
            if self.nested is not None:
                items = [self.nested.map_row(nested_row) for nested_row in value]
            else:
                items = [self._scalar_item(nested_row, owner) for nested_row in value]
            return self.sequence(items)

        return _check_scalar(value, self.annotation, f"{owner}.{self.target}")

    def _scalar_item(self, row: Row, owner: str) -> Any:
        if len(row) != 1:
            raise MappingError(
                f"{owner}.{self.target} holds scalars but nested rows have {len(row)} columns",
                target=owner,
            )
        return _check_scalar(row[0], self.annotation, f"{owner}.{self.target}[]")


@dataclass(frozen=True)
class RecordMapping(Generic[T]):
    """Declarative row → record mapping for one target type."""

    target: type[T]
    fields: tuple[FieldMapping, ...]
    match_names: bool = False

    @classmethod
    def positional(cls, target: type[T]) -> RecordMapping[T]:
        """Map row values in projection order onto the target's fields."""
        return _resolve(target, False)

    @classmethod
    def by_name(cls, target: type[T]) -> RecordMapping[T]:
        """Map result labels onto same-named fields of the target."""
        return _resolve(target, True)

    @property
    def name(self) -> str:
        return self.target.__name__

    def map_row(self, row: Row) -> T:
        if not self.match_names and len(row) != len(self.fields):
            raise MappingError(
                f"{self.name} has {len(self.fields)} fields but the row has {len(row)} values",
                target=self.name,
            )
        values = {f.target: f.convert(row, self.name) for f in self.fields}
        try:
            return self.target(**values)
        except ValidationError as exc:
            raise MappingError(
                f"{self.name} rejected the row: {exc}", target=self.name, cause=exc
            ) from exc
        except TypeError as exc:
            raise MappingError(
                f"Cannot build {self.name}: {exc}", target=self.name, cause=exc
            ) from exc

    def map_rows(self, rows: Iterable[Row]) -> list[T]:
        return [self.map_row(row) for row in rows]


def mapping(target: type[T], *, by_name: bool = False) -> RecordMapping[T]:
    """Cached mapping for ``target``; positional unless ``by_name``."""
    return _resolve(target, by_name)


def is_record_type(target: Any) -> bool:
    return isinstance(target, type) and (
        dataclasses.is_dataclass(target) or issubclass(target, BaseModel)
    )


@lru_cache(maxsize=256)
def _resolve(target: type, by_name: bool) -> RecordMapping[Any]:
    if not is_record_type(target):
        raise MappingError(
            f"{getattr(target, '__name__', target)!r} is not a dataclass or pydantic model",
            target=str(target),
        )

    fields = []
    for position, (name, annotation) in enumerate(_record_fields(target)):
        annotation, optional = _unwrap_optional(annotation)
        sequence, item = _sequence_of(annotation)
        nested = None
        if sequence is not None:
            annotation = item
            if is_record_type(item):
                nested = _resolve(item, by_name)
        fields.append(
            FieldMapping(
                source=name if by_name else position,
                target=name,
                annotation=annotation,
                optional=optional,
                sequence=sequence,
                nested=nested,
            )
        )
    return RecordMapping(target, tuple(fields), by_name)


def _record_fields(target: type) -> list[tuple[str, Any]]:
    if isinstance(target, type) and issubclass(target, BaseModel):
        return [(name, info.annotation) for name, info in target.model_fields.items()]
    try:
        hints = typing.get_type_hints(target)
    except NameError as exc:
        raise MappingError(
            f"Cannot resolve field types of {target.__name__}: {exc}", target=target.__name__
        ) from exc
    return [(f.name, hints.get(f.name, Any)) for f in dataclasses.fields(target) if f.init]


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        optional = len(args) < len(typing.get_args(annotation))
        if len(args) == 1:
            return args[0], optional
        return Union[tuple(args)], optional  # type: ignore[return-value]
    return annotation, False


def _sequence_of(annotation: Any) -> tuple[type | None, Any]:
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is list and len(args) == 1:
        return list, args[0]
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return tuple, args[0]
    return None, None


def _check_scalar(value: Any, annotation: Any, where: str) -> Any:
    if annotation is Any or not isinstance(annotation, type):
        return value
    if isinstance(value, Row) or (isinstance(value, tuple) and annotation is not tuple):
        raise MappingError(f"{where} expects {annotation.__name__}, got nested rows")
    if annotation is float and isinstance(value, (int, Decimal)) and not isinstance(value, bool):
        return float(value)
    if annotation is Decimal and isinstance(value, (int, float)) and not isinstance(value, bool):
        return Decimal(str(value))
    if annotation is bool and isinstance(value, int):
        return bool(value)
    if annotation is int and isinstance(value, bool):
        raise MappingError(f"{where} expects int, got bool")
    if not isinstance(value, annotation):
        raise MappingError(f"{where} expects {annotation.__name__}, got {type(value).__name__}")
    return value


__all__ = ["FieldMapping", "RecordMapping", "is_record_type", "mapping"]
