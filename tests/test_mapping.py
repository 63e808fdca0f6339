"""Tests for record mapping into dataclasses and pydantic models."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import pytest
from pydantic import BaseModel

from typedsql import Database, RecordMapping, mapping, multiset, select
from typedsql.core.errors import MappingError
from typedsql.query.compiler import ProjectionColumn
from typedsql.rows import Row
from typedsql.sakila import (
    ACTOR,
    FILM,
    FILM_ACTOR,
    ActorWithFilms,
    FilmName,
    actors_with_films,
)
from typedsql.types import ColumnType


@dataclass
class ActorName:
    first_name: str
    last_name: str


@dataclass
class FilmSummary:
    title: str
    length: Optional[int]
    rental_rate: Decimal


class ActorModel(BaseModel):
    actor_id: int
    first_name: str
    last_name: str


@dataclass
class ActorFilmIds:
    actor_id: int
    film_ids: tuple[int, ...]


@dataclass
class Point:
    x: float
    y: float


def _row(*pairs: tuple[str, ColumnType, object]) -> Row:
    columns = tuple(ProjectionColumn(label, kind) for label, kind, _ in pairs)
    return Row(columns, tuple(value for _, _, value in pairs))


class TestRecordMapping:
    def test_positional(self) -> None:
        row = _row(("a", ColumnType.STRING, "ED"), ("b", ColumnType.STRING, "CHASE"))
        assert RecordMapping.positional(ActorName).map_row(row) == ActorName("ED", "CHASE")

    def test_by_name_ignores_order(self) -> None:
        row = _row(
            ("last_name", ColumnType.STRING, "CHASE"),
            ("first_name", ColumnType.STRING, "ED"),
            ("actor_id", ColumnType.INTEGER, 3),
        )
        assert RecordMapping.by_name(ActorName).map_row(row) == ActorName("ED", "CHASE")

    def test_mappings_are_cached(self) -> None:
        assert RecordMapping.positional(ActorName) is mapping(ActorName)
        assert RecordMapping.by_name(ActorName) is mapping(ActorName, by_name=True)

    def test_pydantic_model(self) -> None:
        row = _row(
            ("actor_id", ColumnType.INTEGER, 1),
            ("first_name", ColumnType.STRING, "PENELOPE"),
            ("last_name", ColumnType.STRING, "GUINESS"),
        )
        actor = RecordMapping.positional(ActorModel).map_row(row)
        assert actor == ActorModel(actor_id=1, first_name="PENELOPE", last_name="GUINESS")

    def test_optional_accepts_null(self) -> None:
        row = _row(
            ("title", ColumnType.STRING, "X"),
            ("length", ColumnType.INTEGER, None),
            ("rental_rate", ColumnType.DECIMAL, Decimal("0.99")),
        )
        assert mapping(FilmSummary).map_row(row).length is None

    def test_numeric_widening(self) -> None:
        row = _row(("x", ColumnType.INTEGER, 1), ("y", ColumnType.DECIMAL, Decimal("2.5")))
        assert mapping(Point).map_row(row) == Point(1.0, 2.5)


class TestMappingErrors:
    def test_not_a_record_type(self) -> None:
        with pytest.raises(MappingError):
            RecordMapping.positional(dict)

    def test_arity_mismatch(self) -> None:
        row = _row(("a", ColumnType.STRING, "ED"))
        with pytest.raises(MappingError, match="2 fields"):
            mapping(ActorName).map_row(row)

    def test_missing_label(self) -> None:
        row = _row(("first_name", ColumnType.STRING, "ED"))
        with pytest.raises(MappingError, match="last_name"):
            mapping(ActorName, by_name=True).map_row(row)

    def test_null_for_required_field(self) -> None:
        row = _row(("a", ColumnType.STRING, None), ("b", ColumnType.STRING, "CHASE"))
        with pytest.raises(MappingError, match="not optional"):
            mapping(ActorName).map_row(row)

    def test_wrong_scalar_type(self) -> None:
        row = _row(("a", ColumnType.INTEGER, 1), ("b", ColumnType.STRING, "CHASE"))
        with pytest.raises(MappingError, match="expects str"):
            mapping(ActorName).map_row(row)

    def test_pydantic_validation_error(self) -> None:
        row = _row(
            ("actor_id", ColumnType.STRING, "not a number"),
            ("first_name", ColumnType.STRING, "A"),
            ("last_name", ColumnType.STRING, "B"),
        )
        with pytest.raises(MappingError, match="ActorModel"):
            mapping(ActorModel).map_row(row)

    def test_scalar_for_nested_field(self) -> None:
        row = _row(("actor_id", ColumnType.INTEGER, 1), ("film_ids", ColumnType.INTEGER, 7))
        with pytest.raises(MappingError, match="nested rows"):
            mapping(ActorFilmIds).map_row(row)


class TestMappingQueries:
    def test_nested_records(self, db: Database) -> None:
        actors = db.fetch_mapped(actors_with_films(), RecordMapping.positional(ActorWithFilms))
        assert actors[0] == ActorWithFilms(
            "PENELOPE",
            "GUINESS",
            [FilmName("ACADEMY DINOSAUR"), FilmName("AFFAIR PREJUDICE")],
        )
        assert actors[3].films == [FilmName("ACE GOLDFINGER"), FilmName("AGENT TRUMAN")]
        assert actors[4].films == []

    def test_nested_scalars(self, db: Database) -> None:
        film_ids = (
            select(FILM_ACTOR.c.film_id)
            .from_(FILM_ACTOR)
            .where(FILM_ACTOR.c.actor_id.eq(ACTOR.c.actor_id))
            .order_by(FILM_ACTOR.c.film_id)
        )
        rows = (
            db.select(ACTOR.c.actor_id, multiset(film_ids).as_("film_ids"))
            .from_(ACTOR)
            .order_by(ACTOR.c.actor_id)
            .fetch_mapped(mapping(ActorFilmIds))
        )
        assert rows[2] == ActorFilmIds(3, (1, 4, 5))
        assert rows[4] == ActorFilmIds(5, ())

    def test_fetch_into_by_name(self, db: Database) -> None:
        films = (
            db.select(FILM.c.rental_rate, FILM.c.title, FILM.c.length)
            .from_(FILM)
            .where(FILM.c.film_id.eq(2))
            .fetch_into(FilmSummary)
        )
        assert films == [FilmSummary("ACE GOLDFINGER", 48, Decimal("4.99"))]

    def test_fetch_into_pydantic(self, db: Database) -> None:
        actors = db.select_from(ACTOR).order_by(ACTOR.c.actor_id).limit(2).fetch_into(ActorModel)
        assert [a.last_name for a in actors] == ["GUINESS", "WAHLBERG"]

    def test_fetch_into_with_labels(self, db: Database) -> None:
        actor = FILM_ACTOR.rel("actor")
        names = (
            db.select(actor.c.last_name, actor.c.first_name)
            .from_(FILM_ACTOR)
            .where(FILM_ACTOR.c.film_id.eq(3))
            .fetch_into(ActorName)
        )
        assert names == [ActorName("NICK", "WAHLBERG")]

    def test_mutation_returning_into(self, db: Database) -> None:
        (actor,) = (
            db.insert_into(ACTOR, "first_name", "last_name")
            .values("GRACE", "MOSTEL")
            .returning("actor_id", "first_name", "last_name")
            .fetch_into(ActorModel)
        )
        assert actor.actor_id == 6
