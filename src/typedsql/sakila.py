"""
Sample schema: a subset of the Sakila DVD-rental database.

Six tables with the relationships the examples and tests navigate::

    language ◄── film ──► film_actor ◄── actor
                  │
                  └────► film_category ◄── category

``film_actor`` and ``film_category`` reach their parents through to-one
relationships (``actor``, ``film``, ``category``); the parents reach them
back through to-many ones (``film_actors``, ``film_categories``).

Examples:
    >>> db = Database.from_url("sqlite:///:memory:")
    >>> create_schema(db)
    >>> seed_sample(db)
    >>> horror = FILM_ACTOR.rel("film").rel("film_categories").rel("category")
    >>> len(db.select(FILM_ACTOR.rel("actor").c.last_name)
    ...       .from_(FILM_ACTOR).where(horror.c.name.eq("Horror")).fetch())
    4
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from typedsql.model import (
    Cardinality,
    Column,
    ColumnType,
    Relationship,
    SchemaRegistry,
    TableDefinition,
)
from typedsql.query import Select, multiset, select

if TYPE_CHECKING:
    from typedsql.execution.context import Database

MANY = Cardinality.MANY


def _key(name: str) -> Column:
    return Column(name, ColumnType.INTEGER, nullable=False, primary_key=True, autoincrement=True)


def _last_update() -> Column:
    return Column(
        "last_update", ColumnType.DATETIME, nullable=False, server_default="CURRENT_TIMESTAMP"
    )


registry = SchemaRegistry()
registry.register_tables(
    [
        TableDefinition(
            "language",
            [
                _key("language_id"),
                Column("name", ColumnType.STRING, nullable=False),
                _last_update(),
            ],
        ),
        TableDefinition(
            "actor",
            [
                _key("actor_id"),
                Column("first_name", ColumnType.STRING, nullable=False),
                Column("last_name", ColumnType.STRING, nullable=False),
                _last_update(),
            ],
            relationships=[
                Relationship("film_actors", "actor_id", "film_actor", "actor_id", MANY),
            ],
        ),
        TableDefinition(
            "category",
            [
                _key("category_id"),
                Column("name", ColumnType.STRING, nullable=False),
                _last_update(),
            ],
            relationships=[
                Relationship(
                    "film_categories", "category_id", "film_category", "category_id", MANY
                ),
            ],
        ),
        TableDefinition(
            "film",
            [
                _key("film_id"),
                Column("title", ColumnType.STRING, nullable=False),
                Column("description", ColumnType.STRING),
                Column("release_year", ColumnType.INTEGER),
                Column("language_id", ColumnType.INTEGER, nullable=False),
                Column("original_language_id", ColumnType.INTEGER),
                Column("rental_duration", ColumnType.INTEGER, nullable=False, server_default="3"),
                Column("rental_rate", ColumnType.DECIMAL, nullable=False, server_default="4.99"),
                Column("length", ColumnType.INTEGER),
                Column(
                    "replacement_cost", ColumnType.DECIMAL, nullable=False, server_default="19.99"
                ),
                Column("rating", ColumnType.STRING, server_default="'G'"),
                _last_update(),
            ],
            relationships=[
                Relationship("language", "language_id", "language"),
                Relationship("original_language", "original_language_id", "language"),
                Relationship("film_actors", "film_id", "film_actor", "film_id", MANY),
                Relationship("film_categories", "film_id", "film_category", "film_id", MANY),
            ],
        ),
        TableDefinition(
            "film_actor",
            [
                Column("actor_id", ColumnType.INTEGER, nullable=False),
                Column("film_id", ColumnType.INTEGER, nullable=False),
                _last_update(),
            ],
            relationships=[
                Relationship("actor", "actor_id", "actor"),
                Relationship("film", "film_id", "film"),
            ],
            primary_key=["actor_id", "film_id"],
        ),
        TableDefinition(
            "film_category",
            [
                Column("film_id", ColumnType.INTEGER, nullable=False),
                Column("category_id", ColumnType.INTEGER, nullable=False),
                _last_update(),
            ],
            relationships=[
                Relationship("film", "film_id", "film"),
                Relationship("category", "category_id", "category"),
            ],
            primary_key=["film_id", "category_id"],
        ),
    ]
)
registry.freeze()

LANGUAGE = registry.table("language")
ACTOR = registry.table("actor")
CATEGORY = registry.table("category")
FILM = registry.table("film")
FILM_ACTOR = registry.table("film_actor")
FILM_CATEGORY = registry.table("film_category")


def create_schema(db: Database) -> None:
    """Create the sample tables."""
    db.create_tables(registry)


SAMPLE_LANGUAGES = [(1, "English"), (2, "Italian")]

SAMPLE_ACTORS = [
    (1, "PENELOPE", "GUINESS"),
    (2, "NICK", "WAHLBERG"),
    (3, "ED", "CHASE"),
    (4, "JENNIFER", "DAVIS"),
    (5, "JOHNNY", "LOLLOBRIGIDA"),
]

SAMPLE_CATEGORIES = [(1, "Action"), (2, "Horror"), (3, "Comedy"), (4, "Documentary")]

# film_id, title, release_year, language_id, original_language_id, length
SAMPLE_FILMS = [
    (1, "ACADEMY DINOSAUR", 2006, 1, None, 86),
    (2, "ACE GOLDFINGER", 2006, 1, None, 48),
    (3, "ADAPTATION HOLES", 2006, 1, None, 50),
    (4, "AFFAIR PREJUDICE", 2006, 1, None, 117),
    (5, "AGENT TRUMAN", 2006, 1, 2, 169),
]

SAMPLE_FILM_CATEGORIES = [(1, 4), (2, 2), (3, 3), (4, 2), (5, 1)]

# actor 5 plays in nothing
SAMPLE_FILM_ACTORS = [(1, 1), (1, 4), (2, 2), (2, 3), (3, 1), (3, 4), (3, 5), (4, 2), (4, 5)]


def seed_sample(db: Database) -> None:
    """Insert a small, fixed sample dataset in one transaction."""
    with db.transaction_scope():
        languages = db.insert_into(LANGUAGE, "language_id", "name")
        for row in SAMPLE_LANGUAGES:
            languages = languages.values(*row)
        languages.execute()

        actors = db.insert_into(ACTOR, "actor_id", "first_name", "last_name")
        for row in SAMPLE_ACTORS:
            actors = actors.values(*row)
        actors.execute()

        categories = db.insert_into(CATEGORY, "category_id", "name")
        for row in SAMPLE_CATEGORIES:
            categories = categories.values(*row)
        categories.execute()

        films = db.insert_into(
            FILM,
            "film_id",
            "title",
            "release_year",
            "language_id",
            "original_language_id",
            "length",
        )
        for row in SAMPLE_FILMS:
            films = films.values(*row)
        films.execute()

        film_categories = db.insert_into(FILM_CATEGORY, "film_id", "category_id")
        for row in SAMPLE_FILM_CATEGORIES:
            film_categories = film_categories.values(*row)
        film_categories.execute()

        film_actors = db.insert_into(FILM_ACTOR, "actor_id", "film_id")
        for row in SAMPLE_FILM_ACTORS:
            film_actors = film_actors.values(*row)
        film_actors.execute()


# =============================================================================
# SAMPLE QUERIES
# =============================================================================


@dataclass(frozen=True)
class FilmName:
    name: str


@dataclass(frozen=True)
class ActorWithFilms:
    first_name: str
    last_name: str
    films: list[FilmName]


def horror_actors_explicit() -> Select:
    """Distinct actors of Horror films by name, joining all four tables by hand."""
    return (
        select(ACTOR.c.first_name, ACTOR.c.last_name)
        .from_(ACTOR)
        .join(FILM_ACTOR)
        .on(FILM_ACTOR.c.actor_id.eq(ACTOR.c.actor_id))
        .join(FILM_CATEGORY)
        .on(FILM_CATEGORY.c.film_id.eq(FILM_ACTOR.c.film_id))
        .join(CATEGORY)
        .on(CATEGORY.c.category_id.eq(FILM_CATEGORY.c.category_id))
        .where(CATEGORY.c.name.eq("Horror"))
        .group_by(ACTOR.c.first_name, ACTOR.c.last_name)
        .order_by(ACTOR.c.first_name, ACTOR.c.last_name)
    )


def horror_actors_implicit() -> Select:
    """The same rows as :func:`horror_actors_explicit`, through relationships."""
    actor = FILM_ACTOR.rel("actor")
    category = FILM_ACTOR.rel("film").rel("film_categories").rel("category")
    return (
        select(actor.c.first_name, actor.c.last_name)
        .from_(FILM_ACTOR)
        .where(category.c.name.eq("Horror"))
        .group_by(actor.c.first_name, actor.c.last_name)
        .order_by(actor.c.first_name, actor.c.last_name)
    )


def actors_with_films() -> Select:
    """Every actor with the titles of their films as a nested multiset."""
    film = FILM_ACTOR.rel("film")
    films = (
        select(film.c.title)
        .from_(FILM_ACTOR)
        .where(FILM_ACTOR.c.actor_id.eq(ACTOR.c.actor_id))
        .order_by(film.c.title)
    )
    return (
        select(ACTOR.c.first_name, ACTOR.c.last_name, multiset(films).as_("films"))
        .from_(ACTOR)
        .order_by(ACTOR.c.actor_id)
    )


__all__ = [
    "ACTOR",
    "ActorWithFilms",
    "FilmName",
    "CATEGORY",
    "FILM",
    "FILM_ACTOR",
    "FILM_CATEGORY",
    "LANGUAGE",
    "actors_with_films",
    "create_schema",
    "horror_actors_explicit",
    "horror_actors_implicit",
    "registry",
    "seed_sample",
]
