"""Tests for TableRecord: new records, store, update, delete and refresh."""

from __future__ import annotations

from decimal import Decimal

import pytest

from typedsql import Database
from typedsql.core.errors import (
    MappingError,
    MissingColumnError,
    QueryBuildError,
    TypeMismatchError,
    UnknownColumnError,
)
from typedsql.records import TableRecord
from typedsql.sakila import ACTOR, FILM, FILM_ACTOR


class TestNewRecord:
    def test_store_inserts_and_reads_back_generated_values(self, db: Database) -> None:
        film = db.new_record(FILM)
        film.title = "MALTESE HOPE"
        film.language_id = 1
        assert not film.persisted
        assert film.changed == ("title", "language_id")

        assert film.store() == 1
        assert film.persisted
        assert film.film_id == 6
        assert film.rental_rate == Decimal("4.99")
        assert film.changed == ()

    def test_stored_row_is_visible(self, db: Database) -> None:
        actor = db.new_record(ACTOR)
        actor["first_name"] = "GRACE"
        actor[ACTOR.c.last_name] = "MOSTEL"
        actor.store()
        row = db.select_from(ACTOR).where(ACTOR.c.actor_id.eq(actor.actor_id)).fetch_one()
        assert row["last_name"] == "MOSTEL"

    def test_missing_required_column(self, db: Database) -> None:
        film = db.new_record(FILM)
        film.title = "NO LANGUAGE"
        with pytest.raises(MissingColumnError) as info:
            film.store()
        assert "language_id" in info.value.columns

    def test_unknown_attribute(self, db: Database) -> None:
        film = db.new_record(FILM)
        with pytest.raises(UnknownColumnError):
            film.director = "nobody"
        with pytest.raises(AttributeError):
            film.director

    def test_bad_value_type(self, db: Database) -> None:
        film = db.new_record(FILM)
        with pytest.raises(TypeMismatchError):
            film.length = "long"

    def test_null_for_non_nullable(self, db: Database) -> None:
        film = db.new_record(FILM)
        with pytest.raises(TypeMismatchError):
            film.title = None

    def test_foreign_column_reference(self, db: Database) -> None:
        film = db.new_record(FILM)
        with pytest.raises(QueryBuildError):
            film[ACTOR.c.first_name] = "X"

    def test_delete_unsaved(self, db: Database) -> None:
        with pytest.raises(QueryBuildError, match="unsaved"):
            db.new_record(ACTOR).delete()


class TestStoredRecord:
    def _fetch_actor(self, db: Database, actor_id: int) -> TableRecord:
        (record,) = db.select_from(ACTOR).where(ACTOR.c.actor_id.eq(actor_id)).fetch_records()
        return record

    def test_fetch_records(self, db: Database) -> None:
        records = db.select_from(ACTOR).order_by(ACTOR.c.actor_id).fetch_records()
        assert len(records) == 5
        assert records[0].persisted
        assert records[0].first_name == "PENELOPE"

    def test_update_changed_fields(self, db: Database) -> None:
        actor = self._fetch_actor(db, 3)
        actor.last_name = "CHASE-SMITH"
        assert actor.store() == 1
        assert self._fetch_actor(db, 3).last_name == "CHASE-SMITH"

    def test_changing_the_key_updates_the_loaded_row(self, db: Database) -> None:
        actor = self._fetch_actor(db, 5)
        actor.actor_id = 50
        actor.last_name = "LOLLO"
        assert actor.store() == 1
        assert actor.actor_id == 50
        assert db.select_from(ACTOR).where(ACTOR.c.actor_id.eq(5)).fetch_optional() is None
        assert self._fetch_actor(db, 50).last_name == "LOLLO"
        assert self._fetch_actor(db, 4).last_name == "DAVIS"

        # the stored key is now the new one
        actor.first_name = "JOHN"
        actor.store()
        assert self._fetch_actor(db, 50).first_name == "JOHN"

    def test_store_without_changes(self, db: Database) -> None:
        assert self._fetch_actor(db, 2).store() == 0

    def test_delete(self, db: Database) -> None:
        actor = self._fetch_actor(db, 5)
        assert actor.delete() == 1
        assert not actor.persisted
        assert db.select_from(ACTOR).where(ACTOR.c.actor_id.eq(5)).fetch_optional() is None

    def test_deleted_record_can_be_stored_again(self, db: Database) -> None:
        actor = self._fetch_actor(db, 5)
        actor.delete()
        actor.store()
        assert self._fetch_actor(db, 5).last_name == "LOLLOBRIGIDA"

    def test_refresh(self, db: Database) -> None:
        actor = self._fetch_actor(db, 1)
        db.update(ACTOR).set("first_name", "PENNY").where(ACTOR.c.actor_id.eq(1)).execute()
        assert actor.first_name == "PENELOPE"
        actor.refresh()
        assert actor.first_name == "PENNY"

    def test_composite_key(self, db: Database) -> None:
        (link,) = (
            db.select_from(FILM_ACTOR)
            .where(FILM_ACTOR.c.actor_id.eq(1), FILM_ACTOR.c.film_id.eq(4))
            .fetch_records()
        )
        assert link.delete() == 1
        remaining = db.select_from(FILM_ACTOR).where(FILM_ACTOR.c.actor_id.eq(1)).fetch()
        assert len(remaining) == 1

    def test_equality(self, db: Database) -> None:
        assert self._fetch_actor(db, 1) == self._fetch_actor(db, 1)
        assert self._fetch_actor(db, 1) != self._fetch_actor(db, 2)

    def test_fetch_records_rejects_joined_columns(self, db: Database) -> None:
        language = FILM.rel("language")
        with pytest.raises(MappingError):
            db.select(FILM.c.title, language.c.name).from_(FILM).fetch_records()
