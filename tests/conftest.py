"""
Shared pytest fixtures for typedsql tests.

This module provides:
- ``db``: an in-memory SQLite database with the Sakila sample schema and data
- ``empty_db``: the same schema with no rows
- ``sqlite``: the SQLite dialect, for compiler tests that never execute

Usage:
    Fixtures are auto-discovered by pytest; request them by argument name.

    def test_horror(db):
        assert len(db.fetch(horror_actors_implicit())) == 4
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from typedsql import Database
from typedsql.core.dialect import SQLiteDialect
from typedsql.query import StatementCompiler
from typedsql.sakila import create_schema, seed_sample


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests: anything using a database fixture is an integration test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if markers.intersection({"unit", "integration"}):
            continue
        fixtures = set(getattr(item, "fixturenames", ()))
        if fixtures.intersection({"db", "empty_db", "file_db"}):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo logging configuration done by a test (the CLI configures on every run)."""
    yield
    structlog.reset_defaults()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def empty_db() -> Iterator[Database]:
    """Sakila schema, no rows."""
    database = Database.from_url("sqlite:///:memory:")
    create_schema(database)
    yield database
    database.close()


@pytest.fixture
def db(empty_db: Database) -> Database:
    """Sakila schema with the sample rows."""
    seed_sample(empty_db)
    return empty_db


@pytest.fixture
def file_db(tmp_path: Path) -> Iterator[Path]:
    """Path of a seeded on-disk SQLite database."""
    path = tmp_path / "sakila.db"
    with Database.from_url(f"sqlite:///{path}") as database:
        create_schema(database)
        seed_sample(database)
    yield path


# =============================================================================
# Compiler Fixtures
# =============================================================================


@pytest.fixture
def sqlite() -> SQLiteDialect:
    return SQLiteDialect()


@pytest.fixture
def compiler(sqlite: SQLiteDialect) -> StatementCompiler:
    return StatementCompiler(sqlite)
