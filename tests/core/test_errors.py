"""Tests for the typedsql error hierarchy."""

from __future__ import annotations

import pytest

from typedsql.core.errors import (
    CardinalityError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    IntegrityError,
    MappingError,
    MissingColumnError,
    NoResultError,
    QueryBuildError,
    QueryCancelledError,
    SchemaError,
    ScopeError,
    TooManyResultsError,
    TypedSQLError,
    TypeMismatchError,
    UnknownColumnError,
    UnknownRelationshipError,
    categorize_error,
)


class TestCategories:
    @pytest.mark.parametrize(
        ("error", "category"),
        [
            (SchemaError("x"), ErrorCategory.SCHEMA),
            (QueryBuildError("x"), ErrorCategory.BUILD),
            (ScopeError("x"), ErrorCategory.BUILD),
            (TypeMismatchError("x"), ErrorCategory.BUILD),
            (NoResultError(), ErrorCategory.CARDINALITY),
            (TooManyResultsError(3), ErrorCategory.CARDINALITY),
            (MappingError("x"), ErrorCategory.MAPPING),
            (IntegrityError("x"), ErrorCategory.DATABASE),
            (QueryCancelledError(1.5), ErrorCategory.DATABASE),
        ],
    )
    def test_default_category(self, error: TypedSQLError, category: ErrorCategory) -> None:
        assert error.category is category
        assert categorize_error(error) is category

    def test_foreign_exception_is_internal(self) -> None:
        assert categorize_error(RuntimeError()) is ErrorCategory.INTERNAL

    def test_never_retryable_by_default(self) -> None:
        assert QueryCancelledError(1.0).retryable is False


class TestHierarchy:
    def test_build_errors(self) -> None:
        for cls in (ScopeError, TypeMismatchError, MissingColumnError, UnknownRelationshipError):
            assert issubclass(cls, QueryBuildError)

    def test_cardinality_errors(self) -> None:
        assert issubclass(NoResultError, CardinalityError)
        assert issubclass(TooManyResultsError, CardinalityError)

    def test_unknown_column_is_attribute_error(self) -> None:
        error = UnknownColumnError("film", "nope")
        assert isinstance(error, AttributeError)
        assert isinstance(error, QueryBuildError)
        assert error.table == "film"
        assert error.column == "nope"

    def test_database_errors(self) -> None:
        assert issubclass(IntegrityError, DatabaseError)
        assert issubclass(QueryCancelledError, DatabaseError)


class TestContext:
    def test_with_context_known_fields(self) -> None:
        error = DatabaseError("failed").with_context(statement="select", sql="SELECT 1")
        assert error.context.statement == "select"
        assert error.context.sql == "SELECT 1"

    def test_with_context_unknown_goes_to_metadata(self) -> None:
        error = DatabaseError("failed").with_context(attempt=2)
        assert error.context.metadata == {"attempt": 2}

    def test_context_to_dict_skips_unset(self) -> None:
        assert ErrorContext(table="film").to_dict() == {"table": "film"}

    def test_to_dict_includes_cause(self) -> None:
        cause = ValueError("driver said no")
        data = IntegrityError("constraint", cause=cause).to_dict()
        assert data["error_type"] == "IntegrityError"
        assert data["cause"] == "ValueError: driver said no"

    def test_cause_is_chained(self) -> None:
        cause = ValueError()
        assert DatabaseError("x", cause=cause).__cause__ is cause


class TestSpecificErrors:
    def test_missing_column_lists_columns(self) -> None:
        error = MissingColumnError("film", ["title", "language_id"])
        assert error.columns == ["title", "language_id"]
        assert "title, language_id" in error.message
        assert error.context.table == "film"

    def test_unknown_relationship(self) -> None:
        error = UnknownRelationshipError("film", "director")
        assert error.table == "film"
        assert error.relationship == "director"

    def test_too_many_results_count(self) -> None:
        assert TooManyResultsError(4).count == 4

    def test_mapping_target_in_context(self) -> None:
        error = MappingError("bad", target="FilmName")
        assert error.target == "FilmName"
        assert error.context.metadata["target"] == "FilmName"

    def test_cancelled_timeout(self) -> None:
        assert QueryCancelledError(0.25).timeout == 0.25
