"""Tests for expression nodes, type checking and table references."""

from __future__ import annotations

from decimal import Decimal

import pytest

from typedsql.core.errors import QueryBuildError, TypeMismatchError, UnknownColumnError
from typedsql.core.errors import UnknownRelationshipError
from typedsql.query import (
    AliasedTable,
    BooleanOp,
    Comparison,
    ComparisonOp,
    Literal,
    TablePath,
    and_,
    not_,
    or_,
)
from typedsql.query.expressions import BoolOperator, column_refs
from typedsql.sakila import ACTOR, CATEGORY, FILM, FILM_ACTOR, LANGUAGE
from typedsql.types import ColumnType


# =============================================================================
# Column references
# =============================================================================


class TestColumnNamespace:
    def test_attribute_and_item_access(self) -> None:
        assert ACTOR.c.first_name == ACTOR.c["first_name"]
        assert ACTOR.c.first_name.type is ColumnType.STRING

    def test_unknown_column(self) -> None:
        with pytest.raises(UnknownColumnError):
            ACTOR.c.middle_name

    def test_hasattr_is_false_for_unknown(self) -> None:
        assert not hasattr(ACTOR.c, "middle_name")

    def test_iteration_and_membership(self) -> None:
        names = [ref.name for ref in ACTOR.c]
        assert names == ["actor_id", "first_name", "last_name", "last_update"]
        assert "last_name" in ACTOR.c
        assert len(ACTOR.c) == 4

    def test_label_and_alias(self) -> None:
        ref = ACTOR.c.last_name
        assert ref.label == "last_name"
        assert ref.as_("surname").label == "surname"
        assert ref.qualified_name == "actor.last_name"


# =============================================================================
# Type checking
# =============================================================================


class TestComparisons:
    def test_literal_operand(self) -> None:
        comparison = FILM.c.length.gt(60)
        assert comparison.op is ComparisonOp.GT
        assert comparison.right == Literal(60, ColumnType.INTEGER)

    def test_column_operand(self) -> None:
        comparison = FILM_ACTOR.c.actor_id.eq(ACTOR.c.actor_id)
        assert comparison.right == ACTOR.c.actor_id

    def test_numeric_kinds_compare(self) -> None:
        FILM.c.rental_rate.le(FILM.c.length)
        FILM.c.rental_rate.lt(Decimal("2.99"))
        FILM.c.rental_rate.lt(3)

    def test_literal_type_mismatch(self) -> None:
        with pytest.raises(TypeMismatchError) as info:
            FILM.c.length.eq("long")
        assert info.value.column == "film.length"
        assert info.value.expected == "INTEGER"

    def test_bool_is_not_an_integer(self) -> None:
        with pytest.raises(TypeMismatchError):
            FILM.c.length.eq(True)

    def test_column_type_mismatch(self) -> None:
        with pytest.raises(TypeMismatchError, match="Cannot compare"):
            FILM.c.title.eq(FILM.c.film_id)

    def test_none_needs_is_null(self) -> None:
        with pytest.raises(TypeMismatchError, match="is_null"):
            FILM.c.original_language_id.eq(None)

    def test_is_null(self) -> None:
        comparison = FILM.c.original_language_id.is_null()
        assert comparison.op is ComparisonOp.IS_NULL
        assert comparison.right is None

    def test_like_needs_string_column(self) -> None:
        assert FILM.c.title.like("A%").op is ComparisonOp.LIKE
        with pytest.raises(TypeMismatchError, match="LIKE"):
            FILM.c.length.like("1%")

    def test_in_accepts_varargs_or_iterable(self) -> None:
        assert FILM.c.film_id.in_(1, 2).right == FILM.c.film_id.in_([1, 2]).right
        assert FILM.c.film_id.in_([]).right == ()

    def test_in_checks_every_value(self) -> None:
        with pytest.raises(TypeMismatchError):
            FILM.c.film_id.in_(1, "2")

    def test_predicate_is_not_an_operand(self) -> None:
        with pytest.raises(TypeMismatchError):
            FILM.c.length.eq(FILM.c.length.gt(1))


# =============================================================================
# Boolean combinators
# =============================================================================


class TestBooleanCombinators:
    def test_operators(self) -> None:
        a, b = FILM.c.film_id.eq(1), FILM.c.film_id.eq(2)
        assert (a & b) == BooleanOp(BoolOperator.AND, (a, b))
        assert (a | b) == BooleanOp(BoolOperator.OR, (a, b))
        assert (~a) == BooleanOp(BoolOperator.NOT, (a,))

    def test_and_flattens(self) -> None:
        a, b, c = (FILM.c.film_id.eq(i) for i in range(3))
        combined = and_(and_(a, b), c)
        assert combined.operands == (a, b, c)

    def test_or_does_not_flatten_and(self) -> None:
        a, b, c = (FILM.c.film_id.eq(i) for i in range(3))
        combined = or_(and_(a, b), c)
        assert combined.op is BoolOperator.OR
        assert len(combined.operands) == 2

    def test_single_operand_is_returned(self) -> None:
        a = FILM.c.film_id.eq(1)
        assert and_(a) is a

    def test_empty(self) -> None:
        with pytest.raises(QueryBuildError):
            and_()

    def test_rejects_non_predicates(self) -> None:
        with pytest.raises(TypeMismatchError):
            and_(FILM.c.film_id.eq(1), FILM.c.title)
        with pytest.raises(TypeMismatchError):
            not_(True)

    def test_column_refs_walks_tree(self) -> None:
        predicate = FILM.c.film_id.eq(1) & (FILM.c.title.like("A%") | FILM.c.length.is_null())
        names = [ref.name for ref in column_refs(predicate)]
        assert names == ["film_id", "title", "length"]


# =============================================================================
# Table references
# =============================================================================


class TestTablePath:
    def test_alias_follows_navigation(self) -> None:
        path = FILM_ACTOR.rel("film").rel("film_categories").rel("category")
        assert isinstance(path, TablePath)
        assert path.alias == "film_actor__film__film_categories__category"
        assert path.table is CATEGORY
        assert path.root is FILM_ACTOR

    def test_equal_paths(self) -> None:
        assert FILM_ACTOR.rel("actor") == FILM_ACTOR.rel("actor")
        assert hash(FILM_ACTOR.rel("actor")) == hash(FILM_ACTOR.rel("actor"))
        assert FILM_ACTOR.rel("actor").c.first_name == FILM_ACTOR.rel("actor").c.first_name

    def test_different_paths_to_same_table(self) -> None:
        assert FILM.rel("language") != FILM.rel("original_language")

    def test_ancestry(self) -> None:
        path = FILM_ACTOR.rel("film").rel("language")
        assert [p.alias for p in path.ancestry] == [
            "film_actor__film",
            "film_actor__film__language",
        ]

    def test_outer_join_rules(self) -> None:
        assert not FILM_ACTOR.rel("actor").outer
        assert FILM.rel("original_language").outer
        assert ACTOR.rel("film_actors").outer

    def test_outer_is_inherited_by_later_hops(self) -> None:
        assert not FILM_ACTOR.rel("film").rel("language").outer
        assert ACTOR.rel("film_actors").rel("film").outer
        assert FILM.rel("film_categories").rel("category").outer

    def test_join_condition(self) -> None:
        path = FILM.rel("language")
        condition = path.join_condition
        assert condition.left == FILM.c.language_id
        assert condition.right == path.c.language_id
        assert path.c.language_id.source is path

    def test_unknown_relationship(self) -> None:
        with pytest.raises(UnknownRelationshipError):
            FILM.rel("director")

    def test_path_column_differs_from_table_column(self) -> None:
        assert FILM.rel("language").c.name != LANGUAGE.c.name


class TestAliasedTable:
    def test_alias(self) -> None:
        other = ACTOR.as_("other")
        assert isinstance(other, AliasedTable)
        assert other.alias == "other"
        assert other.table is ACTOR
        assert other == ACTOR.as_("other")
        assert other.c.first_name != ACTOR.c.first_name

    def test_comparison_between_aliases(self) -> None:
        other = ACTOR.as_("other")
        assert isinstance(other.c.last_name.eq(ACTOR.c.last_name), Comparison)
