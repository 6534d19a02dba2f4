"""Tests for query analysis: parameters, cardinality, select-star expansion and errors."""

import pytest

from fakes import MOOD
from pgintrospect.databases.base import StatementColumn, StatementDescription
from pgintrospect.errors import QueryError
from pgintrospect.introspect import read_indexes
from pgintrospect.models import Unique
from pgintrospect.query_analyzer import (
    analyze_query,
    covers_unique_index,
    expand_select_star,
    find_annotation,
    find_equality,
    infer_single_row,
    is_limit_one,
)


@pytest.fixture
def indexed(ctx):
    read_indexes(ctx)
    return ctx


def users(ctx):
    return next(t for t in ctx.result.tables if t.name == "users")


class TestPatterns:
    def test_annotation_name_and_type(self):
        assert find_annotation("where a > $1 /* since time.Time */", 1) == ["since", "time.Time"]

    def test_annotation_name_only(self):
        assert find_annotation("where a > $1/*since*/", 1) == ["since"]

    def test_annotation_must_follow_the_placeholder(self):
        assert find_annotation("where a > $1 and b < $2 /* until */", 1) is None

    def test_directive_is_not_an_annotation(self):
        assert find_annotation("where id = $1 /* multirow */", 1) is None

    def test_placeholder_one_does_not_match_ten(self):
        q = "where a = $10 /* ten */ and b = $1"
        assert find_annotation(q, 1) is None
        assert find_equality(q, 1) == "b"
        assert find_equality(q, 10) == "a"

    @pytest.mark.parametrize("query,expected", [
        ("where user_id = $1", "user_id"),
        ("where user_id=$1", "user_id"),
        ('where o."userId" = $1', "userId"),
        ("where orders.user_id = $1", "user_id"),
    ])
    def test_equality(self, query, expected):
        assert find_equality(query, 1) == expected

    @pytest.mark.parametrize("query", [
        "where user_id <= $1",
        "where user_id >= $1",
        "where user_id != $1",
        "where user_id in ($1)",
    ])
    def test_comparisons_are_not_equality(self, query):
        assert find_equality(query, 1) is None

    @pytest.mark.parametrize("query,expected", [
        ("select * from t limit 1", True),
        ("select * from t LIMIT 1;", True),
        ("select * from t limit 10", False),
        ("select * from t limit 1 offset 4", False),
    ])
    def test_limit_one(self, query, expected):
        assert is_limit_one(query) is expected

    def test_expand_select_star(self, ctx):
        assert expand_select_star("SELECT *\n  FROM users where id = $1", users(ctx)) == (
            "select id, email, display_name, is_admin FROM users where id = $1"
        )

    def test_expand_leaves_explicit_projection(self, ctx):
        assert expand_select_star("select id from users", users(ctx)) is None

    def test_covers_unique_index(self):
        indexes = [Unique("pk", True, ["id"]), Unique("k", False, ["a", "b"])]
        assert covers_unique_index(["b", "a", "c"], indexes)
        assert not covers_unique_index(["a"], indexes)

    def test_multirow_wins_over_everything(self):
        q = "select * from t where id = $1 limit 1 /* singlerow */ /* MultiRow */"
        assert infer_single_row(q, True, ["id"], [Unique("pk", True, ["id"])]) is False

    def test_directives_tolerate_spacing_and_case(self):
        assert infer_single_row("select 1 /*SingleRow*/", False, [], [])


class TestCardinality:
    def test_primary_key_lookup_is_single_row(self, indexed):
        q = analyze_query(indexed, "user", "select id, email from users where id = $1")
        assert q.single_row
        assert [f.name for f in q.fields] == ["id", "email"]

    def test_non_unique_lookup_is_multi_row(self, indexed):
        q = analyze_query(indexed, "by_name", "select id from users where display_name = $1")
        assert not q.single_row

    def test_composite_unique_needs_all_columns(self, indexed):
        partial = analyze_query(indexed, "o1", "select id from orders where user_id = $1")
        full = analyze_query(indexed, "o2", "select id from orders where user_id = $1 and line_no = $2")
        assert not partial.single_row
        assert full.single_row

    def test_limit_one(self, indexed):
        q = analyze_query(indexed, "latest", "select id from orders order by placed_at desc limit 1")
        assert q.single_row

    def test_multirow_override(self, indexed):
        q = analyze_query(indexed, "all_by_id", "select id from users where id = $1 /* multirow */")
        assert not q.single_row

    def test_default_applies_without_evidence(self, indexed):
        assert analyze_query(indexed, "any_user", "select id from users", single=True).single_row

    def test_qualified_quoted_equality(self, indexed):
        q = analyze_query(indexed, "by_email", 'select id from users u where u."email" = $1')
        assert q.single_row
        assert q.parameters[0].name == "email"


class TestParameters:
    def test_named_after_equality_column(self, indexed):
        q = analyze_query(indexed, "o", "select id from orders where user_id = $1 and line_no = $2")
        assert [(p.name, p.output_type) for p in q.parameters] == [("UserID", "int64"), ("LineNo", "int32")]

    def test_column_without_underscore_keeps_its_name(self, indexed):
        q = analyze_query(indexed, "u", "select id from users where id = $1")
        assert q.parameters[0].name == "id"

    def test_positional_default_name(self, indexed):
        q = analyze_query(indexed, "since", "select id from orders where placed_at > $1")
        assert q.parameters[0].name == "p1"
        # parameters resolve as not null
        assert q.parameters[0].output_type == "string"

    def test_annotation_sets_name_and_type(self, indexed):
        q = analyze_query(indexed, "since", "select id from orders where placed_at > $1 /* since time.Time */")
        p = q.parameters[0]
        assert (p.name, p.output_type) == ("since", "time.Time")

    def test_annotation_name_beats_equality(self, indexed):
        q = analyze_query(indexed, "u", "select id from users where email = $1 /* address */")
        assert q.parameters[0].name == "address"
        assert q.single_row

    def test_malformed_annotation(self, indexed):
        with pytest.raises(QueryError, match="couldn't understand type annotation 'a b c'"):
            analyze_query(indexed, "bad", "select id from users where email = $1 /* a b c */")

    def test_enum_parameter_is_recorded_as_seen(self, indexed):
        sql = "select id from orders where status::text::mood = $1"
        indexed.catalog.statements[sql] = StatementDescription(
            columns=(StatementColumn(1002, 1),), parameter_types=(MOOD,),
        )
        q = analyze_query(indexed, "by_mood", sql)
        assert q.parameters[0].output_type == "Mood"
        assert MOOD in indexed.types.seen_enums


class TestSelectStar:
    def test_rewritten_and_described_again(self, indexed):
        q = analyze_query(indexed, "user", "select * from users where id = $1")
        assert q.query == "select id, email, display_name, is_admin from users where id = $1"
        assert q.original_query == "select * from users where id = $1"
        assert indexed.catalog.described == [q.original_query, q.query]
        assert [f.name for f in q.fields] == ["id", "email", "display_name", "is_admin"]
        assert [(p.name, p.output_type) for p in q.parameters] == [("id", "int64")]

    def test_query_is_attached_to_its_table(self, indexed):
        q = analyze_query(indexed, "user", "select * from users where id = $1")
        assert users(indexed).queries == [q]


class TestErrors:
    def test_returns_nothing(self, indexed):
        with pytest.raises(QueryError, match="query noop doesn't return anything"):
            analyze_query(indexed, "noop", "select 1")

    def test_table_not_included(self, indexed):
        with pytest.raises(QueryError, match="not included"):
            analyze_query(indexed, "ev", "select id from events")

    def test_multiple_tables(self, indexed):
        sql = "select u.id, o.id from users u join orders o on o.user_id = u.id"
        indexed.catalog.statements[sql] = StatementDescription(
            columns=(StatementColumn(1001, 1), StatementColumn(1002, 1)),
        )
        with pytest.raises(QueryError, match="multiple tables"):
            analyze_query(indexed, "join", sql)

    def test_unknown_column_position(self, indexed):
        sql = "select oid from users"
        indexed.catalog.statements[sql] = StatementDescription(columns=(StatementColumn(1001, 9),))
        with pytest.raises(QueryError, match="internal error finding columns"):
            analyze_query(indexed, "odd", sql)

    def test_excluded_column(self, indexed):
        with pytest.raises(QueryError, match="password_hash of users, which is excluded"):
            analyze_query(indexed, "pw", "select password_hash from users where id = $1")
