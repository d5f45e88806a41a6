"""
Unit tests for QueryBuilder: SQL compilation of filter leaves, sort and paging.
"""
import pytest

from company_api.services.filters import (
    ContainsAll,
    ExactMatch,
    FilterExpression,
    PatternMatch,
    RangeMatch,
    TextMatch,
)
from company_api.services.query_builder import QueryBuilder, escape_like, fts_query

COLUMNS = {
    "id": "c.id",
    "name": "c.name",
    "industry": "c.industry",
    "location": "c.location",
    "size": "c.size",
    "foundedYear": "c.founded_year",
    "tags": "c.tags",
}


class TestQueryBuilderInit:
    """Test QueryBuilder construction."""

    def test_build_select_no_conditions(self):
        qb = QueryBuilder("companies c")
        sql, params = qb.build_select("c.id, c.name")
        assert sql == "SELECT c.id, c.name FROM companies c"
        assert params == []

    def test_build_count_no_conditions(self):
        qb = QueryBuilder("companies c")
        sql, params = qb.build_count()
        assert sql == "SELECT COUNT(*) FROM companies c"
        assert params == []

    def test_empty_expression_adds_no_where(self):
        qb = QueryBuilder("companies c").apply(FilterExpression(), COLUMNS, "companies_fts")
        sql, _ = qb.build_count()
        assert "WHERE" not in sql


class TestEscaping:
    """User text never becomes LIKE or FTS syntax."""

    def test_escape_like_wildcards(self):
        assert escape_like("100%_off\\") == "100\\%\\_off\\\\"

    def test_fts_query_quotes_tokens(self):
        assert fts_query("cloud hosting") == '"cloud" "hosting"'

    def test_fts_query_drops_operators(self):
        assert fts_query('data" OR name:* NEAR(') == '"data" "OR" "name" "NEAR"'

    def test_fts_query_no_terms(self):
        assert fts_query("  *** ") == ""


class TestLeafFilters:
    """Each leaf kind compiles to one parameterized condition."""

    def test_text(self):
        qb = QueryBuilder("companies c").filter_text("robots", "companies_fts", id_column="c.id")
        sql, params = qb.build_select("*")
        assert "c.id IN (SELECT rowid FROM companies_fts WHERE companies_fts MATCH ?)" in sql
        assert params == ['"robots"']

    def test_text_without_terms_matches_nothing(self):
        qb = QueryBuilder("companies c").filter_text("!!", "companies_fts")
        sql, params = qb.build_count()
        assert "WHERE 0 = 1" in sql
        assert params == []

    def test_pattern(self):
        qb = QueryBuilder("companies c").filter_pattern("Ac_me", "c.name")
        sql, params = qb.build_select("*")
        assert "LOWER(c.name) LIKE LOWER(?) ESCAPE '\\'" in sql
        assert params == ["%Ac\\_me%"]

    def test_exact(self):
        sql, params = QueryBuilder("companies c").filter_exact("Software", "c.industry").build_select("*")
        assert "c.industry = ?" in sql
        assert params == ["Software"]

    def test_exact_none_is_noop(self):
        sql, _ = QueryBuilder("companies c").filter_exact(None, "c.industry").build_select("*")
        assert "WHERE" not in sql

    def test_range_both(self):
        sql, params = QueryBuilder("companies c").filter_range(10, 50, "c.size").build_select("*")
        assert "c.size >= ?" in sql
        assert "c.size <= ?" in sql
        assert params == [10, 50]

    def test_range_min_only(self):
        sql, params = QueryBuilder("companies c").filter_range(10, None, "c.size").build_select("*")
        assert "c.size >= ?" in sql
        assert "<=" not in sql
        assert params == [10]

    def test_range_inverted_kept(self):
        _, params = QueryBuilder("companies c").filter_range(500, 10, "c.size").build_select("*")
        assert params == [500, 10]

    def test_contains_all_one_exists_per_tag(self):
        qb = QueryBuilder("companies c").filter_contains_all(("ai", "b2b"), "c.tags")
        sql, params = qb.build_select("*")
        assert sql.count("EXISTS (SELECT 1 FROM json_each(c.tags) WHERE json_each.value = ?)") == 2
        assert params == ["ai", "b2b"]


class TestApply:
    """Whole expressions compile to AND-ed conditions."""

    def test_all_leaves_anded(self):
        expression = FilterExpression((
            TextMatch("cloud"),
            PatternMatch("name", "init"),
            ExactMatch("industry", "Software"),
            RangeMatch("foundedYear", gte=2000),
            ContainsAll("tags", ("saas",)),
        ))
        qb = QueryBuilder("companies c").apply(expression, COLUMNS, "companies_fts")
        sql, params = qb.build_count()
        assert sql.count(" AND ") == 4
        assert params == ['"cloud"', "%init%", "Software", 2000, "saas"]

    def test_unknown_leaf_rejected(self):
        with pytest.raises(TypeError):
            QueryBuilder("companies c").apply(FilterExpression(("bogus",)), COLUMNS, "companies_fts")

    def test_fluent_chaining(self):
        qb = QueryBuilder("companies c")
        assert qb.filter_exact("x", "c.industry") is qb
        assert qb.apply(FilterExpression(), COLUMNS, "companies_fts") is qb


class TestQueryBuilderSort:
    """Sort/ordering through the whitelist."""

    WHITELIST = {"name": "c.name", "size": "c.size", "id": "c.id"}

    def test_multi_field_sort(self):
        qb = QueryBuilder("companies c").sort([("size", "desc"), ("name", "asc")], self.WHITELIST)
        sql, _ = qb.build_select("*")
        assert "ORDER BY c.size DESC, c.name ASC" in sql

    def test_tiebreaker_appended(self):
        qb = QueryBuilder("companies c").sort([("name", "asc")], self.WHITELIST, tiebreaker="c.id")
        sql, _ = qb.build_select("*")
        assert "ORDER BY c.name ASC, c.id ASC" in sql

    def test_tiebreaker_not_duplicated(self):
        qb = QueryBuilder("companies c").sort([("id", "desc")], self.WHITELIST, tiebreaker="c.id")
        sql, _ = qb.build_select("*")
        assert "ORDER BY c.id DESC" in sql
        assert "c.id ASC" not in sql

    def test_unknown_field_raises(self):
        with pytest.raises(KeyError):
            QueryBuilder("companies c").sort([("'; DROP TABLE companies; --", "asc")], self.WHITELIST)

    def test_order_normalized(self):
        qb = QueryBuilder("companies c").sort([("name", "sideways")], self.WHITELIST)
        sql, _ = qb.build_select("*")
        assert "ORDER BY c.name ASC" in sql


class TestQueryBuilderPagination:
    """LIMIT/OFFSET from a normalized window."""

    def test_paginate(self):
        sql, _ = QueryBuilder("companies c").paginate(50, 25).build_select("*")
        assert "LIMIT 25" in sql
        assert "OFFSET 50" in sql

    def test_count_ignores_pagination(self):
        qb = QueryBuilder("companies c").filter_exact("Software", "c.industry").paginate(10, 10)
        sql, params = qb.build_count()
        assert "LIMIT" not in sql
        assert params == ["Software"]

    def test_build_returns_copy_of_params(self):
        qb = QueryBuilder("companies c").filter_exact("Software", "c.industry")
        _, params1 = qb.build_select("*")
        _, params2 = qb.build_count()
        assert params1 is not params2
