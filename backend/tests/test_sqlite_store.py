"""
Tests for the SQLite company store against a temporary database file.
"""
import pytest

from company_api.errors import StoreQueryError, StoreUnavailable
from company_api.services.filters import FilterExpression, QueryParameters, build_filters
from company_api.services.pagination import parse_sort
from company_api.stores import SQLiteCompanyStore


def names(store, sort="name", **params):
    """Names of all companies matching the given wire-name parameters."""
    expression = build_filters(QueryParameters.from_mapping(params))
    return [r["name"] for r in store.find(expression, parse_sort(sort), 0, 100)]


class TestSchema:
    """Schema creation."""

    def test_ensure_schema_is_idempotent(self, sqlite_store):
        sqlite_store.ensure_schema()
        assert sqlite_store.count(FilterExpression()) == 5

    def test_ping(self, sqlite_store, tmp_path):
        assert sqlite_store.ping() is True
        assert SQLiteCompanyStore(tmp_path / "absent.db").ping() is False


class TestFilters:
    """Each parameter narrows the result set as documented."""

    def test_no_filters_returns_everything(self, sqlite_store):
        assert len(names(sqlite_store)) == 5

    def test_full_text_search(self, sqlite_store):
        """Search covers name, description and tags."""
        assert names(sqlite_store, search="robots") == ["Globex Robotics"]
        assert names(sqlite_store, search="postgres") == ["Initech Cloud"]
        assert names(sqlite_store, search="edtech") == ["Hooli Learn"]

    def test_full_text_search_all_terms_required(self, sqlite_store):
        assert names(sqlite_store, search="managed hosting") == ["Initech Cloud"]
        assert names(sqlite_store, search="managed robots") == []

    def test_full_text_search_ignores_syntax(self, sqlite_store):
        """FTS operators in user input are treated as plain words."""
        assert names(sqlite_store, search='robots" OR *') == []
        assert names(sqlite_store, search="***") == []

    def test_name_substring_case_insensitive(self, sqlite_store):
        assert names(sqlite_store, name="ANALYT") == ["Acme Analytics"]
        assert names(sqlite_store, name="o") == [
            "Globex Robotics", "Hooli Learn", "Initech Cloud", "Northwind Payments",
        ]

    def test_name_wildcards_are_literal(self, sqlite_store):
        assert names(sqlite_store, name="%") == []
        assert names(sqlite_store, name="_") == []

    def test_location_substring(self, sqlite_store):
        assert names(sqlite_store, location="Berlin") == ["Acme Analytics", "Hooli Learn"]

    def test_industry_exact(self, sqlite_store):
        assert names(sqlite_store, industry="Software") == ["Acme Analytics", "Initech Cloud"]
        assert names(sqlite_store, industry="soft") == []

    def test_tags_contain_all(self, sqlite_store):
        assert names(sqlite_store, tags="ai,b2b") == ["Acme Analytics"]
        assert names(sqlite_store, tags="b2b") == [
            "Acme Analytics", "Initech Cloud", "Northwind Payments",
        ]
        assert names(sqlite_store, tags="ai, b2b", tag="saas") == ["Acme Analytics"]
        assert names(sqlite_store, tags="ai,b2b,fintech") == []

    def test_size_range(self, sqlite_store):
        assert names(sqlite_store, sizeMin="100", sizeMax="500") == [
            "Acme Analytics", "Northwind Payments",
        ]

    def test_size_range_non_numeric_bound_dropped(self, sqlite_store):
        assert names(sqlite_store, sizeMin="400", sizeMax="abc") == [
            "Globex Robotics", "Northwind Payments",
        ]

    def test_inverted_range_matches_nothing(self, sqlite_store):
        assert names(sqlite_store, sizeMin="500", sizeMax="10") == []

    def test_founded_range(self, sqlite_store):
        assert names(sqlite_store, foundedFrom="2010") == [
            "Acme Analytics", "Hooli Learn", "Initech Cloud",
        ]
        assert names(sqlite_store, foundedTo="2000") == ["Globex Robotics"]

    def test_combined_filters(self, sqlite_store):
        assert names(sqlite_store, industry="Software", tag="devtools", sizeMax="100") == [
            "Initech Cloud",
        ]

    def test_count_matches_find(self, sqlite_store):
        expression = build_filters(QueryParameters(tags="b2b"))
        assert sqlite_store.count(expression) == 3


class TestSortAndPaging:
    """Ordering and offset windows."""

    def test_sort_descending_then_ascending(self, sqlite_store):
        sqlite_store.insert({"name": "Zeta Soft", "industry": "Software", "foundedYear": 2019})
        assert names(sqlite_store, sort="-foundedYear,name")[:3] == [
            "Hooli Learn", "Initech Cloud", "Zeta Soft",
        ]

    def test_paging_window(self, sqlite_store):
        expression = FilterExpression()
        sort = parse_sort("name")
        page_two = sqlite_store.find(expression, sort, 2, 2)
        assert [r["name"] for r in page_two] == ["Hooli Learn", "Initech Cloud"]

    def test_unknown_sort_field_rejected(self, sqlite_store):
        with pytest.raises(StoreQueryError):
            sqlite_store.find(FilterExpression(), parse_sort("secret"), 0, 10)

    def test_default_sort_newest_first(self, sqlite_store):
        created = sqlite_store.insert({"name": "Newest Co"})
        first = sqlite_store.find(FilterExpression(), parse_sort(None), 0, 1)
        assert first[0]["createdAt"] >= created["createdAt"]


class TestRecords:
    """Single-record reads and writes."""

    def test_insert_returns_record(self, sqlite_store):
        record = sqlite_store.insert({"name": "Tiny", "tags": ["solo"], "foundedYear": 2020})
        assert record["id"]
        assert record["name"] == "Tiny"
        assert record["tags"] == ["solo"]
        assert record["foundedYear"] == 2020
        assert record["createdAt"] == record["updatedAt"]

    def test_insert_defaults_tags(self, sqlite_store):
        assert sqlite_store.insert({"name": "No Tags"})["tags"] == []

    def test_get_missing(self, sqlite_store):
        assert sqlite_store.get("999") is None
        assert sqlite_store.get("not-an-id") is None

    def test_update(self, sqlite_store):
        record = sqlite_store.insert({"name": "Before", "tags": ["a"]})
        updated = sqlite_store.update(record["id"], {"name": "After", "tags": ["b", "c"]})
        assert updated["name"] == "After"
        assert updated["tags"] == ["b", "c"]
        assert updated["updatedAt"] >= record["updatedAt"]

    def test_update_refreshes_search_index(self, sqlite_store):
        record = sqlite_store.insert({"name": "Plain"})
        sqlite_store.update(record["id"], {"description": "quantum widgets"})
        assert names(sqlite_store, search="quantum") == ["Plain"]

    def test_update_missing(self, sqlite_store):
        assert sqlite_store.update("999", {"name": "x"}) is None

    def test_delete(self, sqlite_store):
        record = sqlite_store.insert({"name": "Doomed", "description": "ephemeral"})
        assert sqlite_store.delete(record["id"]) == record["id"]
        assert sqlite_store.get(record["id"]) is None
        assert names(sqlite_store, search="ephemeral") == []

    def test_delete_missing(self, sqlite_store):
        assert sqlite_store.delete("999") is None


class TestFailures:
    """Driver errors surface as store errors."""

    def test_unreachable_database(self, tmp_path):
        store = SQLiteCompanyStore(tmp_path / "missing-dir" / "companies.db")
        with pytest.raises(StoreUnavailable):
            store.count(FilterExpression())

    def test_missing_schema_is_query_error(self, tmp_path):
        store = SQLiteCompanyStore(tmp_path / "empty.db")
        with pytest.raises(StoreQueryError):
            store.count(FilterExpression())
