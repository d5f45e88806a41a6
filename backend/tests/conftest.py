"""
Pytest fixtures for the company directory tests.
"""
import pytest
from fastapi.testclient import TestClient

from company_api.dependencies import get_store
from company_api.main import app
from company_api.services.filters import (
    ContainsAll,
    ExactMatch,
    PatternMatch,
    RangeMatch,
    TextMatch,
)
from company_api.services.pagination import SortDirection
from company_api.stores import SQLiteCompanyStore

SAMPLE_COMPANIES = [
    {"name": "Acme Analytics", "industry": "Software", "location": "Berlin, DE", "size": 120,
     "foundedYear": 2012, "description": "Self-serve analytics for retail teams",
     "tags": ["ai", "b2b", "saas"]},
    {"name": "Northwind Payments", "industry": "Fintech", "location": "London, UK", "size": 450,
     "foundedYear": 2009, "description": "Card processing for marketplaces",
     "tags": ["fintech", "b2b", "payments"]},
    {"name": "Globex Robotics", "industry": "Manufacturing", "location": "Austin, US", "size": 900,
     "foundedYear": 1998, "description": "Warehouse automation robots",
     "tags": ["robotics", "ai"]},
    {"name": "Initech Cloud", "industry": "Software", "location": "San Francisco, US", "size": 60,
     "foundedYear": 2019, "description": "Managed Postgres hosting",
     "tags": ["saas", "devtools", "b2b"]},
    {"name": "Hooli Learn", "industry": "Education", "location": "berlin, DE", "size": 35,
     "foundedYear": 2021, "description": "Language learning with spaced repetition",
     "tags": ["edtech", "b2c"]},
]


class InMemoryCompanyStore:
    """Store double that evaluates filter expressions over a list of dicts."""

    def __init__(self, records=None):
        self.records = [dict(r, id=str(i + 1)) for i, r in enumerate(records or [])]
        self.find_calls = []
        self.count_calls = []

    @staticmethod
    def _matches(record, leaf):
        if isinstance(leaf, TextMatch):
            haystack = " ".join(
                [record.get("name") or "", record.get("description") or "", *record.get("tags", [])]
            ).lower()
            return all(token in haystack.split() for token in leaf.query.lower().split())
        value = record.get(leaf.field)
        if isinstance(leaf, PatternMatch):
            return leaf.pattern.lower() in (value or "").lower()
        if isinstance(leaf, ExactMatch):
            return value == leaf.value
        if isinstance(leaf, RangeMatch):
            if value is None:
                return False
            if leaf.gte is not None and value < leaf.gte:
                return False
            if leaf.lte is not None and value > leaf.lte:
                return False
            return True
        if isinstance(leaf, ContainsAll):
            return set(leaf.values) <= set(value or [])
        raise TypeError(leaf)

    def _filter(self, expression):
        return [r for r in self.records if all(self._matches(r, leaf) for leaf in expression)]

    def find(self, expression, sort, skip, limit):
        self.find_calls.append((expression, sort, skip, limit))
        rows = self._filter(expression)
        for item in reversed(sort):
            rows.sort(
                key=lambda r: (r.get(item.field) is None, r.get(item.field)),
                reverse=item.direction is SortDirection.DESC,
            )
        return rows[skip:skip + limit]

    def count(self, expression):
        self.count_calls.append(expression)
        return len(self._filter(expression))

    def get(self, company_id):
        return next((r for r in self.records if r["id"] == company_id), None)

    def insert(self, document):
        record = dict(document, id=str(len(self.records) + 1))
        self.records.append(record)
        return record

    def update(self, company_id, changes):
        record = self.get(company_id)
        if record is not None:
            record.update(changes)
        return record

    def delete(self, company_id):
        record = self.get(company_id)
        if record is None:
            return None
        self.records.remove(record)
        return company_id

    def ping(self):
        return True


class FailingStore(InMemoryCompanyStore):
    """Store double whose reads always raise the given error."""

    def __init__(self, error):
        super().__init__()
        self.error = error

    def find(self, expression, sort, skip, limit):
        raise self.error

    def count(self, expression):
        raise self.error

    def ping(self):
        return False


@pytest.fixture
def memory_store():
    """In-memory store holding the sample companies."""
    return InMemoryCompanyStore(SAMPLE_COMPANIES)


@pytest.fixture
def failing_store_factory():
    return FailingStore


@pytest.fixture
def sqlite_store(tmp_path):
    """SQLite store in a temporary file, seeded with the sample companies."""
    store = SQLiteCompanyStore(tmp_path / "companies.db", timeout=5)
    store.ensure_schema()
    for company in SAMPLE_COMPANIES:
        store.insert(company)
    return store


@pytest.fixture
def client(sqlite_store):
    """Test client whose store dependency points at the temporary SQLite store."""
    app.dependency_overrides[get_store] = lambda: sqlite_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def base_url():
    """Base URL for company endpoints."""
    return "/api/companies"


@pytest.fixture
def memory_store_factory():
    """Build an in-memory store from a list of records."""
    return InMemoryCompanyStore
