"""
SQLite company store.

Companies live in one table with tags stored as a JSON array. A regular FTS5
table keyed by the company id, maintained by triggers, serves full-text search
over name, description and tags.
"""
from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

import structlog

from ..config.constants import SORTABLE_FIELDS
from ..errors import StoreQueryError, StoreUnavailable
from ..services.filters import FilterExpression
from ..services.pagination import SortSpec
from ..services.query_builder import QueryBuilder
from .base import utc_now

logger = structlog.get_logger("company_api.stores.sqlite")

FTS_TABLE = "companies_fts"

# Record field (wire name) -> SQL column expression
COLUMNS = {
    "id": "c.id",
    "_id": "c.id",
    "name": "c.name",
    "industry": "c.industry",
    "location": "c.location",
    "size": "c.size",
    "foundedYear": "c.founded_year",
    "website": "c.website",
    "description": "c.description",
    "tags": "c.tags",
    "createdAt": "c.created_at",
    "updatedAt": "c.updated_at",
}

SORT_WHITELIST = {name: COLUMNS[name] for name in SORTABLE_FIELDS}

# Writable record fields -> table column
WRITABLE = {
    "name": "name",
    "industry": "industry",
    "location": "location",
    "size": "size",
    "foundedYear": "founded_year",
    "website": "website",
    "description": "description",
    "tags": "tags",
}

SELECT_COLUMNS = """
    c.id, c.name, c.industry, c.location, c.size, c.founded_year,
    c.website, c.description, c.tags, c.created_at, c.updated_at
"""

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS companies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    industry TEXT,
    location TEXT,
    size INTEGER,
    founded_year INTEGER,
    website TEXT,
    description TEXT,
    tags TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_companies_filters
    ON companies (industry, location, size, founded_year);
CREATE INDEX IF NOT EXISTS idx_companies_created_at ON companies (created_at);
CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} USING fts5(name, description, tags);
CREATE TRIGGER IF NOT EXISTS companies_ai AFTER INSERT ON companies BEGIN
    INSERT INTO {FTS_TABLE}(rowid, name, description, tags)
    VALUES (new.id, new.name, new.description, new.tags);
END;
CREATE TRIGGER IF NOT EXISTS companies_ad AFTER DELETE ON companies BEGIN
    DELETE FROM {FTS_TABLE} WHERE rowid = old.id;
END;
CREATE TRIGGER IF NOT EXISTS companies_au AFTER UPDATE ON companies BEGIN
    DELETE FROM {FTS_TABLE} WHERE rowid = old.id;
    INSERT INTO {FTS_TABLE}(rowid, name, description, tags)
    VALUES (new.id, new.name, new.description, new.tags);
END;
"""

# OperationalError messages that mean the database itself is out of reach
_UNAVAILABLE_MARKERS = ("locked", "busy", "unable to open", "disk i/o", "readonly")


class SQLiteCompanyStore:
    """Company store backed by a SQLite file."""

    def __init__(self, path: str | Path, timeout: int = 30):
        self.path = Path(path)
        self.timeout = timeout

    # --- Connections ---

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.path), timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute(f"PRAGMA busy_timeout = {int(self.timeout * 1000)}")
        return conn

    @contextmanager
    def _db(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection and translate driver errors into store errors."""
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            logger.error("store_unavailable", path=str(self.path), error=str(exc))
            raise StoreUnavailable("Company store is unavailable") from exc
        try:
            with conn:
                yield conn
        except sqlite3.OperationalError as exc:
            message = str(exc).lower()
            if any(marker in message for marker in _UNAVAILABLE_MARKERS):
                logger.error("store_unavailable", path=str(self.path), error=str(exc))
                raise StoreUnavailable("Company store is unavailable") from exc
            logger.error("store_query_error", error=str(exc))
            raise StoreQueryError("Company store rejected the query") from exc
        except sqlite3.Error as exc:
            logger.error("store_query_error", error=str(exc))
            raise StoreQueryError("Company store rejected the query") from exc
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        """Create tables, indexes and FTS triggers if they do not exist."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._db() as conn:
            conn.executescript(SCHEMA)
        logger.info("schema_ready", path=str(self.path))

    def ping(self) -> bool:
        """True when the database answers a trivial query."""
        if not self.path.exists():
            return False
        try:
            with self._db() as conn:
                conn.execute("SELECT 1").fetchone()
        except (StoreUnavailable, StoreQueryError):
            return False
        return True

    # --- Reads ---

    def _filtered(self, expression: FilterExpression) -> QueryBuilder:
        return QueryBuilder("companies c").apply(expression, COLUMNS, FTS_TABLE)

    def find(
        self,
        expression: FilterExpression,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        qb = self._filtered(expression)
        try:
            qb.sort(
                ((s.field, s.direction.value) for s in sort),
                whitelist=SORT_WHITELIST,
                tiebreaker=COLUMNS["id"],
            )
        except KeyError as exc:
            raise StoreQueryError(
                f"Unsupported sort field: {exc.args[0]}",
                details={"sortable": sorted(SORTABLE_FIELDS)},
            ) from exc
        qb.paginate(skip, limit)

        sql, params = qb.build_select(SELECT_COLUMNS)
        with self._db() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._map_row(row) for row in rows]

    def count(self, expression: FilterExpression) -> int:
        sql, params = self._filtered(expression).build_count()
        with self._db() as conn:
            return conn.execute(sql, params).fetchone()[0]

    def get(self, company_id: str) -> dict[str, Any] | None:
        row_id = _row_id(company_id)
        if row_id is None:
            return None
        with self._db() as conn:
            row = conn.execute(
                f"SELECT {SELECT_COLUMNS} FROM companies c WHERE c.id = ?", (row_id,)
            ).fetchone()
        return self._map_row(row) if row is not None else None

    # --- Writes ---

    def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        values = _to_columns(document)
        values.setdefault("tags", "[]")
        now = utc_now()
        values["created_at"] = now
        values["updated_at"] = now
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        with self._db() as conn:
            cursor = conn.execute(
                f"INSERT INTO companies ({columns}) VALUES ({placeholders})",
                list(values.values()),
            )
            row_id = cursor.lastrowid
        logger.info("company_created", company_id=row_id)
        return self.get(str(row_id))

    def update(self, company_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        row_id = _row_id(company_id)
        if row_id is None:
            return None
        values = _to_columns(changes)
        values["updated_at"] = utc_now()
        assignments = ", ".join(f"{column} = ?" for column in values)
        with self._db() as conn:
            cursor = conn.execute(
                f"UPDATE companies SET {assignments} WHERE id = ?",
                [*values.values(), row_id],
            )
            if cursor.rowcount == 0:
                return None
        logger.info("company_updated", company_id=row_id)
        return self.get(str(row_id))

    def delete(self, company_id: str) -> str | None:
        row_id = _row_id(company_id)
        if row_id is None:
            return None
        with self._db() as conn:
            cursor = conn.execute("DELETE FROM companies WHERE id = ?", (row_id,))
            if cursor.rowcount == 0:
                return None
        logger.info("company_deleted", company_id=row_id)
        return str(row_id)

    @staticmethod
    def _map_row(row: sqlite3.Row) -> dict[str, Any]:
        """Map a company row to the record shape returned to clients."""
        return {
            "id": str(row["id"]),
            "name": row["name"],
            "industry": row["industry"],
            "location": row["location"],
            "size": row["size"],
            "foundedYear": row["founded_year"],
            "website": row["website"],
            "description": row["description"],
            "tags": json.loads(row["tags"]) if row["tags"] else [],
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        }


def _row_id(company_id: str) -> int | None:
    try:
        return int(company_id)
    except (TypeError, ValueError):
        return None


def _to_columns(document: dict[str, Any]) -> dict[str, Any]:
    """Keep writable fields and rename them to table columns."""
    values: dict[str, Any] = {}
    for key, value in document.items():
        column = WRITABLE.get(key)
        if column is None:
            continue
        if column == "tags":
            value = json.dumps(list(value or []))
        values[column] = value
    return values
