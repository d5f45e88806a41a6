"""
MongoDB company store.

Filter expressions are pushed down as Mongo filter documents: text leaves use
the collection's text index (``$text``), tag leaves use ``$all``.

Requires a text index on name, description and tags; ``ensure_indexes()``
creates it together with the compound filter index.
"""
from __future__ import annotations

import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument, TEXT
from pymongo.errors import ConnectionFailure, ExecutionTimeout, OperationFailure, PyMongoError

from ..config.constants import TEXT_SEARCH_FIELDS
from ..errors import StoreQueryError, StoreUnavailable
from ..services.filters import (
    ContainsAll,
    ExactMatch,
    FilterExpression,
    PatternMatch,
    RangeMatch,
    TextMatch,
)
from ..services.pagination import SortDirection, SortSpec

logger = structlog.get_logger("company_api.stores.mongo")

WRITABLE = ("name", "industry", "location", "size", "foundedYear", "website", "description", "tags")


def to_mongo_filter(expression: FilterExpression) -> dict[str, Any]:
    """Translate a filter expression into a Mongo filter document."""
    query: dict[str, Any] = {}
    for leaf in expression:
        if isinstance(leaf, TextMatch):
            query["$text"] = {"$search": leaf.query}
        elif isinstance(leaf, PatternMatch):
            query[leaf.field] = {"$regex": re.escape(leaf.pattern), "$options": "i"}
        elif isinstance(leaf, ExactMatch):
            query[leaf.field] = leaf.value
        elif isinstance(leaf, RangeMatch):
            bounds = query.setdefault(leaf.field, {})
            if leaf.gte is not None:
                bounds["$gte"] = leaf.gte
            if leaf.lte is not None:
                bounds["$lte"] = leaf.lte
        elif isinstance(leaf, ContainsAll):
            query[leaf.field] = {"$all": list(leaf.values)}
        else:
            raise TypeError(f"Unsupported filter leaf: {leaf!r}")
    return query


def to_mongo_sort(sort: SortSpec) -> list[tuple[str, int]]:
    """Sort spec as a pymongo sort list; ``id`` maps to ``_id``."""
    keys: list[tuple[str, int]] = []
    seen: set[str] = set()
    for item in sort:
        name = "_id" if item.field == "id" else item.field
        if name in seen:
            continue
        seen.add(name)
        keys.append((name, DESCENDING if item.direction is SortDirection.DESC else ASCENDING))
    if "_id" not in seen:
        keys.append(("_id", ASCENDING))
    return keys


def _object_id(company_id: str) -> ObjectId | None:
    try:
        return ObjectId(company_id)
    except (InvalidId, TypeError):
        return None


def _iso(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return value


def serialize(document: dict[str, Any]) -> dict[str, Any]:
    """Render a stored document in the record shape returned to clients."""
    record = {key: _iso(value) for key, value in document.items() if key not in ("_id", "__v")}
    record["id"] = str(document["_id"])
    record["tags"] = record.get("tags") or []
    return record


class MongoCompanyStore:
    """Company store backed by a pymongo collection."""

    def __init__(self, collection: Any):
        self._col = collection

    @classmethod
    def from_uri(
        cls,
        uri: str,
        database: str = "companydb",
        collection: str = "companies",
        timeout_ms: int = 30000,
    ) -> MongoCompanyStore:
        client = MongoClient(
            uri,
            serverSelectionTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
        )
        return cls(client[database][collection])

    @contextmanager
    def _guard(self) -> Generator[None, None, None]:
        """Translate pymongo errors into store errors."""
        try:
            yield
        except (ConnectionFailure, ExecutionTimeout) as exc:
            logger.error("store_unavailable", error=str(exc))
            raise StoreUnavailable("Company store is unavailable") from exc
        except OperationFailure as exc:
            logger.error("store_query_error", error=str(exc), code=exc.code)
            raise StoreQueryError("Company store rejected the query") from exc
        except PyMongoError as exc:
            logger.error("store_query_error", error=str(exc))
            raise StoreQueryError("Company store rejected the query") from exc

    def ensure_indexes(self) -> None:
        with self._guard():
            self._col.create_index([(name, TEXT) for name in TEXT_SEARCH_FIELDS])
            self._col.create_index(
                [("industry", ASCENDING), ("location", ASCENDING),
                 ("size", ASCENDING), ("foundedYear", ASCENDING)]
            )
            self._col.create_index([("tags", ASCENDING)])
        logger.info("indexes_ready", collection=self._col.name)

    def ping(self) -> bool:
        try:
            with self._guard():
                self._col.database.command("ping")
        except (StoreUnavailable, StoreQueryError):
            return False
        return True

    def find(
        self,
        expression: FilterExpression,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        with self._guard():
            cursor = (
                self._col.find(to_mongo_filter(expression))
                .sort(to_mongo_sort(sort))
                .skip(skip)
                .limit(limit)
            )
            return [serialize(doc) for doc in cursor]

    def count(self, expression: FilterExpression) -> int:
        with self._guard():
            return self._col.count_documents(to_mongo_filter(expression))

    def get(self, company_id: str) -> dict[str, Any] | None:
        oid = _object_id(company_id)
        if oid is None:
            return None
        with self._guard():
            doc = self._col.find_one({"_id": oid})
        return serialize(doc) if doc is not None else None

    def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        doc = {key: document[key] for key in WRITABLE if key in document}
        doc["tags"] = doc.get("tags") or []
        doc["createdAt"] = now
        doc["updatedAt"] = now
        with self._guard():
            result = self._col.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("company_created", company_id=str(result.inserted_id))
        return serialize(doc)

    def update(self, company_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        oid = _object_id(company_id)
        if oid is None:
            return None
        fields = {key: changes[key] for key in WRITABLE if key in changes}
        if "tags" in fields and fields["tags"] is None:
            fields["tags"] = []
        fields["updatedAt"] = datetime.now(timezone.utc)
        with self._guard():
            doc = self._col.find_one_and_update(
                {"_id": oid},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            return None
        logger.info("company_updated", company_id=company_id)
        return serialize(doc)

    def delete(self, company_id: str) -> str | None:
        oid = _object_id(company_id)
        if oid is None:
            return None
        with self._guard():
            doc = self._col.find_one_and_delete({"_id": oid})
        if doc is None:
            return None
        logger.info("company_deleted", company_id=company_id)
        return str(doc["_id"])
