"""Store configuration and common dependencies for the API."""
import os
from functools import lru_cache
from pathlib import Path

from .stores import CompanyStore, MongoCompanyStore, SQLiteCompanyStore

# Store backend - "sqlite" (default) or "mongo"
STORE_BACKEND = os.environ.get("STORE_BACKEND", "sqlite").lower()

# SQLite database path - configurable via env var, defaults to backend/companies.db
DB_PATH = Path(os.environ.get("DATABASE_PATH", str(Path(__file__).parent.parent / "companies.db")))

# Query timeout in seconds (configurable via environment variable)
DB_QUERY_TIMEOUT = int(os.environ.get("DB_QUERY_TIMEOUT", "30"))

# MongoDB connection, used when STORE_BACKEND=mongo
MONGO_URI = os.environ.get("MONGO_URI", "")
MONGO_DB = os.environ.get("MONGO_DB", "companydb")
MONGO_COLLECTION = os.environ.get("MONGO_COLLECTION", "companies")


def create_store() -> CompanyStore:
    """Build the configured company store.

    Raises:
        RuntimeError: STORE_BACKEND=mongo without MONGO_URI, or an unknown backend.
    """
    if STORE_BACKEND == "sqlite":
        return SQLiteCompanyStore(DB_PATH, timeout=DB_QUERY_TIMEOUT)
    if STORE_BACKEND == "mongo":
        if not MONGO_URI:
            raise RuntimeError("MONGO_URI is required when STORE_BACKEND=mongo")
        return MongoCompanyStore.from_uri(
            MONGO_URI,
            database=MONGO_DB,
            collection=MONGO_COLLECTION,
            timeout_ms=DB_QUERY_TIMEOUT * 1000,
        )
    raise RuntimeError(f"Unknown STORE_BACKEND '{STORE_BACKEND}' (expected sqlite or mongo)")


@lru_cache(maxsize=1)
def get_store() -> CompanyStore:
    """FastAPI dependency returning the process-wide company store."""
    return create_store()


def prepare_store(store: CompanyStore) -> None:
    """Create schema (SQLite) or indexes (Mongo) for the given store."""
    if isinstance(store, SQLiteCompanyStore):
        store.ensure_schema()
    elif isinstance(store, MongoCompanyStore):
        store.ensure_indexes()
