"""Document store adapters for the company collection."""
from .base import CompanyStore
from .sqlite_store import SQLiteCompanyStore
from .mongo_store import MongoCompanyStore

__all__ = ["CompanyStore", "SQLiteCompanyStore", "MongoCompanyStore"]
