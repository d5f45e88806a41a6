"""
CompanyStore protocol: the document store collaborator the services depend on.

Adapters translate their driver errors into StoreUnavailable (connectivity,
timeouts) or StoreQueryError (rejected filter or sort).
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from ..services.filters import FilterExpression
from ..services.pagination import SortSpec


@runtime_checkable
class CompanyStore(Protocol):
    def find(
        self,
        expression: FilterExpression,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> list[dict[str, Any]]: ...

    def count(self, expression: FilterExpression) -> int: ...

    def get(self, company_id: str) -> dict[str, Any] | None: ...

    def insert(self, document: dict[str, Any]) -> dict[str, Any]: ...

    def update(self, company_id: str, changes: dict[str, Any]) -> dict[str, Any] | None: ...

    def delete(self, company_id: str) -> str | None: ...

    def ping(self) -> bool: ...


def utc_now() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, as records carry it."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
