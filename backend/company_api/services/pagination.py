"""
Pagination utilities for the service layer.

Normalizes page/limit/sort input, runs the find + count pair against a
document store and standardizes the paginated response envelope.
"""
from __future__ import annotations

import concurrent.futures
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from ..config.constants import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    DEFAULT_SORT,
    DESCENDING_MARKER,
    MAX_LIMIT,
    MAX_PAGE,
)
from .filters import FilterExpression

if TYPE_CHECKING:
    from ..stores.base import CompanyStore

logger = structlog.get_logger("company_api.services.pagination")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortField:
    """Single sort criterion."""
    field: str
    direction: SortDirection = SortDirection.ASC


SortSpec = tuple[SortField, ...]


@dataclass(frozen=True)
class PageRequest:
    """Offset pagination parameters, always within bounds."""
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_raw(cls, page: str | None, limit: str | None) -> PageRequest:
        return cls(page=normalize_page(page), limit=normalize_limit(limit))


@dataclass
class PageResult:
    """One page of matched records plus pagination metadata."""
    items: list[dict] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def pages(self) -> int:
        if self.total <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    def to_envelope(self) -> dict:
        """Response envelope returned to API clients."""
        return {
            "success": True,
            "data": self.items,
            "meta": {
                "total": self.total,
                "page": self.page,
                "limit": self.limit,
                "pages": self.pages,
            },
        }


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    # Accept "2.0"-style input the way a numeric cast would
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number)


def normalize_page(value: str | None) -> int:
    """Page number; missing, non-numeric or < 1 becomes 1.

    Pages past MAX_PAGE are clamped so the row offset stays a 64-bit integer;
    such a page is empty anyway.
    """
    page = _parse_int(value)
    if page is None or page < 1:
        return DEFAULT_PAGE
    return min(page, MAX_PAGE)


def normalize_limit(value: str | None) -> int:
    """Page size; missing or non-numeric becomes 10, then clamped to [1, 100]."""
    limit = _parse_int(value)
    if limit is None:
        limit = DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


def parse_sort(value: str | None) -> SortSpec:
    """Parse ``-foundedYear,name`` into an ordered sort spec.

    Empty tokens are skipped. Absent or empty input gives the default order
    (newest first).
    """
    if not value:
        value = DEFAULT_SORT
    spec: list[SortField] = []
    for token in value.split(","):
        token = token.strip()
        if not token:
            continue
        if token.startswith(DESCENDING_MARKER):
            name = token[len(DESCENDING_MARKER):]
            if name:
                spec.append(SortField(name, SortDirection.DESC))
        else:
            spec.append(SortField(token, SortDirection.ASC))
    if not spec:
        return parse_sort(DEFAULT_SORT)
    return tuple(spec)


def paginate_query(
    store: CompanyStore,
    expression: FilterExpression,
    sort: SortSpec,
    page_request: PageRequest,
) -> PageResult:
    """
    Execute count + find against the store and return a PageResult.

    Both calls are submitted to a small thread pool; neither depends on the
    other. A failure in either propagates unchanged: there is no retry and no
    partial page.

    Args:
        store: Document store collaborator
        expression: Filter shared by the find and the count
        sort: Ordered sort criteria
        page_request: Normalized page and limit

    Returns:
        PageResult with items and pagination metadata
    """
    start = time.perf_counter()

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        f_items = executor.submit(
            store.find, expression, sort, page_request.offset, page_request.limit
        )
        f_total = executor.submit(store.count, expression)

        items = f_items.result()
        total = f_total.result()

    result = PageResult(
        items=list(items),
        total=total,
        page=page_request.page,
        limit=page_request.limit,
    )
    logger.info(
        "page_fetched",
        total=total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        duration_ms=round((time.perf_counter() - start) * 1000, 1),
    )
    return result
