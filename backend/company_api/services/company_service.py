"""
Company domain service.

Handles company listing (filters, sort, pagination) and single-record
lookups and writes. The store is always passed in, never looked up globally.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from ..errors import NotFoundError
from ..models.company import CompanyCreate, CompanyUpdate
from .filters import QueryParameters, build_filters
from .pagination import PageRequest, PageResult, paginate_query, parse_sort

if TYPE_CHECKING:
    from ..stores.base import CompanyStore

logger = structlog.get_logger("company_api.services.company")

NOT_FOUND_MESSAGE = "Company not found"


class CompanyService:
    """Business logic for company queries."""

    def list_companies(self, store: CompanyStore, params: QueryParameters) -> PageResult:
        """
        List companies matching the filters, sorted and paginated.

        Malformed filter, sort or page input never fails here; only the
        store call can raise.
        """
        expression = build_filters(params)
        sort = parse_sort(params.sort)
        page_request = PageRequest.from_raw(params.page, params.limit)
        return paginate_query(store, expression, sort, page_request)

    def get_company(self, store: CompanyStore, company_id: str) -> dict[str, Any]:
        record = store.get(company_id)
        if record is None:
            raise NotFoundError(NOT_FOUND_MESSAGE, details={"id": company_id})
        return record

    def create_company(self, store: CompanyStore, payload: CompanyCreate) -> dict[str, Any]:
        return store.insert(payload.to_document())

    def update_company(
        self,
        store: CompanyStore,
        company_id: str,
        payload: CompanyUpdate,
    ) -> dict[str, Any]:
        """Apply a partial update after validating the merged record."""
        current = self.get_company(store, company_id)
        changes = payload.to_document()
        # Raises pydantic.ValidationError when the merge breaks a field rule
        CompanyCreate.model_validate({**current, **changes})

        updated = store.update(company_id, changes)
        if updated is None:
            raise NotFoundError(NOT_FOUND_MESSAGE, details={"id": company_id})
        return updated

    def delete_company(self, store: CompanyStore, company_id: str) -> str:
        deleted = store.delete(company_id)
        if deleted is None:
            raise NotFoundError(NOT_FOUND_MESSAGE, details={"id": company_id})
        return deleted


# Singleton instance for use in routers
company_service = CompanyService()
