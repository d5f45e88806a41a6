"""
Service layer for the company directory API.

Services encapsulate filter construction, pagination and store access.
Routers stay thin: parse request → call service → return response.
"""
from .filters import FilterExpression, QueryParameters, build_filters
from .query_builder import QueryBuilder
from .pagination import PageRequest, PageResult, paginate_query, parse_sort
from .company_service import company_service

__all__ = [
    "FilterExpression",
    "QueryParameters",
    "build_filters",
    "QueryBuilder",
    "PageRequest",
    "PageResult",
    "paginate_query",
    "parse_sort",
    "company_service",
]
