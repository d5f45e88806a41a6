# Pydantic models for API request/response
from .common import ErrorResponse, PageMeta
from .company import (
    CompanyCreate,
    CompanyDeletedResponse,
    CompanyListResponse,
    CompanyRecord,
    CompanyResponse,
    CompanyUpdate,
)

__all__ = [
    "ErrorResponse",
    "PageMeta",
    "CompanyCreate",
    "CompanyDeletedResponse",
    "CompanyListResponse",
    "CompanyRecord",
    "CompanyResponse",
    "CompanyUpdate",
]
