"""Common Pydantic models for pagination and response envelopes."""
from pydantic import BaseModel, Field


class PageMeta(BaseModel):
    """Pagination metadata for list responses."""

    total: int = Field(..., description="Records matching the filter, ignoring pagination")
    page: int = Field(..., description="Current page number (1-indexed)")
    limit: int = Field(..., description="Items per page (1-100)")
    pages: int = Field(..., description="Total number of pages")


class ErrorResponse(BaseModel):
    """Failure envelope returned for every error."""

    success: bool = False
    message: str
    code: str | None = None
