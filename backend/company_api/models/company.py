"""Pydantic models for company endpoints."""
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.constants import MIN_COMPANY_SIZE, MIN_FOUNDED_YEAR, max_founded_year
from .common import PageMeta

WEBSITE_PATTERN = re.compile(r"^https?://.+\..+")


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


class CompanyFields(BaseModel):
    """Writable company fields shared by create and update payloads."""

    name: Optional[str] = Field(None, description="Company name")
    industry: Optional[str] = Field(None, description="Industry, matched exactly in filters")
    location: Optional[str] = Field(None, description="Location, e.g. 'Berlin, DE'")
    size: Optional[int] = Field(None, ge=MIN_COMPANY_SIZE, description="Number of employees")
    founded_year: Optional[int] = Field(None, alias="foundedYear", description="Year founded")
    website: Optional[str] = Field(None, description="Website URL (http/https)")
    description: Optional[str] = Field(None, description="Free-text description")
    tags: Optional[List[str]] = Field(None, description="Tags, e.g. ['saas', 'b2b']")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name", "industry", "location", "website", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        return [t.strip() for t in value if t and t.strip()]

    @field_validator("founded_year")
    @classmethod
    def check_founded_year(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        latest = max_founded_year()
        if value < MIN_FOUNDED_YEAR or value > latest:
            raise ValueError(f"foundedYear must be between {MIN_FOUNDED_YEAR} and {latest}")
        return value

    @field_validator("website")
    @classmethod
    def check_website(cls, value: Optional[str]) -> Optional[str]:
        if value and not WEBSITE_PATTERN.match(value):
            raise ValueError(f"{value} is not a valid URL")
        return value

    def to_document(self) -> dict:
        """Fields the client actually sent, keyed by record (wire) names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class CompanyCreate(CompanyFields):
    """Payload for creating a company. Only the name is required."""

    name: str = Field(..., min_length=1, description="Company name")


class CompanyUpdate(CompanyFields):
    """Partial update payload; omitted fields are left untouched."""


class CompanyRecord(BaseModel):
    """Company as returned by the API."""

    id: str = Field(..., description="Company ID")
    name: str
    industry: Optional[str] = None
    location: Optional[str] = None
    size: Optional[int] = None
    foundedYear: Optional[int] = None
    website: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class CompanyListResponse(BaseModel):
    """Paginated company listing."""

    success: bool = True
    data: List[CompanyRecord]
    meta: PageMeta


class CompanyResponse(BaseModel):
    """Single company."""

    success: bool = True
    data: CompanyRecord


class CompanyDeletedResponse(BaseModel):
    """Identifier of a deleted company."""

    success: bool = True
    data: str
