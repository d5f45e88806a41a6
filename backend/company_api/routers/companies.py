"""
Company API endpoints.

Listing accepts every filter as a raw optional string: malformed numbers,
pages or limits degrade to defaults instead of failing validation.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from ..dependencies import get_store
from ..models.common import ErrorResponse
from ..models.company import (
    CompanyCreate,
    CompanyDeletedResponse,
    CompanyListResponse,
    CompanyResponse,
    CompanyUpdate,
)
from ..services.company_service import company_service
from ..services.filters import QueryParameters
from ..stores import CompanyStore

router = APIRouter(prefix="/companies", tags=["companies"])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Company not found"}}
STORE_FAILURE = {503: {"model": ErrorResponse, "description": "Company store unavailable"}}


@router.get(
    "",
    response_model=CompanyListResponse,
    responses={400: {"model": ErrorResponse}, **STORE_FAILURE},
)
def list_companies(
    # Filters
    search: Optional[str] = Query(None, description="Full-text search over name, description and tags"),
    name: Optional[str] = Query(None, description="Case-insensitive substring of the name"),
    industry: Optional[str] = Query(None, description="Exact industry"),
    location: Optional[str] = Query(None, description="Case-insensitive substring of the location"),
    tag: Optional[str] = Query(None, description="Single required tag"),
    tags: Optional[str] = Query(None, description="Comma-separated required tags (all must match)"),
    size_min: Optional[str] = Query(None, alias="sizeMin", description="Minimum employees"),
    size_max: Optional[str] = Query(None, alias="sizeMax", description="Maximum employees"),
    founded_from: Optional[str] = Query(None, alias="foundedFrom", description="Earliest founding year"),
    founded_to: Optional[str] = Query(None, alias="foundedTo", description="Latest founding year"),
    # Sorting and pagination
    sort: Optional[str] = Query(None, description="Comma-separated fields, '-' prefix for descending"),
    page: Optional[str] = Query(None, description="Page number (default 1)"),
    limit: Optional[str] = Query(None, description="Items per page (default 10, max 100)"),
    store: CompanyStore = Depends(get_store),
):
    """
    List companies with filters, sorting and pagination.

    Defaults to the newest companies first, 10 per page.
    """
    params = QueryParameters(
        search=search,
        name=name,
        industry=industry,
        location=location,
        tag=tag,
        tags=tags,
        size_min=size_min,
        size_max=size_max,
        founded_from=founded_from,
        founded_to=founded_to,
        sort=sort,
        page=page,
        limit=limit,
    )
    return company_service.list_companies(store, params).to_envelope()


@router.get("/{company_id}", response_model=CompanyResponse, responses=NOT_FOUND)
def get_company(
    company_id: str = Path(..., description="Company ID"),
    store: CompanyStore = Depends(get_store),
):
    """Get a single company."""
    return {"success": True, "data": company_service.get_company(store, company_id)}


@router.post("", response_model=CompanyResponse, status_code=201)
def create_company(
    payload: CompanyCreate,
    store: CompanyStore = Depends(get_store),
):
    """Create a company."""
    return {"success": True, "data": company_service.create_company(store, payload)}


@router.put("/{company_id}", response_model=CompanyResponse, responses=NOT_FOUND)
def update_company(
    payload: CompanyUpdate,
    company_id: str = Path(..., description="Company ID"),
    store: CompanyStore = Depends(get_store),
):
    """Update the given fields of a company."""
    return {"success": True, "data": company_service.update_company(store, company_id, payload)}


@router.delete("/{company_id}", response_model=CompanyDeletedResponse, responses=NOT_FOUND)
def delete_company(
    company_id: str = Path(..., description="Company ID"),
    store: CompanyStore = Depends(get_store),
):
    """Delete a company; returns its ID."""
    return {"success": True, "data": company_service.delete_company(store, company_id)}
