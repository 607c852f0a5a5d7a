"""
Businesses router - Search, CRUD and share metadata for listings.

This module provides the directory listing endpoint (free-text search,
city and category filters, pagination) and the admin create/edit/delete
operations.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import JSONResponse

from api.config import settings
from api.dependencies import get_business_service, get_current_user, get_photo_storage
from api.schemas.business_schema import (
    BusinessCreateRequest, BusinessCreateResponse, BusinessListResponse,
    BusinessUpdateRequest, BusinessUpdateResponse, FieldError, FieldErrorResponse,
    ShareMetadataResponse
)
from backend.models.business import Business
from services.business_service import BusinessNotFoundError, BusinessService
from services.profile_service import build_share_metadata
from services.record_validator import validate_record
from services.search_service import SearchQuery, search
from services.storage_service import PhotoStorageService
from services.user_context import UserContext, stamp_audit_fields

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/businesses', tags=['businesses'])

_CONTENT_FIELDS = ('name', 'brief', 'description', 'profilePhoto', 'categories', 'addresses')


def _field_errors(errors) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=FieldErrorResponse(
            errors=[FieldError(path=path, message=message) for path, message in errors]
        ).model_dump()
    )


def _discard_photo(storage: PhotoStorageService, url: Optional[str]):
    """Remove a replaced or orphaned photo if it lives in our photo store."""
    if url and storage.path_for_url(url) is not None:
        storage.delete_photo(url)


@router.get('', response_model=BusinessListResponse)
async def list_businesses(
    q: str = Query('', description="Free-text search over name, brief, city and categories"),
    city: Optional[str] = Query(None, description="Exact city filter"),
    tags: Optional[List[str]] = Query(None, description="Categories that must all be present"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100, description="Items per page"),
    service: BusinessService = Depends(get_business_service)
):
    """
    Search the directory.

    Text matches are case-insensitive substrings; the city filter is exact;
    multiple `tags` must all be present on a business.

    **Example:**
    ```bash
    curl "http://localhost:8000/api/businesses?q=cafe&city=Pune&tags=Food&page=1&page_size=10"
    ```

    **Returns:**
    The requested page, totals, and the full city/category facet lists.
    """
    query = SearchQuery(query=q, city=city, tags=tags or [], page=page, page_size=page_size)
    result = search(service.get_all(), query)

    return BusinessListResponse(
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        items=result.items,
        available_cities=result.available_cities,
        available_categories=result.available_categories
    )


@router.get('/recent', response_model=List[Business])
async def recent_businesses(
    limit: int = Query(settings.RECENT_LIMIT, ge=1, le=50, description="Number of businesses"),
    service: BusinessService = Depends(get_business_service)
):
    """Newest businesses first."""
    return service.get_recent(limit)


@router.get('/city/{city}', response_model=List[Business])
async def businesses_in_city(
    city: str,
    service: BusinessService = Depends(get_business_service)
):
    """
    Businesses with at least one address in a city (exact match).

    **Example:**
    ```bash
    curl http://localhost:8000/api/businesses/city/Pune
    ```
    """
    return service.get_by_city(city)


@router.get('/category/{category}', response_model=List[Business])
async def businesses_in_category(
    category: str,
    service: BusinessService = Depends(get_business_service)
):
    """Businesses tagged with a category (exact match)."""
    return service.get_by_category(category)


@router.get('/{business_id}', response_model=Business)
async def get_business(
    business_id: str,
    service: BusinessService = Depends(get_business_service)
):
    """
    Get a single business.

    **Returns:**
    - 404 if no business has this id
    """
    business = service.get_by_id(business_id)
    if business is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Business {business_id} not found"
        )
    return business


@router.get('/{business_id}/metadata', response_model=ShareMetadataResponse, response_model_exclude_none=True)
async def get_business_metadata(
    business_id: str,
    service: BusinessService = Depends(get_business_service)
):
    """
    Title, description and OpenGraph/Twitter tags for sharing a listing.

    Unknown ids get the directory's default metadata rather than a 404.
    """
    return build_share_metadata(service.get_by_id(business_id))


@router.post(
    '',
    response_model=BusinessCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {'model': FieldErrorResponse}}
)
async def create_business(
    payload: BusinessCreateRequest,
    service: BusinessService = Depends(get_business_service),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Create a business.

    The payload is checked by the record validator; every violation is
    returned as a `{path, message}` pair with status 422.

    **Example:**
    ```bash
    curl -X POST http://localhost:8000/api/businesses \\
      -H "Content-Type: application/json" -H "X-User-Email: jane@example.com" \\
      -d @business.json
    ```
    """
    data = payload.model_dump()
    errors = validate_record(data)
    if errors:
        logger.info(f"Rejected business from {current_user.username}: {len(errors)} errors")
        return _field_errors(errors)

    business_id = service.create(stamp_audit_fields(data, current_user))
    return BusinessCreateResponse(id=business_id)


@router.put(
    '/{business_id}',
    response_model=BusinessUpdateResponse,
    responses={422: {'model': FieldErrorResponse}}
)
async def update_business(
    business_id: str,
    payload: BusinessUpdateRequest,
    service: BusinessService = Depends(get_business_service),
    storage: PhotoStorageService = Depends(get_photo_storage),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Edit a business.

    Only the fields sent are changed. The merged record must still pass
    validation. `createdBy` is preserved; `updatedBy` becomes the caller.

    **Returns:**
    - `updated: false` when nothing differed from the stored record
    - 404 if no business has this id
    """
    existing = service.get_by_id(business_id)
    if existing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Business {business_id} not found"
        )

    changes = payload.model_dump(exclude_unset=True)
    current = existing.model_dump()
    merged = {field: changes.get(field, current.get(field)) for field in _CONTENT_FIELDS}

    errors = validate_record(merged)
    if errors:
        return _field_errors(errors)

    try:
        updated = service.update(business_id, stamp_audit_fields(changes, current_user, existing=current))
    except BusinessNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if updated and 'profilePhoto' in changes and changes['profilePhoto'] != current.get('profilePhoto'):
        _discard_photo(storage, current.get('profilePhoto'))

    return BusinessUpdateResponse(id=business_id, updated=updated)


@router.delete('/{business_id}', status_code=status.HTTP_204_NO_CONTENT)
async def delete_business(
    business_id: str,
    service: BusinessService = Depends(get_business_service),
    storage: PhotoStorageService = Depends(get_photo_storage),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Delete a business and its stored profile photo.

    **Returns:**
    - 204 No Content if deleted
    - 404 if no business has this id
    """
    existing = service.get_by_id(business_id)
    try:
        service.delete(business_id)
    except BusinessNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    _discard_photo(storage, existing.profilePhoto)

    logger.info(f"Business {business_id} deleted by {current_user.username}")
    return None
