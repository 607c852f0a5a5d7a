"""
Business-related Pydantic schemas.

This module contains schemas for listing, creating and editing
businesses, plus the profile card and share metadata responses.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from backend.models.business import Address, Business


class BusinessCreateRequest(BaseModel):
    """Body for creating a business. Field rules are checked by the record validator."""

    name: str = ''
    brief: str = ''
    description: str = ''
    profilePhoto: Optional[str] = ''
    categories: List[str] = Field(default_factory=list)
    addresses: List[Address] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Blue Door Cafe",
                "brief": "Coffee and pastries by the park",
                "description": "Family run cafe serving single-origin coffee and fresh bakes daily",
                "profilePhoto": "https://example.com/photo.jpg",
                "categories": ["Cafe", "Food"],
                "addresses": [{
                    "lines": ["12 Park Road"],
                    "city": "Pune",
                    "link": "https://maps.google.com/?q=12+Park+Road",
                    "phoneNumbers": [{"number": "9876543210", "countryCode": "+91", "hasWhatsapp": True}],
                    "emails": ["hello@bluedoor.example"]
                }]
            }
        }


class BusinessUpdateRequest(BaseModel):
    """Partial update; only the fields sent are changed."""

    name: Optional[str] = None
    brief: Optional[str] = None
    description: Optional[str] = None
    profilePhoto: Optional[str] = None
    categories: Optional[List[str]] = None
    addresses: Optional[List[Address]] = None


class BusinessCreateResponse(BaseModel):
    id: str = Field(..., description="Assigned business id")
    message: str = Field("Business created successfully")


class BusinessUpdateResponse(BaseModel):
    id: str
    updated: bool = Field(..., description="False when nothing differed from the stored record")


class FieldError(BaseModel):
    path: str = Field(..., description="Dotted field path, e.g. addresses.0.city")
    message: str


class FieldErrorResponse(BaseModel):
    """Returned with 422 when a payload fails record validation."""

    error: str = "Validation failed"
    errors: List[FieldError]


class BusinessListResponse(BaseModel):
    """One page of search results plus facets."""

    total: int = Field(..., description="Matching businesses")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Items per page")
    total_pages: int = Field(..., description="Total number of pages")
    items: List[Business] = Field(..., description="Businesses in current page")
    available_cities: List[str] = Field(..., description="Every city across all businesses")
    available_categories: List[str] = Field(..., description="Every category across all businesses")


class ProfileCardResponse(BaseModel):
    id: str
    name: str
    initials: str
    brief: str
    profilePhoto: Optional[str]
    categories: List[str]
    profileUrl: str
    detailsPath: str


class ShareMetadataResponse(BaseModel):
    title: str
    description: str
    openGraph: Optional[Dict[str, Any]] = None
    twitter: Optional[Dict[str, Any]] = None


class PhotoUploadResponse(BaseModel):
    url: str = Field(..., description="Public URL of the stored photo")
