"""
Pydantic schemas for request/response validation.

This package contains all Pydantic models used for API request validation
and response serialization.
"""

from api.schemas.common import ErrorResponse, PaginatedResponse, HealthCheckResponse
from api.schemas.job_schema import (
    JobStatusEnum, JobProgressResponse, JobStatusResponse, JobCreateResponse,
    JobListItem, JobListResponse
)
from api.schemas.import_schema import ImportValidationResponse, ImportRejectedResponse
from api.schemas.business_schema import (
    BusinessCreateRequest, BusinessUpdateRequest, BusinessCreateResponse,
    BusinessUpdateResponse, BusinessListResponse, FieldError, FieldErrorResponse,
    ProfileCardResponse, ShareMetadataResponse, PhotoUploadResponse
)

__all__ = [
    # Common
    'ErrorResponse',
    'PaginatedResponse',
    'HealthCheckResponse',

    # Job
    'JobStatusEnum',
    'JobProgressResponse',
    'JobStatusResponse',
    'JobCreateResponse',
    'JobListItem',
    'JobListResponse',

    # Import
    'ImportValidationResponse',
    'ImportRejectedResponse',

    # Business
    'BusinessCreateRequest',
    'BusinessUpdateRequest',
    'BusinessCreateResponse',
    'BusinessUpdateResponse',
    'BusinessListResponse',
    'FieldError',
    'FieldErrorResponse',
    'ProfileCardResponse',
    'ShareMetadataResponse',
    'PhotoUploadResponse',
]
