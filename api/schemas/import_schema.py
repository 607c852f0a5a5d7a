"""
Import-related Pydantic schemas.

This module contains schemas for spreadsheet validation and bulk-upload
responses.
"""

from typing import List
from pydantic import BaseModel, Field


class ImportValidationResponse(BaseModel):
    """Outcome of validating an uploaded sheet."""

    state: str = Field(..., description="'valid_records_ready' or 'validation_failed'")
    total_rows: int = Field(..., description="Data rows read from the sheet")
    valid_count: int = Field(..., description="Records ready for creation")
    errors: List[str] = Field(default_factory=list, description="Row-level error messages")

    class Config:
        json_schema_extra = {
            "example": {
                "state": "validation_failed",
                "total_rows": 2,
                "valid_count": 0,
                "errors": [
                    "Row 2: brief - Brief description must be at least 10 characters",
                    "Row 3: addresses.0.emails.0 - Invalid email format"
                ]
            }
        }


class ImportRejectedResponse(ImportValidationResponse):
    """Returned with 422 when a sheet is rejected; nothing is written."""

    message: str = Field("Upload rejected: fix the errors and try again", description="Summary")
