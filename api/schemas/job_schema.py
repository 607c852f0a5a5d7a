"""
Job-related Pydantic schemas.

This module contains schemas for bulk-import job status and progress.
"""

from enum import Enum
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field
from datetime import datetime


class JobStatusEnum(str, Enum):
    """Job execution status."""
    PENDING = 'pending'
    PROCESSING = 'processing'
    SUCCESS = 'success'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


class JobProgressResponse(BaseModel):
    """Latest progress update."""

    stage: str = Field(..., description="Current stage (e.g., 'dispatching', 'complete')")
    percent: float = Field(..., ge=0, le=100, description="Progress percentage")
    message: str = Field(..., description="Human-readable progress message")
    timestamp: datetime = Field(..., description="Progress update timestamp")


class JobStatusResponse(BaseModel):
    """Bulk-import job status."""

    job_id: str = Field(..., description="Unique job identifier (Celery task ID)")
    job_type: str = Field(..., description="Type of job")
    status: JobStatusEnum = Field(..., description="Current job status")
    created_at: datetime = Field(..., description="Job creation timestamp")
    started_at: Optional[datetime] = Field(None, description="Job start timestamp")
    completed_at: Optional[datetime] = Field(None, description="Job completion timestamp")

    progress: Optional[JobProgressResponse] = Field(None, description="Latest progress update")

    result: Optional[Dict[str, Any]] = Field(None, description="Created/failed counts (if completed)")
    error: Optional[Dict[str, Any]] = Field(None, description="Error details (if failed)")

    created_by: Optional[str] = Field(None, description="User who started the import")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "job_id": "abc-123-def-456",
                "job_type": "bulk_import",
                "status": "success",
                "created_at": "2026-03-02T12:00:00Z",
                "started_at": "2026-03-02T12:00:01Z",
                "completed_at": "2026-03-02T12:00:03Z",
                "progress": {
                    "stage": "complete",
                    "percent": 100.0,
                    "message": "Created 2 of 2 businesses (0 failed)",
                    "timestamp": "2026-03-02T12:00:03Z"
                },
                "result": {"succeeded": 2, "failed": 0, "created_ids": ["4f1c...", "9a2e..."]},
                "error": None,
                "created_by": "jane"
            }
        }


class JobCreateResponse(BaseModel):
    """Response when a bulk-create job is queued."""

    job_id: str = Field(..., description="Unique job identifier")
    message: str = Field(default="Import job started", description="Status message")
    status_url: str = Field(..., description="URL to check job status")
    record_count: int = Field(..., description="Number of records queued for creation")

    class Config:
        json_schema_extra = {
            "example": {
                "job_id": "abc-123-def-456",
                "message": "Creating 2 businesses",
                "status_url": "/api/import/job/abc-123-def-456",
                "record_count": 2
            }
        }


class JobListItem(BaseModel):
    """Job list item for job history."""

    job_id: str
    job_type: str
    status: JobStatusEnum
    created_at: datetime
    completed_at: Optional[datetime]
    created_by: Optional[str]

    class Config:
        from_attributes = True


class JobListResponse(BaseModel):
    """Paginated list of jobs."""

    total: int = Field(..., description="Total number of jobs")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Items per page")
    total_pages: int = Field(..., description="Total number of pages")
    items: List[JobListItem] = Field(..., description="Jobs in current page")
