"""
Import router - Spreadsheet bulk upload and job tracking.

This module provides endpoints for validating an uploaded workbook,
queueing the bulk create of its records, checking the status of those
jobs, and downloading the sample and export workbooks.
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Optional

import redis
from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, status, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from api.config import settings
from api.dependencies import get_business_service, get_db, get_current_user, verify_import_extension
from api.schemas.common import PaginatedResponse
from api.schemas.import_schema import ImportRejectedResponse, ImportValidationResponse
from api.schemas.job_schema import (
    JobCreateResponse, JobListItem, JobListResponse, JobProgressResponse, JobStatusResponse
)
from backend.models.job import JobRun, JobType, JobStatus
from services.business_service import BusinessService
from services.excel_import_service import build_sample_workbook, export_workbook
from services.import_session import BulkImportSession, ImportDialogState, UnsupportedFileError
from services.user_context import UserContext
from tasks.import_tasks import create_businesses

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

# Create router
router = APIRouter(prefix='/import', tags=['import'])

# Redis client for progress tracking
redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


async def _parse_upload(file: UploadFile, service: BusinessService) -> BulkImportSession:
    """Run an uploaded workbook through the validation gate."""
    verify_import_extension(file.filename)
    content = await file.read()

    session = BulkImportSession(create=service.create, existing=service.get_all())
    try:
        session.select_file(file.filename, content)
    except UnsupportedFileError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    session.parse()
    logger.info(f"Validated {file.filename}: {session.state.value}, "
                f"{len(session.valid_records)} valid, {len(session.errors)} errors")
    return session


def _report(session: BulkImportSession) -> dict:
    return {
        'state': session.state.value,
        'total_rows': session.total_rows,
        'valid_count': len(session.valid_records),
        'errors': session.errors,
    }


@router.post('/validate', response_model=ImportValidationResponse)
async def validate_import_file(
    file: UploadFile = File(..., description="Excel file (.xlsx)"),
    service: BusinessService = Depends(get_business_service)
):
    """
    Validate a workbook without creating anything.

    Every row is reshaped and checked; all errors are reported together as
    `Row <n>: <field> - <message>`. Rows that duplicate an existing business
    are errors too.

    **Example:**
    ```bash
    curl -X POST http://localhost:8000/api/import/validate -F "file=@businesses.xlsx"
    ```
    """
    session = await _parse_upload(file, service)
    return ImportValidationResponse(**_report(session))


@router.post(
    '/upload',
    response_model=JobCreateResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={422: {'model': ImportRejectedResponse}}
)
async def upload_import_file(
    file: UploadFile = File(..., description="Excel file (.xlsx)"),
    db: Session = Depends(get_db),
    service: BusinessService = Depends(get_business_service),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Validate a workbook and queue the creation of its businesses.

    **Workflow:**
    1. Validate every row (schema and duplicates)
    2. Any error: respond 422 with all errors, nothing is written
    3. Otherwise create a job record and enqueue the Celery task
    4. Return the job ID for status tracking

    Creates run concurrently in the worker; a failed create does not undo
    the others.

    **Progress Tracking:**
    - Poll GET /api/import/job/{job_id} for status
    """
    logger.info(f"Bulk upload from {current_user.username}: {file.filename}")
    session = await _parse_upload(file, service)

    if session.state != ImportDialogState.VALID_RECORDS_READY:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ImportRejectedResponse(**_report(session)).model_dump()
        )

    job_id = str(uuid.uuid4())
    job_run = JobRun(
        job_id=job_id,
        job_type=JobType.BULK_IMPORT,
        status=JobStatus.PENDING,
        params={
            'filename': file.filename,
            'record_count': len(session.valid_records)
        },
        created_by=current_user.username
    )
    db.add(job_run)
    db.commit()

    try:
        create_businesses.apply_async(
            args=[session.valid_records, {'uid': current_user.uid, 'email': current_user.email}],
            task_id=job_id
        )
    except Exception as e:
        logger.error(f"Could not enqueue bulk create {job_id}: {e}", exc_info=True)
        job_run.status = JobStatus.FAILED
        job_run.completed_at = datetime.utcnow()
        job_run.error = {'error': f"Could not enqueue job: {e}"}
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Import queue unavailable, try again later"
        )

    logger.info(f"Queued bulk create {job_id}: {len(session.valid_records)} records")

    return JobCreateResponse(
        job_id=job_id,
        message=f"Creating {len(session.valid_records)} businesses",
        status_url=f"{settings.API_PREFIX}/import/job/{job_id}",
        record_count=len(session.valid_records)
    )


@router.get('/job/{job_id}', response_model=JobStatusResponse)
async def get_job_status(
    job_id: str,
    db: Session = Depends(get_db)
):
    """
    Get current status of a bulk-create job.

    **Status Values:**
    - `pending`: Job is queued, waiting for worker
    - `processing`: Creates are running
    - `success`: At least one business was created
    - `failed`: No business could be created
    - `cancelled`: Job was cancelled
    """
    job_run = db.query(JobRun).filter_by(job_id=job_id).first()

    if not job_run:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found"
        )

    # Latest progress from Redis, then the database
    progress = None
    try:
        progress_data = redis_client.get(f'job_progress:{job_id}')
        if progress_data:
            progress = JobProgressResponse(**json.loads(progress_data))
    except redis.RedisError as e:
        logger.warning(f"Could not fetch progress from Redis for {job_id}: {e}")

    if not progress and job_run.progress:
        latest_progress = job_run.progress[-1]
        progress = JobProgressResponse(
            stage=latest_progress.stage,
            percent=float(latest_progress.percent),
            message=latest_progress.message or "",
            timestamp=latest_progress.timestamp
        )

    return JobStatusResponse(
        job_id=job_run.job_id,
        job_type=job_run.job_type,
        status=job_run.status,
        created_at=job_run.created_at,
        started_at=job_run.started_at,
        completed_at=job_run.completed_at,
        progress=progress,
        result=job_run.result,
        error=job_run.error,
        created_by=job_run.created_by
    )


@router.get('/jobs', response_model=JobListResponse)
async def list_jobs(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    status: Optional[str] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db)
):
    """
    List bulk-import jobs, newest first.

    **Example:**
    ```bash
    curl "http://localhost:8000/api/import/jobs?status=failed&page=1"
    ```
    """
    query = db.query(JobRun)
    if status:
        query = query.filter_by(status=status)

    total = query.count()
    jobs = query.order_by(JobRun.created_at.desc())\
        .offset((page - 1) * page_size)\
        .limit(page_size)\
        .all()

    page_data = PaginatedResponse[JobListItem].create(
        items=[JobListItem.model_validate(job) for job in jobs],
        total=total,
        page=page,
        page_size=page_size
    )
    return JobListResponse(**page_data.model_dump())


@router.delete('/job/{job_id}', status_code=status.HTTP_204_NO_CONTENT)
async def cancel_job(
    job_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Cancel a pending or processing job.

    Records already created are kept.

    **Returns:**
    - 204 No Content if successfully cancelled
    - 404 if job not found
    - 400 if job already finished
    """
    job_run = db.query(JobRun).filter_by(job_id=job_id).first()

    if not job_run:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found"
        )

    if job_run.status not in [JobStatus.PENDING, JobStatus.PROCESSING]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot cancel job with status '{job_run.status}'"
        )

    job_run.status = JobStatus.CANCELLED
    job_run.completed_at = datetime.utcnow()
    job_run.error = {
        'error': 'Job cancelled by user',
        'cancelled_by': current_user.username,
        'cancelled_at': datetime.utcnow().isoformat()
    }
    db.commit()

    try:
        from tasks.celery_app import celery_app
        celery_app.control.revoke(job_id)
        logger.info(f"Revoked Celery task {job_id}")
    except Exception as e:
        logger.warning(f"Could not revoke Celery task {job_id}: {e}")

    logger.info(f"Job {job_id} cancelled by {current_user.username}")
    return None


@router.get('/sample')
async def download_sample():
    """Sample workbook with two example rows, one using a second address group."""
    return Response(
        content=build_sample_workbook(),
        media_type=XLSX_MEDIA_TYPE,
        headers={'Content-Disposition': 'attachment; filename="business_upload_sample.xlsx"'}
    )


@router.get('/export')
async def export_businesses(service: BusinessService = Depends(get_business_service)):
    """Every business in the upload column layout."""
    businesses = service.get_all()
    logger.info(f"Exporting {len(businesses)} businesses")
    return Response(
        content=export_workbook(businesses),
        media_type=XLSX_MEDIA_TYPE,
        headers={'Content-Disposition': 'attachment; filename="businesses.xlsx"'}
    )
