"""
Uploads router - Profile photo uploads.
"""

import logging
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from api.dependencies import get_current_user, get_photo_storage
from api.schemas.business_schema import PhotoUploadResponse
from services.storage_service import PhotoRejectedError, PhotoStorageService
from services.user_context import UserContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/upload', tags=['uploads'])


@router.post('', response_model=PhotoUploadResponse)
async def upload_photo(
    file: UploadFile = File(..., description="Image file (max 5 MB)"),
    storage: PhotoStorageService = Depends(get_photo_storage),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Store a profile photo and return its public URL.

    **Returns:**
    - `{"url": ...}` on success
    - 400 if the file is not an image
    - 413 if the file is larger than the size limit

    **Example:**
    ```bash
    curl -X POST http://localhost:8000/api/upload -F "file=@storefront.jpg"
    ```
    """
    data = await file.read()
    logger.info(f"Photo upload from {current_user.username}: {file.filename} "
                f"({file.content_type}, {len(data)} bytes)")

    try:
        url = storage.store_photo(data, file.filename, file.content_type)
    except PhotoRejectedError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE if e.too_large
            else status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except OSError as e:
        logger.error(f"Photo upload failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Upload failed: {e}"
        )

    return PhotoUploadResponse(url=url)
