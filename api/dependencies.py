"""
Dependency injection utilities for FastAPI.

This module provides reusable dependencies for database sessions,
authentication, services, and upload checks.
"""

import logging
from pathlib import Path
from typing import Generator, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from fastapi import Depends, HTTPException, Header, Request, status

from api.config import settings
from services.business_service import BusinessService
from services.storage_service import PhotoStorageService
from services.user_context import UserContext

logger = logging.getLogger(__name__)

# Create database engine
engine = create_engine(
    settings.DATABASE_URL,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=settings.DB_POOL_PRE_PING,
    echo=settings.DEBUG
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields database session and ensures it's closed after use.

    Usage:
        @app.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            # Use db session
            pass
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_business_service(db: Session = Depends(get_db)) -> BusinessService:
    return BusinessService(db)


def get_photo_storage() -> PhotoStorageService:
    return PhotoStorageService(
        storage_dir=settings.PHOTO_STORAGE_DIR,
        public_base_url=f"{settings.PUBLIC_BASE_URL.rstrip('/')}{settings.MEDIA_URL_PATH}",
        max_size_mb=settings.MAX_PHOTO_SIZE_MB
    )


def get_api_key(
    x_api_key: str = Header(None, alias=settings.API_KEY_HEADER)
) -> str:
    """
    Validate API key from header.

    Args:
        x_api_key: API key from request header

    Returns:
        Validated API key

    Raises:
        HTTPException: If API key is invalid or missing
    """
    if not settings.ENABLE_API_KEY_AUTH:
        # API key auth disabled - allow all requests
        return "public"

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    return x_api_key


def get_current_user(
    request: Request,
    api_key: str = Depends(get_api_key)
) -> UserContext:
    """
    Build the caller's identity from the auth headers.

    The upstream auth proxy forwards the signed-in user's uid and email;
    requests without them act as the anonymous user.

    Usage:
        @app.post("/endpoint")
        def endpoint(user: UserContext = Depends(get_current_user)):
            # user.username is used for audit fields
            pass
    """
    uid: Optional[str] = request.headers.get(settings.USER_ID_HEADER)
    email: Optional[str] = request.headers.get(settings.USER_EMAIL_HEADER)
    return UserContext(uid=uid, email=email)


def verify_import_extension(filename: Optional[str]) -> bool:
    """
    Verify an import file has an allowed extension.

    Raises:
        HTTPException: If extension is not allowed
    """
    ext = Path(filename or '').suffix.lower()

    if ext not in [e.lower() for e in settings.ALLOWED_IMPORT_EXTENSIONS]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please upload an Excel file (.xlsx)"
        )

    return True
