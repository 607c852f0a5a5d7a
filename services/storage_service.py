"""
Storage Service - Profile photo storage and management operations.

Stores uploaded business photos on local disk under ``business-photos/``
and hands back the public URL they are served from.
"""

import logging
import secrets
import string
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = 'media/'
PHOTO_FOLDER = 'business-photos'
DEFAULT_MAX_PHOTO_SIZE_MB = 5
DEFAULT_EXTENSION = 'jpg'

_ALPHABET = string.ascii_lowercase + string.digits


class PhotoRejectedError(ValueError):
    """Raised when an upload is not an acceptable image."""

    def __init__(self, message: str, too_large: bool = False):
        self.too_large = too_large
        super().__init__(message)


class PhotoStorageService:
    """
    Framework-agnostic storage service for profile photos.

    Args:
        storage_dir: Root directory for stored files
        public_base_url: URL prefix the storage root is served under
        max_size_mb: Largest accepted upload
    """

    def __init__(
        self,
        storage_dir: str = DEFAULT_STORAGE_DIR,
        public_base_url: str = '/media',
        max_size_mb: int = DEFAULT_MAX_PHOTO_SIZE_MB
    ):
        self.storage_dir = storage_dir
        self.public_base_url = public_base_url.rstrip('/')
        self.max_size_mb = max_size_mb
        self._ensure_directory_exists()

    @property
    def photo_dir(self) -> Path:
        return Path(self.storage_dir) / PHOTO_FOLDER

    def _ensure_directory_exists(self):
        """Ensure the photo directory exists."""
        self.photo_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Storage directory ensured: {self.photo_dir}")

    def validate_photo(self, content_type: Optional[str], size_bytes: int):
        """
        Check an upload before anything is written.

        Raises:
            PhotoRejectedError: If it is not an image or exceeds the size limit
        """
        if not content_type or not content_type.startswith('image/'):
            raise PhotoRejectedError("Please upload an image file")

        max_bytes = self.max_size_mb * 1024 * 1024
        if size_bytes > max_bytes:
            raise PhotoRejectedError(f"Image size should be less than {self.max_size_mb}MB", too_large=True)

    @staticmethod
    def generate_filename(original_name: Optional[str]) -> str:
        """``<millis>-<random>.<ext>``, keeping the original extension."""
        ext = Path(original_name or '').suffix.lstrip('.').lower() or DEFAULT_EXTENSION
        token = ''.join(secrets.choice(_ALPHABET) for _ in range(11))
        return f"{int(time.time() * 1000)}-{token}.{ext}"

    def store_photo(self, data: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
        """
        Validate and store a photo.

        Args:
            data: Raw file bytes
            filename: Original filename (for the extension)
            content_type: MIME type reported by the client

        Returns:
            Public URL of the stored photo
        """
        self.validate_photo(content_type, len(data))
        self._ensure_directory_exists()

        stored_name = self.generate_filename(filename)
        dest_path = self.photo_dir / stored_name
        dest_path.write_bytes(data)
        logger.info(f"Stored photo: {filename} -> {dest_path} ({len(data)} bytes)")

        return f"{self.public_base_url}/{PHOTO_FOLDER}/{stored_name}"

    def path_for_url(self, url: str) -> Optional[Path]:
        """Local path of a URL returned by store_photo, or None if it is not ours."""
        prefix = f"{self.public_base_url}/{PHOTO_FOLDER}/"
        if not url.startswith(prefix):
            return None
        name = url[len(prefix):]
        if not name or '/' in name or name.startswith('.'):
            return None
        return self.photo_dir / name

    def delete_photo(self, url: str) -> bool:
        """
        Delete a stored photo by its public URL.

        Returns:
            True if the file was deleted, False if it didn't exist
        """
        path = self.path_for_url(url)
        if path is None or not path.exists():
            logger.warning(f"Photo not found for deletion: {url}")
            return False
        path.unlink()
        logger.info(f"Deleted photo: {path}")
        return True
