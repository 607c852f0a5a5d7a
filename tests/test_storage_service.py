"""
Tests for profile photo storage.
"""

import re

import pytest

from services.storage_service import PhotoRejectedError, PhotoStorageService


@pytest.fixture
def storage(tmp_path):
    return PhotoStorageService(storage_dir=str(tmp_path), public_base_url='http://cdn.test/media/')


class TestValidation:

    def test_rejects_non_image(self, storage):
        with pytest.raises(PhotoRejectedError, match='Please upload an image file') as exc:
            storage.validate_photo('application/pdf', 100)
        assert not exc.value.too_large

    def test_rejects_missing_type(self, storage):
        with pytest.raises(PhotoRejectedError):
            storage.validate_photo(None, 100)

    def test_rejects_over_limit(self, storage):
        with pytest.raises(PhotoRejectedError, match='less than 5MB') as exc:
            storage.validate_photo('image/png', 5 * 1024 * 1024 + 1)
        assert exc.value.too_large

    def test_limit_is_inclusive(self, storage):
        storage.validate_photo('image/png', 5 * 1024 * 1024)


class TestStore:

    def test_filename_shape(self):
        assert re.fullmatch(r'\d{13}-[a-z0-9]{11}\.png', PhotoStorageService.generate_filename('Shop.PNG'))
        assert PhotoStorageService.generate_filename(None).endswith('.jpg')

    def test_store_returns_public_url(self, storage, tmp_path):
        url = storage.store_photo(b'\x89PNG data', 'logo.png', 'image/png')

        assert url.startswith('http://cdn.test/media/business-photos/')
        stored = storage.path_for_url(url)
        assert stored.parent == tmp_path / 'business-photos'
        assert stored.read_bytes() == b'\x89PNG data'

    def test_rejected_upload_writes_nothing(self, storage, tmp_path):
        with pytest.raises(PhotoRejectedError):
            storage.store_photo(b'%PDF', 'doc.pdf', 'application/pdf')
        assert list((tmp_path / 'business-photos').iterdir()) == []


class TestDelete:

    def test_delete_stored_photo(self, storage):
        url = storage.store_photo(b'jpeg', 'a.jpg', 'image/jpeg')
        assert storage.delete_photo(url) is True
        assert not storage.path_for_url(url).exists()
        assert storage.delete_photo(url) is False

    @pytest.mark.parametrize('url', [
        'http://elsewhere.test/a.jpg',
        'http://cdn.test/media/business-photos/../secret.txt',
        'http://cdn.test/media/business-photos/',
    ])
    def test_foreign_urls_ignored(self, storage, url):
        assert storage.path_for_url(url) is None
        assert storage.delete_photo(url) is False

