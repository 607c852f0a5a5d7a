"""
Tests for profile cards, QR codes and share metadata.
"""

import pytest

from backend.models.business import Business
from services.profile_service import (
    SITE_DESCRIPTION, SITE_NAME, build_profile_card, build_share_metadata, get_initials,
    profile_url, render_qr_svg, truncate_text
)


@pytest.fixture
def business():
    return Business(
        id='abc123',
        name='Sunrise Bakery',
        brief='Fresh bread every morning, sourdough on weekends and coffee all day long',
        profilePhoto='https://example.com/sunrise.jpg',
        categories=['Bakery', 'Food'],
    )


class TestInitials:

    @pytest.mark.parametrize('name,expected', [
        ('Sunrise Bakery', 'SB'),
        ('harbor books and more', 'HB'),
        ('Pixel', 'PI'),
        ('  spaced   out  ', 'SO'),
        ('Q', 'Q'),
    ])
    def test_get_initials(self, name, expected):
        assert get_initials(name) == expected


class TestTruncate:

    def test_short_text_unchanged(self):
        assert truncate_text('Short', 51) == 'Short'

    def test_exact_limit_unchanged(self):
        assert truncate_text('x' * 51, 51) == 'x' * 51

    def test_long_text_gets_ellipsis(self):
        assert truncate_text('x' * 60, 51) == 'x' * 51 + '...'

    def test_none(self):
        assert truncate_text(None, 10) == ''


class TestProfileCard:

    def test_card_fields(self, business):
        card = build_profile_card(business, 'https://directory.test/')

        assert card['initials'] == 'SB'
        assert card['brief'].endswith('...')
        assert len(card['brief']) == 54
        assert card['profileUrl'] == 'https://directory.test/profilecard/abc123'
        assert card['detailsPath'] == '/business/abc123'
        assert card['categories'] == ['Bakery', 'Food']

    def test_missing_photo_is_none(self, business):
        business.profilePhoto = ''
        assert build_profile_card(business, None)['profilePhoto'] is None

    def test_profile_url_without_base(self):
        assert profile_url(None, 'abc') == '/profilecard/abc'


class TestQrCode:

    def test_render_svg(self):
        svg = render_qr_svg('https://directory.test/profilecard/abc123')
        assert '<svg' in svg
        assert '<path' in svg


class TestShareMetadata:

    def test_business_metadata(self, business):
        meta = build_share_metadata(business)

        assert meta['title'] == f'Sunrise Bakery | {SITE_NAME}'
        assert meta['description'] == business.brief
        assert meta['openGraph']['images'] == ['https://example.com/sunrise.jpg']
        assert meta['twitter']['card'] == 'summary_large_image'

    def test_no_photo_means_no_images(self, business):
        business.profilePhoto = None
        assert build_share_metadata(business)['openGraph']['images'] == []

    def test_unknown_business_defaults(self):
        assert build_share_metadata(None) == {'title': SITE_NAME, 'description': SITE_DESCRIPTION}
