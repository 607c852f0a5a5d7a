"""
Profile Service - Shareable profile card and page metadata.

Builds the data behind a business's profile card (initials avatar,
truncated brief, QR code linking to the card) and the title/OpenGraph/
Twitter metadata used when a listing is shared.
"""

import io
import logging
from typing import Any, Dict, Optional

import qrcode
import qrcode.image.svg

from backend.models.business import Business

logger = logging.getLogger(__name__)

SITE_NAME = 'Business Directory'
SITE_DESCRIPTION = 'A directory of local businesses'
CARD_BRIEF_LIMIT = 51


def profile_url(base_url: Optional[str], business_id: str) -> str:
    return f"{(base_url or '').rstrip('/')}/profilecard/{business_id}"


def render_qr_svg(url: str) -> str:
    """QR code for ``url`` as an SVG document (error correction level H)."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        border=4,
        image_factory=qrcode.image.svg.SvgPathImage,
    )
    qr.add_data(url)
    qr.make(fit=True)

    buffer = io.BytesIO()
    qr.make_image().save(buffer)
    return buffer.getvalue().decode('utf-8')


def get_initials(name: str) -> str:
    """
    Avatar initials: first letters of the first two words, or the first
    two characters of a single-word name. Always upper case.
    """
    words = name.split()
    if len(words) >= 2:
        return f"{words[0][0]}{words[1][0]}".upper()
    return name.strip()[:2].upper()


def truncate_text(text: Optional[str], limit: int) -> str:
    text = text or ''
    if len(text) > limit:
        return text[:limit] + '...'
    return text


def build_profile_card(business: Business, base_url: Optional[str]) -> Dict[str, Any]:
    """Data for the front and back of a business's profile card."""
    return {
        'id': business.id,
        'name': business.name,
        'initials': get_initials(business.name),
        'brief': truncate_text(business.brief, CARD_BRIEF_LIMIT),
        'profilePhoto': business.profilePhoto or None,
        'categories': list(business.categories),
        'profileUrl': profile_url(base_url, business.id),
        'detailsPath': f"/business/{business.id}",
    }


def build_share_metadata(business: Optional[Business]) -> Dict[str, Any]:
    """
    Page metadata for a business.

    Falls back to the directory's own title and description when the
    business does not exist.
    """
    if business is None:
        return {'title': SITE_NAME, 'description': SITE_DESCRIPTION}

    images = [business.profilePhoto] if business.profilePhoto else []
    return {
        'title': f"{business.name} | {SITE_NAME}",
        'description': business.brief,
        'openGraph': {
            'title': business.name,
            'description': business.brief,
            'images': images,
        },
        'twitter': {
            'card': 'summary_large_image',
            'title': business.name,
            'description': business.brief,
            'images': images,
        },
    }
