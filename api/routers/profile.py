"""
Profile card router - Shareable card data and QR code.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from api.config import settings
from api.dependencies import get_business_service
from api.schemas.business_schema import ProfileCardResponse
from backend.models.business import Business
from services.business_service import BusinessService
from services.profile_service import build_profile_card, profile_url, render_qr_svg

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/profilecard', tags=['profile'])


def _require_business(business_id: str, service: BusinessService) -> Business:
    business = service.get_by_id(business_id)
    if business is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Business {business_id} not found"
        )
    return business


@router.get('/{business_id}', response_model=ProfileCardResponse)
async def get_profile_card(
    business_id: str,
    service: BusinessService = Depends(get_business_service)
):
    """
    Card data: initials, brief (truncated), categories and the profile URL
    encoded in the QR code.
    """
    business = _require_business(business_id, service)
    return build_profile_card(business, settings.PUBLIC_BASE_URL)


@router.get('/{business_id}/qr.svg')
async def get_profile_qr(
    business_id: str,
    service: BusinessService = Depends(get_business_service)
):
    """
    QR code (SVG) linking to the business's profile card.

    **Example:**
    ```bash
    curl -o card.svg http://localhost:8000/api/profilecard/4f1c.../qr.svg
    ```
    """
    business = _require_business(business_id, service)
    svg = render_qr_svg(profile_url(settings.PUBLIC_BASE_URL, business.id))
    return Response(content=svg, media_type='image/svg+xml')
