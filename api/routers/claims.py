"""
Claims API Endpoints.

Endpoint for recording claims against a warranty.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_clock, get_repository, get_settings, get_settings_cache
from api.errors import to_http_exception
from api.models import ClaimCreateRequest, WarrantyResponse
from domain.errors import ValidationError, WarrantyError
from domain.time import Clock
from repositories.settings_cache import ShopSettingsCache
from repositories.warranty_repository import WarrantyRepository
from services import warranty_service
from services.config import EngineSettings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/shops/{shop_id}/warranties/{warranty_id}/claims",
    response_model=WarrantyResponse,
    summary="Add Claim",
    description="Append a claim to a warranty's history.",
)
def add_claim(
    shop_id: str,
    warranty_id: str,
    request: ClaimCreateRequest,
    repo: WarrantyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
    settings: EngineSettings = Depends(get_settings),
    settings_cache: ShopSettingsCache = Depends(get_settings_cache),
):
    """
    Record a claim.

    **Rules:**
    - Only active or claimed warranties accept claims (409 otherwise)
    - Motive and resolution are required
    - Notes are required for detail motives (e.g. "Other", "Quality issue")
      and for every claim after the first
    - The first claim moves the warranty to `claimed`
    """
    try:
        try:
            claim_request = request.to_domain()
        except ValidationError as e:
            raise to_http_exception(e)

        result = warranty_service.process_claim(
            repo,
            shop_id,
            warranty_id,
            claim_request,
            clock=clock,
            settings=settings,
            shop_settings=settings_cache.get(shop_id),
        )
        if not result.ok or result.warranty is None:
            raise to_http_exception(result.error or WarrantyError("claim failed"))

        return WarrantyResponse.from_domain(result.warranty)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to add claim", extra={"shop_id": shop_id, "warranty_id": warranty_id})
        raise HTTPException(status_code=500, detail=f"Failed to add claim: {str(e)}")
