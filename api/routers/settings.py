"""
Settings API Endpoints.

Per-shop overrides are cached; this endpoint forces a reload after they change.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_settings_cache
from api.models import SettingsRefreshResponse
from repositories.settings_cache import ShopSettingsCache

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/shops/{shop_id}/settings/refresh",
    response_model=SettingsRefreshResponse,
    summary="Refresh Shop Settings",
    description="Reload the shop's warranty settings override into the cache.",
)
def refresh_settings(
    shop_id: str,
    settings_cache: ShopSettingsCache = Depends(get_settings_cache),
):
    try:
        shop_settings = settings_cache.refresh(shop_id)
        if shop_settings is None:
            return SettingsRefreshResponse(shop_id=shop_id, has_override=False)

        motives = shop_settings.requires_detail_motives
        lead_times = shop_settings.alert_lead_times
        return SettingsRefreshResponse(
            shop_id=shop_id,
            has_override=True,
            requires_detail_motives=sorted(motives) if motives else None,
            alert_lead_times=list(lead_times) if lead_times else None,
        )

    except Exception as e:
        logger.exception("Failed to refresh settings", extra={"shop_id": shop_id})
        raise HTTPException(status_code=500, detail=f"Failed to refresh settings: {str(e)}")
