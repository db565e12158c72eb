"""
Report API Endpoints.

Shop statistics, expiration tiers and the expiring-soon list.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_clock, get_repository, get_settings
from api.models import ExpirationReportResponse, StatsResponse, WarrantyListResponse, WarrantyResponse
from domain.time import Clock
from repositories.warranty_repository import WarrantyRepository
from services import warranty_service
from services.config import EngineSettings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/shops/{shop_id}/reports/stats",
    response_model=StatsResponse,
    summary="Warranty Statistics",
    description="Counts by stored state and by effective status, revenue and top categories/brands.",
)
def get_stats(
    shop_id: str,
    sale_date_from: Optional[date] = Query(None, description="Earliest sale date (inclusive)"),
    sale_date_to: Optional[date] = Query(None, description="Latest sale date (inclusive)"),
    repo: WarrantyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
    settings: EngineSettings = Depends(get_settings),
):
    try:
        if sale_date_from and sale_date_to and sale_date_from > sale_date_to:
            raise HTTPException(status_code=400, detail="sale_date_from must be <= sale_date_to")

        bundle = warranty_service.shop_stats(
            repo,
            shop_id,
            clock=clock,
            settings=settings,
            sale_date_from=sale_date_from,
            sale_date_to=sale_date_to,
        )
        return StatsResponse.from_domain(bundle)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to compute stats", extra={"shop_id": shop_id})
        raise HTTPException(status_code=500, detail=f"Failed to compute stats: {str(e)}")


@router.get(
    "/shops/{shop_id}/reports/expiration",
    response_model=ExpirationReportResponse,
    summary="Expiration Report",
    description="Warranties grouped into overdue, urgent, soon and distant tiers.",
)
def get_expiration_report(
    shop_id: str,
    repo: WarrantyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    try:
        report = warranty_service.expiration_report(repo, shop_id, clock=clock)
        return ExpirationReportResponse.from_domain(report)

    except Exception as e:
        logger.exception("Failed to build expiration report", extra={"shop_id": shop_id})
        raise HTTPException(status_code=500, detail=f"Failed to build expiration report: {str(e)}")


@router.get(
    "/shops/{shop_id}/reports/expiring",
    response_model=WarrantyListResponse,
    summary="Expiring Soon",
    description="Active warranties expiring within the next `days_ahead` days, soonest first.",
)
def get_expiring(
    shop_id: str,
    days_ahead: int = Query(30, ge=0, le=3650, description="Window size in days"),
    repo: WarrantyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    try:
        found = warranty_service.expiring_soon(repo, shop_id, clock=clock, days_ahead=days_ahead)
        return WarrantyListResponse(
            items=[WarrantyResponse.from_domain(w) for w in found],
            total_count=len(found),
            filters_applied={"days_ahead": days_ahead},
        )

    except Exception as e:
        logger.exception("Failed to list expiring warranties", extra={"shop_id": shop_id})
        raise HTTPException(status_code=500, detail=f"Failed to list expiring warranties: {str(e)}")
