"""
Warranty API Endpoints.

Endpoints for issuing, browsing and amending warranties.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_clock, get_repository, get_settings, get_settings_cache
from api.errors import to_http_exception
from api.models import (
    AlertCandidateResponse,
    AmendWarrantyRequest,
    IssueWarrantyRequest,
    IssueWarrantyResponse,
    WarrantyListResponse,
    WarrantyResponse,
)
from domain.errors import ValidationError, WarrantyError
from domain.search import WarrantyFilters
from domain.time import Clock
from domain.warranty import ProductCategory, WarrantyState
from repositories.settings_cache import ShopSettingsCache
from repositories.warranty_repository import WarrantyRepository
from services import warranty_service
from services.config import EngineSettings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/shops/{shop_id}/warranties",
    response_model=WarrantyListResponse,
    summary="Search Warranties",
    description="List a shop's warranties with free-text search and optional filters.",
)
def list_warranties(
    shop_id: str,
    q: str = Query("", description="Matches customer, plate, brand, model or description"),
    category: Optional[str] = Query(None, description="Filter by product category (e.g., 'battery')"),
    state: Optional[str] = Query(None, description="Filter by stored state (e.g., 'active')"),
    brand: Optional[str] = Query(None, description="Filter by brand (case-insensitive)"),
    sale_date_from: Optional[date] = Query(None, description="Earliest sale date (inclusive)"),
    sale_date_to: Optional[date] = Query(None, description="Latest sale date (inclusive)"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of results to return"),
    repo: WarrantyRepository = Depends(get_repository),
):
    """
    Search warranties for one shop.

    **Example usage:**
    - All warranties: `GET /api/v1/shops/{shop_id}/warranties`
    - By plate: `GET /api/v1/shops/{shop_id}/warranties?q=AB123CD`
    - Active batteries: `GET /api/v1/shops/{shop_id}/warranties?category=battery&state=active`
    """
    try:
        try:
            filters = WarrantyFilters(
                category=ProductCategory.from_value(category) if category else None,
                state=WarrantyState.from_value(state) if state else None,
                brand=brand,
                sale_date_from=sale_date_from,
                sale_date_to=sale_date_to,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        found = warranty_service.search_shop(repo, shop_id, query=q, filters=filters, limit=limit)

        filters_applied = {
            key: value
            for key, value in {
                "q": q or None,
                "category": category,
                "state": state,
                "brand": brand,
                "sale_date_from": sale_date_from.isoformat() if sale_date_from else None,
                "sale_date_to": sale_date_to.isoformat() if sale_date_to else None,
            }.items()
            if value
        }

        return WarrantyListResponse(
            items=[WarrantyResponse.from_domain(w) for w in found],
            total_count=len(found),
            filters_applied=filters_applied,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to list warranties", extra={"shop_id": shop_id})
        raise HTTPException(status_code=500, detail=f"Failed to list warranties: {str(e)}")


@router.post(
    "/shops/{shop_id}/warranties",
    response_model=IssueWarrantyResponse,
    status_code=201,
    summary="Issue Warranty",
    description="Issue a warranty for a sold product and return its expiration alert candidates.",
)
def issue_warranty(
    shop_id: str,
    request: IssueWarrantyRequest,
    repo: WarrantyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
    settings: EngineSettings = Depends(get_settings),
    settings_cache: ShopSettingsCache = Depends(get_settings_cache),
):
    """
    Issue a new warranty.

    The expiration date is computed from the sale date and the terms. Alert
    candidates are returned once, at issuance; scheduling them is up to the
    notification system.
    """
    try:
        try:
            data = request.to_domain()
        except ValidationError as e:
            raise to_http_exception(e)

        result = warranty_service.issue(
            repo,
            data,
            shop_id=shop_id,
            seller_id=request.seller_id,
            seller_name=request.seller_name,
            clock=clock,
            settings=settings,
            shop_settings=settings_cache.get(shop_id),
        )
        if not result.ok or result.warranty is None:
            raise to_http_exception(result.error or WarrantyError("issuance failed"))

        return IssueWarrantyResponse(
            warranty=WarrantyResponse.from_domain(result.warranty),
            alerts=[AlertCandidateResponse.from_domain(a) for a in result.alerts],
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to issue warranty", extra={"shop_id": shop_id})
        raise HTTPException(status_code=500, detail=f"Failed to issue warranty: {str(e)}")


@router.get(
    "/shops/{shop_id}/warranties/{warranty_id}",
    response_model=WarrantyResponse,
    summary="Get Warranty",
    description="Fetch one warranty with its effective status at request time.",
)
def get_warranty(
    shop_id: str,
    warranty_id: str,
    repo: WarrantyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    try:
        detail = warranty_service.warranty_detail(repo, shop_id, warranty_id, clock=clock)
        if detail is None:
            raise HTTPException(status_code=404, detail=f"Warranty not found: {warranty_id}")

        return WarrantyResponse.from_domain(
            detail.warranty,
            effective_status=detail.status.label.value,
            days_to_expire=detail.status.days_to_expire,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to fetch warranty", extra={"shop_id": shop_id, "warranty_id": warranty_id})
        raise HTTPException(status_code=500, detail=f"Failed to fetch warranty: {str(e)}")


@router.patch(
    "/shops/{shop_id}/warranties/{warranty_id}",
    response_model=WarrantyResponse,
    summary="Amend Warranty",
    description="Correct descriptive fields (contact, vehicle, notes). Terms, dates and state cannot change.",
)
def amend_warranty(
    shop_id: str,
    warranty_id: str,
    request: AmendWarrantyRequest,
    repo: WarrantyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    try:
        result = warranty_service.amend(repo, shop_id, warranty_id, request.changes(), clock=clock)
        if not result.ok or result.warranty is None:
            raise to_http_exception(result.error or WarrantyError("amendment failed"))
        return WarrantyResponse.from_domain(result.warranty)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to amend warranty", extra={"shop_id": shop_id, "warranty_id": warranty_id})
        raise HTTPException(status_code=500, detail=f"Failed to amend warranty: {str(e)}")
