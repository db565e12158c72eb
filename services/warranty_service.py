"""
Warranty service.

Orchestrates the pure domain operations against a WarrantyRepository:
- issue a warranty and persist it
- append claims and descriptive amendments (load, validate, persist)
- detail, search and report views for a shop

Every function receives its collaborators (repository, clock, settings)
explicitly; nothing here reads the wall clock or the environment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Mapping, Optional
from uuid import uuid4

from domain.claims import ClaimRequest, ClaimResult, append_claim
from domain.errors import WarrantyNotFoundError
from domain.expiration import TierReport, classify_all, expiring_within
from domain.issuance import IssueResult, NewWarranty, issue_warranty
from domain.search import WarrantyFilters, search
from domain.stats import StatsBundle, summarize
from domain.status import StatusResolution, resolve_effective_status
from domain.time import Clock
from domain.warranty import Warranty, WarrantyResult, amend_warranty
from repositories.settings_cache import ShopSettings
from repositories.warranty_repository import WarrantyRepository
from services.config import EngineSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WarrantyDetail:
    """A stored warranty together with its effective status at read time."""

    warranty: Warranty
    status: StatusResolution


def issue(
    repo: WarrantyRepository,
    data: NewWarranty,
    *,
    shop_id: str,
    seller_id: str,
    seller_name: str,
    clock: Clock,
    settings: EngineSettings,
    shop_settings: Optional[ShopSettings] = None,
) -> IssueResult:
    """Issue a new warranty; the warranty is saved only when issuance succeeds."""

    result = issue_warranty(
        data,
        warranty_id=uuid4().hex,
        shop_id=shop_id,
        seller_id=seller_id,
        seller_name=seller_name,
        now=clock.now(),
        lead_times=settings.lead_times_for(shop_settings),
    )
    if not result.ok or result.warranty is None:
        logger.warning("Warranty issuance rejected", extra={"shop_id": shop_id, "reason": str(result.error)})
        return result

    repo.save(result.warranty)
    logger.info(
        "Warranty issued",
        extra={
            "warranty_id": result.warranty.warranty_id,
            "shop_id": shop_id,
            "alerts": len(result.alerts),
        },
    )
    return result


def _shop_warranty(repo: WarrantyRepository, shop_id: str, warranty_id: str) -> Optional[Warranty]:
    """The stored warranty when it belongs to `shop_id`; other shops' records read as missing."""

    warranty = repo.get_warranty(warranty_id)
    if warranty is None or warranty.shop_id != shop_id:
        return None
    return warranty


def process_claim(
    repo: WarrantyRepository,
    shop_id: str,
    warranty_id: str,
    request: ClaimRequest,
    *,
    clock: Clock,
    settings: EngineSettings,
    shop_settings: Optional[ShopSettings] = None,
) -> ClaimResult:
    """
    Append a claim to a stored warranty.

    Unknown ids, and ids owned by another shop, produce
    ClaimResult(ok=False, error=WarrantyNotFoundError). Rejected claims leave
    the stored record untouched.
    """

    warranty = _shop_warranty(repo, shop_id, warranty_id)
    if warranty is None:
        return ClaimResult(ok=False, error=WarrantyNotFoundError(warranty_id))

    result = append_claim(
        warranty,
        request,
        clock.now(),
        requires_detail_motives=settings.motives_for(shop_settings),
    )
    if not result.ok or result.warranty is None:
        logger.warning(
            "Claim rejected",
            extra={"warranty_id": warranty_id, "reason": str(result.error)},
        )
        return result

    repo.save(result.warranty)
    logger.info(
        "Claim appended",
        extra={
            "warranty_id": warranty_id,
            "claim_id": result.claim.claim_id if result.claim else None,
            "state": result.warranty.state.value,
        },
    )
    return result


def warranty_detail(
    repo: WarrantyRepository,
    shop_id: str,
    warranty_id: str,
    *,
    clock: Clock,
) -> Optional[WarrantyDetail]:
    warranty = _shop_warranty(repo, shop_id, warranty_id)
    if warranty is None:
        return None
    return WarrantyDetail(warranty=warranty, status=resolve_effective_status(warranty, clock.now()))


def search_shop(
    repo: WarrantyRepository,
    shop_id: str,
    *,
    query: str = "",
    filters: Optional[WarrantyFilters] = None,
    limit: Optional[int] = None,
) -> List[Warranty]:
    """Shop warranties matching `query` and `filters`, newest first."""

    found = search(repo.list_warranties(shop_id, filters).warranties, query, filters)
    return found[:limit] if limit is not None else found


def shop_stats(
    repo: WarrantyRepository,
    shop_id: str,
    *,
    clock: Clock,
    settings: EngineSettings,
    sale_date_from: Optional[date] = None,
    sale_date_to: Optional[date] = None,
) -> StatsBundle:
    filters = None
    if sale_date_from is not None or sale_date_to is not None:
        filters = WarrantyFilters(sale_date_from=sale_date_from, sale_date_to=sale_date_to)
    listing = repo.list_warranties(shop_id, filters)
    return summarize(
        listing.warranties,
        clock.now(),
        top_brands_limit=settings.top_brands_limit,
        skipped=listing.diagnostics,
    )


def expiration_report(repo: WarrantyRepository, shop_id: str, *, clock: Clock) -> TierReport:
    listing = repo.list_warranties(shop_id)
    return classify_all(listing.warranties, clock.now(), skipped=listing.diagnostics)


def expiring_soon(
    repo: WarrantyRepository,
    shop_id: str,
    *,
    clock: Clock,
    days_ahead: int = 30,
) -> List[Warranty]:
    """Active warranties expiring within `days_ahead` days, soonest first."""

    return expiring_within(repo.list_warranties(shop_id).warranties, clock.now(), days_ahead)


def amend(
    repo: WarrantyRepository,
    shop_id: str,
    warranty_id: str,
    changes: Mapping[str, Any],
    *,
    clock: Clock,
) -> WarrantyResult:
    """Apply descriptive corrections to a stored warranty and persist them."""

    warranty = _shop_warranty(repo, shop_id, warranty_id)
    if warranty is None:
        return WarrantyResult(ok=False, error=WarrantyNotFoundError(warranty_id))

    result = amend_warranty(warranty, changes, clock.now())
    if result.ok and result.warranty is not None:
        repo.save(result.warranty)
        logger.info("Warranty amended", extra={"warranty_id": warranty_id, "fields": sorted(changes)})
    return result
