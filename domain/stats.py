"""
Domain: Fleet statistics.

Two views are offered:

Stored view (`aggregate`)
- Partitions by the *stored* state only: total, active, expired, claimed, cancelled.
  A claimed warranty past its expiration is still counted as claimed here.
- expiring_within_7_days / expiring_within_30_days: stored state active and
  days_to_expire in (0, 7] / (0, 30] at `now`.
- total_revenue: sum of price over every input record (no state filter).
- top_categories: category -> count, descending; ties keep first-seen order.
- top_brands: brand -> count, descending, truncated (default 10).

Effective view (`aggregate_effective`)
- Counts by effective status (domain/status.py) at `now`, so overdue
  warranties stored as active/claimed count as expired.

Both are single-pass over the caller-supplied collection. Malformed records
are skipped and reported in `diagnostics`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import RECORD_ERRORS, RecordDiagnostic
from .status import SOON_WINDOW_DAYS, URGENT_WINDOW_DAYS, EffectiveStatus, resolve_effective_status
from .time import days_until, require_utc_timestamp
from .warranty import ProductCategory, Warranty, WarrantyState

logger = logging.getLogger(__name__)

DEFAULT_TOP_BRANDS_LIMIT = 10


@dataclass(frozen=True, slots=True)
class CategoryCount:
    category: ProductCategory
    count: int


@dataclass(frozen=True, slots=True)
class BrandCount:
    brand: str
    count: int


@dataclass(frozen=True, slots=True)
class WarrantyStats:
    """Stored-state statistics for a warranty collection."""

    total: int
    active: int
    expired: int
    claimed: int
    cancelled: int
    expiring_within_7_days: int
    expiring_within_30_days: int
    total_revenue: Decimal
    top_categories: Tuple[CategoryCount, ...] = ()
    top_brands: Tuple[BrandCount, ...] = ()
    diagnostics: Tuple[RecordDiagnostic, ...] = field(default_factory=tuple)

    @property
    def average_price(self) -> Decimal:
        if self.total == 0:
            return Decimal("0")
        return self.total_revenue / self.total

    @property
    def claimed_ratio(self) -> float:
        if self.total == 0:
            return 0.0
        return self.claimed / self.total


@dataclass(frozen=True, slots=True)
class EffectiveStats:
    """Statistics by effective (date-aware) status."""

    total: int
    by_status: Mapping[EffectiveStatus, int]
    total_revenue: Decimal
    diagnostics: Tuple[RecordDiagnostic, ...] = field(default_factory=tuple)

    def count(self, status: EffectiveStatus) -> int:
        return self.by_status.get(status, 0)


@dataclass(frozen=True, slots=True)
class StatsBundle:
    """
    Stored and effective views of one collection.

    `diagnostics` lists every record left out of the stored view, including
    records dropped before aggregation.
    """

    stored: WarrantyStats
    effective: EffectiveStats
    diagnostics: Tuple[RecordDiagnostic, ...] = field(default_factory=tuple)


def _skip(record: object, exc: BaseException, diagnostics: List[RecordDiagnostic]) -> None:
    diagnostic = RecordDiagnostic.for_record(record, exc)
    diagnostics.append(diagnostic)
    logger.warning(
        "Skipping malformed warranty during aggregation",
        extra={"record_id": diagnostic.record_id, "reason": diagnostic.reason},
    )


def _as_price(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise TypeError(f"price must be numeric, got {type(value).__name__}")
    return Decimal(str(value))


def _ranked(counts: Dict, limit: Optional[int] = None) -> List[Tuple[object, int]]:
    # sorted() is stable, so equal counts keep first-seen (insertion) order.
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit] if limit is not None else ranked


def aggregate(
    warranties: Iterable[Warranty],
    now: datetime,
    *,
    top_brands_limit: int = DEFAULT_TOP_BRANDS_LIMIT,
) -> WarrantyStats:
    """Reduce `warranties` into stored-state statistics at `now`."""

    require_utc_timestamp("now", now)

    total = 0
    by_state: Dict[WarrantyState, int] = {state: 0 for state in WarrantyState}
    within_7 = 0
    within_30 = 0
    revenue = Decimal("0")
    categories: Dict[ProductCategory, int] = {}
    brands: Dict[str, int] = {}
    diagnostics: List[RecordDiagnostic] = []

    for warranty in warranties:
        try:
            state = warranty.state
            if not isinstance(state, WarrantyState):
                raise TypeError(f"state must be a WarrantyState, got {state!r}")
            price = _as_price(warranty.price)
            category = warranty.category
            brand = warranty.brand
            days = days_until(warranty.expiration_date, now) if state is WarrantyState.ACTIVE else None
        except RECORD_ERRORS as exc:
            _skip(warranty, exc, diagnostics)
            continue

        total += 1
        by_state[state] += 1
        revenue += price
        categories[category] = categories.get(category, 0) + 1
        brands[brand] = brands.get(brand, 0) + 1
        if days is not None and 0 < days:
            if days <= URGENT_WINDOW_DAYS:
                within_7 += 1
            if days <= SOON_WINDOW_DAYS:
                within_30 += 1

    return WarrantyStats(
        total=total,
        active=by_state[WarrantyState.ACTIVE],
        expired=by_state[WarrantyState.EXPIRED],
        claimed=by_state[WarrantyState.CLAIMED],
        cancelled=by_state[WarrantyState.CANCELLED],
        expiring_within_7_days=within_7,
        expiring_within_30_days=within_30,
        total_revenue=revenue,
        top_categories=tuple(CategoryCount(category=c, count=n) for c, n in _ranked(categories)),
        top_brands=tuple(BrandCount(brand=b, count=n) for b, n in _ranked(brands, top_brands_limit)),
        diagnostics=tuple(diagnostics),
    )


def aggregate_effective(warranties: Iterable[Warranty], now: datetime) -> EffectiveStats:
    """Reduce `warranties` into counts by effective status at `now`."""

    require_utc_timestamp("now", now)

    total = 0
    by_status: Dict[EffectiveStatus, int] = {status: 0 for status in EffectiveStatus}
    revenue = Decimal("0")
    diagnostics: List[RecordDiagnostic] = []

    for warranty in warranties:
        try:
            label = resolve_effective_status(warranty, now).label
            price = _as_price(warranty.price)
        except RECORD_ERRORS as exc:
            _skip(warranty, exc, diagnostics)
            continue

        total += 1
        by_status[label] += 1
        revenue += price

    return EffectiveStats(
        total=total,
        by_status=by_status,
        total_revenue=revenue,
        diagnostics=tuple(diagnostics),
    )


def summarize(
    warranties: Iterable[Warranty],
    now: datetime,
    *,
    top_brands_limit: int = DEFAULT_TOP_BRANDS_LIMIT,
    skipped: Iterable[RecordDiagnostic] = (),
) -> StatsBundle:
    """Both statistics views over the same collection."""

    records = list(warranties)
    stored = aggregate(records, now, top_brands_limit=top_brands_limit)
    return StatsBundle(
        stored=stored,
        effective=aggregate_effective(records, now),
        diagnostics=(*skipped, *stored.diagnostics),
    )
