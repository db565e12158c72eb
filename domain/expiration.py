"""
Domain: Expiration tiers.

Tiers are defined strictly on days_to_expire (see domain/status.py):
- OVERDUE:  days < 0
- URGENT:   0 <= days <= 7
- SOON:     7 < days <= 30
- DISTANT:  days > 30

Only warranties whose effective status is not cancelled are tiered. Within a
tier, warranties are ordered ascending by days_to_expire (most urgent first);
equal values keep their input order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import RECORD_ERRORS, RecordDiagnostic
from .status import SOON_WINDOW_DAYS, URGENT_WINDOW_DAYS, EffectiveStatus, resolve_effective_status
from .time import require_utc_timestamp
from .warranty import Warranty, WarrantyState

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    OVERDUE = "overdue"
    URGENT = "urgent"
    SOON = "soon"
    DISTANT = "distant"

    @staticmethod
    def for_days(days_to_expire: int) -> "Tier":
        """Resolve the tier for an integer days_to_expire."""

        if days_to_expire < 0:
            return Tier.OVERDUE
        if days_to_expire <= URGENT_WINDOW_DAYS:
            return Tier.URGENT
        if days_to_expire <= SOON_WINDOW_DAYS:
            return Tier.SOON
        return Tier.DISTANT


# Reporting order, most urgent first.
TIER_ORDER: Tuple[Tier, ...] = (Tier.OVERDUE, Tier.URGENT, Tier.SOON, Tier.DISTANT)


@dataclass(frozen=True, slots=True)
class TieredWarranty:
    warranty: Warranty
    days_to_expire: int


@dataclass(frozen=True, slots=True)
class TierReport:
    """
    Partition of a warranty collection into expiration tiers.

    Every tier key is present (possibly empty). Cancelled warranties are
    counted in `excluded` and appear in no tier.
    """

    tiers: Mapping[Tier, Tuple[TieredWarranty, ...]]
    excluded: int = 0
    diagnostics: Tuple[RecordDiagnostic, ...] = field(default_factory=tuple)

    def get(self, tier: Tier) -> Tuple[TieredWarranty, ...]:
        return self.tiers.get(tier, ())

    def counts(self) -> Dict[Tier, int]:
        return {tier: len(self.get(tier)) for tier in TIER_ORDER}

    @property
    def total(self) -> int:
        return sum(len(items) for items in self.tiers.values())

    def attention_needed(self) -> List[TieredWarranty]:
        """Overdue, then urgent, then soon; the report's "requires attention" list."""

        return [*self.get(Tier.OVERDUE), *self.get(Tier.URGENT), *self.get(Tier.SOON)]


def classify(warranty: Warranty, now: datetime) -> Optional[Tier]:
    """Tier for one warranty at `now`; None when its effective status is cancelled."""

    resolution = resolve_effective_status(warranty, now)
    if resolution.label is EffectiveStatus.CANCELLED:
        return None
    return Tier.for_days(resolution.days_to_expire)


def classify_all(
    warranties: Iterable[Warranty],
    now: datetime,
    *,
    skipped: Iterable[RecordDiagnostic] = (),
) -> TierReport:
    """
    Partition `warranties` into tiers at `now`.

    Malformed records are skipped and reported in `diagnostics`; the batch
    is never aborted by a single record. `skipped` carries records dropped
    before classification (e.g. rows that failed to map) into the same list.
    """

    require_utc_timestamp("now", now)

    buckets: Dict[Tier, List[TieredWarranty]] = {tier: [] for tier in TIER_ORDER}
    diagnostics: List[RecordDiagnostic] = list(skipped)
    excluded = 0

    for warranty in warranties:
        try:
            resolution = resolve_effective_status(warranty, now)
        except RECORD_ERRORS as exc:
            diagnostic = RecordDiagnostic.for_record(warranty, exc)
            diagnostics.append(diagnostic)
            logger.warning(
                "Skipping malformed warranty during classification",
                extra={"record_id": diagnostic.record_id, "reason": diagnostic.reason},
            )
            continue

        if resolution.label is EffectiveStatus.CANCELLED:
            excluded += 1
            continue

        tier = Tier.for_days(resolution.days_to_expire)
        buckets[tier].append(TieredWarranty(warranty=warranty, days_to_expire=resolution.days_to_expire))

    return TierReport(
        tiers={tier: tuple(sorted(items, key=lambda item: item.days_to_expire)) for tier, items in buckets.items()},
        excluded=excluded,
        diagnostics=tuple(diagnostics),
    )


def expiring_within(warranties: Iterable[Warranty], now: datetime, days_ahead: int = 30) -> List[Warranty]:
    """
    Stored-active warranties expiring in [now, now + days_ahead], soonest first.
    """

    require_utc_timestamp("now", now)
    if days_ahead < 0:
        raise ValueError("days_ahead must be >= 0")

    horizon = now + timedelta(days=days_ahead)
    selected: List[Warranty] = []
    for warranty in warranties:
        try:
            if warranty.state is WarrantyState.ACTIVE and now <= warranty.expiration_date <= horizon:
                selected.append(warranty)
        except RECORD_ERRORS as exc:
            logger.warning(
                "Skipping malformed warranty in expiring window",
                extra={"record_id": RecordDiagnostic.for_record(warranty, exc).record_id},
            )
    return sorted(selected, key=lambda w: w.expiration_date)
