"""
Domain: Expiration alert candidates.

A one-shot generator evaluated when a warranty is issued. It is not a
recurring scan: the engine keeps no "notified" flag and never re-derives
candidates later. Delivery and de-duplication belong to the notification
collaborator.

For each lead time L (default 30 and 7 days) a candidate is emitted only if
its trigger date (expiration_date - L days) is strictly after `now`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .time import require_utc_timestamp
from .warranty import Warranty

DEFAULT_LEAD_TIMES: Sequence[int] = (30, 7)


@dataclass(frozen=True, slots=True)
class AlertCandidate:
    warranty_id: str
    lead_time_days: int
    trigger_date: datetime
    expiration_date: datetime
    customer_name: str
    product_label: str
    phone: Optional[str] = None


def generate_alerts(
    warranty: Warranty,
    now: datetime,
    lead_times: Sequence[int] = DEFAULT_LEAD_TIMES,
) -> List[AlertCandidate]:
    """Alert candidates for `warranty`, in `lead_times` order."""

    require_utc_timestamp("now", now)
    if warranty.is_cancelled:
        return []

    candidates: List[AlertCandidate] = []
    for lead_time in lead_times:
        if lead_time <= 0:
            raise ValueError(f"lead time must be > 0, got {lead_time}")
        trigger_date = warranty.expiration_date - timedelta(days=lead_time)
        if trigger_date <= now:
            continue
        candidates.append(
            AlertCandidate(
                warranty_id=warranty.warranty_id,
                lead_time_days=lead_time,
                trigger_date=trigger_date,
                expiration_date=warranty.expiration_date,
                customer_name=warranty.customer_name,
                product_label=warranty.product_label,
                phone=warranty.customer_phone,
            )
        )
    return candidates
