"""
Domain: Effective status resolution.

The effective status is what a warranty displays at a given instant. It
combines the stored state with date math and never mutates the warranty.

Resolution order (first match wins):
1. stored cancelled                          -> cancelled
2. stored expired OR days_to_expire < 0      -> expired   (overrides claimed)
3. stored claimed                            -> claimed
4. days_to_expire <= 7                       -> expiring-urgent
5. days_to_expire <= 30                      -> expiring-soon
6. otherwise                                 -> active

days_to_expire = ceil((expiration_date - now) / 24 hours), may be negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .time import days_until
from .warranty import Warranty, WarrantyState

URGENT_WINDOW_DAYS = 7
SOON_WINDOW_DAYS = 30


class EffectiveStatus(str, Enum):
    ACTIVE = "active"
    EXPIRING_SOON = "expiring-soon"
    EXPIRING_URGENT = "expiring-urgent"
    CLAIMED = "claimed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class StatusResolution:
    label: EffectiveStatus
    days_to_expire: int


def resolve_effective_status(warranty: Warranty, now: datetime) -> StatusResolution:
    """Resolve the display status of `warranty` at `now` (pure)."""

    days = days_until(warranty.expiration_date, now)
    state = warranty.state

    if state is WarrantyState.CANCELLED:
        label = EffectiveStatus.CANCELLED
    elif state is WarrantyState.EXPIRED or days < 0:
        label = EffectiveStatus.EXPIRED
    elif state is WarrantyState.CLAIMED:
        label = EffectiveStatus.CLAIMED
    elif days <= URGENT_WINDOW_DAYS:
        label = EffectiveStatus.EXPIRING_URGENT
    elif days <= SOON_WINDOW_DAYS:
        label = EffectiveStatus.EXPIRING_SOON
    else:
        label = EffectiveStatus.ACTIVE

    return StatusResolution(label=label, days_to_expire=days)
