"""
Per-shop warranty settings and their cache.

Shops may override the claim policy (requires-detail motives) and the alert
lead times. Overrides live in the `warranty_settings` table and are read
through `ShopSettingsCache`, an explicit object owned by the persistence
layer. TTL and clock are injected; entries are dropped with `invalidate()`
and reloaded with `refresh()`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from domain.claims import normalize_motives
from domain.time import Clock

logger = logging.getLogger(__name__)

_SETTINGS_TABLE: str = "warranty_settings"


@dataclass(frozen=True, slots=True)
class ShopSettings:
    """Per-shop overrides. None means "use the engine default"."""

    shop_id: str
    requires_detail_motives: Optional[FrozenSet[str]] = None
    alert_lead_times: Optional[Tuple[int, ...]] = None


SettingsLoader = Callable[[str], Optional[ShopSettings]]


def _parse_lead_times(value: Any) -> Optional[Tuple[int, ...]]:
    if not value:
        return None
    times = tuple(int(v) for v in value)
    if any(t <= 0 for t in times):
        raise ValueError("alert lead times must be > 0")
    return times


def load_shop_settings(client: Any, shop_id: str) -> Optional[ShopSettings]:
    """Read the shop's override row; None when the shop has none."""

    response = (
        client.table(_SETTINGS_TABLE)
        .select("*")
        .eq("shop_id", shop_id)
        .limit(1)
        .execute()
    )

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch warranty settings: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None

    row = rows[0]
    motives = row.get("requires_detail_motives")
    return ShopSettings(
        shop_id=shop_id,
        requires_detail_motives=normalize_motives(motives) if motives else None,
        alert_lead_times=_parse_lead_times(row.get("alert_lead_times")),
    )


class ShopSettingsCache:
    """
    Time-boxed cache of ShopSettings keyed by shop id.

    A missing override is cached too, so shops without a row do not hit the
    database on every request.
    """

    def __init__(self, loader: SettingsLoader, ttl_seconds: float, clock: Clock) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._loader = loader
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, Tuple[datetime, Optional[ShopSettings]]] = {}
        self._lock = Lock()

    def get(self, shop_id: str) -> Optional[ShopSettings]:
        now = self._clock.now()
        with self._lock:
            entry = self._entries.get(shop_id)
        if entry is not None and now - entry[0] < self._ttl:
            return entry[1]
        return self.refresh(shop_id)

    def refresh(self, shop_id: str) -> Optional[ShopSettings]:
        """Reload `shop_id` from the loader and reset its TTL."""

        settings = self._loader(shop_id)
        with self._lock:
            self._entries[shop_id] = (self._clock.now(), settings)
        logger.info("Warranty settings refreshed", extra={"shop_id": shop_id, "override": settings is not None})
        return settings

    def invalidate(self, shop_id: Optional[str] = None) -> None:
        """Drop one shop's entry, or every entry when shop_id is None."""

        with self._lock:
            if shop_id is None:
                self._entries.clear()
            else:
                self._entries.pop(shop_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
