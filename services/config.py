"""
Engine configuration.

Settings are read from the environment (a project-root `.env` is loaded with
python-dotenv, the same way the persistence client loads its credentials).

Environment variables (all optional):
- WARRANTY_REQUIRES_DETAIL_MOTIVES: comma-separated motives that require notes
- WARRANTY_ALERT_LEAD_TIMES: comma-separated positive day counts (default "30,7")
- WARRANTY_TOP_BRANDS_LIMIT: size of the top-brands ranking (default 10)
- WARRANTY_SETTINGS_CACHE_TTL_SECONDS: per-shop settings TTL (default 300)
- LOG_LEVEL: logging level name (default "INFO")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional, Tuple

from dotenv import load_dotenv

from domain.alerts import DEFAULT_LEAD_TIMES
from domain.claims import REQUIRES_DETAIL_MOTIVES, normalize_motives
from domain.stats import DEFAULT_TOP_BRANDS_LIMIT
from repositories.settings_cache import ShopSettings

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True, slots=True)
class EngineSettings:
    requires_detail_motives: FrozenSet[str] = REQUIRES_DETAIL_MOTIVES
    alert_lead_times: Tuple[int, ...] = tuple(DEFAULT_LEAD_TIMES)
    top_brands_limit: int = DEFAULT_TOP_BRANDS_LIMIT
    settings_cache_ttl_seconds: float = 300.0
    log_level: str = "INFO"

    def motives_for(self, shop_settings: Optional[ShopSettings]) -> FrozenSet[str]:
        """Requires-detail motives, with the shop's override taking precedence."""
        if shop_settings is not None and shop_settings.requires_detail_motives:
            return shop_settings.requires_detail_motives
        return self.requires_detail_motives

    def lead_times_for(self, shop_settings: Optional[ShopSettings]) -> Tuple[int, ...]:
        if shop_settings is not None and shop_settings.alert_lead_times:
            return shop_settings.alert_lead_times
        return self.alert_lead_times


def _split(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _lead_times(raw: str) -> Tuple[int, ...]:
    try:
        times = tuple(int(part) for part in _split(raw))
    except ValueError:
        raise RuntimeError(
            f"Invalid WARRANTY_ALERT_LEAD_TIMES: {raw!r}. "
            "Use comma-separated positive day counts, e.g. '30,7'."
        )
    if not times or any(t <= 0 for t in times):
        raise RuntimeError(
            f"Invalid WARRANTY_ALERT_LEAD_TIMES: {raw!r}. "
            "Every lead time must be a positive number of days."
        )
    return times


def _positive_number(name: str, raw: str, cast):
    try:
        value = cast(raw)
    except ValueError:
        raise RuntimeError(f"Invalid {name}: {raw!r}. Expected a number.")
    if value < 0 or (cast is int and value == 0):
        raise RuntimeError(f"Invalid {name}: {raw!r}. Must be positive.")
    return value


def load_settings() -> EngineSettings:
    """Build EngineSettings from the environment. Unset variables keep defaults."""

    defaults = EngineSettings()

    motives = defaults.requires_detail_motives
    raw_motives = os.getenv("WARRANTY_REQUIRES_DETAIL_MOTIVES")
    if raw_motives:
        motives = normalize_motives(_split(raw_motives))

    lead_times = defaults.alert_lead_times
    raw_lead_times = os.getenv("WARRANTY_ALERT_LEAD_TIMES")
    if raw_lead_times:
        lead_times = _lead_times(raw_lead_times)

    top_brands_limit = defaults.top_brands_limit
    raw_limit = os.getenv("WARRANTY_TOP_BRANDS_LIMIT")
    if raw_limit:
        top_brands_limit = _positive_number("WARRANTY_TOP_BRANDS_LIMIT", raw_limit, int)

    ttl = defaults.settings_cache_ttl_seconds
    raw_ttl = os.getenv("WARRANTY_SETTINGS_CACHE_TTL_SECONDS")
    if raw_ttl:
        ttl = _positive_number("WARRANTY_SETTINGS_CACHE_TTL_SECONDS", raw_ttl, float)

    log_level = (os.getenv("LOG_LEVEL") or defaults.log_level).strip().upper()
    if log_level not in _LOG_LEVELS:
        raise RuntimeError(f"Invalid LOG_LEVEL: {log_level!r}. Use one of {', '.join(_LOG_LEVELS)}.")

    settings = EngineSettings(
        requires_detail_motives=motives,
        alert_lead_times=lead_times,
        top_brands_limit=top_brands_limit,
        settings_cache_ttl_seconds=ttl,
        log_level=log_level,
    )
    logging.getLogger(__name__).debug(
        "Engine settings loaded",
        extra={"alert_lead_times": settings.alert_lead_times, "top_brands_limit": settings.top_brands_limit},
    )
    return settings
