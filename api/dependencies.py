"""
FastAPI dependencies.

Each collaborator is built once per process and can be replaced in tests
through `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache

from domain.time import Clock, SystemClock
from repositories.client import get_supabase
from repositories.settings_cache import ShopSettingsCache, load_shop_settings
from repositories.warranty_repository import SupabaseWarrantyRepository, WarrantyRepository
from services.config import EngineSettings, load_settings


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_clock() -> Clock:
    return SystemClock()


@lru_cache(maxsize=1)
def get_repository() -> WarrantyRepository:
    return SupabaseWarrantyRepository(get_supabase())


@lru_cache(maxsize=1)
def get_settings_cache() -> ShopSettingsCache:
    return ShopSettingsCache(
        loader=lambda shop_id: load_shop_settings(get_supabase(), shop_id),
        ttl_seconds=get_settings().settings_cache_ttl_seconds,
        clock=get_clock(),
    )
