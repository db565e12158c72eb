"""
Tests for `repositories/settings_cache.py`.

Covers contract rules:
- Entries are served from the cache until the TTL elapses.
- Missing overrides (None) are cached too.
- invalidate() drops one shop or every shop; refresh() reloads immediately.
- load_shop_settings maps the override row and raises on response errors.
"""

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from domain.time import FixedClock
from repositories.settings_cache import ShopSettings, ShopSettingsCache, load_shop_settings
from factories import utc


class _CountingLoader:
    def __init__(self) -> None:
        self.calls = []

    def __call__(self, shop_id: str):
        self.calls.append(shop_id)
        if shop_id == "no-override":
            return None
        return ShopSettings(shop_id=shop_id, alert_lead_times=(len(self.calls),))


def test_cache_serves_until_ttl() -> None:
    """Verify entries are reused within the TTL and reloaded after it."""

    clock = FixedClock(utc(2024, 1, 1))
    loader = _CountingLoader()
    cache = ShopSettingsCache(loader, ttl_seconds=60, clock=clock)

    first = cache.get("shop-1")
    clock.advance(timedelta(seconds=59))
    assert cache.get("shop-1") is first
    assert loader.calls == ["shop-1"]

    clock.advance(timedelta(seconds=1))
    reloaded = cache.get("shop-1")
    assert loader.calls == ["shop-1", "shop-1"]
    assert reloaded is not None and reloaded.alert_lead_times == (2,)


def test_missing_override_is_cached() -> None:
    """Verify a None result does not trigger a reload on every get."""

    loader = _CountingLoader()
    cache = ShopSettingsCache(loader, ttl_seconds=60, clock=FixedClock(utc(2024, 1, 1)))

    assert cache.get("no-override") is None
    assert cache.get("no-override") is None
    assert loader.calls == ["no-override"]


def test_invalidate_and_refresh() -> None:
    """Verify invalidate drops entries and refresh reloads right away."""

    loader = _CountingLoader()
    cache = ShopSettingsCache(loader, ttl_seconds=60, clock=FixedClock(utc(2024, 1, 1)))
    cache.get("a")
    cache.get("b")
    assert len(cache) == 2

    cache.invalidate("a")
    assert len(cache) == 1
    cache.get("a")
    assert loader.calls == ["a", "b", "a"]

    cache.refresh("b")
    assert loader.calls == ["a", "b", "a", "b"]

    cache.invalidate()
    assert len(cache) == 0


def test_negative_ttl_is_rejected() -> None:
    """Verify the TTL cannot be negative."""

    with pytest.raises(ValueError):
        ShopSettingsCache(_CountingLoader(), ttl_seconds=-1, clock=FixedClock(utc(2024, 1, 1)))


class _FakeQuery:
    def __init__(self, response) -> None:
        self._response = response
        self.filters = []

    def select(self, *_args):
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def limit(self, _n):
        return self

    def execute(self):
        return self._response


class _FakeClient:
    def __init__(self, response) -> None:
        self.query = _FakeQuery(response)
        self.tables = []

    def table(self, name):
        self.tables.append(name)
        return self.query


def test_load_shop_settings_maps_row() -> None:
    """Verify an override row becomes normalized ShopSettings."""

    client = _FakeClient(
        SimpleNamespace(
            data=[{"shop_id": "s1", "requires_detail_motives": [" Shipping Damage "], "alert_lead_times": [15]}],
            error=None,
        )
    )

    settings = load_shop_settings(client, "s1")

    assert client.tables == ["warranty_settings"]
    assert client.query.filters == [("shop_id", "s1")]
    assert settings == ShopSettings(
        shop_id="s1",
        requires_detail_motives=frozenset({"shipping damage"}),
        alert_lead_times=(15,),
    )


def test_load_shop_settings_without_row() -> None:
    """Verify shops without an override row load as None."""

    assert load_shop_settings(_FakeClient(SimpleNamespace(data=[], error=None)), "s1") is None


def test_load_shop_settings_raises_on_error() -> None:
    """Verify response errors surface as RuntimeError."""

    with pytest.raises(RuntimeError):
        load_shop_settings(_FakeClient(SimpleNamespace(data=None, error="boom")), "s1")
