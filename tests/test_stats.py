"""
Tests for `domain/stats.py`.

Covers contract rules:
- Stored-state counts partition the collection: active + expired + claimed + cancelled == total.
- Revenue is the exact Decimal sum of prices.
- Expiring counts use stored-active warranties with days_to_expire in (0, 7] and (0, 30].
- Rankings sort by count descending, first-seen order on ties; brands are capped.
- The effective view counts by date-aware status and also sums to total.
- Malformed records are skipped with diagnostics.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from domain.stats import aggregate, aggregate_effective, summarize
from domain.status import EffectiveStatus
from domain.warranty import ProductCategory, WarrantyState
from factories import make_warranty, utc

NOW = utc(2024, 6, 1)


def _expiring_in(days: int, warranty_id: str, **overrides):
    return make_warranty(warranty_id=warranty_id, expiration_date=NOW + timedelta(days=days), **overrides)


def test_scenario_two_states() -> None:
    """Verify one active and one expired warranty aggregate to the expected totals."""

    stats = aggregate(
        [
            make_warranty(warranty_id="a", price=1000, state=WarrantyState.ACTIVE),
            make_warranty(warranty_id="b", price=2000, state=WarrantyState.EXPIRED),
        ],
        NOW,
    )

    assert stats.total == 2
    assert stats.active == 1
    assert stats.expired == 1
    assert stats.claimed == 0
    assert stats.cancelled == 0
    assert stats.total_revenue == Decimal("3000")


def test_counts_partition_total() -> None:
    """Verify the stored-state counts always sum to total."""

    warranties = [
        make_warranty(warranty_id=str(i), state=state)
        for i, state in enumerate(
            [WarrantyState.ACTIVE, WarrantyState.CLAIMED, WarrantyState.CANCELLED, WarrantyState.CLAIMED]
        )
    ]

    stats = aggregate(warranties, NOW)

    assert stats.active + stats.expired + stats.claimed + stats.cancelled == stats.total == 4
    assert stats.claimed_ratio == 0.5


def test_revenue_is_exact() -> None:
    """Verify Decimal revenue has no float drift."""

    stats = aggregate(
        [make_warranty(warranty_id=str(i), price="0.10") for i in range(3)],
        NOW,
    )

    assert stats.total_revenue == Decimal("0.30")
    assert stats.average_price == Decimal("0.10")


def test_expiring_counts_use_open_lower_bound() -> None:
    """Verify day 0, past, non-active and far-off warranties are not counted as expiring."""

    stats = aggregate(
        [
            _expiring_in(0, "today"),
            _expiring_in(1, "tomorrow"),
            _expiring_in(7, "week"),
            _expiring_in(8, "eight"),
            _expiring_in(30, "month"),
            _expiring_in(31, "later"),
            _expiring_in(-2, "past"),
            _expiring_in(3, "claimed", state=WarrantyState.CLAIMED),
        ],
        NOW,
    )

    assert stats.expiring_within_7_days == 2
    assert stats.expiring_within_30_days == 4


def test_rankings_are_stable_and_capped() -> None:
    """Verify rankings sort by count with first-seen tiebreak and cap brands."""

    warranties = [
        make_warranty(warranty_id="1", brand="Bosch", category=ProductCategory.FILTER),
        make_warranty(warranty_id="2", brand="Moura", category=ProductCategory.BATTERY),
        make_warranty(warranty_id="3", brand="Moura", category=ProductCategory.BATTERY),
        make_warranty(warranty_id="4", brand="Willard", category=ProductCategory.OIL),
    ]

    stats = aggregate(warranties, NOW, top_brands_limit=2)

    assert [(b.brand, b.count) for b in stats.top_brands] == [("Moura", 2), ("Bosch", 1)]
    assert [c.category for c in stats.top_categories] == [
        ProductCategory.BATTERY,
        ProductCategory.FILTER,
        ProductCategory.OIL,
    ]


def test_default_brand_cap_is_ten() -> None:
    """Verify at most ten brands are ranked by default."""

    warranties = [make_warranty(warranty_id=str(i), brand=f"Brand {i}") for i in range(12)]

    assert len(aggregate(warranties, NOW).top_brands) == 10


def test_empty_collection() -> None:
    """Verify empty input yields zeros and zero ratios."""

    stats = aggregate([], NOW)

    assert stats.total == 0
    assert stats.total_revenue == Decimal("0")
    assert stats.average_price == Decimal("0")
    assert stats.claimed_ratio == 0.0
    assert stats.top_brands == ()


def test_malformed_record_is_skipped() -> None:
    """Verify a record failing mid-aggregation is not half-counted."""

    broken = _expiring_in(3, "broken")
    object.__setattr__(broken, "expiration_date", datetime(2024, 6, 4))

    stats = aggregate([_expiring_in(3, "ok", price=500), broken], NOW)

    assert stats.total == 1
    assert stats.active == 1
    assert stats.total_revenue == Decimal("500")
    assert [d.record_id for d in stats.diagnostics] == ["broken"]


def test_effective_view_counts_by_status() -> None:
    """Verify the effective view reclassifies claimed-but-past warranties as expired."""

    warranties = [
        _expiring_in(-5, "claimed-past", state=WarrantyState.CLAIMED),
        _expiring_in(3, "urgent"),
        _expiring_in(100, "active"),
        _expiring_in(100, "cancelled", state=WarrantyState.CANCELLED),
    ]

    effective = aggregate_effective(warranties, NOW)

    assert effective.total == 4
    assert effective.count(EffectiveStatus.EXPIRED) == 1
    assert effective.count(EffectiveStatus.EXPIRING_URGENT) == 1
    assert effective.count(EffectiveStatus.ACTIVE) == 1
    assert effective.count(EffectiveStatus.CANCELLED) == 1
    assert sum(effective.by_status.values()) == effective.total


def test_summarize_returns_both_views() -> None:
    """Verify summarize reports stored and effective views over the same records."""

    warranties = [_expiring_in(-5, "claimed-past", state=WarrantyState.CLAIMED)]

    bundle = summarize(iter(warranties), NOW)

    assert bundle.stored.claimed == 1
    assert bundle.effective.count(EffectiveStatus.EXPIRED) == 1
    assert bundle.stored.total == bundle.effective.total == 1
