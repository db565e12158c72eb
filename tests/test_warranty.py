"""
Tests for `domain/warranty.py`.

Covers contract rules:
- Terms carry exactly one of months/km, or both for mixed terms; values > 0.
- Expiration adds calendar months and clamps to the end of short months.
- Distance-only terms store the sale date as the expiration date.
- Warranty construction validates identity, price, odometer and UTC timestamps.
- Legacy enum values are accepted by the parsers; unknown values are rejected.
- Warranties are immutable; amendments touch descriptive fields only.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.errors import InvalidStateError, ValidationError
from domain.warranty import (
    ClaimStatus,
    ProductCategory,
    TermKind,
    WarrantyState,
    WarrantyTerms,
    amend_warranty,
    compute_expiration_date,
)
from factories import SALE_DATE, make_warranty, utc


@pytest.mark.parametrize(
    ("kind", "months", "km"),
    [
        (TermKind.MONTHS, None, None),
        (TermKind.MONTHS, 12, 10000),
        (TermKind.KM, None, None),
        (TermKind.KM, 6, 10000),
        (TermKind.MIXED, 12, None),
        (TermKind.MIXED, None, 10000),
        (TermKind.MONTHS, 0, None),
        (TermKind.KM, None, -5),
    ],
)
def test_terms_reject_invalid_combinations(kind: TermKind, months, km) -> None:
    """Verify WarrantyTerms enforces the months/km combination for each kind."""

    with pytest.raises(ValidationError):
        WarrantyTerms(kind=kind, months=months, km=km)


def test_terms_accept_valid_combinations() -> None:
    """Verify valid terms construct and report whether a date term exists."""

    assert WarrantyTerms(kind=TermKind.MONTHS, months=6).has_date_term
    assert WarrantyTerms(kind=TermKind.MIXED, months=6, km=5000).has_date_term
    assert not WarrantyTerms(kind=TermKind.KM, km=5000).has_date_term


@pytest.mark.parametrize(
    ("sale_date", "months", "expected"),
    [
        (utc(2024, 1, 1), 12, utc(2025, 1, 1)),
        (utc(2024, 1, 31), 1, utc(2024, 2, 29)),
        (utc(2023, 1, 31), 1, utc(2023, 2, 28)),
        (utc(2024, 8, 31), 6, utc(2025, 2, 28)),
        (utc(2024, 3, 15, 10, 30), 3, utc(2024, 6, 15, 10, 30)),
    ],
)
def test_expiration_adds_calendar_months(sale_date: datetime, months: int, expected: datetime) -> None:
    """Verify month arithmetic clamps to the last day of the target month."""

    terms = WarrantyTerms(kind=TermKind.MONTHS, months=months)
    assert compute_expiration_date(sale_date, terms) == expected


def test_expiration_for_distance_only_terms_is_sale_date() -> None:
    """Verify km-only terms produce no calendar extension."""

    terms = WarrantyTerms(kind=TermKind.KM, km=10000)
    assert compute_expiration_date(SALE_DATE, terms) == SALE_DATE


def test_expiration_for_mixed_terms_uses_months() -> None:
    """Verify mixed terms expire by their month component."""

    terms = WarrantyTerms(kind=TermKind.MIXED, months=6, km=10000)
    assert compute_expiration_date(SALE_DATE, terms) == utc(2024, 7, 1)


def test_warranty_coerces_price_to_decimal() -> None:
    """Verify price inputs become Decimal and negative prices are rejected."""

    assert make_warranty(price="1500.50").price == Decimal("1500.50")
    assert make_warranty(price=0).price == Decimal("0")

    with pytest.raises(ValidationError):
        make_warranty(price=-1)
    with pytest.raises(ValidationError):
        make_warranty(price="abc")
    with pytest.raises(ValidationError):
        make_warranty(price=True)


def test_warranty_requires_identity_and_customer() -> None:
    """Verify blank ids, customer name and brand are rejected."""

    for field_name in ("warranty_id", "shop_id", "customer_name", "brand"):
        with pytest.raises(ValidationError) as excinfo:
            make_warranty(**{field_name: "  "})
        assert excinfo.value.field == field_name


def test_warranty_timestamps_must_be_utc() -> None:
    """Verify naive or offset timestamps are rejected at construction."""

    with pytest.raises(ValueError):
        make_warranty(created_at=datetime(2024, 1, 1))
    with pytest.raises(ValueError):
        make_warranty(expiration_date=datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=-3))))


def test_warranty_rejects_negative_odometer() -> None:
    """Verify odometer_at_sale must be a non-negative integer."""

    assert make_warranty(odometer_at_sale=45000).odometer_at_sale == 45000
    with pytest.raises(ValidationError):
        make_warranty(odometer_at_sale=-1)


def test_warranty_is_immutable() -> None:
    """Verify Warranty cannot be mutated after creation (frozen entity)."""

    warranty = make_warranty()
    with pytest.raises(FrozenInstanceError):
        warranty.state = WarrantyState.CLAIMED  # type: ignore[misc]


def test_warranty_product_label() -> None:
    """Verify product_label joins brand and model."""

    assert make_warranty().product_label == "Moura M22GD"
    assert make_warranty(model="").product_label == "Moura"


@pytest.mark.parametrize(
    ("parser", "raw", "expected"),
    [
        (ProductCategory.from_value, "bateria", ProductCategory.BATTERY),
        (ProductCategory.from_value, "Matafuego", ProductCategory.FIRE_EXTINGUISHER),
        (ProductCategory.from_value, "tire", ProductCategory.TIRE),
        (WarrantyState.from_value, "vigente", WarrantyState.ACTIVE),
        (WarrantyState.from_value, "reclamada", WarrantyState.CLAIMED),
        (WarrantyState.from_value, "canceled", WarrantyState.CANCELLED),
        (TermKind.from_value, "meses", TermKind.MONTHS),
        (TermKind.from_value, "kilometros", TermKind.KM),
        (ClaimStatus.from_value, "rechazado", ClaimStatus.REJECTED),
        (ClaimStatus.from_value, ClaimStatus.PENDING, ClaimStatus.PENDING),
    ],
)
def test_enum_parsers_accept_legacy_values(parser, raw, expected) -> None:
    """Verify current and legacy spellings resolve to the same enum member."""

    assert parser(raw) is expected


def test_enum_parsers_reject_unknown_values() -> None:
    """Verify unknown enum values raise ValidationError naming the field."""

    with pytest.raises(ValidationError) as excinfo:
        WarrantyState.from_value("archived")
    assert excinfo.value.field == "state"


def test_amend_updates_descriptive_fields() -> None:
    """Verify amendments change allowed fields and bump updated_at."""

    warranty = make_warranty()
    now = utc(2024, 2, 1)

    result = amend_warranty(warranty, {"customer_phone": "+5491100000000", "notes": ""}, now)

    assert result.ok
    amended = result.unwrap()
    assert amended.customer_phone == "+5491100000000"
    assert amended.notes is None
    assert amended.updated_at == now
    assert amended.expiration_date == warranty.expiration_date


def test_amend_rejects_protected_fields() -> None:
    """Verify identity, terms, dates and state cannot be amended."""

    result = amend_warranty(make_warranty(), {"expiration_date": utc(2030, 1, 1)}, utc(2024, 2, 1))

    assert not result.ok
    assert isinstance(result.error, ValidationError)
    assert result.error.field == "expiration_date"


def test_amend_rejects_cancelled_warranty() -> None:
    """Verify cancelled warranties cannot be amended."""

    warranty = make_warranty(state=WarrantyState.CANCELLED)
    result = amend_warranty(warranty, {"notes": "x"}, utc(2024, 2, 1))

    assert not result.ok
    assert isinstance(result.error, InvalidStateError)
    with pytest.raises(InvalidStateError):
        result.unwrap()
