"""Builders and fakes shared by the test modules."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from domain.errors import RecordDiagnostic
from domain.search import WarrantyFilters, matches_filters
from domain.warranty import (
    ProductCategory,
    TermKind,
    Warranty,
    WarrantyState,
    WarrantyTerms,
    compute_expiration_date,
)
from repositories.warranty_repository import WarrantyListing

SALE_DATE = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_warranty(**overrides: Any) -> Warranty:
    """A valid 12-month battery warranty sold on 2024-01-01; override any field."""

    sale_date = overrides.pop("sale_date", SALE_DATE)
    terms = overrides.pop("terms", WarrantyTerms(kind=TermKind.MONTHS, months=12))
    fields: Dict[str, Any] = dict(
        warranty_id="w-1",
        shop_id="shop-1",
        category=ProductCategory.BATTERY,
        brand="Moura",
        model="M22GD",
        description="12V 65Ah battery",
        sale_date=sale_date,
        price=Decimal("1000"),
        seller_id="emp-1",
        seller_name="Carlos",
        customer_name="Ana Perez",
        terms=terms,
        expiration_date=compute_expiration_date(sale_date, terms),
        state=WarrantyState.ACTIVE,
        created_at=sale_date,
        updated_at=sale_date,
        created_by="emp-1",
    )
    fields.update(overrides)
    return Warranty(**fields)


class InMemoryWarrantyRepository:
    """WarrantyRepository fake keeping rows in insertion order."""

    def __init__(self, warranties: Optional[List[Warranty]] = None) -> None:
        self._rows: Dict[str, Warranty] = {}
        self.saved: List[Warranty] = []
        self.skipped: List[RecordDiagnostic] = []
        for warranty in warranties or []:
            self._rows[warranty.warranty_id] = warranty

    def add(self, *warranties: Warranty) -> None:
        for warranty in warranties:
            self._rows[warranty.warranty_id] = warranty

    def list_warranties(
        self,
        shop_id: str,
        filters: Optional[WarrantyFilters] = None,
    ) -> WarrantyListing:
        found = [w for w in self._rows.values() if w.shop_id == shop_id and matches_filters(w, filters)]
        return WarrantyListing(warranties=tuple(found), diagnostics=tuple(self.skipped))

    def get_warranty(self, warranty_id: str) -> Optional[Warranty]:
        return self._rows.get(warranty_id)

    def save(self, warranty: Warranty) -> None:
        self._rows[warranty.warranty_id] = warranty
        self.saved.append(warranty)
