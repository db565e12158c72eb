"""
Domain: Search and filter predicates.

- matches(): case-insensitive substring match of a free-text query against
  customer name, vehicle plate, brand, model and description. A blank query
  matches everything.
- matches_filters(): structured filters (category, stored state, brand,
  inclusive sale-date range on the UTC calendar date). Unset filters match.

Both are pure predicates; `search` composes them with AND over a collection
and keeps the input order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from .errors import RECORD_ERRORS, RecordDiagnostic
from .warranty import ProductCategory, Warranty, WarrantyState

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WarrantyFilters:
    category: Optional[ProductCategory] = None
    state: Optional[WarrantyState] = None
    brand: Optional[str] = None
    sale_date_from: Optional[date] = None
    sale_date_to: Optional[date] = None

    def __post_init__(self) -> None:
        if self.sale_date_from and self.sale_date_to and self.sale_date_from > self.sale_date_to:
            raise ValueError("sale_date_from must be <= sale_date_to")


def matches(warranty: Warranty, query: str) -> bool:
    term = (query or "").strip().casefold()
    if not term:
        return True

    haystack = (
        warranty.customer_name,
        warranty.vehicle_plate,
        warranty.brand,
        warranty.model,
        warranty.description,
    )
    return any(value and term in value.casefold() for value in haystack)


def matches_filters(warranty: Warranty, filters: Optional[WarrantyFilters]) -> bool:
    if filters is None:
        return True
    if filters.category is not None and warranty.category is not filters.category:
        return False
    if filters.state is not None and warranty.state is not filters.state:
        return False
    if filters.brand and warranty.brand.strip().casefold() != filters.brand.strip().casefold():
        return False

    sold_on = warranty.sale_date.date()
    if filters.sale_date_from is not None and sold_on < filters.sale_date_from:
        return False
    if filters.sale_date_to is not None and sold_on > filters.sale_date_to:
        return False
    return True


def search(
    warranties: Iterable[Warranty],
    query: str = "",
    filters: Optional[WarrantyFilters] = None,
) -> List[Warranty]:
    """Warranties matching both `query` and `filters`, in input order."""

    found: List[Warranty] = []
    for warranty in warranties:
        try:
            if matches(warranty, query) and matches_filters(warranty, filters):
                found.append(warranty)
        except RECORD_ERRORS as exc:
            diagnostic = RecordDiagnostic.for_record(warranty, exc)
            logger.warning(
                "Skipping malformed warranty during search",
                extra={"record_id": diagnostic.record_id, "reason": diagnostic.reason},
            )
    return found
