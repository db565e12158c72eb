"""
Domain: Warranty issuance.

Builds a new Warranty from point-of-sale input:
- stored state starts as active, claim history empty
- sale date defaults to `now` when not supplied
- expiration date computed once (domain/warranty.py::compute_expiration_date)
- created_at = updated_at = now; created_by = seller
- one-shot alert candidates are returned alongside the warranty
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from .alerts import DEFAULT_LEAD_TIMES, AlertCandidate, generate_alerts
from .errors import ValidationError, WarrantyError
from .time import require_utc_timestamp
from .warranty import (
    ProductCategory,
    Warranty,
    WarrantyState,
    WarrantyTerms,
    compute_expiration_date,
)


@dataclass(frozen=True, slots=True)
class NewWarranty:
    """Point-of-sale input for a warranty. Timestamps must already be UTC."""

    category: ProductCategory
    brand: str
    model: str
    description: str
    price: Decimal
    customer_name: str
    terms: WarrantyTerms
    sale_date: Optional[datetime] = None

    serial_number: Optional[str] = None
    invoice_number: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    odometer_at_sale: Optional[int] = None
    notes: Optional[str] = None
    special_conditions: Optional[str] = None
    customer_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    service_record_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class IssueResult:
    ok: bool
    warranty: Optional[Warranty] = None
    alerts: List[AlertCandidate] = field(default_factory=list)
    error: Optional[WarrantyError] = None

    def unwrap(self) -> Warranty:
        if not self.ok or self.warranty is None:
            raise self.error or WarrantyError("issuance failed")
        return self.warranty


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None


def issue_warranty(
    data: NewWarranty,
    *,
    warranty_id: str,
    shop_id: str,
    seller_id: str,
    seller_name: str,
    now: datetime,
    lead_times: Sequence[int] = DEFAULT_LEAD_TIMES,
) -> IssueResult:
    """Create a new active warranty and its alert candidates."""

    require_utc_timestamp("now", now)
    sale_date = data.sale_date or now

    try:
        require_utc_timestamp("sale_date", sale_date)
        warranty = Warranty(
            warranty_id=warranty_id,
            shop_id=shop_id,
            category=data.category,
            brand=(data.brand or "").strip(),
            model=(data.model or "").strip(),
            description=(data.description or "").strip(),
            sale_date=sale_date,
            price=data.price,
            seller_id=seller_id,
            seller_name=seller_name,
            customer_name=(data.customer_name or "").strip(),
            terms=data.terms,
            expiration_date=compute_expiration_date(sale_date, data.terms),
            state=WarrantyState.ACTIVE,
            created_at=now,
            updated_at=now,
            created_by=seller_id,
            serial_number=_blank_to_none(data.serial_number),
            invoice_number=_blank_to_none(data.invoice_number),
            customer_phone=_blank_to_none(data.customer_phone),
            customer_email=_blank_to_none(data.customer_email),
            vehicle_plate=_blank_to_none(data.vehicle_plate),
            vehicle_brand=_blank_to_none(data.vehicle_brand),
            vehicle_model=_blank_to_none(data.vehicle_model),
            odometer_at_sale=data.odometer_at_sale or None,
            notes=_blank_to_none(data.notes),
            special_conditions=_blank_to_none(data.special_conditions),
            customer_id=data.customer_id,
            vehicle_id=data.vehicle_id,
            service_record_id=data.service_record_id,
        )
    except ValidationError as exc:
        return IssueResult(ok=False, error=exc)
    except (TypeError, ValueError) as exc:
        return IssueResult(ok=False, error=ValidationError(str(exc)))

    return IssueResult(ok=True, warranty=warranty, alerts=generate_alerts(warranty, now, lead_times))
