"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Conversion helpers (`from_domain`, `to_domain`) keep the routers free of
field-by-field mapping.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from domain.alerts import AlertCandidate
from domain.claims import ClaimRequest
from domain.expiration import TIER_ORDER, TieredWarranty, TierReport
from domain.issuance import NewWarranty
from domain.stats import StatsBundle
from domain.time import to_utc_timestamp
from domain.warranty import (
    ClaimEntry,
    ClaimStatus,
    ProductCategory,
    TermKind,
    Warranty,
    WarrantyTerms,
)


# ============================================================================
# Warranty Models
# ============================================================================

class TermsModel(BaseModel):
    """Coverage terms: months, km, or both for mixed terms."""
    kind: str
    months: Optional[int] = None
    km: Optional[int] = None

    def to_domain(self) -> WarrantyTerms:
        return WarrantyTerms(kind=TermKind.from_value(self.kind), months=self.months, km=self.km)


class ClaimEntryResponse(BaseModel):
    claim_id: str
    timestamp: datetime
    motive: str
    resolution: str
    employee_id: str
    employee_name: str
    status: str
    notes: Optional[str] = None

    @classmethod
    def from_domain(cls, claim: ClaimEntry) -> "ClaimEntryResponse":
        return cls(
            claim_id=claim.claim_id,
            timestamp=claim.timestamp,
            motive=claim.motive,
            resolution=claim.resolution,
            employee_id=claim.employee_id,
            employee_name=claim.employee_name,
            status=claim.status.value,
            notes=claim.notes,
        )


class WarrantyResponse(BaseModel):
    """Stored warranty; `effective_status` is filled on detail reads."""
    warranty_id: str
    shop_id: str
    category: str
    brand: str
    model: str
    description: str
    serial_number: Optional[str] = None
    sale_date: datetime
    price: Decimal
    invoice_number: Optional[str] = None
    seller_id: str
    seller_name: str
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    odometer_at_sale: Optional[int] = None
    terms: TermsModel
    expiration_date: datetime
    state: str
    notes: Optional[str] = None
    special_conditions: Optional[str] = None
    claim_history: List[ClaimEntryResponse]
    created_at: datetime
    updated_at: datetime
    effective_status: Optional[str] = None
    days_to_expire: Optional[int] = None

    @classmethod
    def from_domain(
        cls,
        warranty: Warranty,
        effective_status: Optional[str] = None,
        days_to_expire: Optional[int] = None,
    ) -> "WarrantyResponse":
        return cls(
            warranty_id=warranty.warranty_id,
            shop_id=warranty.shop_id,
            category=warranty.category.value,
            brand=warranty.brand,
            model=warranty.model,
            description=warranty.description,
            serial_number=warranty.serial_number,
            sale_date=warranty.sale_date,
            price=warranty.price,
            invoice_number=warranty.invoice_number,
            seller_id=warranty.seller_id,
            seller_name=warranty.seller_name,
            customer_name=warranty.customer_name,
            customer_phone=warranty.customer_phone,
            customer_email=warranty.customer_email,
            vehicle_plate=warranty.vehicle_plate,
            vehicle_brand=warranty.vehicle_brand,
            vehicle_model=warranty.vehicle_model,
            odometer_at_sale=warranty.odometer_at_sale,
            terms=TermsModel(
                kind=warranty.terms.kind.value,
                months=warranty.terms.months,
                km=warranty.terms.km,
            ),
            expiration_date=warranty.expiration_date,
            state=warranty.state.value,
            notes=warranty.notes,
            special_conditions=warranty.special_conditions,
            claim_history=[ClaimEntryResponse.from_domain(c) for c in warranty.claim_history],
            created_at=warranty.created_at,
            updated_at=warranty.updated_at,
            effective_status=effective_status,
            days_to_expire=days_to_expire,
        )


class WarrantyListResponse(BaseModel):
    """Response for warranty listing."""
    items: List[WarrantyResponse]
    total_count: int
    filters_applied: dict


class IssueWarrantyRequest(BaseModel):
    """Request to issue a warranty at the point of sale."""
    category: str
    brand: str = Field(..., min_length=1)
    model: str = ""
    description: str = ""
    price: Decimal = Field(..., ge=0)
    customer_name: str = Field(..., min_length=1)
    terms: TermsModel
    sale_date: Optional[datetime] = None
    seller_id: str = Field(..., min_length=1)
    seller_name: str = Field(..., min_length=1)

    serial_number: Optional[str] = None
    invoice_number: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    odometer_at_sale: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    special_conditions: Optional[str] = None
    customer_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    service_record_id: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "category": "battery",
                "brand": "Moura",
                "model": "M22GD",
                "description": "12V 65Ah battery",
                "price": "85000.00",
                "customer_name": "Ana Pérez",
                "customer_phone": "+5491155550000",
                "vehicle_plate": "AB123CD",
                "terms": {"kind": "months", "months": 12},
                "seller_id": "emp-7",
                "seller_name": "Carlos",
            }
        }

    @field_validator("sale_date")
    @classmethod
    def _sale_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc_timestamp(value) if value is not None else None

    def to_domain(self) -> NewWarranty:
        return NewWarranty(
            category=ProductCategory.from_value(self.category),
            brand=self.brand,
            model=self.model,
            description=self.description,
            price=self.price,
            customer_name=self.customer_name,
            terms=self.terms.to_domain(),
            sale_date=self.sale_date,
            serial_number=self.serial_number,
            invoice_number=self.invoice_number,
            customer_phone=self.customer_phone,
            customer_email=self.customer_email,
            vehicle_plate=self.vehicle_plate,
            vehicle_brand=self.vehicle_brand,
            vehicle_model=self.vehicle_model,
            odometer_at_sale=self.odometer_at_sale,
            notes=self.notes,
            special_conditions=self.special_conditions,
            customer_id=self.customer_id,
            vehicle_id=self.vehicle_id,
            service_record_id=self.service_record_id,
        )


class AlertCandidateResponse(BaseModel):
    warranty_id: str
    lead_time_days: int
    trigger_date: datetime
    expiration_date: datetime
    customer_name: str
    product_label: str
    phone: Optional[str] = None

    @classmethod
    def from_domain(cls, alert: AlertCandidate) -> "AlertCandidateResponse":
        return cls(
            warranty_id=alert.warranty_id,
            lead_time_days=alert.lead_time_days,
            trigger_date=alert.trigger_date,
            expiration_date=alert.expiration_date,
            customer_name=alert.customer_name,
            product_label=alert.product_label,
            phone=alert.phone,
        )


class IssueWarrantyResponse(BaseModel):
    warranty: WarrantyResponse
    alerts: List[AlertCandidateResponse]


class AmendWarrantyRequest(BaseModel):
    """Descriptive corrections. Omitted or empty fields are left unchanged."""
    description: Optional[str] = None
    serial_number: Optional[str] = None
    invoice_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    odometer_at_sale: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    special_conditions: Optional[str] = None

    def changes(self) -> Dict[str, object]:
        return self.model_dump(exclude_none=True)


# ============================================================================
# Claim Models
# ============================================================================

class ClaimCreateRequest(BaseModel):
    """Request to append a claim to a warranty."""
    motive: str
    resolution: str
    employee_id: str = Field(..., min_length=1)
    employee_name: str = Field(..., min_length=1)
    notes: Optional[str] = None
    status: str = ClaimStatus.RESOLVED.value

    class Config:
        json_schema_extra = {
            "example": {
                "motive": "Defective product",
                "resolution": "Product replacement",
                "employee_id": "emp-7",
                "employee_name": "Carlos",
                "notes": "Battery did not hold charge after 2 weeks",
            }
        }

    def to_domain(self) -> ClaimRequest:
        return ClaimRequest(
            motive=self.motive,
            resolution=self.resolution,
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            notes=self.notes,
            status=ClaimStatus.from_value(self.status),
        )


# ============================================================================
# Report Models
# ============================================================================

class RankedCount(BaseModel):
    key: str
    count: int


class StoredStatsResponse(BaseModel):
    total: int
    active: int
    expired: int
    claimed: int
    cancelled: int
    expiring_within_7_days: int
    expiring_within_30_days: int
    total_revenue: Decimal
    average_price: Decimal
    claimed_ratio: float
    top_categories: List[RankedCount]
    top_brands: List[RankedCount]


class EffectiveStatsResponse(BaseModel):
    total: int
    by_status: Dict[str, int]
    total_revenue: Decimal


class StatsResponse(BaseModel):
    stored: StoredStatsResponse
    effective: EffectiveStatsResponse
    skipped_records: int

    @classmethod
    def from_domain(cls, bundle: StatsBundle) -> "StatsResponse":
        stored = bundle.stored
        effective = bundle.effective
        return cls(
            stored=StoredStatsResponse(
                total=stored.total,
                active=stored.active,
                expired=stored.expired,
                claimed=stored.claimed,
                cancelled=stored.cancelled,
                expiring_within_7_days=stored.expiring_within_7_days,
                expiring_within_30_days=stored.expiring_within_30_days,
                total_revenue=stored.total_revenue,
                average_price=stored.average_price,
                claimed_ratio=stored.claimed_ratio,
                top_categories=[RankedCount(key=c.category.value, count=c.count) for c in stored.top_categories],
                top_brands=[RankedCount(key=b.brand, count=b.count) for b in stored.top_brands],
            ),
            effective=EffectiveStatsResponse(
                total=effective.total,
                by_status={status.value: n for status, n in effective.by_status.items()},
                total_revenue=effective.total_revenue,
            ),
            skipped_records=len(bundle.diagnostics),
        )


class TieredWarrantyResponse(BaseModel):
    warranty_id: str
    customer_name: str
    product_label: str
    expiration_date: datetime
    days_to_expire: int

    @classmethod
    def from_domain(cls, item: TieredWarranty) -> "TieredWarrantyResponse":
        return cls(
            warranty_id=item.warranty.warranty_id,
            customer_name=item.warranty.customer_name,
            product_label=item.warranty.product_label,
            expiration_date=item.warranty.expiration_date,
            days_to_expire=item.days_to_expire,
        )


class ExpirationReportResponse(BaseModel):
    tiers: Dict[str, List[TieredWarrantyResponse]]
    counts: Dict[str, int]
    excluded: int
    attention_needed: List[TieredWarrantyResponse]
    skipped_records: int

    @classmethod
    def from_domain(cls, report: TierReport) -> "ExpirationReportResponse":
        return cls(
            tiers={
                tier.value: [TieredWarrantyResponse.from_domain(i) for i in report.get(tier)]
                for tier in TIER_ORDER
            },
            counts={tier.value: n for tier, n in report.counts().items()},
            excluded=report.excluded,
            attention_needed=[TieredWarrantyResponse.from_domain(i) for i in report.attention_needed()],
            skipped_records=len(report.diagnostics),
        )


class SettingsRefreshResponse(BaseModel):
    shop_id: str
    has_override: bool
    requires_detail_motives: Optional[List[str]] = None
    alert_lead_times: Optional[List[int]] = None


__all__ = [
    "TermsModel",
    "WarrantyResponse",
    "WarrantyListResponse",
    "IssueWarrantyRequest",
    "IssueWarrantyResponse",
    "AmendWarrantyRequest",
    "ClaimCreateRequest",
    "StatsResponse",
    "ExpirationReportResponse",
    "SettingsRefreshResponse",
]
