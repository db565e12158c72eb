"""
Domain: Warranty entity and claim entries.

Rules implemented here:
- A Warranty is scoped to exactly one shop (tenant).
- price >= 0; months > 0 and km > 0 when present.
- Terms: exactly one of {months, km} unless the kind is mixed, which needs both.
- Expiration date = sale date + months (calendar months) when a duration applies.
  Distance-only terms keep the sale date as the stored expiration date.
- Expiration date, once set at issuance, is never recalculated.
- claim_history is append-only; it is a tuple and transitions return new instances.
- `cancelled` is terminal.

Entities are frozen; no I/O, no frameworks. All timestamps are UTC and explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Type, TypeVar

from dateutil.relativedelta import relativedelta

from .errors import InvalidStateError, ValidationError, WarrantyError
from .time import require_utc_timestamp

E = TypeVar("E", bound=Enum)


def _parse_enum(enum_cls: Type[E], value: Any, aliases: Mapping[str, E], field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip().lower() if value is not None else ""
    if text in aliases:
        return aliases[text]
    try:
        return enum_cls(text)
    except ValueError:
        raise ValidationError(f"Unknown {field_name}: {value!r}", field=field_name) from None


class ProductCategory(str, Enum):
    BATTERY = "battery"
    FIRE_EXTINGUISHER = "fire-extinguisher"
    OIL = "oil"
    FILTER = "filter"
    LUBRICANT = "lubricant"
    TIRE = "tire"
    SHOCK_ABSORBER = "shock-absorber"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: Any) -> "ProductCategory":
        return _parse_enum(cls, value, _CATEGORY_ALIASES, "category")


class WarrantyState(str, Enum):
    """Stored lifecycle state. Changed only by explicit transitions."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CLAIMED = "claimed"
    CANCELLED = "cancelled"

    @classmethod
    def from_value(cls, value: Any) -> "WarrantyState":
        return _parse_enum(cls, value, _STATE_ALIASES, "state")


class TermKind(str, Enum):
    MONTHS = "months"
    KM = "km"
    MIXED = "mixed"  # whichever comes first

    @classmethod
    def from_value(cls, value: Any) -> "TermKind":
        return _parse_enum(cls, value, _TERM_KIND_ALIASES, "term_kind")


class ClaimStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"

    @classmethod
    def from_value(cls, value: Any) -> "ClaimStatus":
        return _parse_enum(cls, value, _CLAIM_STATUS_ALIASES, "claim_status")


# Values persisted by the legacy (Spanish-language) shop records.
_CATEGORY_ALIASES = {
    "bateria": ProductCategory.BATTERY,
    "matafuego": ProductCategory.FIRE_EXTINGUISHER,
    "aceite": ProductCategory.OIL,
    "filtro": ProductCategory.FILTER,
    "lubricante": ProductCategory.LUBRICANT,
    "neumatico": ProductCategory.TIRE,
    "amortiguador": ProductCategory.SHOCK_ABSORBER,
    "otro": ProductCategory.OTHER,
}
_STATE_ALIASES = {
    "vigente": WarrantyState.ACTIVE,
    "vencida": WarrantyState.EXPIRED,
    "reclamada": WarrantyState.CLAIMED,
    "cancelada": WarrantyState.CANCELLED,
    "canceled": WarrantyState.CANCELLED,
}
_TERM_KIND_ALIASES = {
    "meses": TermKind.MONTHS,
    "kilometros": TermKind.KM,
    "mixta": TermKind.MIXED,
}
_CLAIM_STATUS_ALIASES = {
    "pendiente": ClaimStatus.PENDING,
    "resuelto": ClaimStatus.RESOLVED,
    "rechazado": ClaimStatus.REJECTED,
}


def _require_positive_int(name: str, value: Optional[int]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", field=name)
    if value <= 0:
        raise ValidationError(f"{name} must be > 0", field=name)


@dataclass(frozen=True, slots=True)
class WarrantyTerms:
    """Coverage terms: by months, by km, or mixed (whichever comes first)."""

    kind: TermKind
    months: Optional[int] = None
    km: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, TermKind):
            raise ValidationError("kind must be a TermKind", field="kind")
        _require_positive_int("months", self.months)
        _require_positive_int("km", self.km)

        if self.kind is TermKind.MIXED:
            if self.months is None or self.km is None:
                raise ValidationError("mixed terms require both months and km", field="terms")
        elif self.kind is TermKind.MONTHS:
            if self.months is None or self.km is not None:
                raise ValidationError("month terms require months and no km", field="terms")
        elif self.km is None or self.months is not None:
            raise ValidationError("km terms require km and no months", field="terms")

    @property
    def has_date_term(self) -> bool:
        """True when a calendar duration drives the expiration date."""

        return self.kind in (TermKind.MONTHS, TermKind.MIXED)


def compute_expiration_date(sale_date: datetime, terms: WarrantyTerms) -> datetime:
    """
    Expiration = sale_date + terms.months calendar months.

    Month arithmetic clamps to the end of the target month (Jan 31 + 1 month
    lands on the last day of February). Records written by the legacy web
    client rolled over into the next month instead (Jan 31 + 1 month gave
    Mar 2 or Mar 3); stored expiration dates are read back as-is, so only
    newly issued warranties use the clamped date. Distance-only terms return
    the sale date unchanged.
    """

    require_utc_timestamp("sale_date", sale_date)
    if terms.has_date_term and terms.months:
        return sale_date + relativedelta(months=terms.months)
    return sale_date


@dataclass(frozen=True, slots=True)
class ClaimEntry:
    """One claim event against a warranty. Never edited once appended."""

    claim_id: str
    timestamp: datetime
    motive: str
    resolution: str
    employee_id: str
    employee_name: str
    status: ClaimStatus = ClaimStatus.RESOLVED
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("timestamp", self.timestamp)
        if not isinstance(self.status, ClaimStatus):
            raise ValidationError("status must be a ClaimStatus", field="status")


def _require_text(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required", field=name)


@dataclass(frozen=True, slots=True)
class Warranty:
    """
    One sold product's warranty record.

    Construction validates every invariant; a Warranty instance is always
    well-formed. Use `issue_warranty` to create new ones and the claim ledger
    to append claims.
    """

    # Identity
    warranty_id: str
    shop_id: str

    # Product
    category: ProductCategory
    brand: str
    model: str
    description: str

    # Sale
    sale_date: datetime
    price: Decimal
    seller_id: str
    seller_name: str

    # Customer
    customer_name: str

    # Terms
    terms: WarrantyTerms
    expiration_date: datetime

    # Lifecycle + audit
    state: WarrantyState
    created_at: datetime
    updated_at: datetime
    created_by: str

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

    # Links to other shop records
    customer_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    service_record_id: Optional[str] = None

    claim_history: Tuple[ClaimEntry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        _require_text("warranty_id", self.warranty_id)
        _require_text("shop_id", self.shop_id)
        _require_text("customer_name", self.customer_name)
        _require_text("brand", self.brand)
        if not isinstance(self.model, str):
            raise ValidationError("model must be text", field="model")
        if not isinstance(self.description, str):
            raise ValidationError("description must be text", field="description")

        if not isinstance(self.category, ProductCategory):
            raise ValidationError("category must be a ProductCategory", field="category")
        if not isinstance(self.state, WarrantyState):
            raise ValidationError("state must be a WarrantyState", field="state")
        if not isinstance(self.terms, WarrantyTerms):
            raise ValidationError("terms must be WarrantyTerms", field="terms")

        object.__setattr__(self, "price", _to_price(self.price))

        if self.odometer_at_sale is not None:
            if isinstance(self.odometer_at_sale, bool) or not isinstance(self.odometer_at_sale, int):
                raise ValidationError("odometer_at_sale must be an integer", field="odometer_at_sale")
            if self.odometer_at_sale < 0:
                raise ValidationError("odometer_at_sale must be >= 0", field="odometer_at_sale")

        require_utc_timestamp("sale_date", self.sale_date)
        require_utc_timestamp("expiration_date", self.expiration_date)
        require_utc_timestamp("created_at", self.created_at)
        require_utc_timestamp("updated_at", self.updated_at)

        history = tuple(self.claim_history)
        for entry in history:
            if not isinstance(entry, ClaimEntry):
                raise ValidationError("claim_history must contain ClaimEntry items", field="claim_history")
        object.__setattr__(self, "claim_history", history)

    @property
    def product_label(self) -> str:
        return f"{self.brand} {self.model}".strip()

    @property
    def claim_count(self) -> int:
        return len(self.claim_history)

    @property
    def is_cancelled(self) -> bool:
        return self.state is WarrantyState.CANCELLED


def _to_price(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("price must be a number", field="price")
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"price is not a number: {value!r}", field="price") from None
    if not price.is_finite():
        raise ValidationError("price must be finite", field="price")
    if price < 0:
        raise ValidationError("price must be >= 0", field="price")
    return price


@dataclass(frozen=True, slots=True)
class WarrantyResult:
    """Outcome of a single-warranty operation: the new warranty or the error."""

    ok: bool
    warranty: Optional[Warranty] = None
    error: Optional[WarrantyError] = None

    def unwrap(self) -> Warranty:
        """Return the warranty or raise the carried error."""

        if not self.ok or self.warranty is None:
            raise self.error or WarrantyError("operation failed")
        return self.warranty


# Descriptive facts that may be corrected after issuance.
AMENDABLE_FIELDS = frozenset(
    {
        "description",
        "serial_number",
        "invoice_number",
        "customer_name",
        "customer_phone",
        "customer_email",
        "vehicle_plate",
        "vehicle_brand",
        "vehicle_model",
        "odometer_at_sale",
        "notes",
        "special_conditions",
    }
)


def amend_warranty(warranty: Warranty, changes: Mapping[str, Any], now: datetime) -> WarrantyResult:
    """
    Apply descriptive corrections to a warranty.

    - Only AMENDABLE_FIELDS may change; identity, terms, dates, state and
      claim history are immutable here.
    - None and empty-string values are ignored (no-op for that field).
    - Cancelled warranties reject amendments.
    """

    require_utc_timestamp("now", now)

    if warranty.is_cancelled:
        return WarrantyResult(
            ok=False,
            error=InvalidStateError(
                "Cancelled warranties cannot be amended",
                state=warranty.state.value,
                operation="amend",
            ),
        )

    forbidden = sorted(set(changes) - AMENDABLE_FIELDS)
    if forbidden:
        return WarrantyResult(
            ok=False,
            error=ValidationError(f"Fields cannot be amended: {', '.join(forbidden)}", field=forbidden[0]),
        )

    updates = {key: value for key, value in changes.items() if value is not None and value != ""}
    if not updates:
        return WarrantyResult(ok=True, warranty=warranty)

    try:
        amended = replace(warranty, updated_at=now, **updates)
    except ValidationError as exc:
        return WarrantyResult(ok=False, error=exc)
    return WarrantyResult(ok=True, warranty=amended)
