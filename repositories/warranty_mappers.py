"""
Row mappers between persisted warranty records and domain Warranty objects.

This is the single place where externally sourced shapes are normalized:
- timestamps go through `to_utc_timestamp` exactly once
- legacy enum values and legacy document keys are translated
- claim history (a JSON array column) becomes a tuple of ClaimEntry

No business rules belong here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from domain.errors import RECORD_ERRORS, RecordDiagnostic
from domain.time import to_utc_timestamp
from domain.warranty import (
    ClaimEntry,
    ClaimStatus,
    ProductCategory,
    TermKind,
    Warranty,
    WarrantyState,
    WarrantyTerms,
)

# Keys used by records written by the legacy document store.
_LEGACY_KEYS = {
    "lubricentroId": "shop_id",
    "categoria": "category",
    "marca": "brand",
    "modelo": "model",
    "numeroSerie": "serial_number",
    "descripcion": "description",
    "fechaVenta": "sale_date",
    "precio": "price",
    "facturaNumero": "invoice_number",
    "vendedorId": "seller_id",
    "vendedorNombre": "seller_name",
    "clienteNombre": "customer_name",
    "clienteTelefono": "customer_phone",
    "clienteEmail": "customer_email",
    "clienteId": "customer_id",
    "vehiculoId": "vehicle_id",
    "oilChangeId": "service_record_id",
    "vehiculoDominio": "vehicle_plate",
    "vehiculoMarca": "vehicle_brand",
    "vehiculoModelo": "vehicle_model",
    "kilometrajeVenta": "odometer_at_sale",
    "tipoGarantia": "term_kind",
    "garantiaMeses": "term_months",
    "garantiaKilometros": "term_km",
    "fechaVencimiento": "expiration_date",
    "estado": "state",
    "observaciones": "notes",
    "condicionesEspeciales": "special_conditions",
    "reclamosHistorial": "claim_history",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "createdBy": "created_by",
}

_LEGACY_CLAIM_KEYS = {
    "fecha": "timestamp",
    "motivo": "motive",
    "solucion": "resolution",
    "empleadoId": "employee_id",
    "empleadoNombre": "employee_name",
    "observaciones": "notes",
    "estado": "status",
}


def _normalize_keys(row: Mapping[str, Any], legacy: Mapping[str, str]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in row.items():
        normalized[legacy.get(key, key)] = value
    return normalized


def _optional_text(row: Mapping[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_int(row: Mapping[str, Any], key: str) -> Optional[int]:
    value = row.get(key)
    if value is None or value == "":
        return None
    number = int(value)
    # Legacy records store 0 for "not set".
    return number or None


def _to_iso_utc(dt: datetime) -> str:
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError("timestamps must be timezone-aware (UTC)")
    return dt.astimezone(timezone.utc).isoformat()


def row_to_claim(row: Mapping[str, Any]) -> ClaimEntry:
    data = _normalize_keys(row, _LEGACY_CLAIM_KEYS)
    return ClaimEntry(
        claim_id=str(data["id"]),
        timestamp=to_utc_timestamp(data["timestamp"]),
        motive=str(data.get("motive") or ""),
        resolution=str(data.get("resolution") or ""),
        employee_id=str(data.get("employee_id") or ""),
        employee_name=str(data.get("employee_name") or ""),
        status=ClaimStatus.from_value(data.get("status") or ClaimStatus.RESOLVED.value),
        notes=_optional_text(data, "notes"),
    )


def claim_to_row(claim: ClaimEntry) -> Dict[str, Any]:
    return {
        "id": claim.claim_id,
        "timestamp": _to_iso_utc(claim.timestamp),
        "motive": claim.motive,
        "resolution": claim.resolution,
        "employee_id": claim.employee_id,
        "employee_name": claim.employee_name,
        "status": claim.status.value,
        "notes": claim.notes,
    }


def row_to_warranty(row: Mapping[str, Any]) -> Warranty:
    """Convert a persisted row (current or legacy layout) into a Warranty."""

    data = _normalize_keys(row, _LEGACY_KEYS)

    terms = WarrantyTerms(
        kind=TermKind.from_value(data["term_kind"]),
        months=_optional_int(data, "term_months"),
        km=_optional_int(data, "term_km"),
    )

    created_at = to_utc_timestamp(data["created_at"])
    claims = tuple(row_to_claim(item) for item in (data.get("claim_history") or []))

    return Warranty(
        warranty_id=str(data["id"]),
        shop_id=str(data["shop_id"]),
        category=ProductCategory.from_value(data["category"]),
        brand=str(data.get("brand") or ""),
        model=str(data.get("model") or ""),
        description=str(data.get("description") or ""),
        sale_date=to_utc_timestamp(data["sale_date"]),
        price=data["price"],
        seller_id=str(data.get("seller_id") or ""),
        seller_name=str(data.get("seller_name") or ""),
        customer_name=str(data.get("customer_name") or ""),
        terms=terms,
        expiration_date=to_utc_timestamp(data["expiration_date"]),
        state=WarrantyState.from_value(data["state"]),
        created_at=created_at,
        updated_at=to_utc_timestamp(data["updated_at"]) if data.get("updated_at") else created_at,
        created_by=str(data.get("created_by") or data.get("seller_id") or ""),
        serial_number=_optional_text(data, "serial_number"),
        invoice_number=_optional_text(data, "invoice_number"),
        customer_phone=_optional_text(data, "customer_phone"),
        customer_email=_optional_text(data, "customer_email"),
        vehicle_plate=_optional_text(data, "vehicle_plate"),
        vehicle_brand=_optional_text(data, "vehicle_brand"),
        vehicle_model=_optional_text(data, "vehicle_model"),
        odometer_at_sale=_optional_int(data, "odometer_at_sale"),
        notes=_optional_text(data, "notes"),
        special_conditions=_optional_text(data, "special_conditions"),
        customer_id=_optional_text(data, "customer_id"),
        vehicle_id=_optional_text(data, "vehicle_id"),
        service_record_id=_optional_text(data, "service_record_id"),
        claim_history=claims,
    )


def warranty_to_row(warranty: Warranty) -> Dict[str, Any]:
    """Convert a Warranty into a row payload for the `warranties` table."""

    return {
        "id": warranty.warranty_id,
        "shop_id": warranty.shop_id,
        "category": warranty.category.value,
        "brand": warranty.brand,
        "model": warranty.model,
        "serial_number": warranty.serial_number,
        "description": warranty.description,
        "sale_date": _to_iso_utc(warranty.sale_date),
        "price": str(warranty.price),
        "invoice_number": warranty.invoice_number,
        "seller_id": warranty.seller_id,
        "seller_name": warranty.seller_name,
        "customer_name": warranty.customer_name,
        "customer_phone": warranty.customer_phone,
        "customer_email": warranty.customer_email,
        "vehicle_plate": warranty.vehicle_plate,
        "vehicle_brand": warranty.vehicle_brand,
        "vehicle_model": warranty.vehicle_model,
        "odometer_at_sale": warranty.odometer_at_sale,
        "term_kind": warranty.terms.kind.value,
        "term_months": warranty.terms.months,
        "term_km": warranty.terms.km,
        "expiration_date": _to_iso_utc(warranty.expiration_date),
        "state": warranty.state.value,
        "notes": warranty.notes,
        "special_conditions": warranty.special_conditions,
        "customer_id": warranty.customer_id,
        "vehicle_id": warranty.vehicle_id,
        "service_record_id": warranty.service_record_id,
        "claim_history": [claim_to_row(claim) for claim in warranty.claim_history],
        "created_at": _to_iso_utc(warranty.created_at),
        "updated_at": _to_iso_utc(warranty.updated_at),
        "created_by": warranty.created_by,
    }


def rows_to_warranties(rows: Iterable[Mapping[str, Any]]) -> Tuple[List[Warranty], List[RecordDiagnostic]]:
    """Map every row; malformed rows are skipped and reported."""

    warranties: List[Warranty] = []
    diagnostics: List[RecordDiagnostic] = []
    for row in rows:
        try:
            warranties.append(row_to_warranty(row))
        except RECORD_ERRORS as exc:
            diagnostics.append(RecordDiagnostic.for_record(row, exc))
    return warranties, diagnostics
