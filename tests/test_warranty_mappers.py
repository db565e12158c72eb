"""
Tests for `repositories/warranty_mappers.py`.

Covers contract rules:
- Rows in the current layout map to Warranty and back without loss.
- Legacy document keys, Spanish enum values and document-store timestamps
  are normalized once at this boundary.
- Malformed rows are skipped with a diagnostic instead of failing the batch.
"""

from __future__ import annotations

from decimal import Decimal

from domain.warranty import ClaimStatus, ProductCategory, TermKind, WarrantyState
from repositories.warranty_mappers import row_to_warranty, rows_to_warranties, warranty_to_row
from factories import make_warranty, utc

# 2024-01-01T00:00:00Z and 2025-01-01T00:00:00Z in epoch seconds.
JAN_2024 = 1704067200
JAN_2025 = 1735689600


def _legacy_row(**overrides):
    row = {
        "id": "legacy-1",
        "lubricentroId": "shop-9",
        "categoria": "bateria",
        "marca": "Willard",
        "modelo": "UB620",
        "descripcion": "Bateria 12x65",
        "fechaVenta": {"_seconds": JAN_2024, "_nanoseconds": 0},
        "precio": 90000,
        "vendedorId": "emp-3",
        "vendedorNombre": "Pedro",
        "clienteNombre": "Luis Sosa",
        "clienteTelefono": "1155550000",
        "vehiculoDominio": "AA111AA",
        "kilometrajeVenta": 0,
        "tipoGarantia": "meses",
        "garantiaMeses": 12,
        "garantiaKilometros": 0,
        "fechaVencimiento": {"seconds": JAN_2025, "nanoseconds": 0},
        "estado": "reclamada",
        "reclamosHistorial": [
            {
                "id": "r-1",
                "fecha": "2024-05-01T10:00:00Z",
                "motivo": "Producto defectuoso",
                "solucion": "Reemplazo",
                "empleadoId": "emp-3",
                "empleadoNombre": "Pedro",
                "estado": "resuelto",
            }
        ],
        "createdAt": "2024-01-01T00:00:00Z",
    }
    row.update(overrides)
    return row


def test_legacy_row_is_normalized() -> None:
    """Verify legacy keys, Spanish enums and document timestamps are translated."""

    warranty = row_to_warranty(_legacy_row())

    assert warranty.shop_id == "shop-9"
    assert warranty.category is ProductCategory.BATTERY
    assert warranty.state is WarrantyState.CLAIMED
    assert warranty.terms.kind is TermKind.MONTHS
    assert warranty.terms.months == 12
    assert warranty.terms.km is None
    assert warranty.odometer_at_sale is None
    assert warranty.sale_date == utc(2024, 1, 1)
    assert warranty.expiration_date == utc(2025, 1, 1)
    assert warranty.updated_at == warranty.created_at == utc(2024, 1, 1)
    assert warranty.created_by == "emp-3"
    assert warranty.price == Decimal("90000")
    assert warranty.claim_count == 1
    claim = warranty.claim_history[0]
    assert claim.status is ClaimStatus.RESOLVED
    assert claim.timestamp == utc(2024, 5, 1, 10)
    assert claim.motive == "Producto defectuoso"


def test_current_row_round_trip() -> None:
    """Verify warranty_to_row output maps back to an equal Warranty."""

    warranty = make_warranty(
        vehicle_plate="AB123CD",
        odometer_at_sale=45000,
        notes="Installed in store",
        price=Decimal("1234.56"),
    )

    row = warranty_to_row(warranty)

    assert row["category"] == "battery"
    assert row["state"] == "active"
    assert row["price"] == "1234.56"
    assert row["sale_date"] == "2024-01-01T00:00:00+00:00"
    assert row_to_warranty(row) == warranty


def test_rows_to_warranties_skips_malformed_rows() -> None:
    """Verify bad rows produce diagnostics while good rows still map."""

    rows = [
        _legacy_row(id="good"),
        _legacy_row(id="bad-price", precio="n/a"),
        _legacy_row(id="bad-state", estado="archivada"),
        {"id": "missing-fields"},
    ]

    warranties, diagnostics = rows_to_warranties(rows)

    assert [w.warranty_id for w in warranties] == ["good"]
    assert [d.record_id for d in diagnostics] == ["bad-price", "bad-state", "missing-fields"]
    assert diagnostics[2].reason.startswith("KeyError")
