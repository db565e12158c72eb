"""
Domain: Claim ledger.

Rules implemented here:
- Claims may be appended only while the stored state is active or claimed.
  Expired and cancelled warranties reject claims with InvalidStateError.
- motive and resolution must be non-empty after trimming.
- notes are mandatory when the motive is one of the requires-detail motives,
  or when the warranty already carries at least one claim.
- The first claim moves the stored state to claimed. Later claims leave the
  state unchanged.
- History is append-only; expiration date is never touched.

No persistence happens here: the updated warranty is returned to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import AbstractSet, Iterable, Optional
from uuid import uuid4

from .errors import InvalidStateError, ValidationError, WarrantyError
from .time import require_utc_timestamp
from .warranty import ClaimEntry, ClaimStatus, Warranty, WarrantyState

SUGGESTED_MOTIVES = (
    "Defective product",
    "Premature failure",
    "Does not work correctly",
    "Installation problem",
    "Shipping damage",
    "Does not meet specifications",
    "Abnormal wear",
    "Quality issue",
    "Factory defect",
    "Defective material",
    "Irregular operation",
    "Recurring failure",
    "Technical evaluation",
    "Rejected claim",
    "Other",
)

SUGGESTED_RESOLUTIONS = (
    "Product replacement",
    "Repair at no cost",
    "Full refund",
    "Partial refund",
    "Store credit",
    "Claim rejected",
    "Forwarded to manufacturer",
    "Warranty repair",
    "Exchange for equivalent product",
    "Discount on next purchase",
    "Immediate replacement",
    "Other",
)

REQUIRES_DETAIL_MOTIVES = frozenset(
    {
        "recurring failure",
        "quality issue",
        "rejected claim",
        "technical evaluation",
        "other",
        "falla recurrente",
        "problema de calidad",
        "reclamo rechazado",
        "evaluación técnica",
        "evaluacion tecnica",
        "otro",
    }
)

_CLAIMABLE_STATES = (WarrantyState.ACTIVE, WarrantyState.CLAIMED)


def normalize_motives(motives: Iterable[str]) -> frozenset[str]:
    """Lower-case, trimmed motive set used for requires-detail matching."""

    return frozenset(m.strip().casefold() for m in motives if m and m.strip())


@dataclass(frozen=True, slots=True)
class ClaimRequest:
    """Caller input for a new claim. Status is chosen by the caller."""

    motive: str
    resolution: str
    employee_id: str
    employee_name: str
    notes: Optional[str] = None
    status: ClaimStatus = ClaimStatus.RESOLVED


@dataclass(frozen=True, slots=True)
class ClaimResult:
    """
    Outcome of append_claim.

    ok=True carries the updated warranty and the appended entry; ok=False
    carries the error and leaves the input warranty untouched.
    """

    ok: bool
    warranty: Optional[Warranty] = None
    claim: Optional[ClaimEntry] = None
    error: Optional[WarrantyError] = None

    @property
    def state_changed(self) -> bool:
        return bool(self.ok and self.claim is not None and self.warranty and self.warranty.claim_count == 1)

    def unwrap(self) -> Warranty:
        if not self.ok or self.warranty is None:
            raise self.error or WarrantyError("claim failed")
        return self.warranty


def requires_detail(
    warranty: Warranty,
    motive: str,
    requires_detail_motives: Optional[AbstractSet[str]] = None,
) -> bool:
    """True when a claim with `motive` on `warranty` must carry notes."""

    if requires_detail_motives is None:
        motives = REQUIRES_DETAIL_MOTIVES
    else:
        motives = normalize_motives(requires_detail_motives)
    return warranty.claim_count > 0 or motive.strip().casefold() in motives


def append_claim(
    warranty: Warranty,
    request: ClaimRequest,
    now: datetime,
    *,
    claim_id: Optional[str] = None,
    requires_detail_motives: Optional[AbstractSet[str]] = None,
) -> ClaimResult:
    """
    Validate `request` and append it to the warranty's claim history.

    Returns:
        ClaimResult(ok=True, warranty=<updated>, claim=<entry>) on success,
        ClaimResult(ok=False, error=InvalidStateError | ValidationError) otherwise.
    """

    require_utc_timestamp("now", now)

    if warranty.state not in _CLAIMABLE_STATES:
        return ClaimResult(
            ok=False,
            error=InvalidStateError(
                f"Claims cannot be added to a warranty in state '{warranty.state.value}'",
                state=warranty.state.value,
                operation="append_claim",
            ),
        )

    motive = (request.motive or "").strip()
    resolution = (request.resolution or "").strip()
    notes = (request.notes or "").strip()

    if not motive:
        return ClaimResult(ok=False, error=ValidationError("motive is required", field="motive"))
    if not resolution:
        return ClaimResult(ok=False, error=ValidationError("resolution is required", field="resolution"))
    if not notes and requires_detail(warranty, motive, requires_detail_motives):
        return ClaimResult(
            ok=False,
            error=ValidationError(
                "notes are required for this motive or for follow-up claims",
                field="notes",
            ),
        )

    if not isinstance(request.status, ClaimStatus):
        return ClaimResult(ok=False, error=ValidationError("status must be a ClaimStatus", field="status"))

    entry = ClaimEntry(
        claim_id=claim_id or uuid4().hex,
        timestamp=now,
        motive=motive,
        resolution=resolution,
        employee_id=request.employee_id,
        employee_name=request.employee_name,
        status=request.status,
        notes=notes or None,
    )

    state = WarrantyState.CLAIMED if warranty.claim_count == 0 else warranty.state
    updated = replace(
        warranty,
        claim_history=warranty.claim_history + (entry,),
        state=state,
        updated_at=now,
    )
    return ClaimResult(ok=True, warranty=updated, claim=entry)
