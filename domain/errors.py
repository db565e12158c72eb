"""
Domain errors for the warranty engine.

Taxonomy:
- ValidationError: malformed input (claim content, warranty construction).
  Recoverable by correcting the input; never retried automatically.
- InvalidStateError: the warranty's stored state forbids the operation.
- WarrantyNotFoundError: a referenced warranty does not exist (host layers only).

There is no transient/network error here; those belong to the collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


class WarrantyError(Exception):
    """Base error for warranty engine failures."""


class ValidationError(WarrantyError, ValueError):
    """Raised (or returned) when input violates a warranty rule."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidStateError(WarrantyError):
    """Raised (or returned) when an operation is attempted in a forbidding state."""

    def __init__(self, message: str, state: Optional[str] = None, operation: Optional[str] = None):
        self.state = state
        self.operation = operation
        super().__init__(message)


class WarrantyNotFoundError(WarrantyError):
    """Raised (or returned) when a warranty id cannot be resolved."""

    def __init__(self, warranty_id: str):
        self.warranty_id = warranty_id
        super().__init__(f"Warranty not found: {warranty_id}")


@dataclass(frozen=True, slots=True)
class RecordDiagnostic:
    """A record skipped by a batch operation, and why."""

    record_id: Optional[str]
    reason: str

    @staticmethod
    def for_record(record: Any, exc: BaseException) -> "RecordDiagnostic":
        record_id = getattr(record, "warranty_id", None)
        if record_id is None and isinstance(record, Mapping):
            record_id = record.get("id") or record.get("warranty_id")
        return RecordDiagnostic(
            record_id=str(record_id) if record_id is not None else None,
            reason=f"{type(exc).__name__}: {exc}",
        )


# Errors that mark a single record as malformed inside a batch.
RECORD_ERRORS = (WarrantyError, TypeError, ValueError, AttributeError, KeyError, ArithmeticError)
