"""
Warranty repository (persistence).

This module provides *only* persistence operations for the Warranty entity.
No lifecycle, status or statistics rules belong here; those live in `domain/`.

All reads are shop-scoped. Category and state filters are pushed down to the
database; brand and sale-date filters are applied with the domain predicates,
so no row limit is applied here (callers slice the filtered result).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Tuple

from postgrest.exceptions import APIError

from domain.errors import RecordDiagnostic
from domain.search import WarrantyFilters, matches_filters
from domain.warranty import Warranty
from repositories.warranty_mappers import row_to_warranty, rows_to_warranties, warranty_to_row

logger = logging.getLogger(__name__)

# Supabase table name for warranty records.
# Keep this aligned with your database schema.
_WARRANTIES_TABLE: str = "warranties"


@dataclass(frozen=True, slots=True)
class WarrantyListing:
    """Warranties read for one query plus the rows that failed to map."""

    warranties: Tuple[Warranty, ...] = ()
    diagnostics: Tuple[RecordDiagnostic, ...] = field(default_factory=tuple)


class WarrantyRepository(Protocol):
    """Persistence collaborator contract used by the service layer."""

    def list_warranties(
        self,
        shop_id: str,
        filters: Optional[WarrantyFilters] = None,
    ) -> WarrantyListing:
        ...

    def get_warranty(self, warranty_id: str) -> Optional[Warranty]:
        ...

    def save(self, warranty: Warranty) -> None:
        ...


def _execute(query: Any, action: str) -> Any:
    """Run a postgrest query; API failures and error payloads raise RuntimeError."""

    try:
        response = query.execute()
    except APIError as e:
        raise RuntimeError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")
    return response


class SupabaseWarrantyRepository:
    """WarrantyRepository backed by a Supabase table."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def list_warranties(
        self,
        shop_id: str,
        filters: Optional[WarrantyFilters] = None,
    ) -> WarrantyListing:
        """
        List a shop's warranties, newest first.

        Rows that fail to map are skipped and returned as diagnostics in the
        listing.
        """

        query = self._client.table(_WARRANTIES_TABLE).select("*").eq("shop_id", shop_id)

        if filters is not None:
            if filters.category is not None:
                query = query.eq("category", filters.category.value)
            if filters.state is not None:
                query = query.eq("state", filters.state.value)

        response = _execute(query.order("created_at", desc=True), "list warranties")

        rows = getattr(response, "data", None) or []
        warranties, diagnostics = rows_to_warranties(rows)

        if diagnostics:
            logger.warning(
                "Skipped malformed warranty rows",
                extra={"shop_id": shop_id, "skipped": len(diagnostics)},
            )

        return WarrantyListing(
            warranties=tuple(w for w in warranties if matches_filters(w, filters)),
            diagnostics=tuple(diagnostics),
        )

    def get_warranty(self, warranty_id: str) -> Optional[Warranty]:
        query = self._client.table(_WARRANTIES_TABLE).select("*").eq("id", warranty_id).limit(1)
        response = _execute(query, "fetch warranty")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return row_to_warranty(rows[0])

    def save(self, warranty: Warranty) -> None:
        """Insert or replace the warranty row."""

        _execute(self._client.table(_WARRANTIES_TABLE).upsert(warranty_to_row(warranty)), "save warranty")


__all__ = ["WarrantyListing", "WarrantyRepository", "SupabaseWarrantyRepository"]
