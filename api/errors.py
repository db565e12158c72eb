"""Mapping from domain errors to HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException

from domain.errors import InvalidStateError, ValidationError, WarrantyError, WarrantyNotFoundError


def to_http_exception(error: WarrantyError) -> HTTPException:
    if isinstance(error, WarrantyNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidStateError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, ValidationError):
        detail = {"message": str(error), "field": error.field} if error.field else str(error)
        return HTTPException(status_code=422, detail=detail)
    return HTTPException(status_code=500, detail=str(error))
