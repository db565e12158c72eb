"""
Domain time utilities (pure).

Centralized timestamp validation, normalization and the injected clock.

Rules implemented here:
- Every timestamp inside the engine is timezone-aware UTC.
- External date shapes are normalized exactly once, at the data boundary,
  by `to_utc_timestamp`. Domain code never re-sniffs date shapes.
- "now" is always supplied by a `Clock`; nothing in the domain reads the
  system clock on its own.
- Days to a target are whole days rounded up:
  days = ceil((target - now) / 24 hours)
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Mapping, Protocol

# Epoch values larger than this are read as milliseconds (year 5138 in seconds).
_EPOCH_MILLIS_THRESHOLD = 100_000_000_000


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the contract requirement that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if not isinstance(value, datetime):
        raise TypeError(f"{name} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def to_utc_timestamp(value: Any) -> datetime:
    """
    Normalize an externally sourced date value into a UTC datetime.

    Accepted shapes:
    - datetime (naive values are interpreted as UTC, aware ones converted)
    - date (midnight UTC)
    - ISO-8601 strings, with or without a trailing 'Z'
    - epoch numbers in seconds (or milliseconds for very large values)
    - document-store timestamp mappings: {"seconds", "nanoseconds"} or
      {"_seconds", "_nanoseconds"}
    - objects exposing `to_datetime()` / `ToDatetime()`

    Raises:
        TypeError: unsupported shape
        ValueError: unparseable string
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif isinstance(value, bool):
        raise TypeError("Unsupported timestamp type: bool")
    elif isinstance(value, (int, float)):
        seconds = float(value)
        if abs(seconds) > _EPOCH_MILLIS_THRESHOLD:
            seconds /= 1000.0
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty timestamp string")
        # fromisoformat doesn't consistently accept 'Z' across versions.
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    elif isinstance(value, Mapping):
        return _from_seconds_mapping(value)
    elif callable(getattr(value, "to_datetime", None)):
        dt = value.to_datetime()
    elif callable(getattr(value, "ToDatetime", None)):
        dt = value.ToDatetime()
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if not isinstance(dt, datetime):
        raise TypeError(f"Timestamp conversion produced {type(dt)!r}, expected datetime")
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _from_seconds_mapping(value: Mapping[str, Any]) -> datetime:
    seconds = value.get("seconds", value.get("_seconds"))
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
    if seconds is None:
        raise TypeError("Timestamp mapping must carry 'seconds' or '_seconds'")
    base = datetime.fromtimestamp(int(seconds), tz=timezone.utc)
    return base + timedelta(microseconds=int(nanos) // 1000)


def days_until(target: datetime, now: datetime) -> int:
    """
    Whole days from `now` to `target`, rounded up.

    days = ceil((target - now) / 24 hours); negative when target is past.
    """

    require_utc_timestamp("target", target)
    require_utc_timestamp("now", now)
    return math.ceil((target - now) / timedelta(days=1))


class Clock(Protocol):
    """Source of the current instant, injected into every date comparison."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Clock backed by the host's wall clock (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to one instant; used for reproducible evaluations and tests."""

    def __init__(self, instant: datetime) -> None:
        require_utc_timestamp("instant", instant)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, delta: timedelta) -> None:
        self._instant = self._instant + delta
