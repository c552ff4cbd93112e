"""
Time and date utilities for scan-history analysis.

Key concepts:
  - All timestamps are timezone-aware UTC.  Naive datetimes coming from the
    historical store are assumed to already be UTC.
  - Date ranges: the timeline view looks back over a fixed window
    (7, 30 or 90 days) or over all history.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any, Optional


class DateRange(StrEnum):
    """Look-back window for timeline analysis."""

    SEVEN_DAYS  = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"
    ALL_TIME    = "all"

    @property
    def days(self) -> Optional[int]:
        """Window length in days, or ``None`` for ``ALL_TIME``."""
        if self is DateRange.ALL_TIME:
            return None
        return int(self.value[:-1])


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days from ``earlier`` to ``later``, truncated toward zero.

    A 36-hour gap is 1 day; a gap of minus 36 hours is -1 day.
    """
    seconds = (as_utc(later) - as_utc(earlier)).total_seconds()
    return int(seconds / 86_400)


def window_start(date_range: DateRange, now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of the look-back window ending at ``now``; ``None`` for all time."""
    days = date_range.days
    if days is None:
        return None
    return as_utc(now or utcnow()) - timedelta(days=days)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string, epoch milliseconds, or datetime into UTC.

    Returns ``None`` for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None
