"""
Date helpers for PQ delay tracking.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_date(value: Optional[Union[date, datetime]]) -> str:
    """Format as YYYY-MM-DD, empty string for None."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def _as_aware(value: datetime) -> datetime:
    # Naive timestamps from the database are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def hours_since(created_at: datetime, now: Optional[datetime] = None) -> float:
    """
    Hours between created_at and now, including the fraction.

    Args:
        created_at: Record creation timestamp
        now: Reference time (defaults to current UTC time)

    Returns:
        Elapsed hours, never negative
    """
    now = _as_aware(now or utc_now())
    seconds = (now - _as_aware(created_at)).total_seconds()
    return max(seconds, 0) / 3600


def is_delayed(
    created_at: Optional[datetime],
    pq_status: Optional[str],
    threshold_hours: int = 48,
    now: Optional[datetime] = None,
) -> bool:
    """
    Check if a PQ has been pending longer than the threshold.

    Only Pending records can be delayed. Partial hours count, so 48h30m is
    past a 48 hour threshold and exactly 48h is not.
    """
    if created_at is None:
        return False
    status = getattr(pq_status, "value", pq_status)
    if status != "Pending":
        return False
    return hours_since(created_at, now) > threshold_hours
