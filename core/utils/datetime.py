"""Datetime utilities for common operations."""

from datetime import datetime, date, timezone
from typing import Optional


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def to_unix_millis(dt: datetime) -> int:
    """
    Convert datetime to milliseconds since epoch.

    Args:
        dt: Datetime to convert

    Returns:
        Milliseconds since epoch
    """
    return int(dt.timestamp() * 1000)


def isoformat_or_none(value: Optional[datetime | date]) -> Optional[str]:
    """Serialize a date/datetime to ISO 8601, passing None through."""
    return value.isoformat() if value else None
