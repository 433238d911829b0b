"""
Naive-UTC clock used for every lifecycle timestamp. Patched in tests.
DateTime columns hold naive UTC; incoming datetimes pass through to_naive_utc()
before they are compared or stored.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from yardflow.exceptions import InvalidOperationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware datetime to naive UTC. Naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_date_range(start: Optional[datetime], end: Optional[datetime]) -> Tuple[datetime, datetime]:
    """Both bounds required and start <= end. Returns them as naive UTC."""
    if start is None or end is None:
        raise InvalidOperationError("Both start and end dates are required", start=start, end=end)
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start > end:
        raise InvalidOperationError(
            f"Start date {start.isoformat()} cannot be after end date {end.isoformat()}",
            start=start.isoformat(), end=end.isoformat(),
        )
    return start, end
