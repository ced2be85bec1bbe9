"""
Date/time helpers — framework-agnostic.

MongoDB hands back naive datetimes unless the client is configured with
``tz_aware=True``; every comparison in the auth core goes through
``as_utc`` so naive values are read as UTC.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return *value* as an aware UTC datetime (naive values are assumed UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def minutes_until(moment: datetime, now: datetime) -> int:
    """Whole minutes from *now* until *moment*, rounded up (never below 1)."""
    seconds = (as_utc(moment) - as_utc(now)).total_seconds()
    return max(1, math.ceil(seconds / 60))
