"""Timezone-aware timestamps for transactions and sessions."""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def elapsed_since(moment: datetime, now: Optional[datetime] = None) -> timedelta:
    return (now or utc_now()) - moment


def format_timestamp(value: datetime) -> str:
    """RFC 3339 text, e.g. ``2024-01-01T12:00:00.123456+00:00``."""
    return value.isoformat()
