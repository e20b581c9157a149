"""
Clock helpers.

Timestamps are stored as naive UTC. The quota "day" starts at local
midnight, either the server's local zone or QUOTA_TIMEZONE when set.
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from mogumogu_api.core.config import QUOTA_TIMEZONE


def utcnow() -> datetime:
    """Current time as naive UTC, matching how rows are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def from_unix(timestamp: Optional[int]) -> Optional[datetime]:
    """Convert a Stripe unix timestamp to naive UTC."""
    if not timestamp:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).replace(tzinfo=None)


def quota_window_start(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> datetime:
    """
    Start of today's quota window as naive UTC.

    Args:
        now: Aware "current" time, defaults to the wall clock
        tz_name: IANA zone for the day boundary; empty means server-local

    Returns:
        Midnight of the current day in the chosen zone, converted to naive UTC
    """
    tz_name = QUOTA_TIMEZONE if tz_name is None else tz_name
    if now is None:
        now = datetime.now(timezone.utc)

    if tz_name:
        local_now = now.astimezone(ZoneInfo(tz_name))
        midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight.astimezone(timezone.utc).replace(tzinfo=None)

    # Naive wall time so midnight gets its own UTC offset on DST-change days
    local_wall = now.astimezone().replace(tzinfo=None)
    midnight = local_wall.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)
