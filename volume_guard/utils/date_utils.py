"""Date manipulation utilities"""

from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def local_now(tz: ZoneInfo, now: Optional[datetime] = None) -> datetime:
    """Current instant expressed in the given zone"""
    return (now or datetime.now(timezone.utc)).astimezone(tz)


def format_timestamp(timestamp: Optional[int], tz: ZoneInfo) -> str:
    """ISO rendering of an epoch timestamp in the given zone, or 'none'"""
    if timestamp is None:
        return "none"
    return datetime.fromtimestamp(timestamp, tz).isoformat()


def seconds_until(at: time, tz: ZoneInfo, now: Optional[datetime] = None) -> float:
    """Seconds until the next occurrence of a local wall-clock time (always > 0)

    Measured on absolute instants so a DST shift between now and the target is counted.
    """
    current = local_now(tz, now)
    target = datetime.combine(current.date(), at, tzinfo=tz)
    if target.timestamp() <= current.timestamp():
        target = datetime.combine(current.date() + timedelta(days=1), at, tzinfo=tz)
    return target.timestamp() - current.timestamp()
