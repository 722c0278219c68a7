"""Day period calculation in the account timezone"""

from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo
from volume_guard.domain.models import DayPeriod
from volume_guard.utils.date_utils import local_now


def current_day_period(tz: ZoneInfo, now: Optional[datetime] = None) -> DayPeriod:
    """
    Bounds of "today" in the account timezone as inclusive epoch seconds.

    The end is the last whole second before the next local midnight, so the
    period always spans exactly one calendar day even across DST changes.
    """
    today = local_now(tz, now).date()
    start = datetime.combine(today, time.min, tzinfo=tz)
    next_start = datetime.combine(today + timedelta(days=1), time.min, tzinfo=tz)
    return DayPeriod(start=int(start.timestamp()), end=int(next_start.timestamp()) - 1)


def period_date(period: DayPeriod, tz: ZoneInfo) -> date:
    """Calendar date a period covers"""
    return datetime.fromtimestamp(period.start, tz).date()
