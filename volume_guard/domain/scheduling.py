"""Cyclic delay assignment for deferred invoices"""

from datetime import datetime, time, timedelta
from typing import Sequence, Tuple
from zoneinfo import ZoneInfo
from volume_guard.domain.models import DelayAssignment


class CyclicDelayAssigner:
    """
    Spread a batch over future days by consuming a delay cycle round-robin.

    Requirements:
    - delay for position i is cycle[i mod len(cycle)], independent of batch size
    - target = base day + delay days, at a fixed local time of day
    - same base, index and cycle always give the same instant

    Example:
        cycle [1, 3, 5, 7, 9], base 2026-10-18, time 12:00 (+04:00)
        index 0 -> 2026-10-19 12:00, index 1 -> 2026-10-21 12:00,
        index 5 -> 2026-10-19 12:00
    """

    def __init__(self, delay_cycle: Sequence[int], time_of_day: time, tz: ZoneInfo):
        if not delay_cycle:
            raise ValueError("Delay cycle must not be empty")
        if any(days <= 0 for days in delay_cycle):
            raise ValueError("Delay cycle must contain positive day offsets only")

        self.delay_cycle: Tuple[int, ...] = tuple(delay_cycle)
        self.time_of_day = time_of_day
        self.tz = tz

    def delay_for(self, index: int) -> int:
        return self.delay_cycle[index % len(self.delay_cycle)]

    def assign(self, index: int, base_instant: int) -> DelayAssignment:
        """Delay and new epoch instant for the invoice at the given batch position"""
        delay_days = self.delay_for(index)
        base_day = datetime.fromtimestamp(base_instant, self.tz).date()

        # Calendar arithmetic on the local date, then pin the wall-clock time
        target_day = base_day + timedelta(days=delay_days)
        target = datetime.combine(target_day, self.time_of_day.replace(microsecond=0), tzinfo=self.tz)

        return DelayAssignment(index=index, delay_days=delay_days, new_instant=int(target.timestamp()))
