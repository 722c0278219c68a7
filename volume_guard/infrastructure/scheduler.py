"""Asyncio loops driving the minute tick and the daily reset"""

import asyncio
import logging
from datetime import time
from typing import Awaitable, Callable
from zoneinfo import ZoneInfo
from volume_guard.utils.date_utils import seconds_until

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


async def _run_guarded(name: str, job: Job) -> None:
    try:
        await job()
    except Exception:
        # A failed run must not stop the schedule; the next run starts fresh
        logger.exception(f"Scheduled job {name} failed")


async def run_periodic(interval_seconds: float, job: Job, name: str = "tick") -> None:
    """Run job every interval until cancelled"""
    logger.info(f"Scheduler started for {name} every {interval_seconds}s")
    while True:
        await _run_guarded(name, job)
        await asyncio.sleep(interval_seconds)


async def run_daily(at: time, tz: ZoneInfo, job: Job, name: str = "daily_reset") -> None:
    """Run job once a day at a fixed local time until cancelled"""
    while True:
        delay = seconds_until(at, tz)
        logger.info(f"Next {name} in {delay:.0f}s")
        await asyncio.sleep(delay)
        await _run_guarded(name, job)


async def _call(fn: Callable[[], object]) -> object:
    return fn()


def sync_job(fn: Callable[[], object]) -> Job:
    """Adapt a plain callable to the Job signature"""
    return lambda: _call(fn)
