"""Volume guard - one evaluation tick from volume to rescheduled invoices"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional
from volume_guard.domain.exceptions import ConfigurationError, InvoiceStoreError, TickInProgressError
from volume_guard.domain.models import BatchSummary, GuardConfig, Invoice, TickSummary
from volume_guard.domain.period import current_day_period, period_date
from volume_guard.domain.scheduling import CyclicDelayAssigner
from volume_guard.domain.threshold import is_breached
from volume_guard.infrastructure.clients.stripe import StripeClient
from volume_guard.infrastructure.clients.telegram import TelegramNotifier
from volume_guard.infrastructure.clients.transfer_log import TransferLogClient
from volume_guard.infrastructure.observability.logging import log_tick_summary
from volume_guard.infrastructure.observability.metrics import daily_limit_gauge, record_tick, tick_counter
from volume_guard.services.alerts import LimitAlertService
from volume_guard.services.reschedule import RescheduleExecutor
from volume_guard.services.selection import EligibleInvoiceSelector
from volume_guard.services.volume import VolumeAggregator

logger = logging.getLogger(__name__)


class VolumeGuard:
    """
    Runtime context of the worker.

    Holds the current immutable GuardConfig (swapped whole on reconfiguration),
    the alert debouncer and per-day counters. Ticks never overlap: a tick
    requested while another runs is skipped.
    """

    def __init__(
        self,
        config: GuardConfig,
        store: StripeClient,
        notifier: TelegramNotifier,
        transfer_log: TransferLogClient | None = None,
        lookup_concurrency: int = 8,
    ):
        self._config = config
        self.store = store
        self.alerts = LimitAlertService(notifier)
        self.transfer_log = transfer_log
        self.lookup_concurrency = lookup_concurrency
        self.selector = EligibleInvoiceSelector(store)

        self.rescheduled_today = 0
        self.last_summary: Optional[TickSummary] = None
        self._tick_lock = asyncio.Lock()
        daily_limit_gauge.set(float(config.daily_limit))

    @property
    def config(self) -> GuardConfig:
        return self._config

    @property
    def tick_in_progress(self) -> bool:
        return self._tick_lock.locked()

    @property
    def notified_today(self) -> bool:
        return self.alerts.debouncer.notified

    def update_daily_limit(self, new_limit: Decimal) -> GuardConfig:
        """Swap in a config with the new limit; the next tick picks it up"""
        if new_limit <= 0:
            raise ConfigurationError(f"Daily limit must be positive, got {new_limit}")
        self._config = replace(self._config, daily_limit=Decimal(new_limit))
        daily_limit_gauge.set(float(new_limit))
        logger.info(f"Daily limit updated to {new_limit}")
        return self._config

    def reset_daily_state(self) -> None:
        """Daily reset: alert debouncer back to quiet, rescheduled counter cleared"""
        self.alerts.reset()
        self.rescheduled_today = 0

    def aggregator_for(self, config: GuardConfig) -> VolumeAggregator:
        return VolumeAggregator(self.store, config.currency, self.lookup_concurrency)

    async def current_gross_volume(self, now: datetime | None = None) -> Decimal:
        config = self._config
        period = current_day_period(config.timezone, now)
        return await self.aggregator_for(config).gross_volume(period)

    async def run_tick(self, now: datetime | None = None, raise_if_busy: bool = False) -> Optional[TickSummary]:
        """
        Run one evaluation tick.

        Returns None when another tick is already in progress.

        Raises:
            TickInProgressError: When busy and raise_if_busy is set
            InvoiceStoreError: When event listing or invoice selection fails
        """
        if self._tick_lock.locked():
            tick_counter.labels(outcome="skipped").inc()
            if raise_if_busy:
                raise TickInProgressError("An evaluation tick is already running")
            logger.warning("Previous tick still running, skipping")
            return None

        async with self._tick_lock:
            try:
                summary = await self._evaluate(now)
            except InvoiceStoreError:
                tick_counter.labels(outcome="error").inc()
                raise

        self.last_summary = summary
        log_tick_summary(summary, self._config.currency)
        return summary

    async def _evaluate(self, now: datetime | None) -> TickSummary:
        # One snapshot per tick; reconfiguration applies from the next tick on
        config = self._config
        period = current_day_period(config.timezone, now)

        gross_volume = await self.aggregator_for(config).gross_volume(period)
        breached = is_breached(gross_volume, config.daily_limit)
        record_tick(breached, gross_volume, config.daily_limit)

        if not breached:
            logger.info(f"Limit {config.daily_limit} {config.currency.upper()} not reached")
            return TickSummary(
                period=period,
                gross_volume=gross_volume,
                daily_limit=config.daily_limit,
                breached=False,
                alert_sent=False,
                dry_run=config.dry_run,
            )

        logger.info("Daily limit reached, rescheduling invoices")
        alert_sent = await self.alerts.on_breach(config.account_id, gross_volume, config.daily_limit, config.currency)

        invoices = await self.selector.select_eligible(period)
        batch = BatchSummary()
        if invoices:
            executor = RescheduleExecutor(
                self.store,
                CyclicDelayAssigner(config.delay_cycle, config.reschedule_time, config.timezone),
                post_success=self._transfer_hook(config),
            )
            batch, _ = await executor.run_batch(
                invoices,
                base_instant=period.start,
                tag_date=period_date(period, config.timezone),
                dry_run=config.dry_run,
            )
            if not config.dry_run:
                self.rescheduled_today += batch.succeeded
        else:
            logger.info("No untouched invoices to reschedule")

        return TickSummary(
            period=period,
            gross_volume=gross_volume,
            daily_limit=config.daily_limit,
            breached=True,
            alert_sent=alert_sent,
            dry_run=config.dry_run,
            batch=batch,
        )

    def _transfer_hook(self, config: GuardConfig):
        if self.transfer_log is None or not self.transfer_log.enabled:
            return None

        async def report(invoice: Invoice) -> None:
            await self.transfer_log.report(config.account_id, invoice)

        return report
