"""Daily gross volume aggregation from settled charges"""

import asyncio
import logging
from decimal import Decimal
from typing import List, Optional
from volume_guard.domain.models import DayPeriod, SettlementDetail, SettlementEvent
from volume_guard.infrastructure.clients.stripe import StripeClient
from volume_guard.infrastructure.observability.metrics import settlement_lookup_failures_counter

logger = logging.getLogger(__name__)

CHARGE_SUCCEEDED = "charge.succeeded"


def minor_to_major(amount: int) -> Decimal:
    return Decimal(amount) / Decimal(100)


class VolumeAggregator:
    """
    Sum of settled amounts for charges that succeeded within a period.

    Strategy: every charge.succeeded event is resolved to its balance
    transaction and the settled amount counts only when it was credited in
    the account currency. Failed lookups are logged and excluded, so the
    result is a lower bound rather than an error.
    """

    def __init__(self, store: StripeClient, currency: str, concurrency: int = 8):
        self.store = store
        self.currency = currency.lower()
        self.concurrency = concurrency

    async def _settle(self, event: SettlementEvent, semaphore: asyncio.Semaphore) -> Optional[SettlementDetail]:
        if not event.balance_transaction:
            logger.warning(f"Charge {event.charge_id} has no balance transaction, skipping")
            return None
        async with semaphore:
            return await self.store.get_balance_transaction(event.balance_transaction)

    async def gross_volume(self, period: DayPeriod) -> Decimal:
        """
        Gross volume in major units of the account currency.

        Raises:
            InvoiceStoreError: When the event listing itself fails
        """
        events: List[SettlementEvent] = [
            event async for event in self.store.list_events(period, CHARGE_SUCCEEDED)
        ]
        if not events:
            logger.info("No succeeded charges in period")
            return Decimal(0)

        semaphore = asyncio.Semaphore(self.concurrency)
        results = await asyncio.gather(
            *(self._settle(event, semaphore) for event in events),
            return_exceptions=True,
        )

        total_minor = 0
        for event, result in zip(events, results):
            if isinstance(result, Exception):
                settlement_lookup_failures_counter.inc()
                logger.error(
                    f"Settlement lookup failed for charge {event.charge_id}: {result}",
                    extra={"charge_id": event.charge_id},
                )
                continue
            if result is None:
                continue

            if result.currency.lower() != self.currency:
                logger.info(
                    f"Charge {event.charge_id} settled in {result.currency.upper()}, excluded",
                    extra={"charge_id": event.charge_id},
                )
                continue

            total_minor += result.amount
            if event.currency.lower() != result.currency.lower():
                logger.info(
                    f"Charge {event.charge_id}: {minor_to_major(event.amount)} {event.currency.upper()}"
                    f" -> {minor_to_major(result.amount)} {result.currency.upper()}"
                )
            else:
                logger.info(f"Charge {event.charge_id}: {minor_to_major(result.amount)} {result.currency.upper()}")

        gross_volume = minor_to_major(total_minor)
        logger.info(f"Gross volume for period: {gross_volume} {self.currency.upper()}")
        return gross_volume
