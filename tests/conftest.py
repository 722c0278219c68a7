"""Pytest fixtures for testing"""

from dataclasses import replace
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Any, AsyncIterator, Dict, List, Optional, Set, Union
from zoneinfo import ZoneInfo
import pytest
from volume_guard.domain.exceptions import InvoiceStoreError
from volume_guard.domain.models import (
    CollectionMethod,
    DayPeriod,
    GuardConfig,
    Invoice,
    InvoiceStatus,
    SettlementDetail,
    SettlementEvent,
    RESCHEDULE_TAG_KEY,
)
from volume_guard.domain.period import current_day_period

TZ = ZoneInfo("Etc/GMT-4")
# 2026-10-18 09:30 local (+04:00)
NOW = datetime(2026, 10, 18, 9, 30, tzinfo=TZ)


class FakeInvoiceStore:
    """In-memory stand-in for the Stripe client"""

    def __init__(self) -> None:
        self.events: List[SettlementEvent] = []
        self.balance_transactions: Dict[str, Union[SettlementDetail, Exception]] = {}
        self.invoices: Dict[str, Invoice] = {}
        self.failing_updates: Set[str] = set()
        self.fail_listing = False
        self.fail_events = False
        self.list_calls: List[str] = []
        self.update_calls: List[tuple] = []
        self.retrieve_calls: List[str] = []

    def add_invoice(self, invoice: Invoice) -> Invoice:
        self.invoices[invoice.id] = invoice
        return invoice

    def add_charge(self, charge_id: str, amount: int, currency: str = "aed", settled_currency: Optional[str] = None,
                   created: Optional[int] = None) -> None:
        txn_id = f"txn_{charge_id}"
        self.events.append(
            SettlementEvent(
                event_id=f"evt_{charge_id}",
                charge_id=charge_id,
                amount=amount,
                currency=currency,
                balance_transaction=txn_id,
                created=created or int(NOW.timestamp()),
            )
        )
        self.balance_transactions[txn_id] = SettlementDetail(amount=amount, currency=settled_currency or currency)

    @staticmethod
    def _copy(invoice: Invoice) -> Invoice:
        return replace(invoice, metadata=dict(invoice.metadata))

    async def list_events(self, period: DayPeriod, event_type: str) -> AsyncIterator[SettlementEvent]:
        if self.fail_events:
            raise InvoiceStoreError("events unavailable")
        for event in self.events:
            if period.contains(event.created):
                yield event

    async def get_balance_transaction(self, balance_transaction_id: str) -> SettlementDetail:
        result = self.balance_transactions[balance_transaction_id]
        if isinstance(result, Exception):
            raise result
        return result

    async def list_invoices(self, status: str, **filters: Any) -> List[Invoice]:
        self.list_calls.append(status)
        if self.fail_listing:
            raise InvoiceStoreError("Stripe list_invoices error: 500")
        return [self._copy(inv) for inv in self.invoices.values() if inv.status.value == status]

    async def retrieve_invoice(self, invoice_id: str) -> Invoice:
        self.retrieve_calls.append(invoice_id)
        return self._copy(self.invoices[invoice_id])

    async def update_invoice(self, invoice_id: str, fields: Dict[str, Any]) -> Invoice:
        self.update_calls.append((invoice_id, fields))
        if invoice_id in self.failing_updates:
            raise InvoiceStoreError("Stripe update_invoice error: 400")

        invoice = self.invoices[invoice_id]
        if "automatically_finalizes_at" in fields:
            invoice.finalizes_at = fields["automatically_finalizes_at"]
        if "due_date" in fields:
            invoice.due_date = fields["due_date"]
        invoice.metadata.update(fields.get("metadata", {}))
        return self._copy(invoice)

    async def aclose(self) -> None:
        pass


class FakeNotifier:
    def __init__(self) -> None:
        self.messages: List[str] = []

    async def send_alert(self, text: str) -> None:
        self.messages.append(text)


class FakeTransferLog:
    def __init__(self, fail: bool = False) -> None:
        self.reports: List[tuple] = []
        self.fail = fail
        self.enabled = True

    async def report(self, account_id: str, invoice: Invoice) -> None:
        if self.fail:
            raise RuntimeError("transfer log down")
        self.reports.append((account_id, invoice.id))

    def hook(self, account_id: str):
        async def report(invoice: Invoice) -> None:
            await self.report(account_id, invoice)

        return report


def make_invoice(
    invoice_id: Optional[str],
    status: InvoiceStatus = InvoiceStatus.DRAFT,
    created: int = 1_700_000_000,
    finalizes_at: Optional[int] = None,
    due_date: Optional[int] = None,
    collection_method: CollectionMethod = CollectionMethod.CHARGE_AUTOMATICALLY,
    auto_advance: bool = True,
    metadata: Optional[Dict[str, str]] = None,
) -> Invoice:
    return Invoice(
        id=invoice_id,
        status=status,
        collection_method=collection_method,
        created=created,
        due_date=due_date,
        finalizes_at=finalizes_at,
        auto_advance=auto_advance,
        amount_due=2500,
        currency="aed",
        metadata=metadata or {},
    )


@pytest.fixture
def tz() -> ZoneInfo:
    return TZ


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def period() -> DayPeriod:
    return current_day_period(TZ, NOW)


@pytest.fixture
def today_afternoon(period: DayPeriod) -> int:
    """An instant inside the evaluated day (15:00 local)"""
    return period.start + int(timedelta(hours=15).total_seconds())


@pytest.fixture
def guard_config() -> GuardConfig:
    return GuardConfig(
        account_id="acct_test",
        timezone=TZ,
        currency="aed",
        daily_limit=Decimal("30"),
        delay_cycle=(1, 3, 5, 7, 9),
        reschedule_time=time(12, 0, 0),
        dry_run=False,
    )


@pytest.fixture
def store() -> FakeInvoiceStore:
    return FakeInvoiceStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def transfer_log() -> FakeTransferLog:
    return FakeTransferLog()


@pytest.fixture
def tagged_metadata() -> Dict[str, str]:
    return {RESCHEDULE_TAG_KEY: "2026-10-18"}
