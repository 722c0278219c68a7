"""Domain models - pure Python dataclasses representing guard entities"""

from dataclasses import dataclass, field, replace
from datetime import time
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple
from zoneinfo import ZoneInfo

RESCHEDULE_TAG_KEY = "volume_guard_rescheduled_on"


@dataclass(frozen=True)
class DayPeriod:
    """One calendar day in the account timezone, both bounds inclusive (epoch seconds)"""

    start: int
    end: int

    def contains(self, timestamp: Optional[int]) -> bool:
        return timestamp is not None and self.start <= timestamp <= self.end


@dataclass(frozen=True)
class SettlementEvent:
    """Succeeded charge taken from a charge.succeeded event"""

    event_id: str
    charge_id: str
    amount: int  # minor units, charge currency
    currency: str
    balance_transaction: Optional[str]
    created: int


@dataclass(frozen=True)
class SettlementDetail:
    """Amount actually credited to the account balance"""

    amount: int  # minor units, settlement currency
    currency: str


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "InvoiceStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class CollectionMethod(str, Enum):
    CHARGE_AUTOMATICALLY = "charge_automatically"
    SEND_INVOICE = "send_invoice"


@dataclass
class Invoice:
    """Invoice as read from the remote store"""

    id: Optional[str]
    status: InvoiceStatus
    collection_method: CollectionMethod
    created: int
    due_date: Optional[int] = None
    finalizes_at: Optional[int] = None
    auto_advance: bool = False
    amount_due: int = 0
    currency: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def reschedule_tag(self) -> Optional[str]:
        return self.metadata.get(RESCHEDULE_TAG_KEY) or None

    @property
    def has_valid_id(self) -> bool:
        return isinstance(self.id, str) and bool(self.id)


@dataclass(frozen=True)
class DelayAssignment:
    """Cyclic delay picked for one position of the batch"""

    index: int
    delay_days: int
    new_instant: int


class RescheduleResult(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RescheduleOutcome:
    """Result of applying one reschedule"""

    invoice_id: Optional[str]
    result: RescheduleResult
    delay_days: Optional[int] = None
    new_instant: Optional[int] = None
    updated_fields: Tuple[str, ...] = ()
    reason: Optional[str] = None


@dataclass(frozen=True)
class BatchSummary:
    """Fold of per-invoice outcomes. Skipped invoices are never attempted."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, outcome: RescheduleOutcome) -> "BatchSummary":
        if outcome.result is RescheduleResult.SKIPPED:
            return replace(self, skipped=self.skipped + 1)
        if outcome.result is RescheduleResult.SUCCEEDED:
            return replace(self, attempted=self.attempted + 1, succeeded=self.succeeded + 1)
        return replace(self, attempted=self.attempted + 1, failed=self.failed + 1)


@dataclass(frozen=True)
class GuardConfig:
    """Immutable guard policy. Reconfiguration builds a new instance."""

    account_id: str
    timezone: ZoneInfo
    currency: str
    daily_limit: Decimal
    delay_cycle: Tuple[int, ...]
    reschedule_time: time
    dry_run: bool = False


@dataclass(frozen=True)
class TickSummary:
    """Outcome of one evaluation tick"""

    period: DayPeriod
    gross_volume: Decimal
    daily_limit: Decimal
    breached: bool
    alert_sent: bool
    dry_run: bool
    batch: BatchSummary = field(default_factory=BatchSummary)
