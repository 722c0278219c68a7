"""Pydantic schemas for API request/response validation"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from volume_guard.domain.models import TickSummary


class LimitUpdateRequest(BaseModel):
    """Request body for POST /v1/limit"""

    new_limit: Decimal = Field(..., gt=0, description="New daily limit in account currency")


class LimitUpdateResponse(BaseModel):
    """Response for POST /v1/limit"""

    success: bool
    new_limit: float


class BatchSchema(BaseModel):
    attempted: int
    succeeded: int
    failed: int
    skipped: int


class TickSummaryResponse(BaseModel):
    """Outcome of one evaluation tick"""

    period_start: int
    period_end: int
    gross_volume: float
    daily_limit: float
    breached: bool
    alert_sent: bool
    dry_run: bool
    batch: BatchSchema

    @classmethod
    def from_summary(cls, summary: TickSummary) -> "TickSummaryResponse":
        return cls(
            period_start=summary.period.start,
            period_end=summary.period.end,
            gross_volume=float(summary.gross_volume),
            daily_limit=float(summary.daily_limit),
            breached=summary.breached,
            alert_sent=summary.alert_sent,
            dry_run=summary.dry_run,
            batch=BatchSchema(
                attempted=summary.batch.attempted,
                succeeded=summary.batch.succeeded,
                failed=summary.batch.failed,
                skipped=summary.batch.skipped,
            ),
        )


class StatsResponse(BaseModel):
    """Response for GET /v1/stats"""

    gross_volume: float
    currency: str
    current_daily_limit: float
    rescheduled_today: int
    notified_today: bool
    last_tick: Optional[TickSummaryResponse] = None
