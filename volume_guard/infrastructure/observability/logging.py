"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from volume_guard.domain.models import RescheduleOutcome, TickSummary

SERVICE_NAME = "volume-guard"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_tick_summary(summary: TickSummary, currency: str) -> None:
    """Log the structured outcome of one evaluation tick"""
    logging.getLogger("volume_guard.tick").info(
        "Tick completed",
        extra={
            "step": "tick_complete",
            "period_start": summary.period.start,
            "period_end": summary.period.end,
            "gross_volume": str(summary.gross_volume),
            "daily_limit": str(summary.daily_limit),
            "currency": currency.upper(),
            "breached": summary.breached,
            "alert_sent": summary.alert_sent,
            "dry_run": summary.dry_run,
            "attempted": summary.batch.attempted,
            "succeeded": summary.batch.succeeded,
            "failed": summary.batch.failed,
            "skipped": summary.batch.skipped,
        },
    )


def log_reschedule(outcome: RescheduleOutcome, dry_run: bool) -> None:
    """Log one per-invoice reschedule decision"""
    logging.getLogger("volume_guard.reschedule").info(
        "Invoice reschedule %s", outcome.result.value,
        extra={
            "step": "reschedule",
            "invoice_id": outcome.invoice_id,
            "result": outcome.result.value,
            "delay_days": outcome.delay_days,
            "new_instant": outcome.new_instant,
            "updated_fields": list(outcome.updated_fields),
            "reason": outcome.reason,
            "dry_run": dry_run,
        },
    )
