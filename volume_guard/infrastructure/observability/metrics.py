"""Prometheus metrics for monitoring daily volume, reschedules and side-channel health"""

from decimal import Decimal
from prometheus_client import Counter, Histogram, Gauge

# Tick metrics
tick_counter = Counter(
    "volume_guard_tick_total",
    "Evaluation ticks run",
    ["outcome"],  # below_limit | breached | skipped | error
)

gross_volume_gauge = Gauge(
    "volume_guard_gross_volume",
    "Gross volume for the current day in account currency",
)

daily_limit_gauge = Gauge(
    "volume_guard_daily_limit",
    "Configured daily limit in account currency",
)

# Reschedule metrics
reschedule_counter = Counter(
    "volume_guard_invoice_reschedule_total",
    "Invoices processed by the rescheduler",
    ["result"],  # succeeded | failed | skipped | dry_run
)

# Side channels
alert_counter = Counter(
    "volume_guard_alerts_total",
    "Limit exceeded alerts emitted",
)

transfer_report_failure_counter = Counter(
    "volume_guard_transfer_report_failures_total",
    "Failed transfer log deliveries",
)

# Stripe API metrics
settlement_lookup_failures_counter = Counter(
    "volume_guard_settlement_lookup_failures_total",
    "Balance transaction lookups that failed during aggregation",
)

stripe_latency_histogram = Histogram(
    "volume_guard_stripe_request_seconds",
    "Stripe API response time",
    ["operation"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_tick(breached: bool, gross_volume: Decimal, daily_limit: Decimal) -> None:
    """Record volume and limit gauges plus the tick outcome"""
    gross_volume_gauge.set(float(gross_volume))
    daily_limit_gauge.set(float(daily_limit))
    tick_counter.labels(outcome="breached" if breached else "below_limit").inc()
