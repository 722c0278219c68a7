"""Limit exceeded alerts, at most one per day"""

import logging
from decimal import Decimal
from volume_guard.domain.notification import NotificationDebouncer
from volume_guard.infrastructure.clients.telegram import TelegramNotifier
from volume_guard.infrastructure.observability.metrics import alert_counter

logger = logging.getLogger(__name__)


def format_limit_alert(account_id: str, gross_volume: Decimal, daily_limit: Decimal, currency: str) -> str:
    code = currency.upper()
    return (
        "🚨 *Daily limit exceeded!* 🚨\n\n"
        f"👤 *Account:* `{account_id}`\n"
        f"📉 *Limit:* `{daily_limit:.2f} {code}`\n"
        f"📈 *Current volume:* `{gross_volume:.2f} {code}`\n\n"
        "✅ _Invoice rescheduling started._"
    )


class LimitAlertService:
    """Sends the breach alert on the first detection after each daily reset"""

    def __init__(self, notifier: TelegramNotifier, debouncer: NotificationDebouncer | None = None):
        self.notifier = notifier
        self.debouncer = debouncer or NotificationDebouncer()

    async def on_breach(self, account_id: str, gross_volume: Decimal, daily_limit: Decimal, currency: str) -> bool:
        """Returns True when an alert went out for this detection"""
        if not self.debouncer.breach_detected():
            logger.info("Limit exceeded, alert already sent today")
            return False

        logger.warning(f"Limit exceeded for the first time today ({gross_volume:.2f} >= {daily_limit}), alerting")
        alert_counter.inc()
        try:
            await self.notifier.send_alert(format_limit_alert(account_id, gross_volume, daily_limit, currency))
        except Exception:
            logger.exception("Alert delivery raised, ignoring")
        return True

    def reset(self) -> None:
        self.debouncer.reset()
        logger.info("Limit alert state reset for the new day")
