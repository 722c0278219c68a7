"""Transfer log webhook client for reporting rescheduled invoices"""

import logging
import httpx
from volume_guard.config import settings
from volume_guard.domain.models import Invoice
from volume_guard.infrastructure.observability.metrics import transfer_report_failure_counter

logger = logging.getLogger(__name__)


class TransferLogClient:
    """Client for the external transfer log endpoint"""

    def __init__(
        self,
        url: str | None = None,
        secret: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = settings.transfer_log_url if url is None else url
        self.secret = settings.transfer_log_secret if secret is None else secret
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def log_transfer(self, account_id: str, invoice_id: str, amount: int, currency: str) -> None:
        """
        Fire-and-forget delivery of one transfer record.

        Single attempt, no retries. Failures are logged and counted, never raised.
        """
        if not self.enabled:
            return

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    self.url,
                    json={
                        "account_id": account_id,
                        "invoice_id": invoice_id,
                        "amount": amount,
                        "currency": currency,
                    },
                    headers={"Authorization": f"Bearer {self.secret}"},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                transfer_report_failure_counter.inc()
                logger.warning(
                    f"Transfer log failed for invoice {invoice_id}: {e!r}",
                    extra={"invoice_id": invoice_id},
                )

    async def report(self, account_id: str, invoice: Invoice) -> None:
        """Post-success hook for the rescheduler"""
        await self.log_transfer(account_id, invoice.id or "", invoice.amount_due, invoice.currency)
