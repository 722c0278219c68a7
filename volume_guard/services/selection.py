"""Selection of invoices eligible for deferral"""

import logging
from typing import List
from volume_guard.domain.eligibility import is_eligible, order_for_assignment
from volume_guard.domain.exceptions import InvoiceSelectionError, InvoiceStoreError
from volume_guard.domain.models import DayPeriod, Invoice
from volume_guard.infrastructure.clients.stripe import StripeClient

logger = logging.getLogger(__name__)


class EligibleInvoiceSelector:
    """Lists drafts and open invoices and keeps the untouched ones landing in the period"""

    def __init__(self, store: StripeClient):
        self.store = store

    async def select_eligible(self, period: DayPeriod) -> List[Invoice]:
        """
        Eligible invoices ordered by creation time.

        Raises:
            InvoiceSelectionError: When listing invoices fails; aborts the tick
        """
        try:
            drafts = await self.store.list_invoices("draft")
            open_invoices = await self.store.list_invoices(
                "open",
                **{"due_date[gte]": period.start, "due_date[lte]": period.end},
            )
        except InvoiceStoreError as e:
            raise InvoiceSelectionError(f"Listing invoices failed: {e}") from e

        logger.info(f"Fetched {len(drafts)} drafts and {len(open_invoices)} open invoices, filtering")

        eligible = order_for_assignment(
            invoice for invoice in [*drafts, *open_invoices] if is_eligible(invoice, period)
        )
        logger.info(f"Invoices eligible for rescheduling: {len(eligible)}")
        return eligible
