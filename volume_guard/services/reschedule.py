"""Applying deferred dates to invoices, one at a time"""

import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple
from volume_guard.domain.eligibility import reschedule_tag
from volume_guard.domain.exceptions import InvoiceStoreError
from volume_guard.domain.models import (
    BatchSummary,
    CollectionMethod,
    DelayAssignment,
    Invoice,
    InvoiceStatus,
    RescheduleOutcome,
    RescheduleResult,
)
from volume_guard.domain.scheduling import CyclicDelayAssigner
from volume_guard.infrastructure.clients.stripe import StripeClient
from volume_guard.infrastructure.observability.logging import log_reschedule
from volume_guard.infrastructure.observability.metrics import reschedule_counter
from volume_guard.utils.date_utils import format_timestamp

logger = logging.getLogger(__name__)

PostSuccessHook = Callable[[Invoice], Awaitable[None]]


def build_update(invoice: Invoice, new_instant: int) -> Optional[Dict[str, Any]]:
    """
    Date fields to move for an invoice, or None when its shape is not supported.

    - draft: finalization moves; due date moves with it only for send_invoice
      drafts (charge_automatically drafts have no due date of their own)
    - open: due date only, finalization already happened
    """
    if invoice.status is InvoiceStatus.DRAFT:
        fields: Dict[str, Any] = {"automatically_finalizes_at": new_instant}
        if invoice.collection_method is CollectionMethod.SEND_INVOICE:
            fields["due_date"] = new_instant
        return fields

    if invoice.status is InvoiceStatus.OPEN:
        return {"due_date": new_instant}

    return None


class RescheduleExecutor:
    """Moves invoice dates and tags each invoice so it is never selected again"""

    def __init__(
        self,
        store: StripeClient,
        assigner: CyclicDelayAssigner,
        post_success: PostSuccessHook | None = None,
    ):
        self.store = store
        self.assigner = assigner
        self.post_success = post_success

    def _skip(self, invoice: Invoice, assignment: DelayAssignment, reason: str) -> RescheduleOutcome:
        return RescheduleOutcome(
            invoice_id=invoice.id,
            result=RescheduleResult.SKIPPED,
            delay_days=assignment.delay_days,
            new_instant=assignment.new_instant,
            reason=reason,
        )

    async def apply(
        self,
        invoice: Invoice,
        assignment: DelayAssignment,
        tag_date: date,
        dry_run: bool,
    ) -> RescheduleOutcome:
        """
        Reschedule one invoice. Store failures, including malformed Stripe
        responses, become FAILED outcomes so the batch keeps going.

        In dry-run mode only reads are issued; no update, no tag, no hook.
        """
        if not invoice.has_valid_id:
            return self._skip(invoice, assignment, "missing invoice id")

        try:
            # Re-read so an invoice tagged by an overlapping run is left alone
            current = await self.store.retrieve_invoice(invoice.id)
            if current.reschedule_tag is not None:
                return self._skip(invoice, assignment, f"already rescheduled on {current.reschedule_tag}")
            if current.status is not invoice.status:
                return self._skip(invoice, assignment, f"status changed to {current.status.value}")
            if current.status is InvoiceStatus.DRAFT and not current.auto_advance:
                return self._skip(invoice, assignment, "auto-advance disabled")

            fields = build_update(current, assignment.new_instant)
            if fields is None:
                return self._skip(invoice, assignment, f"unsupported status {current.status.value}")

            logger.info(
                f"Invoice {invoice.id}: due {format_timestamp(current.due_date, self.assigner.tz)}, "
                f"finalizes {format_timestamp(current.finalizes_at, self.assigner.tz)}, "
                f"deferring +{assignment.delay_days} days to "
                f"{format_timestamp(assignment.new_instant, self.assigner.tz)}"
            )

            if not dry_run:
                updated = await self.store.update_invoice(
                    invoice.id, {**fields, "metadata": reschedule_tag(tag_date)}
                )
                await self._run_post_success(updated)

        except InvoiceStoreError as e:
            logger.warning(f"Failed to reschedule invoice {invoice.id}: {e}", extra={"invoice_id": invoice.id})
            return RescheduleOutcome(
                invoice_id=invoice.id,
                result=RescheduleResult.FAILED,
                delay_days=assignment.delay_days,
                new_instant=assignment.new_instant,
                reason=str(e),
            )

        return RescheduleOutcome(
            invoice_id=invoice.id,
            result=RescheduleResult.SUCCEEDED,
            delay_days=assignment.delay_days,
            new_instant=assignment.new_instant,
            updated_fields=tuple(fields),
        )

    async def _run_post_success(self, invoice: Invoice) -> None:
        if self.post_success is None:
            return
        try:
            await self.post_success(invoice)
        except Exception:
            logger.exception(f"Post-reschedule hook failed for invoice {invoice.id}")

    async def run_batch(
        self,
        invoices: Sequence[Invoice],
        base_instant: int,
        tag_date: date,
        dry_run: bool,
    ) -> Tuple[BatchSummary, List[RescheduleOutcome]]:
        """Process invoices sequentially so position i always gets cycle[i mod n]"""
        summary = BatchSummary()
        outcomes: List[RescheduleOutcome] = []

        for index, invoice in enumerate(invoices):
            assignment = self.assigner.assign(index, base_instant)
            outcome = await self.apply(invoice, assignment, tag_date, dry_run)

            log_reschedule(outcome, dry_run)
            label = "dry_run" if dry_run and outcome.result is RescheduleResult.SUCCEEDED else outcome.result.value
            reschedule_counter.labels(result=label).inc()

            summary = summary.record(outcome)
            outcomes.append(outcome)

        logger.info(
            f"Batch finished: {summary.succeeded} of {len(invoices)} rescheduled, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary, outcomes
