"""Eligibility rules for invoices that may be deferred"""

from datetime import date
from typing import Iterable, List
from volume_guard.domain.models import DayPeriod, Invoice, InvoiceStatus, RESCHEDULE_TAG_KEY


def is_eligible(invoice: Invoice, period: DayPeriod) -> bool:
    """
    Decide whether an invoice falls due inside the period and is still untouched.

    - draft with auto-advance, finalizing inside the period
    - open, due inside the period
    - never an invoice already carrying a reschedule tag
    """
    if invoice.reschedule_tag is not None:
        return False

    if invoice.status is InvoiceStatus.DRAFT:
        return invoice.auto_advance and period.contains(invoice.finalizes_at)

    if invoice.status is InvoiceStatus.OPEN:
        return period.contains(invoice.due_date)

    return False


def order_for_assignment(invoices: Iterable[Invoice]) -> List[Invoice]:
    """Creation order, ties broken by id, so cyclic assignment is stable"""
    return sorted(invoices, key=lambda inv: (inv.created, inv.id or ""))


def reschedule_tag(on: date) -> dict:
    """Metadata patch marking an invoice as rescheduled on the given date"""
    return {RESCHEDULE_TAG_KEY: on.isoformat()}
