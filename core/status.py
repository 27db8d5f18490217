"""
Invoice status resolution and transition rules.

resolve_status applies the automatic rules (overdue, paid) given an explicit
"now". Everything else that moves an invoice between statuses is an external
event, validated against ALLOWED_TRANSITIONS.
"""

from datetime import datetime, time, timezone

from core.models import Invoice, InvoiceStatus
from utils.timezone import to_utc, today_utc

# Forward-only graph. Paid and cancelled have no exits.
ALLOWED_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({
        InvoiceStatus.VIEWED, InvoiceStatus.OVERDUE,
        InvoiceStatus.PAID, InvoiceStatus.CANCELLED,
    }),
    InvoiceStatus.VIEWED: frozenset({
        InvoiceStatus.OVERDUE, InvoiceStatus.PAID, InvoiceStatus.CANCELLED,
    }),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    """Whether an explicit status change is allowed. Staying put always is."""
    return current == target or target in ALLOWED_TRANSITIONS[current]


def is_past_due(invoice: Invoice, now: datetime) -> bool:
    """An invoice is past due from midnight UTC at the start of its due date."""
    return to_utc(now) > datetime.combine(invoice.due_date, time.min, timezone.utc)


def resolve_status(invoice: Invoice, now: datetime) -> Invoice:
    """
    Apply the automatic status rules in order.

    1. Paid and cancelled are terminal.
    2. A sent invoice past its due date becomes overdue.
    3. An invoice whose payments cover its total becomes paid, and gets
       today's paid_date if it has none. A zero total counts as covered.

    Returns a resolved copy; the input is never mutated. Resolving an already
    resolved invoice with the same now returns an equal invoice.
    """
    if invoice.status.is_terminal:
        return invoice.model_copy(deep=True)

    status = invoice.status
    paid_date = invoice.paid_date

    if status == InvoiceStatus.SENT and is_past_due(invoice, now):
        status = InvoiceStatus.OVERDUE

    if invoice.amount_paid >= invoice.total:
        status = InvoiceStatus.PAID
        if paid_date is None:
            paid_date = today_utc(now)

    return invoice.model_copy(
        update={"status": status, "paid_date": paid_date},
        deep=True,
    )
