"""
Invoice service for the invoice lifecycle and payment ledger.

Every operation follows the same sequence: load and resolve the current
invoice, validate, build the new state, resolve status again, write to the
repository, then audit and publish. Validation always happens before the
write, so a raised error leaves the ledger untouched.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from clients.email_client import MockEmailClient
from core.audit import AuditLogger, AuditAction, compute_changes
from core.config import LedgerConfig
from core.event_bus import EventBus
from core.events import (
    InvoiceCreated, InvoiceUpdated, InvoiceDeleted, InvoiceDuplicated,
    InvoiceSent, PaymentRecorded, InvoicePaid,
)
from core.exceptions import (
    NotFoundError, ValidationError, EditLockedError,
    DeleteBlockedError, StateConflictError,
)
from core.models import (
    DashboardStats, DeliveryAcknowledgment, EmailData,
    Invoice, InvoiceCreate, InvoiceStatus, InvoiceUpdate,
    Payment, PaymentCreate, ZERO, to_money,
)
from core.repository import InvoiceRepository
from core.status import can_transition, resolve_status
from core.totals import InvoiceTotals, calculate_totals
from utils.timezone import Clock, add_days, now_utc, today_utc

logger = logging.getLogger(__name__)

# Patch fields that feed the totals calculator.
_TOTALS_FIELDS = {"items", "tax_rate", "discount_amount", "discount_type"}

# Statuses excluded from the outstanding list.
_NOT_OUTSTANDING = {InvoiceStatus.PAID, InvoiceStatus.CANCELLED, InvoiceStatus.DRAFT}


@dataclass(frozen=True)
class UpdatePlan:
    """A validated patch, ready to apply."""
    changes: dict[str, Any] = field(default_factory=dict)
    totals: InvoiceTotals | None = None


def validate_update(current: Invoice, patch: InvoiceUpdate) -> UpdatePlan:
    """
    Check a patch against the current invoice without touching either.

    Raises:
        EditLockedError: If the invoice is not a draft and the patch touches
            anything besides status
        StateConflictError: If the status change is not a forward transition
        ValidationError: If new totals are invalid or fall below amount paid
    """
    touched = patch.touched_fields()

    locked_fields = touched - {"status"}
    if not current.is_editable and locked_fields:
        raise EditLockedError(current.id, current.status.value, locked_fields)

    if "status" in touched and not can_transition(current.status, patch.status):
        raise StateConflictError(
            f"Invoice {current.id} cannot move from {current.status.value} "
            f"to {patch.status.value}"
        )

    totals = None
    if touched & _TOTALS_FIELDS:
        changes = patch.changes()
        totals = calculate_totals(
            changes.get("items", current.items),
            changes.get("tax_rate", current.tax_rate),
            changes.get("discount_amount", current.discount_amount),
            changes.get("discount_type", current.discount_type),
        )
        if totals.total < current.amount_paid:
            raise ValidationError(
                f"New total {totals.total} is below amount already paid "
                f"{current.amount_paid}",
                remaining_balance=current.remaining_balance,
            )

    # Values equal to what is stored are not changes; an all-equal patch is a no-op.
    changes = {
        name: value for name, value in patch.changes().items()
        if getattr(current, name) != value
    }
    return UpdatePlan(changes=changes, totals=totals)


def apply_update(current: Invoice, plan: UpdatePlan, now: datetime) -> Invoice:
    """Build the patched invoice. Pure; the caller persists the result."""
    today = today_utc(now)
    update = dict(plan.changes)

    # Changing terms or issue date re-derives the due date unless one was given.
    if ("payment_terms" in update or "issue_date" in update) and "due_date" not in update:
        terms = update.get("payment_terms", current.payment_terms)
        issue_date = update.get("issue_date", current.issue_date)
        update["due_date"] = add_days(issue_date, terms.days)

    if plan.totals is not None:
        update.update(
            subtotal=plan.totals.subtotal,
            discount_value=plan.totals.discount,
            tax_amount=plan.totals.tax,
            total=plan.totals.total,
            balance_due=plan.totals.total - current.amount_paid,
        )

    new_status = update.get("status", current.status)
    if new_status == InvoiceStatus.SENT and current.sent_date is None:
        update["sent_date"] = today
    if new_status == InvoiceStatus.PAID and current.paid_date is None:
        update["paid_date"] = today

    update["updated_at"] = now
    return resolve_status(current.model_copy(update=update, deep=True), now)


class InvoiceService:
    """Service for invoice operations."""

    def __init__(
        self,
        repository: InvoiceRepository,
        audit: AuditLogger,
        event_bus: EventBus,
        mailer: MockEmailClient,
        config: LedgerConfig | None = None,
        clock: Clock = now_utc
    ):
        self.repository = repository
        self.audit = audit
        self.event_bus = event_bus
        self.mailer = mailer
        self.config = config or LedgerConfig()
        self.clock = clock

    def _load(self, invoice_id: int, now: datetime) -> Invoice:
        """Fetch and resolve an invoice, or raise NotFoundError."""
        invoice = self.repository.get(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_id)
        return resolve_status(invoice, now)

    def _resolved_all(self, now: datetime) -> list[Invoice]:
        return [resolve_status(invoice, now) for invoice in self.repository.list_all()]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_all(self) -> list[Invoice]:
        """
        List every invoice with status resolved as of now.

        Returns:
            Invoices ordered by issue date DESC, newest id first on ties
        """
        invoices = self._resolved_all(self.clock())
        return sorted(invoices, key=lambda inv: (inv.issue_date, inv.id), reverse=True)

    def get_by_id(self, invoice_id: int) -> Invoice:
        """
        Get invoice by ID with status resolved as of now.

        Raises:
            NotFoundError: If no such invoice exists
        """
        return self._load(invoice_id, self.clock())

    def get_outstanding(self) -> list[Invoice]:
        """
        List invoices awaiting payment (sent, viewed or overdue).

        Returns:
            Invoices ordered by due date ASC, then id ASC
        """
        invoices = [
            inv for inv in self._resolved_all(self.clock())
            if inv.status not in _NOT_OUTSTANDING
        ]
        return sorted(invoices, key=lambda inv: (inv.due_date, inv.id))

    def get_dashboard_stats(self) -> DashboardStats:
        """Aggregate outstanding and paid amounts, overdue count and recent invoices."""
        invoices = self._resolved_all(self.clock())

        total_outstanding = sum(
            (inv.balance_due for inv in invoices if not inv.status.is_terminal),
            ZERO,
        )
        total_paid = sum(
            (inv.total for inv in invoices if inv.status == InvoiceStatus.PAID),
            ZERO,
        )
        overdue_count = sum(1 for inv in invoices if inv.status == InvoiceStatus.OVERDUE)
        recent = sorted(invoices, key=lambda inv: (inv.created_at, inv.id), reverse=True)

        return DashboardStats(
            total_invoices=len(invoices),
            total_outstanding=total_outstanding,
            total_paid=total_paid,
            overdue_count=overdue_count,
            recent_invoices=recent[:self.config.recent_invoices_limit],
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create(self, data: InvoiceCreate) -> Invoice:
        """
        Create a draft invoice.

        Args:
            data: Invoice creation data

        Returns:
            Created invoice in DRAFT status with nothing paid

        Raises:
            ValidationError: If the discount exceeds the subtotal
        """
        totals = calculate_totals(
            data.items, data.tax_rate, data.discount_amount, data.discount_type
        )

        now = self.clock()
        issue_date = data.issue_date or today_utc(now)
        payment_terms = data.payment_terms or self.config.default_payment_terms
        due_date = data.due_date or add_days(issue_date, payment_terms.days)

        invoice = Invoice(
            id=self.repository.next_id(),
            invoice_number=self.repository.next_invoice_number(now),
            client_id=data.client_id,
            project_id=data.project_id,
            status=InvoiceStatus.DRAFT,
            issue_date=issue_date,
            due_date=due_date,
            currency=data.currency or self.config.default_currency,
            payment_terms=payment_terms,
            items=[item.model_copy() for item in data.items],
            subtotal=totals.subtotal,
            tax_rate=data.tax_rate,
            tax_amount=totals.tax,
            discount_amount=data.discount_amount,
            discount_type=data.discount_type,
            discount_value=totals.discount,
            total=totals.total,
            amount_paid=ZERO,
            balance_due=totals.total,
            notes=data.notes,
            terms_and_conditions=data.terms_and_conditions,
            thank_you_message=(
                data.thank_you_message
                if data.thank_you_message is not None
                else self.config.default_thank_you_message
            ),
            paid_date=None,
            sent_date=None,
            payments=[],
            created_at=now,
            updated_at=now,
        )
        invoice = self.repository.add(resolve_status(invoice, now))

        self.audit.log_change(
            entity_type="invoice",
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            changes={"created": invoice.model_dump(mode="json")}
        )
        self.event_bus.publish(InvoiceCreated.create(invoice=invoice, occurred_at=now))
        logger.info(f"Created invoice {invoice.invoice_number} (id={invoice.id}, total={invoice.total})")

        return invoice

    def update(self, invoice_id: int, patch: InvoiceUpdate) -> Invoice:
        """
        Apply a patch to an invoice.

        Drafts accept any field. Once an invoice has left draft only its
        status may change, and only forward. Totals are recomputed when
        items, tax or discount fields are in the patch.

        Raises:
            NotFoundError: If no such invoice exists
            EditLockedError: If a non-draft invoice's fields are touched
            StateConflictError: If the status change is not allowed
            ValidationError: If new totals are invalid
        """
        now = self.clock()
        current = self._load(invoice_id, now)

        try:
            plan = validate_update(current, patch)
        except EditLockedError:
            logger.warning(
                f"Rejected edit of {current.status.value} invoice {invoice_id}: "
                f"{sorted(patch.touched_fields())}"
            )
            raise

        if not plan.changes:
            return current

        updated = self.repository.save(apply_update(current, plan, now))

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type="invoice",
                entity_id=invoice_id,
                action=AuditAction.UPDATE,
                changes=changes
            )
        self.event_bus.publish(InvoiceUpdated.create(
            invoice=updated, changed_fields=tuple(sorted(plan.changes)), occurred_at=now,
        ))
        if current.status != InvoiceStatus.PAID and updated.status == InvoiceStatus.PAID:
            self.event_bus.publish(InvoicePaid.create(invoice=updated, occurred_at=now))

        return updated

    def delete(self, invoice_id: int) -> bool:
        """
        Permanently remove an invoice.

        Returns:
            True once removed

        Raises:
            NotFoundError: If no such invoice exists
            DeleteBlockedError: If the invoice is paid
        """
        now = self.clock()
        current = self._load(invoice_id, now)

        if current.status == InvoiceStatus.PAID:
            logger.warning(f"Rejected delete of paid invoice {current.invoice_number}")
            raise DeleteBlockedError(invoice_id)

        self.repository.remove(invoice_id)

        self.audit.log_change(
            entity_type="invoice",
            entity_id=invoice_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")}
        )
        self.event_bus.publish(InvoiceDeleted.create(invoice=current, occurred_at=now))
        logger.info(f"Deleted invoice {current.invoice_number} (id={invoice_id})")

        return True

    def duplicate(self, invoice_id: int) -> Invoice:
        """
        Copy an invoice into a fresh draft.

        The copy gets a new id and invoice number, is issued today, falls due
        after the configured number of days, and carries no payments.

        Raises:
            NotFoundError: If no such invoice exists
        """
        now = self.clock()
        source = self._load(invoice_id, now)
        today = today_utc(now)

        copy = source.model_copy(
            update={
                "id": self.repository.next_id(),
                "invoice_number": self.repository.next_invoice_number(now),
                "status": InvoiceStatus.DRAFT,
                "issue_date": today,
                "due_date": add_days(today, self.config.duplicate_due_days),
                "amount_paid": ZERO,
                "balance_due": source.total,
                "payments": [],
                "paid_date": None,
                "sent_date": None,
                "created_at": now,
                "updated_at": now,
            },
            deep=True,
        )
        copy = self.repository.add(resolve_status(copy, now))

        self.audit.log_change(
            entity_type="invoice",
            entity_id=copy.id,
            action=AuditAction.CREATE,
            changes={
                "created": copy.model_dump(mode="json"),
                "duplicated_from": source.id,
            }
        )
        self.event_bus.publish(InvoiceDuplicated.create(
            invoice=copy, source_invoice_id=source.id, occurred_at=now,
        ))
        logger.info(f"Duplicated invoice {source.invoice_number} as {copy.invoice_number}")

        return copy

    def send(self, invoice_id: int, email: EmailData) -> DeliveryAcknowledgment:
        """
        Mark an invoice sent and hand it to the mail transport.

        The invoice is only persisted as sent once the transport accepts the
        message. A send after the due date resolves straight to overdue.

        Returns:
            Delivery acknowledgment from the mock transport

        Raises:
            NotFoundError: If no such invoice exists
            StateConflictError: If the invoice is paid or cancelled
            EmailDeliveryError: If the transport refuses the message
        """
        now = self.clock()
        current = self._load(invoice_id, now)

        if current.status.is_terminal:
            raise StateConflictError(
                f"Cannot send {current.status.value} invoice {current.invoice_number}"
            )

        sent = resolve_status(
            current.model_copy(update={
                "status": InvoiceStatus.SENT,
                "sent_date": today_utc(now),
                "updated_at": now,
            }, deep=True),
            now,
        )

        subject = email.subject or f"Invoice {sent.invoice_number} from {self.config.sender_name}"
        message = self.mailer.send_email(email.to, subject, email.message or self._render_body(sent))

        updated = self.repository.save(sent)

        self.audit.log_change(
            entity_type="invoice",
            entity_id=invoice_id,
            action=AuditAction.UPDATE,
            changes={
                "status": {"old": current.status.value, "new": updated.status.value},
                "sent_date": {
                    "old": current.sent_date.isoformat() if current.sent_date else None,
                    "new": updated.sent_date.isoformat(),
                },
                "recipient": email.to,
            }
        )
        self.event_bus.publish(InvoiceSent.create(invoice=updated, recipient=email.to, occurred_at=now))
        logger.info(f"Sent invoice {updated.invoice_number} to {email.to}")

        return DeliveryAcknowledgment(
            success=True,
            message=f"Invoice {updated.invoice_number} sent successfully to {email.to}",
            sent_at=message.sent_at,
            recipient=email.to,
            invoice_id=updated.id,
        )

    def _render_body(self, invoice: Invoice) -> str:
        lines = [
            f"Invoice {invoice.invoice_number}",
            f"Issued: {invoice.issue_date.isoformat()}",
            f"Due: {invoice.due_date.isoformat()} ({invoice.payment_terms.label})",
            f"Amount due: {invoice.formatted_balance_due}",
        ]
        if invoice.notes:
            lines.extend(["", invoice.notes])
        if invoice.thank_you_message:
            lines.extend(["", invoice.thank_you_message])
        return "\n".join(lines)

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def record_payment(self, invoice_id: int, data: PaymentCreate) -> Invoice:
        """
        Record a payment against an invoice's remaining balance.

        Args:
            invoice_id: Invoice ID
            data: Payment amount, method and optional reference/notes/date

        Returns:
            Updated invoice, PAID once payments reach the total

        Raises:
            NotFoundError: If no such invoice exists
            StateConflictError: If the invoice is cancelled
            ValidationError: If the amount is not positive, not whole cents,
                or exceeds the remaining balance
        """
        now = self.clock()
        current = self._load(invoice_id, now)

        if current.status == InvoiceStatus.CANCELLED:
            raise StateConflictError(
                f"Cannot record payment on cancelled invoice {current.invoice_number}"
            )

        amount = self._validate_payment_amount(current, data.amount)

        payment = Payment(
            id=uuid4(),
            amount=amount,
            method=data.method,
            reference=data.reference,
            notes=data.notes,
            date=data.date or today_utc(now),
            created_at=now,
        )

        amount_paid = current.amount_paid + amount
        update = {
            "payments": [*current.payments, payment],
            "amount_paid": amount_paid,
            "balance_due": current.total - amount_paid,
            "updated_at": now,
        }
        if amount_paid >= current.total:
            update["status"] = InvoiceStatus.PAID
            update["paid_date"] = current.paid_date or payment.date

        updated = self.repository.save(
            resolve_status(current.model_copy(update=update, deep=True), now)
        )

        self.audit.log_change(
            entity_type="invoice",
            entity_id=invoice_id,
            action=AuditAction.UPDATE,
            changes={
                "amount_paid": {"old": str(current.amount_paid), "new": str(updated.amount_paid)},
                "status": {"old": current.status.value, "new": updated.status.value},
                "payment_recorded": payment.model_dump(mode="json"),
            }
        )
        self.event_bus.publish(PaymentRecorded.create(invoice=updated, payment=payment, occurred_at=now))
        logger.info(
            f"Recorded {payment.method.value} payment of {amount} on "
            f"{updated.invoice_number} (balance {updated.balance_due})"
        )

        if current.status != InvoiceStatus.PAID and updated.status == InvoiceStatus.PAID:
            self.event_bus.publish(InvoicePaid.create(invoice=updated, occurred_at=now))

        return updated

    def _validate_payment_amount(self, invoice: Invoice, amount: Decimal) -> Decimal:
        remaining = invoice.remaining_balance

        if amount <= 0:
            raise ValidationError(
                f"Payment amount must be greater than 0 (remaining balance {remaining})",
                remaining_balance=remaining,
            )
        if amount != to_money(amount):
            raise ValidationError(
                f"Payment amount {amount} must be in whole cents "
                f"(remaining balance {remaining})",
                remaining_balance=remaining,
            )
        if amount > remaining:
            raise ValidationError(
                f"Payment amount {amount} exceeds remaining balance {remaining}",
                remaining_balance=remaining,
            )

        return to_money(amount)
