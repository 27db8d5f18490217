"""
Domain events for the invoice ledger.

Immutable event objects that represent state changes in the ledger. A service
publishes what happened, and handlers react without the publisher knowing
who's listening.

Events carry the full invoice as it was stored, so handlers never need to
re-read the ledger.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class LedgerEvent:
    """Base class for all ledger domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


def _stamped(occurred_at: datetime | None) -> dict:
    """Keyword args that pin occurred_at when the publisher supplies its own clock."""
    return {} if occurred_at is None else {"occurred_at": occurred_at}


@dataclass(frozen=True)
class InvoiceEvent(LedgerEvent):
    """Events related to invoice lifecycle."""
    invoice: Any = None  # Invoice; Any keeps this module free of model imports


@dataclass(frozen=True)
class InvoiceCreated(InvoiceEvent):
    """A new draft invoice was created."""

    @classmethod
    def create(cls, invoice: Any, occurred_at: datetime | None = None) -> "InvoiceCreated":
        return cls(invoice=invoice, **_stamped(occurred_at))


@dataclass(frozen=True)
class InvoiceUpdated(InvoiceEvent):
    """Invoice fields or status were changed by an explicit patch."""
    changed_fields: tuple[str, ...] = ()

    @classmethod
    def create(
        cls, invoice: Any, changed_fields: tuple[str, ...], occurred_at: datetime | None = None
    ) -> "InvoiceUpdated":
        return cls(invoice=invoice, changed_fields=changed_fields, **_stamped(occurred_at))


@dataclass(frozen=True)
class InvoiceDeleted(InvoiceEvent):
    """Invoice was permanently removed. Carries the last stored state."""

    @classmethod
    def create(cls, invoice: Any, occurred_at: datetime | None = None) -> "InvoiceDeleted":
        return cls(invoice=invoice, **_stamped(occurred_at))


@dataclass(frozen=True)
class InvoiceDuplicated(InvoiceEvent):
    """A new draft was copied from an existing invoice."""
    source_invoice_id: int | None = None

    @classmethod
    def create(
        cls, invoice: Any, source_invoice_id: int, occurred_at: datetime | None = None
    ) -> "InvoiceDuplicated":
        return cls(invoice=invoice, source_invoice_id=source_invoice_id, **_stamped(occurred_at))


@dataclass(frozen=True)
class InvoiceSent(InvoiceEvent):
    """Invoice was sent to the client."""
    recipient: str = ""

    @classmethod
    def create(
        cls, invoice: Any, recipient: str, occurred_at: datetime | None = None
    ) -> "InvoiceSent":
        return cls(invoice=invoice, recipient=recipient, **_stamped(occurred_at))


@dataclass(frozen=True)
class PaymentRecorded(InvoiceEvent):
    """A payment was appended to an invoice."""
    payment: Any = None

    @classmethod
    def create(
        cls, invoice: Any, payment: Any, occurred_at: datetime | None = None
    ) -> "PaymentRecorded":
        return cls(invoice=invoice, payment=payment, **_stamped(occurred_at))


@dataclass(frozen=True)
class InvoicePaid(InvoiceEvent):
    """Invoice was fully paid."""

    @classmethod
    def create(cls, invoice: Any, occurred_at: datetime | None = None) -> "InvoicePaid":
        return cls(invoice=invoice, **_stamped(occurred_at))
