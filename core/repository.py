"""
In-memory invoice ledger.

The repository owns the id -> Invoice mapping. It is constructed once at
startup and injected into services; nothing else holds invoice state.

Invoices go in and come out as deep copies, so a caller holding a returned
invoice can never reach into stored state. Ids and invoice numbers come from
two independent monotonically increasing counters.
"""

import logging
from datetime import datetime
from typing import Iterable

from core.models import Invoice

logger = logging.getLogger(__name__)


class InvoiceNumberGenerator:
    """
    Issues invoice numbers of the form PREFIX-YYYY-NNN.

    The sequence never resets and never reuses a value, even across years or
    after deletions. Sequences wider than the padding simply grow.
    """

    def __init__(self, prefix: str = "INV", width: int = 3, start: int = 1):
        if start < 1:
            raise ValueError(f"start must be >= 1, got {start}")
        self.prefix = prefix
        self.width = width
        self._next = start

    def next_number(self, now: datetime) -> str:
        sequence = self._next
        self._next += 1
        return f"{self.prefix}-{now.year}-{sequence:0{self.width}d}"

    @property
    def peek(self) -> int:
        """Sequence value the next call will use."""
        return self._next


class InvoiceRepository:
    """
    Authoritative collection of invoices keyed by id.

    Usage:
        repo = InvoiceRepository(InvoiceNumberGenerator(prefix="INV"))
        invoice_id = repo.next_id()
        repo.add(invoice)
        stored = repo.get(invoice_id)
    """

    def __init__(
        self,
        numbers: InvoiceNumberGenerator | None = None,
        invoices: Iterable[Invoice] = ()
    ):
        self.numbers = numbers or InvoiceNumberGenerator()
        self._invoices: dict[int, Invoice] = {}
        self._next_id = 1

        for invoice in invoices:
            self.add(invoice)

    def next_id(self) -> int:
        """Reserve the next invoice id. Ids are never reused."""
        invoice_id = self._next_id
        self._next_id += 1
        return invoice_id

    def next_invoice_number(self, now: datetime) -> str:
        return self.numbers.next_number(now)

    def add(self, invoice: Invoice) -> Invoice:
        """
        Insert a new invoice.

        Raises:
            ValueError: If the id or invoice number is already taken
        """
        if invoice.id in self._invoices:
            raise ValueError(f"Invoice {invoice.id} already exists")
        if self.find_by_number(invoice.invoice_number) is not None:
            raise ValueError(f"Invoice number {invoice.invoice_number} already exists")

        self._invoices[invoice.id] = invoice.model_copy(deep=True)
        self._next_id = max(self._next_id, invoice.id + 1)
        return invoice.model_copy(deep=True)

    def get(self, invoice_id: int) -> Invoice | None:
        stored = self._invoices.get(invoice_id)
        if stored is None:
            return None
        return stored.model_copy(deep=True)

    def save(self, invoice: Invoice) -> Invoice:
        """
        Replace a stored invoice wholesale.

        Raises:
            KeyError: If no invoice with this id exists
        """
        if invoice.id not in self._invoices:
            raise KeyError(invoice.id)
        self._invoices[invoice.id] = invoice.model_copy(deep=True)
        return invoice.model_copy(deep=True)

    def remove(self, invoice_id: int) -> bool:
        """Permanently remove an invoice. Returns False if it did not exist."""
        removed = self._invoices.pop(invoice_id, None)
        if removed is None:
            return False
        logger.debug("Removed invoice %s from ledger", invoice_id)
        return True

    def find_by_number(self, invoice_number: str) -> Invoice | None:
        for invoice in self._invoices.values():
            if invoice.invoice_number == invoice_number:
                return invoice.model_copy(deep=True)
        return None

    def list_all(self) -> list[Invoice]:
        """All invoices in id order."""
        return [
            self._invoices[invoice_id].model_copy(deep=True)
            for invoice_id in sorted(self._invoices)
        ]

    def __len__(self) -> int:
        return len(self._invoices)

    def __contains__(self, invoice_id: object) -> bool:
        return invoice_id in self._invoices
