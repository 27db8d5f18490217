"""Typed exceptions for ledger failures.

Every failure is raised before any mutation, so catching one of these means
the ledger is exactly as it was before the call.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base class for invoice ledger errors."""


class NotFoundError(LedgerError):
    """No invoice exists with the given id."""

    def __init__(self, invoice_id: int):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id} not found")


class ValidationError(LedgerError):
    """
    Input is well-formed but violates a ledger rule.

    Payment rejections carry the remaining balance so callers can show what
    would have been accepted.
    """

    def __init__(self, message: str, remaining_balance: Decimal | None = None):
        self.remaining_balance = remaining_balance
        super().__init__(message)


class EditLockedError(LedgerError):
    """Invoice has left draft and only its status may change."""

    def __init__(self, invoice_id: int, status: str, fields: set[str]):
        self.invoice_id = invoice_id
        self.status = status
        self.fields = fields
        super().__init__(
            f"Invoice {invoice_id} is {status} and cannot be edited "
            f"(attempted: {', '.join(sorted(fields))})"
        )


class DeleteBlockedError(LedgerError):
    """Paid invoices are part of the permanent record."""

    def __init__(self, invoice_id: int):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id} is paid and cannot be deleted")


class StateConflictError(LedgerError):
    """Operation is not allowed from the invoice's current status."""
