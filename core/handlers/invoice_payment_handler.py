"""
Handler for InvoicePaid events.

On full payment, emails the client a receipt carrying the invoice's
thank-you message.
"""

import logging
from typing import Callable

from core.events import InvoicePaid

logger = logging.getLogger(__name__)

# Looks up a client's email by client id. Returns None when unknown.
ClientEmailLookup = Callable[[int], str | None]


def handle_invoice_paid(mailer, client_email_lookup: ClientEmailLookup) -> Callable:
    """
    Factory that returns an InvoicePaid handler.

    Args:
        mailer: MockEmailClient instance
        client_email_lookup: Read-only client directory lookup

    Returns:
        Handler callable that sends a payment receipt
    """

    def handler(event: InvoicePaid):
        invoice = event.invoice

        recipient = client_email_lookup(invoice.client_id)
        if not recipient:
            logger.info(
                f"No email on file for client {invoice.client_id}; "
                f"skipping receipt for {invoice.invoice_number}"
            )
            return

        body = (
            f"Payment received for invoice {invoice.invoice_number}.\n"
            f"Total paid: {invoice.currency.format_amount(invoice.amount_paid)}"
        )
        if invoice.thank_you_message:
            body = f"{body}\n\n{invoice.thank_you_message}"

        mailer.send_email(
            to=recipient,
            subject=f"Receipt for invoice {invoice.invoice_number}",
            body=body,
        )

    return handler
