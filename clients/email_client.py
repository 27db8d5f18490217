"""
Mock email transport for invoice delivery.

Nothing leaves the process. Messages are recorded in an outbox so callers
and tests can inspect what would have been sent. The client can be told to
fail so error paths are exercisable.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from utils.timezone import Clock, now_utc

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the transport refuses a message."""


@dataclass(frozen=True)
class OutboundEmail:
    """A message accepted by the transport."""
    message_id: str
    to: str
    subject: str
    body: str
    sender: str
    sent_at: datetime


class MockEmailClient:
    """In-memory email transport with the same call shape as a real gateway."""

    def __init__(self, sender: str = "billing", clock: Clock = now_utc):
        """
        Args:
            sender: Sender identity stamped on every message
            clock: Source of sent_at timestamps
        """
        if not sender:
            raise ValueError("sender is required")

        self.sender = sender
        self.clock = clock
        self.outbox: list[OutboundEmail] = []
        self._failure: str | None = None

    def fail_with(self, reason: str | None) -> None:
        """Make every send raise EmailDeliveryError until reset with None."""
        self._failure = reason

    def send_email(self, to: str, subject: str, body: str) -> OutboundEmail:
        """
        Accept a message for delivery.

        Args:
            to: Recipient email address
            subject: Email subject line
            body: Plain text email body

        Returns:
            The recorded message

        Raises:
            ValueError: If the recipient is not an email address
            EmailDeliveryError: If the transport is set to fail
        """
        if "@" not in to:
            raise ValueError(f"Invalid recipient address '{to}'")

        if self._failure is not None:
            logger.error(f"Email delivery to {to} failed: {self._failure}")
            raise EmailDeliveryError(f"Delivery failed: {self._failure}")

        message = OutboundEmail(
            message_id=str(uuid4()),
            to=to,
            subject=subject,
            body=body,
            sender=self.sender,
            sent_at=self.clock(),
        )
        self.outbox.append(message)
        logger.info(f"Email queued to {to}: {subject}")
        return message

    def messages_to(self, to: str) -> list[OutboundEmail]:
        return [m for m in self.outbox if m.to == to]
