"""
Event bus for ledger domain events.

Synchronous in-process pub/sub. Handlers run immediately in the publisher's
thread, after the ledger write and audit entry. A failing handler is logged
and skipped; it never undoes or fails the operation that published.
"""

import logging
from collections import defaultdict
from typing import Callable

from core.events import LedgerEvent

logger = logging.getLogger(__name__)

Handler = Callable[[LedgerEvent], None]


def _event_name(event_type: str | type[LedgerEvent]) -> str:
    if isinstance(event_type, str):
        return event_type
    return event_type.__name__


class EventBus:
    """
    In-process event bus for ledger domain events.

    Subscribe by event class or class name, publish by event instance.
    Dispatch is by exact class name; subscribing to InvoiceEvent does not
    receive InvoicePaid.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: str | type[LedgerEvent], callback: Handler) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event class or its name (e.g. InvoicePaid or 'InvoicePaid')
            callback: Function to call when event is published
        """
        self._subscribers[_event_name(event_type)].append(callback)

    def unsubscribe(self, event_type: str | type[LedgerEvent], callback: Handler) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        callbacks = self._subscribers.get(_event_name(event_type), [])
        if callback not in callbacks:
            return False
        callbacks.remove(callback)
        return True

    def subscriber_count(self, event_type: str | type[LedgerEvent]) -> int:
        return len(self._subscribers.get(_event_name(event_type), []))

    def publish(self, event: LedgerEvent) -> None:
        """
        Publish an event to all subscribers of that type, in subscription order.

        Args:
            event: LedgerEvent instance to publish
        """
        event_type = event.__class__.__name__

        for callback in list(self._subscribers.get(event_type, [])):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )
