"""Propagate the acting principal through the call stack using contextvars."""

from contextvars import ContextVar
from contextlib import contextmanager

SYSTEM_ACTOR = "system"

_current_actor: ContextVar[str] = ContextVar("current_actor", default=SYSTEM_ACTOR)


def get_current_actor() -> str:
    """
    Get the acting principal from context.

    Falls back to "system" when nothing set one, so background work and
    tests are attributed rather than rejected.
    """
    return _current_actor.get()


def set_current_actor(actor: str) -> None:
    if not actor:
        raise ValueError("actor must be a non-empty string")
    _current_actor.set(actor)


def clear_current_actor() -> None:
    """
    Reset context to the system actor.

    Must be called in a finally block to prevent context leakage.
    """
    _current_actor.set(SYSTEM_ACTOR)


@contextmanager
def actor_context(actor: str):
    """
    Context manager for temporarily setting the acting principal.

    Example:
        with actor_context("billing@acme.test"):
            # Audit entries written here are attributed to this actor
            invoice_service.send(invoice_id, email)
    """
    previous = _current_actor.get()
    set_current_actor(actor)
    try:
        yield
    finally:
        _current_actor.set(previous)
