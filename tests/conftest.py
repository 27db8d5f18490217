"""Shared test fixtures for the invoice ledger test suite."""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
# override=True ensures .env takes precedence over shell env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

from utils.actor_context import clear_current_actor


# =============================================================================
# TEST CONSTANTS
# =============================================================================

# Every service fixture sees this instant as "now"
FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)

TEST_CLIENT_ID = 101
TEST_CLIENT_EMAIL = "accounts@client.test"
TEST_ACTOR = "billing@ledger.test"


class MutableClock:
    """Clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# =============================================================================
# CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_actor_context():
    """Ensure clean actor context before and after each test."""
    clear_current_actor()
    yield
    clear_current_actor()


@pytest.fixture
def as_test_actor():
    from utils.actor_context import actor_context

    with actor_context(TEST_ACTOR):
        yield TEST_ACTOR


# =============================================================================
# LEDGER FIXTURES
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    """Movable clock starting at FIXED_NOW."""
    return MutableClock(FIXED_NOW)


@pytest.fixture
def config():
    from core.config import LedgerConfig
    return LedgerConfig()


@pytest.fixture
def repository(config):
    from core.repository import InvoiceRepository, InvoiceNumberGenerator
    return InvoiceRepository(InvoiceNumberGenerator(
        prefix=config.invoice_number_prefix,
        width=config.invoice_number_width,
    ))


@pytest.fixture
def audit(clock):
    from core.audit import AuditLogger
    return AuditLogger(clock=clock)


@pytest.fixture
def event_bus():
    from core.event_bus import EventBus
    return EventBus()


@pytest.fixture
def mailer(clock):
    from clients.email_client import MockEmailClient
    return MockEmailClient(sender="Billing", clock=clock)


@pytest.fixture
def invoice_service(repository, audit, event_bus, mailer, config, clock):
    """InvoiceService over a fresh in-memory ledger with a movable clock."""
    from core.services.invoice_service import InvoiceService
    return InvoiceService(repository, audit, event_bus, mailer, config=config, clock=clock)


@pytest.fixture
def published(event_bus):
    """Every event published on the bus, in order."""
    from core import events

    received = []
    for name in (
        "InvoiceCreated", "InvoiceUpdated", "InvoiceDeleted", "InvoiceDuplicated",
        "InvoiceSent", "PaymentRecorded", "InvoicePaid",
    ):
        event_bus.subscribe(getattr(events, name), received.append)
    return received


@pytest.fixture
def invoice_data():
    """Two units at 100 with 10% tax: total 220."""
    from core.models import InvoiceCreate, LineItem

    return InvoiceCreate(
        client_id=TEST_CLIENT_ID,
        items=[LineItem(description="Consulting", quantity=Decimal("2"), rate=Decimal("100"))],
        tax_rate=Decimal("10"),
    )


@pytest.fixture
def draft_invoice(invoice_service, invoice_data):
    return invoice_service.create(invoice_data)


@pytest.fixture
def sent_invoice(invoice_service, draft_invoice):
    from core.models import EmailData

    invoice_service.send(draft_invoice.id, EmailData(to=TEST_CLIENT_EMAIL))
    return invoice_service.get_by_id(draft_invoice.id)


@pytest.fixture
def paid_invoice(invoice_service, sent_invoice):
    from core.models import PaymentCreate

    return invoice_service.record_payment(
        sent_invoice.id, PaymentCreate(amount=sent_invoice.total)
    )
