"""Application wiring: build the ledger services and the FastAPI app."""

import logging

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import ActorMiddleware, RequestIDMiddleware
from clients.email_client import MockEmailClient
from core.audit import AuditLogger
from core.config import LedgerConfig
from core.event_bus import EventBus
from core.events import InvoicePaid
from core.handlers.invoice_payment_handler import ClientEmailLookup, handle_invoice_paid
from core.repository import InvoiceNumberGenerator, InvoiceRepository
from core.services.invoice_service import InvoiceService
from utils.timezone import Clock, now_utc

logger = logging.getLogger(__name__)


def _no_client_email(client_id: int) -> str | None:
    return None


def build_services(
    config: LedgerConfig | None = None,
    clock: Clock = now_utc,
    client_email_lookup: ClientEmailLookup = _no_client_email,
) -> dict:
    """
    Construct the ledger and everything that operates on it.

    One repository per call; callers that need a shared ledger keep the
    returned dict rather than calling this twice.
    """
    config = config or LedgerConfig()

    repository = InvoiceRepository(InvoiceNumberGenerator(
        prefix=config.invoice_number_prefix,
        width=config.invoice_number_width,
    ))
    audit = AuditLogger(clock=clock)
    event_bus = EventBus()
    mailer = MockEmailClient(sender=config.sender_name, clock=clock)

    event_bus.subscribe(InvoicePaid, handle_invoice_paid(mailer, client_email_lookup))

    invoice_service = InvoiceService(
        repository, audit, event_bus, mailer, config=config, clock=clock
    )

    return {
        "config": config,
        "repository": repository,
        "audit": audit,
        "event_bus": event_bus,
        "mailer": mailer,
        "invoice": invoice_service,
    }


def create_app(services: dict | None = None) -> FastAPI:
    """FastAPI app with request-id and actor middleware, error handlers, and data/actions routes."""
    services = services or build_services(LedgerConfig.from_env())

    app = FastAPI(title="Invoice Ledger")
    app.add_middleware(ActorMiddleware)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok", "invoices": len(services["repository"])}

    app.state.services = services
    logger.info("Invoice ledger app created")
    return app
