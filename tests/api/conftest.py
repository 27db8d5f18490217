"""API test fixtures: TestClient over a fully wired in-memory ledger."""

import pytest
from starlette.testclient import TestClient

from api.app import build_services, create_app


CLIENT_DIRECTORY = {101: "accounts@client.test"}


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def services(config, clock):
    """Ledger services wired the way the app wires them, on the movable clock."""
    return build_services(config, clock=clock, client_email_lookup=CLIENT_DIRECTORY.get)


@pytest.fixture
def invoice_service(services):
    return services["invoice"]


@pytest.fixture
def mailer(services):
    return services["mailer"]


@pytest.fixture
def audit(services):
    return services["audit"]


# =============================================================================
# APP + CLIENT
# =============================================================================


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app):
    """TestClient that returns 500 responses instead of raising."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
