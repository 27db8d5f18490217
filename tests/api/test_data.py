"""Tests for GET /api/data unified read endpoint."""

from datetime import date
from decimal import Decimal

import pytest

from core.models import EmailData, InvoiceCreate, LineItem, PaymentCreate


def _create(invoice_service, **overrides):
    data = {
        "client_id": 101,
        "items": [LineItem(description="Work", quantity=Decimal("1"), rate=Decimal("100"))],
        **overrides,
    }
    return invoice_service.create(InvoiceCreate(**data))


def _send(invoice_service, invoice):
    invoice_service.send(invoice.id, EmailData(to="accounts@client.test"))
    return invoice


class TestParameterValidation:

    def test_missing_type(self, client):
        response = client.get("/api/data")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_unknown_type(self, client):
        response = client.get("/api/data", params={"type": "projects"})

        assert response.status_code == 400
        assert "Unknown type 'projects'" in response.json()["error"]["message"]

    def test_unknown_filter(self, client):
        response = client.get("/api/data", params={"type": "invoices", "filter": "late"})

        assert response.status_code == 400
        assert "outstanding" in response.json()["error"]["message"]

    def test_non_integer_id(self, client):
        response = client.get("/api/data", params={"type": "invoices", "id": "abc"})

        assert response.status_code == 422


class TestInvoiceList:

    def test_empty(self, client):
        response = client.get("/api/data", params={"type": "invoices"})

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_ordered_by_issue_date_desc(self, client, invoice_service):
        older = _create(invoice_service, issue_date=date(2024, 5, 1))
        newer = _create(invoice_service, issue_date=date(2024, 6, 1))

        data = client.get("/api/data", params={"type": "invoices"}).json()["data"]

        assert [inv["id"] for inv in data] == [newer.id, older.id]

    def test_pagination(self, client, invoice_service):
        for _ in range(5):
            _create(invoice_service)

        data = client.get(
            "/api/data", params={"type": "invoices", "limit": 2, "offset": 1}
        ).json()["data"]

        assert len(data) == 2

    def test_status_resolved_on_read(self, client, invoice_service, clock):
        invoice = _send(invoice_service, _create(invoice_service))
        clock.advance(days=31)

        data = client.get("/api/data", params={"type": "invoices", "id": invoice.id}).json()["data"]

        assert data["status"] == "overdue"


class TestInvoiceById:

    def test_get(self, client, invoice_service):
        invoice = _create(invoice_service)

        response = client.get("/api/data", params={"type": "invoices", "id": invoice.id})

        assert response.status_code == 200
        assert response.json()["data"]["invoice_number"] == invoice.invoice_number

    def test_missing(self, client):
        response = client.get("/api/data", params={"type": "invoices", "id": 41})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestOutstanding:

    def test_outstanding_filter(self, client, invoice_service):
        _create(invoice_service)  # draft, excluded
        late = _send(invoice_service, _create(invoice_service, due_date=date(2024, 8, 1)))
        early = _send(invoice_service, _create(invoice_service, due_date=date(2024, 7, 1)))

        data = client.get(
            "/api/data", params={"type": "invoices", "filter": "outstanding"}
        ).json()["data"]

        assert [inv["id"] for inv in data] == [early.id, late.id]


class TestStats:

    def test_stats(self, client, invoice_service):
        paid = _send(invoice_service, _create(invoice_service))
        invoice_service.record_payment(paid.id, PaymentCreate(amount=Decimal("100")))
        _send(invoice_service, _create(invoice_service, due_date=date(2024, 6, 1)))

        response = client.get("/api/data/invoices/stats")

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total_invoices"] == 2
        assert stats["total_paid"] == "100.00"
        assert stats["total_outstanding"] == "100.00"
        assert stats["overdue_count"] == 1
        assert len(stats["recent_invoices"]) == 2

    @pytest.mark.parametrize("path", ["/api/data/invoices/stats", "/health"])
    def test_empty_ledger(self, client, path):
        assert client.get(path).status_code == 200
