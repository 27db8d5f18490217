"""POST /api/actions: unified mutation endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from core.models import EmailData, InvoiceCreate, InvoiceUpdate, PaymentCreate


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "invoice": InvoiceHandler(services["invoice"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data))
        return success_response(
            result, request_id=getattr(request.state, "request_id", None)
        ).model_dump(mode="json")

    return router


def _pop_id(data: dict) -> int:
    """Remove and parse the target invoice id from an action payload."""
    if "id" not in data:
        raise ValueError("'id' is required")
    try:
        return int(data.pop("id"))
    except (TypeError, ValueError):
        raise ValueError("'id' must be an integer")


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class InvoiceHandler:
    ALLOWED_ACTIONS = {"create", "update", "delete", "duplicate", "send", "record_payment"}

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        invoice = self.service.create(InvoiceCreate(**data))
        return invoice.model_dump(mode="json")

    def _handle_update(self, data: dict):
        invoice_id = _pop_id(data)
        invoice = self.service.update(invoice_id, InvoiceUpdate(**data))
        return invoice.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        self.service.delete(_pop_id(data))
        return {"deleted": True}

    def _handle_duplicate(self, data: dict):
        invoice = self.service.duplicate(_pop_id(data))
        return invoice.model_dump(mode="json")

    def _handle_send(self, data: dict):
        invoice_id = _pop_id(data)
        ack = self.service.send(invoice_id, EmailData(**data))
        return ack.model_dump(mode="json")

    def _handle_record_payment(self, data: dict):
        invoice_id = _pop_id(data)
        invoice = self.service.record_payment(invoice_id, PaymentCreate(**data))
        return invoice.model_dump(mode="json")
