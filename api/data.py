"""GET /api/data: unified read endpoint."""

from fastapi import APIRouter, Query, Request

from api.base import success_response


VALID_TYPES = {"invoices"}
INVOICE_FILTERS = {"all", "outstanding"}


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    invoice_svc = services["invoice"]

    # -------------------------------------------------------------------------
    # Convenience routes (must be registered before the generic /data route)
    # -------------------------------------------------------------------------

    @router.get("/data/invoices/stats")
    async def invoice_stats(request: Request):
        stats = invoice_svc.get_dashboard_stats()
        return success_response(
            stats.model_dump(mode="json"), request_id=_request_id(request)
        ).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Generic data endpoint
    # -------------------------------------------------------------------------

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: int | None = Query(None),
        filter: str | None = Query(None),
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        data = _handle_invoices(invoice_svc, id, filter, limit, offset)
        return success_response(data, request_id=_request_id(request)).model_dump(mode="json")

    return router


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _handle_invoices(invoice_svc, id, filter, limit, offset):
    if id is not None:
        return invoice_svc.get_by_id(id).model_dump(mode="json")

    filter = filter or "all"
    if filter not in INVOICE_FILTERS:
        raise ValueError(
            f"Unknown invoice filter '{filter}'. "
            f"Valid filters: {', '.join(sorted(INVOICE_FILTERS))}"
        )

    if filter == "outstanding":
        invoices = invoice_svc.get_outstanding()
    else:
        invoices = invoice_svc.get_all()

    return [i.model_dump(mode="json") for i in invoices[offset:offset + limit]]
