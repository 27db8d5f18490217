"""Request-scoped middleware for API requests."""

from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from utils.actor_context import actor_context, SYSTEM_ACTOR

REQUEST_ID_HEADER = "X-Request-ID"
ACTOR_HEADER = "X-Actor"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID to every request, honouring one sent by the caller."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ActorMiddleware(BaseHTTPMiddleware):
    """
    Attributes ledger changes made during a request to the X-Actor header.

    Requests without the header are attributed to the system actor. The
    context is restored after the request completes.
    """

    async def dispatch(self, request: Request, call_next):
        actor = request.headers.get(ACTOR_HEADER, "").strip() or SYSTEM_ACTOR
        request.state.actor = actor
        with actor_context(actor):
            return await call_next(request)
