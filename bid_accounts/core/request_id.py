"""
Per-request correlation ids

The id comes from the caller's ``X-Request-ID`` header or is generated, is
echoed on the response, and is readable from anywhere in the request through
``request_id_ctx`` (logging) or ``request.state.request_id`` (error handlers
that run after the middleware has unwound).
"""
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-ID"

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex


def resolve_request_id(request: Request) -> str:
    """Best known id for a request, minting one if none was ever assigned"""
    return (
        request.headers.get(REQUEST_ID_HEADER)
        or request_id_ctx.get()
        or getattr(request.state, "request_id", None)
        or new_request_id()
    )


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        request.state.request_id = request_id
        reset_token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(reset_token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
