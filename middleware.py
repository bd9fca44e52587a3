import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

access_log = logging.getLogger("amizero.request")


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id (client supplied or uuid4) and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        request_id = incoming[:MAX_REQUEST_ID_LENGTH] or uuid.uuid4().hex

        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Access log: method, path, status and latency, plus the admin when authenticated."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
            admin = getattr(request.state, "admin", None)
            extra = {"entity": "http_request"}
            if admin is not None:
                extra["admin_id"] = admin.id
            access_log.info(
                "%s %s -> %s (%sms)", request.method, request.url.path, status_code, elapsed_ms, extra=extra
            )
