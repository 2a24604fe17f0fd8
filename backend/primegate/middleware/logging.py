"""
Primegate Backend: Access Log Middleware
========================================

What:  Gives every request a correlation id and writes one access line per
       request, including the store state it was served under.
How:   The id is the client's X-Request-ID if sent, else a fresh 8-char hex
       id. It is published through `request_id_var` for the exception
       handlers and echoed in the X-Request-ID response header.

Access line:
    POST /api/qrcodes 201 14.2ms in=4213 store=connected [1a2b3c4d] from 10.0.0.7

`in` is the declared Content-Length ("-" for chunked or empty bodies).
Level follows the status class: 5xx ERROR, 4xx WARNING, otherwise INFO.
Bodies themselves are never logged; they carry contact details and
base64 images.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("primegate.access")

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def _store_state(request: Request) -> str:
    manager = getattr(request.app.state, "connection_manager", None)
    return manager.status if manager is not None else "unknown"


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Correlation id and access line for each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request_id_var.set(rid)
        started = time.perf_counter()

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid

        elapsed_ms = (time.perf_counter() - started) * 1000
        client = request.client.host if request.client else "unknown"
        received = request.headers.get("content-length", "-")
        store = _store_state(request)

        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms in=%s store=%s [%s] from %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            received,
            store,
            rid,
            client,
            extra={"request_id": rid, "store": store},
        )
        return response
