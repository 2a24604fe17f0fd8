"""
Primegate Backend: Request Body Size Limit Middleware
=====================================================

What:  Rejects request bodies larger than MAX_REQUEST_BODY_SIZE (default
       50MB) with 413.
How:   A declared Content-Length above the limit is refused before anything
       is read. Otherwise the body is received and counted chunk by chunk,
       which also covers chunked uploads and understated lengths; once it
       is complete it is replayed to the application as a single message.

A plain ASGI middleware: it substitutes its own `receive` for the
application's.
"""

import logging
from typing import Optional

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from primegate.config import settings
from primegate.exceptions import PrimegateError, RequestTooLargeError, ValidationError

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """Refuse request bodies larger than the configured limit."""

    def __init__(self, app: ASGIApp, max_body_size: Optional[int] = None):
        self.app = app
        self.max_body_size = max_body_size or settings.max_request_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                error = ValidationError(message="Invalid Content-Length header")
                await self._reject(error, scope, receive, send)
                return
            if declared > self.max_body_size:
                self._log_rejection(scope, declared)
                await self._reject(RequestTooLargeError(limit=self.max_body_size), scope, receive, send)
                return

        body = bytearray()
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            body.extend(message.get("body", b""))
            if len(body) > self.max_body_size:
                self._log_rejection(scope, len(body))
                await self._reject(RequestTooLargeError(limit=self.max_body_size), scope, receive, send)
                return
            more_body = message.get("more_body", False)

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if replayed:
                return await receive()
            replayed = True
            return {"type": "http.request", "body": bytes(body), "more_body": False}

        await self.app(scope, replay, send)

    def _log_rejection(self, scope: Scope, size: int) -> None:
        logger.warning(
            "Rejected %s %s: body of at least %d bytes exceeds %d",
            scope.get("method"),
            scope.get("path"),
            size,
            self.max_body_size,
        )

    @staticmethod
    async def _reject(error: PrimegateError, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(
            status_code=error.status_code,
            content={"success": False, "message": error.message},
        )
        await response(scope, receive, send)
