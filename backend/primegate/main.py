"""
Primegate Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers, routes and the
       connection manager; uvicorn serves `primegate.main:app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                     FastAPI App                      │
    │                                                      │
    │  Middleware: CORS → Access Log → Body Limit          │
    │                                                      │
    │  Routes:                                             │
    │    GET /health   GET /api/status                     │
    │    POST /api/qrcodes   GET /api/qrcodes[/{id}]       │
    │                                                      │
    │  Exception Handlers → {"success": false, "message"}  │
    │    Validation/InvalidId→400  NotFound→404            │
    │    TooLarge→413  StoreUnavailable/Store→500          │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → MongoDB connect (failure is logged, not fatal)
    Shutdown: close the MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from primegate import __version__
from primegate.config import settings
from primegate.database import ConnectionManager
from primegate.exceptions import (
    PrimegateError,
    StoreError,
    StoreUnavailableError,
)
from primegate.middleware.body_limit import BodySizeLimitMiddleware
from primegate.middleware.logging import AccessLogMiddleware, request_id_var
from primegate.routes import health, qr_codes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by the container runtime)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # The access middleware already logs every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect to MongoDB on startup and close the client on shutdown.

    A failed startup connection is logged and the server keeps listening:
    /health stays green, /api/status reports "disconnected", and each
    store-backed request retries the connection once.
    """
    setup_logging()
    manager: ConnectionManager = app.state.connection_manager

    logger.info("Primegate backend %s starting (environment=%s)", __version__, settings.environment)
    if not await manager.connect():
        logger.error("Starting without a database connection; requests will retry")

    logger.info("Server running on port %d", settings.port)

    yield

    logger.info("Primegate backend shutting down...")
    await manager.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int, message: str, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to `{"success": false, "message": ...}` responses.

    Handler hierarchy:
        StoreUnavailableError   → 500 (logged with the last connect error)
        StoreError              → 500 (driver details logged, never returned)
        PrimegateError (base)   → exc.status_code (400 / 404 / 413)
        RequestValidationError  → 400 (malformed JSON or wrong field types)
        HTTPException           → its own status (unknown route, wrong method)
        Exception (fallback)    → 500 generic message, traceback logged
    """

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        rid = request_id_var.get("")
        logger.error("[%s] Store unavailable: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        rid = request_id_var.get("")
        logger.error("[%s] Store error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(PrimegateError)
    async def handle_primegate_error(request: Request, exc: PrimegateError):
        rid = request_id_var.get("")
        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"Invalid request: {location or 'body'}: {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request body"
        logger.warning("[%s] Request validation failed: %s", rid, message)
        return _error_response(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error_response(
            exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error_response(500, "An unexpected error occurred. Please try again later.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(connection_manager: Optional[ConnectionManager] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        connection_manager: The single store handle for this app. Tests pass
            a stand-in; production builds one from `settings`.
    """
    app = FastAPI(
        title="Primegate QR API",
        description=(
            "Stores contact details together with a base64 QR code image "
            "and serves them back by id or as a sanitized list."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.connection_manager = connection_manager or ConnectionManager(settings)

    # Middleware executes in REVERSE order of addition:
    # CORS → AccessLog → BodyLimit
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=settings.cors_methods_list,
        allow_headers=settings.cors_headers_list,
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(qr_codes.router)

    return app


# uvicorn expects `primegate.main:app` to be importable
app = create_app()
