"""
Primegate Backend: Health and Status Routes
===========================================

What:  GET /health for liveness probes, GET /api/status for a quick look at
       the server and its MongoDB connection.
How:   Neither route touches the store. /health always answers 200;
       /api/status reports the connection manager's cached state, so a
       status check never triggers a reconnect.
"""

import logging

from fastapi import APIRouter, Depends

from primegate.config import settings
from primegate.database import ConnectionManager, get_connection_manager
from primegate.schemas.qr_code import HealthResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse()


@router.get(
    "/api/status",
    response_model=StatusResponse,
    summary="Server and MongoDB connection status",
)
async def api_status(
    manager: ConnectionManager = Depends(get_connection_manager),
) -> StatusResponse:
    """
    Report server state, cached MongoDB state and the environment name.

    `mongodb` is "connected" or "disconnected" as of the last connect
    attempt; it is not a live probe.
    """
    return StatusResponse(
        server="running",
        mongodb=manager.status,
        environment=settings.environment,
    )
