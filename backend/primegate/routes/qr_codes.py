"""
Primegate Backend: QR Code Route Handlers
=========================================

What:  POST /api/qrcodes (store), GET /api/qrcodes (list), and
       GET /api/qrcodes/{id} (detail).
How:   Input is validated first; then `require_collection` makes one
       reconnect attempt when MongoDB is down and raises
       StoreUnavailableError (→ 500) if that fails. Results are delegated
       to QRCodeService; errors are formatted by the global handlers.

Request Flow:
    received → validated (schema) → ensure-connected → delegated → responded
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorCollection

from primegate.database import (
    ConnectionManager,
    get_connection_manager,
    get_qr_collection,
    require_collection,
)
from primegate.schemas.qr_code import (
    ErrorResponse,
    QRCodeCreate,
    QRCodeCreateResponse,
    QRCodeRecord,
    QRCodeSummary,
)
from primegate.services.qr_code_service import qr_code_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["QR Codes"])


@router.post(
    "/qrcodes",
    status_code=201,
    response_model=QRCodeCreateResponse,
    responses={
        400: {"description": "Missing contactInfo or qrCodeImage", "model": ErrorResponse},
        413: {"description": "Request body too large", "model": ErrorResponse},
        500: {"description": "Database unavailable or insert failed", "model": ErrorResponse},
    },
    summary="Store a QR code with its contact info",
)
async def create_qr_code(
    payload: QRCodeCreate,
    manager: ConnectionManager = Depends(get_connection_manager),
) -> QRCodeCreateResponse:
    """
    Persist contact info and a base64 QR code image.

    Returns HTTP 201 with the new record's id. createdAt is set by the
    server; any createdAt sent by the client is ignored.
    """
    qr_code_service.validate_new_record(payload.contactInfo, payload.qrCodeImage)
    collection = await require_collection(manager)

    record_id = await qr_code_service.insert(
        collection,
        contact_info=payload.contactInfo,
        qr_code_image=payload.qrCodeImage,
    )
    return QRCodeCreateResponse(id=record_id)


@router.get(
    "/qrcodes",
    response_model=List[QRCodeSummary],
    responses={
        500: {"description": "Database unavailable or query failed", "model": ErrorResponse},
    },
    summary="List all QR codes without image data",
)
async def list_qr_codes(
    collection: AsyncIOMotorCollection = Depends(get_qr_collection),
) -> List[QRCodeSummary]:
    # Images are dropped to keep the list response small
    return await qr_code_service.list_all(collection)


@router.get(
    "/qrcodes/{record_id}",
    response_model=QRCodeRecord,
    responses={
        400: {"description": "Malformed id", "model": ErrorResponse},
        404: {"description": "QR code not found", "model": ErrorResponse},
        500: {"description": "Database unavailable or query failed", "model": ErrorResponse},
    },
    summary="Get a single QR code by id",
)
async def get_qr_code(
    record_id: str,
    manager: ConnectionManager = Depends(get_connection_manager),
) -> QRCodeRecord:
    """
    Full record including the image payload.

    The id is validated by the service (not by FastAPI) so that a
    malformed id answers 400 in the standard error envelope, even while
    the store is down.
    """
    qr_code_service.parse_record_id(record_id)
    collection = await require_collection(manager)

    return await qr_code_service.get_by_id(collection, record_id)
