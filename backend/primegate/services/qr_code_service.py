"""
Primegate Backend: QR Code Service (Record Store)
=================================================

What:  Insert, list-all and get-by-id against the QR record collection.
How:   Each operation receives the collection handle explicitly (resolved
       per request by `get_qr_collection`), talks to it through Motor, and
       translates driver failures into StoreError.
Who:   Called by the /api/qrcodes route handlers.

Error Handling Strategy:
    Our own exceptions (ValidationError, InvalidIdError, NotFoundError)
    propagate unchanged. Any pymongo error is logged with its type and
    wrapped in StoreError carrying a per-operation message, so no driver
    detail reaches the client.
"""

import logging
from typing import Any, List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from primegate.exceptions import (
    InvalidIdError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from primegate.models.qr_record import (
    CONTACT_INFO_FIELD,
    ID_FIELD,
    QR_CODE_IMAGE_FIELD,
    SUMMARY_PROJECTION,
    new_qr_document,
    parse_object_id,
)
from primegate.schemas.qr_code import QRCodeRecord, QRCodeSummary

logger = logging.getLogger(__name__)


def _is_absent(value: Any) -> bool:
    """Missing, null and empty string all count as absent."""
    return value is None or (isinstance(value, str) and not value.strip())


class QRCodeService:
    """
    Record store for QR records.

    Responsibilities:
        - insert(): validate presence, stamp createdAt, persist
        - list_all(): every record, image stripped, store-native order
        - get_by_id(): one full record, image included
    """

    def validate_new_record(self, contact_info: Any, qr_code_image: Any) -> None:
        """Raise ValidationError naming every absent field."""
        missing = [
            name
            for name, value in (
                (CONTACT_INFO_FIELD, contact_info),
                (QR_CODE_IMAGE_FIELD, qr_code_image),
            )
            if _is_absent(value)
        ]
        if missing:
            raise ValidationError(
                message=f"Missing required field(s): {', '.join(missing)}",
                field=missing[0],
                context={"missing": missing},
            )

    def parse_record_id(self, record_id: str) -> ObjectId:
        """Raise InvalidIdError unless record_id is a 24-char hex ObjectId."""
        object_id = parse_object_id(record_id)
        if object_id is None:
            raise InvalidIdError(record_id)
        return object_id

    async def insert(
        self,
        collection: AsyncIOMotorCollection,
        contact_info: Any,
        qr_code_image: Any,
    ) -> str:
        """
        Persist a new QR record and return its identifier.

        Raises:
            ValidationError: contactInfo or qrCodeImage absent (→ 400)
            StoreError: insert failed in the driver (→ 500)
        """
        self.validate_new_record(contact_info, qr_code_image)

        document = new_qr_document(contact_info, qr_code_image)
        try:
            result = await collection.insert_one(document)
        except PyMongoError as e:
            logger.error("Error saving QR code: %s", e, exc_info=True)
            raise StoreError(
                message="Failed to save QR code",
                context={"error_type": type(e).__name__},
            )

        record_id = str(result.inserted_id)
        logger.info(
            "QR code saved: %s (image %d chars)", record_id, len(qr_code_image)
        )
        return record_id

    async def list_all(self, collection: AsyncIOMotorCollection) -> List[QRCodeSummary]:
        """
        Every record without its image payload.

        Order is whatever the store returns; it is not guaranteed to be
        stable across calls.
        """
        try:
            documents = await collection.find({}, SUMMARY_PROJECTION).to_list(length=None)
        except PyMongoError as e:
            logger.error("Error fetching QR codes: %s", e, exc_info=True)
            raise StoreError(
                message="Failed to fetch QR codes",
                context={"error_type": type(e).__name__},
            )

        return [QRCodeSummary.model_validate(doc) for doc in documents]

    async def get_by_id(
        self,
        collection: AsyncIOMotorCollection,
        record_id: str,
    ) -> QRCodeRecord:
        """
        One full record, image included.

        Raises:
            InvalidIdError: record_id is not a 24-char hex ObjectId (→ 400)
            NotFoundError: no record with that id (→ 404)
            StoreError: query failed in the driver (→ 500)
        """
        object_id = self.parse_record_id(record_id)

        try:
            document = await collection.find_one({ID_FIELD: object_id})
        except PyMongoError as e:
            logger.error("Error fetching QR code %s: %s", record_id, e, exc_info=True)
            raise StoreError(
                message="Failed to fetch QR code",
                context={"record_id": record_id, "error_type": type(e).__name__},
            )

        if document is None:
            raise NotFoundError(resource="QR code", resource_id=record_id)

        return QRCodeRecord.model_validate(document)


# ── Singleton Instance ────────────────────────────────────────────────────
qr_code_service = QRCodeService()
