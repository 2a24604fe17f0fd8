"""
Primegate Backend: QR Record Document Model
===========================================

What:  Shape of a QR record as stored in the `qrcodes` MongoDB collection.
How:   MongoDB imposes no schema, so the model is a set of field names plus
       the helpers that build new documents and parse identifiers.

Document layout:
    {
        "_id": ObjectId,          # assigned by the store on insert
        "contactInfo": <any>,     # opaque, presence-checked only
        "qrCodeImage": "<b64>",   # base64 image payload
        "createdAt": datetime,    # UTC, set once at insertion
    }

Records are never updated or deleted by the service.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId

ID_FIELD = "_id"
CONTACT_INFO_FIELD = "contactInfo"
QR_CODE_IMAGE_FIELD = "qrCodeImage"
CREATED_AT_FIELD = "createdAt"

# Projection for list views: everything except the image payload
SUMMARY_PROJECTION: Dict[str, int] = {QR_CODE_IMAGE_FIELD: 0}


def new_qr_document(contact_info: Any, qr_code_image: str) -> Dict[str, Any]:
    """Build the document for a fresh insert with a server-assigned createdAt."""
    return {
        CONTACT_INFO_FIELD: contact_info,
        QR_CODE_IMAGE_FIELD: qr_code_image,
        CREATED_AT_FIELD: datetime.now(timezone.utc),
    }


def parse_object_id(value: str) -> Optional[ObjectId]:
    """
    Parse a 24-character hex identifier.

    Returns None for anything ObjectId would not accept. 12-byte strings are
    refused as well: only the hex form is ever handed out by the API.
    """
    if not isinstance(value, str) or len(value) != 24:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
