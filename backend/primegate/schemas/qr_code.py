"""
Primegate Backend: Pydantic Request/Response Schemas
====================================================

What:  The API contract for the QR record endpoints.
How:   FastAPI validates request bodies against these models, serializes
       responses through them (by alias, so ids go out as `_id`), and
       builds the OpenAPI docs from them.

Field names are camelCase on the wire, matching the stored documents and
the clients already consuming them.
"""

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class QRCodeCreate(BaseModel):
    """
    Body of POST /api/qrcodes.

    Both fields are optional at the schema level so that a missing field is
    reported by the record store as a 400 with the service's own message,
    not as FastAPI's generic 422.
    """
    contactInfo: Any = Field(
        default=None,
        description="Contact details encoded in the QR code (any JSON value)",
    )
    qrCodeImage: Optional[str] = Field(
        default=None,
        description="Base64-encoded QR code image, optionally as a data URL",
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class QRCodeCreateResponse(BaseModel):
    """Returned by POST /api/qrcodes with HTTP 201."""
    success: bool = True
    id: str = Field(description="Identifier assigned by the store")
    message: str = "QR code saved successfully"


class QRCodeSummary(BaseModel):
    """
    Sanitized record for GET /api/qrcodes: no image payload.

    Stored documents are schema-less, so every field except the id may be
    absent on records written outside this service.
    """
    id: str = Field(alias="_id", description="Record identifier (24-char hex)")
    contactInfo: Any = None
    createdAt: Optional[datetime] = None

    model_config = {"populate_by_name": True}

    @field_validator("id", mode="before")
    @classmethod
    def stringify_object_id(cls, v: Any) -> Any:
        if isinstance(v, ObjectId):
            return str(v)
        return v


class QRCodeRecord(QRCodeSummary):
    """
    Full record for GET /api/qrcodes/{id}, image included.

    The image is returned as stored: records written outside this service
    may hold something other than a string.
    """
    qrCodeImage: Any = None


class ErrorResponse(BaseModel):
    """Envelope for every error response."""
    success: bool = False
    message: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """Liveness of the process only; the store is not consulted."""
    status: str = "ok"
    message: str = "Server is running"


class StatusResponse(BaseModel):
    """Returned by GET /api/status."""
    server: str = "running"
    mongodb: str = Field(description="connected or disconnected (cached state)")
    environment: str
