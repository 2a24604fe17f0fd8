"""
Primegate Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the failure cases of the QR API.
How:   Each exception carries a client-safe message and an optional context
       dict. Global handlers (registered in main.py) turn them into
       `{"success": false, "message": ...}` responses with the right status.
Who:   Raised by the connection manager, the record store and middleware.

Exception Hierarchy:
    PrimegateError (base)
    ├── ValidationError          → 400 Bad Request (missing/malformed input)
    ├── InvalidIdError           → 400 Bad Request (not an ObjectId)
    ├── NotFoundError            → 404 Not Found
    ├── RequestTooLargeError     → 413 Payload Too Large
    ├── StoreUnavailableError    → 500 (still disconnected after reconnect)
    └── StoreError               → 500 (driver fault during an operation)
"""

from typing import Any, Dict, Optional


class PrimegateError(Exception):
    """
    Base exception for all Primegate application errors.

    Attributes:
        message:      Client-facing error description (safe to return)
        context:      Debug info (logged, NOT returned to the client)
        status_code:  HTTP status the global handler responds with
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PrimegateError):
    """
    Raised when client input is missing or malformed.

    When:    POST /api/qrcodes without contactInfo or qrCodeImage,
             or with a body that is not a JSON object.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidIdError(PrimegateError):
    """
    Raised when a record identifier is not a well-formed ObjectId.

    HTTP:    400 Bad Request (never 500: the client sent a bad id,
             the store was not consulted)
    """

    status_code = 400

    def __init__(
        self,
        record_id: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["record_id"] = record_id
        super().__init__(
            message=f"Invalid QR code ID '{record_id}'",
            context=ctx,
        )
        self.record_id = record_id


class NotFoundError(PrimegateError):
    """
    Raised when a requested record does not exist.

    When:    GET /api/qrcodes/{id} with a valid but unknown ObjectId.
    HTTP:    404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "QR code",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class RequestTooLargeError(PrimegateError):
    """
    Raised when the declared request body exceeds the configured limit.

    HTTP:    413 Payload Too Large
    """

    status_code = 413

    def __init__(
        self,
        limit: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["limit"] = limit
        super().__init__(
            message=f"Request body exceeds the {limit // (1024 * 1024)}MB limit",
            context=ctx,
        )
        self.limit = limit


class StoreUnavailableError(PrimegateError):
    """
    Raised when the document store is still disconnected after the
    single reconnect attempt a request is allowed.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Database connection unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreError(PrimegateError):
    """
    Raised when a driver call fails during an insert or query.

    Security Note:
        The message returned to the client is per-operation and generic.
        The driver exception type and text are kept in `context` and only
        logged server-side.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
