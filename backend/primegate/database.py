"""
Primegate Backend: MongoDB Connection Management
================================================

What:  Owns the single Motor client, its cached connection state, and the
       FastAPI dependencies that hand the QR collection to route handlers.
How:   `ConnectionManager.connect()` builds an AsyncIOMotorClient and
       validates it with a ping. Failures are recorded, logged and reported
       as state; they never raise out of `connect()`.
Who:   Created once by the app factory (stored on `app.state`), used by the
       lifespan handler, the status route and `get_qr_collection`.

Connection lifecycle:
    1. Instantiation (app factory): no I/O
    2. connect() in lifespan startup: non-fatal, the server listens regardless
    3. Per request: ensure_connected() makes one reconnect attempt if the
       cached state is "disconnected"
    4. close() in lifespan shutdown

Pooling belongs to the driver: one client is shared by every in-flight
request and the service adds no locking of its own. A reconnect builds and
pings its client before installing it, and never replaces a client that
another request already installed.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError

from primegate.config import Settings, settings as default_settings
from primegate.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Lazily established connection to the document store.

    Attributes:
        is_connected:  Cached state from the last connect() (not a live probe)
        last_error:    Exception from the last failed connect(), if any
    """

    def __init__(self, config: Optional[Settings] = None):
        self._settings = config or default_settings
        self._client: Optional[AsyncIOMotorClient] = None
        self._connected = False
        self.last_error: Optional[Exception] = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def status(self) -> str:
        return "connected" if self._connected else "disconnected"

    async def connect(self) -> bool:
        """
        Establish the client and validate it with a ping.

        Returns True on success and replaces any previous client. On failure
        the half-built client is closed, the state is set to disconnected,
        and the error is stored in `last_error`. The caller decides when to
        try again.
        """
        return await self._connect(replace=True)

    async def ensure_connected(self) -> bool:
        """
        Reconnect once if the cached state is disconnected.

        Parallel requests may each make an attempt. The first client to pass
        its ping is installed; later ones are closed again and their requests
        use the installed client.
        """
        if self._connected:
            return True
        logger.info("MongoDB disconnected, attempting to reconnect")
        return await self._connect(replace=False)

    async def _connect(self, replace: bool) -> bool:
        uri = self._settings.mongodb_uri
        if not uri:
            return self._mark_failed(
                ValueError("MONGODB_URI is not configured"), replace
            )

        try:
            client = AsyncIOMotorClient(
                uri,
                serverSelectionTimeoutMS=self._settings.mongodb_server_selection_timeout_ms,
                tz_aware=True,
            )
        except (PyMongoError, ValueError, TypeError) as e:
            return self._mark_failed(e, replace)

        # Pinged before it is installed: self._client only ever holds a
        # client that answered.
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            return self._mark_failed(e, replace)

        if self._connected and not replace:
            client.close()
            return True

        self._close_client()
        self._client = client
        self._connected = True
        self.last_error = None
        logger.info(
            "Connected to MongoDB (database=%s)", self._settings.database_name
        )
        return True

    def get_database(self) -> AsyncIOMotorDatabase:
        if self._client is None or not self._connected:
            raise StoreUnavailableError()
        return self._client[self._settings.database_name]

    def get_collection(self, name: Optional[str] = None) -> AsyncIOMotorCollection:
        return self.get_database()[name or self._settings.collection_name]

    async def close(self) -> None:
        """Close the client on shutdown."""
        self._close_client()
        logger.info("MongoDB connection closed")

    def _mark_failed(self, error: Exception, replace: bool) -> bool:
        if self._connected and not replace:
            logger.warning("Reconnect attempt failed, another request reconnected: %s", error)
            return True
        self._close_client()
        self.last_error = error
        logger.error("Error connecting to MongoDB: %s", error)
        return False

    def _close_client(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
        self._connected = False


# ── FastAPI Dependencies ──────────────────────────────────────────────────

def get_connection_manager(request: Request) -> ConnectionManager:
    """The manager owned by the running application."""
    return request.app.state.connection_manager


async def require_collection(manager: ConnectionManager) -> AsyncIOMotorCollection:
    """
    Ensure-connected guard for store-backed handlers.

    Makes the single reconnect attempt a request is allowed and raises
    StoreUnavailableError (→ 500) if the store is still unreachable.
    Handlers that take client input call this after validating it.
    """
    if not await manager.ensure_connected():
        raise StoreUnavailableError(
            context={"last_error": repr(manager.last_error)},
        )
    return manager.get_collection()


async def get_qr_collection(
    manager: ConnectionManager = Depends(get_connection_manager),
) -> AsyncIOMotorCollection:
    """Dependency form of require_collection for handlers without input."""
    return await require_collection(manager)
