"""
Primegate Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   An in-memory stand-in for the Motor collection and a stand-in
       connection manager replace MongoDB, so no database is needed.

Fixture Hierarchy:
    ├── fake_collection: in-memory collection (insert_one / find / find_one)
    ├── fake_manager: connected manager handing out fake_collection
    ├── motor_clients: patched AsyncIOMotorClient for the real ConnectionManager
    ├── sample_record: contact info + base64 image for inserts
    └── test_client: HTTPX AsyncClient bound to an app built around fake_manager
"""

import asyncio
import copy
import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import patch

# Settings are read at import time: point them at test values first
os.environ["MONGODB_URI"] = "mongodb://localhost:27017"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.errors import InvalidOperation, ServerSelectionTimeoutError

from primegate.exceptions import StoreUnavailableError


# ══════════════════════════════════════════════════════════════════════════
# Stand-ins for Motor
# ══════════════════════════════════════════════════════════════════════════


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        if length is None:
            return list(self._documents)
        return self._documents[:length]


class FakeCollection:
    """
    Just enough of AsyncIOMotorCollection for the record store.

    Documents are deep-copied in and out, like a round trip through BSON.
    """

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []

    async def insert_one(self, document: Dict[str, Any]):
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        document["_id"] = stored["_id"]
        self.documents.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"], acknowledged=True)

    def find(self, query: Optional[Dict[str, Any]] = None, projection: Optional[Dict[str, int]] = None):
        excluded = {k for k, v in (projection or {}).items() if not v}
        results = [
            {k: copy.deepcopy(v) for k, v in doc.items() if k not in excluded}
            for doc in self.documents
            if self._matches(doc, query or {})
        ]
        return FakeCursor(results)

    async def find_one(self, query: Dict[str, Any]):
        for doc in self.documents:
            if self._matches(doc, query):
                return copy.deepcopy(doc)
        return None

    @staticmethod
    def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
        return all(doc.get(key) == value for key, value in query.items())


class FakeConnectionManager:
    """
    Stand-in for ConnectionManager with a switchable connection.

    Attributes:
        reconnect_succeeds:  outcome of the next connect() call
        connect_calls:       how many connect() attempts were made
    """

    def __init__(
        self,
        collection: FakeCollection,
        connected: bool = True,
        reconnect_succeeds: bool = True,
    ):
        self.collection = collection
        self._connected = connected
        self.reconnect_succeeds = reconnect_succeeds
        self.connect_calls = 0
        self.last_error: Optional[Exception] = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def status(self) -> str:
        return "connected" if self._connected else "disconnected"

    async def connect(self) -> bool:
        self.connect_calls += 1
        self._connected = self.reconnect_succeeds
        self.last_error = None if self._connected else ServerSelectionTimeoutError("no servers")
        return self._connected

    async def ensure_connected(self) -> bool:
        if self._connected:
            return True
        return await self.connect()

    def get_collection(self, name: Optional[str] = None) -> FakeCollection:
        if not self._connected:
            raise StoreUnavailableError()
        return self.collection

    async def close(self) -> None:
        self._connected = False


class FakeMotorClient:
    """
    Stand-in for AsyncIOMotorClient as the real ConnectionManager uses it.

    The ping takes `ping_delay` seconds and, like a real client, fails with
    InvalidOperation if the client was closed in the meantime.
    """

    def __init__(self, collection: FakeCollection, ping_delay: float, ping_error: Optional[Exception]):
        self.collection = collection
        self.ping_delay = ping_delay
        self.ping_error = ping_error
        self.closed = False
        self.admin = SimpleNamespace(command=self._command)

    async def _command(self, name: str) -> Dict[str, float]:
        await asyncio.sleep(self.ping_delay)
        if self.closed:
            raise InvalidOperation("Cannot use MongoClient after close")
        if self.ping_error is not None:
            raise self.ping_error
        return {"ok": 1.0}

    def __getitem__(self, database_name: str):
        return {"qrcodes": self.collection}

    def close(self) -> None:
        self.closed = True


class MotorClientFactory:
    """
    Replacement for the AsyncIOMotorClient class.

    Attributes:
        ping_error:  raised by the ping of clients built from now on
        clients:     every client built so far
    """

    def __init__(self, collection: FakeCollection, ping_delay: float = 0.05):
        self.collection = collection
        self.ping_delay = ping_delay
        self.ping_error: Optional[Exception] = None
        self.clients: List[FakeMotorClient] = []

    def __call__(self, *args, **kwargs) -> FakeMotorClient:
        client = FakeMotorClient(self.collection, self.ping_delay, self.ping_error)
        self.clients.append(client)
        return client

    @property
    def open_clients(self) -> List[FakeMotorClient]:
        return [c for c in self.clients if not c.closed]


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def fake_collection():
    return FakeCollection()


@pytest.fixture
def fake_manager(fake_collection):
    """A manager that is connected and hands out fake_collection."""
    return FakeConnectionManager(fake_collection)


@pytest.fixture
def make_manager(fake_collection):
    """
    Factory for managers in a chosen state, sharing fake_collection.

    Usage:
        manager = make_manager(connected=False, reconnect_succeeds=False)
    """
    def _make(connected: bool = True, reconnect_succeeds: bool = True) -> FakeConnectionManager:
        return FakeConnectionManager(
            fake_collection,
            connected=connected,
            reconnect_succeeds=reconnect_succeeds,
        )
    return _make


@pytest.fixture
def motor_clients(fake_collection):
    """
    Patch AsyncIOMotorClient so a real ConnectionManager talks to fake_collection.

    Usage:
        manager = ConnectionManager()
        motor_clients.ping_error = ServerSelectionTimeoutError("down")
        assert await manager.connect() is False
    """
    factory = MotorClientFactory(fake_collection)
    with patch("primegate.database.AsyncIOMotorClient", new=factory):
        yield factory


@pytest.fixture
def make_client():
    """
    Factory for an AsyncClient bound to a fresh app around `manager`.

    Usage:
        async with make_client(manager) as client:
            response = await client.get("/api/qrcodes")
    """
    from primegate.main import create_app

    def _make(manager) -> AsyncClient:
        app = create_app(connection_manager=manager)
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    return _make


@pytest.fixture
def sample_record():
    """Contact info and a (tiny) base64 PNG data URL."""
    return {
        "contactInfo": {
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "+44 20 7946 0000",
        },
        "qrCodeImage": (
            "data:image/png;base64,"
            "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
        ),
    }


@pytest_asyncio.fixture
async def test_client(fake_manager, make_client):
    """
    HTTPX AsyncClient talking to an app built around fake_manager.

    ASGITransport does not run the lifespan, so no real connection is
    attempted.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    async with make_client(fake_manager) as client:
        yield client
