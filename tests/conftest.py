"""
Pytest configuration and shared fixtures for REALM_STORE tests.

This module provides:
- Identities and per-test resets
- In-memory stand-ins for Motor (MongoDB) and the CouchDB HTTP API
- Bound store fixtures for both backends
- Testcontainers fixtures for integration tests
"""

import copy
import json
import uuid
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorCollection

from realm_store import (CouchBackend, Identity, MongoBackend, RequestContext,
                         Store)
from realm_store.observability import get_metrics_collector


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: tests that need a real database")


# ============================================================================
# IDENTITY FIXTURES
# ============================================================================


@pytest.fixture
def user() -> Identity:
    return Identity(id=uuid.UUID("6f1c8f0e-2a6b-4f7e-9a59-3c1b9c6a0d11"), realm="skytala")


@pytest.fixture
def other_user() -> Identity:
    return Identity(id=uuid.UUID("0b7e3f4a-9d2c-4e11-8f5b-7a6c2d1e9f00"), realm="othertenant")


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start every test with an empty global metrics collector."""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Clear DB_* variables so tests never pick up a developer's setup."""
    for var in (
        "DB_HOST",
        "DB_PORT",
        "DB_PROTOCOL",
        "DB_USER",
        "DB_PASSWORD",
        "DB_BACKEND",
        "DB_URI",
        "DB_TIMEOUT_MS",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


# ============================================================================
# SELECTOR MATCHING (shared by both fakes)
# ============================================================================


def matches(doc: Dict[str, Any], selector: Dict[str, Any]) -> bool:
    """Evaluate the subset of Mongo/Mango selectors the store produces."""
    for field, cond in selector.items():
        if field == "$and":
            if not all(matches(doc, clause) for clause in cond):
                return False
        elif isinstance(cond, dict) and "$eq" in cond:
            if field not in doc or doc[field] != cond["$eq"]:
                return False
        elif doc.get(field) != cond:
            return False
    return True


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def make_fake_collection(name: str) -> MagicMock:
    """
    A Motor collection mock backed by a dict keyed on ``_id``.

    Only ``replace_one`` (upsert) and ``find(...).to_list`` are implemented,
    which is what the MongoDB backend uses.
    """
    collection = MagicMock(spec=AsyncIOMotorCollection)
    collection.name = name
    collection.docs = {}

    async def replace_one(filter, replacement, upsert=False):
        key = filter["_id"]
        if key not in collection.docs and not upsert:
            return MagicMock(matched_count=0, modified_count=0, upserted_id=None)
        existed = key in collection.docs
        collection.docs[key] = {**copy.deepcopy(replacement), "_id": key}
        return MagicMock(
            matched_count=int(existed),
            modified_count=int(existed),
            upserted_id=None if existed else key,
        )

    def find(selector=None, *args, **kwargs):
        rows = [copy.deepcopy(d) for d in collection.docs.values() if matches(d, selector or {})]
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=rows)
        return cursor

    collection.replace_one = AsyncMock(side_effect=replace_one)
    collection.find = MagicMock(side_effect=find)
    return collection


class FakeMongoDatabase:
    def __init__(self, name: str):
        self.name = name
        self.collections: Dict[str, MagicMock] = {}

    def __getitem__(self, name: str) -> MagicMock:
        if name not in self.collections:
            self.collections[name] = make_fake_collection(name)
        return self.collections[name]


class FakeMongoClient:
    """Stands in for AsyncIOMotorClient: databases created on access."""

    def __init__(self):
        self.databases: Dict[str, FakeMongoDatabase] = {}
        self.admin = MagicMock()
        self.admin.command = AsyncMock(return_value={"ok": 1})
        self.close = MagicMock()

    def __getitem__(self, name: str) -> FakeMongoDatabase:
        if name not in self.databases:
            self.databases[name] = FakeMongoDatabase(name)
        return self.databases[name]


@pytest.fixture
def mock_mongo_client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def mongo_store(mock_mongo_client) -> Store:
    return Store(MongoBackend("mongodb://localhost:27017", client=mock_mongo_client))


@pytest.fixture
def mongo_bound(mongo_store, user):
    return mongo_store.bind(RequestContext(), user)


# ============================================================================
# MOCK COUCHDB FIXTURES
# ============================================================================


class FakeCouchDB:
    """
    In-memory CouchDB speaking the subset of the HTTP API the backend uses.

    Use ``handler`` as an ``httpx.MockTransport`` handler.
    """

    def __init__(self):
        self.databases: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.requests: List[httpx.Request] = []
        self.fail_find_with: Optional[int] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = [p for p in request.url.path.split("/") if p]

        if request.method == "GET" and not parts:
            return httpx.Response(200, json={"couchdb": "Welcome"})

        if request.method == "PUT" and len(parts) == 1:
            if parts[0] in self.databases:
                return httpx.Response(
                    412, json={"error": "file_exists", "reason": "The database could not be created"}
                )
            self.databases[parts[0]] = {}
            return httpx.Response(201, json={"ok": True})

        db = self.databases.get(parts[0]) if parts else None
        if db is None:
            return httpx.Response(404, json={"error": "not_found", "reason": "Database does not exist."})

        if request.method == "PUT" and len(parts) == 2:
            return self._put_document(db, parts[1], json.loads(request.content))

        if request.method == "POST" and parts[1:] == ["_find"]:
            if self.fail_find_with:
                return httpx.Response(
                    self.fail_find_with, json={"error": "boom", "reason": "find failed"}
                )
            return self._find(db, json.loads(request.content))

        return httpx.Response(400, json={"error": "bad_request", "reason": "unsupported"})

    def _put_document(self, db, doc_id: str, body: Dict[str, Any]) -> httpx.Response:
        current = db.get(doc_id)
        if current is not None and body.get("_rev") != current["_rev"]:
            return httpx.Response(409, json={"error": "conflict", "reason": "Document update conflict."})
        if current is None and body.get("_rev"):
            return httpx.Response(409, json={"error": "conflict", "reason": "Document update conflict."})
        generation = int(current["_rev"].split("-")[0]) + 1 if current else 1
        rev = f"{generation}-{uuid.uuid4().hex}"
        db[doc_id] = {**body, "_id": doc_id, "_rev": rev}
        return httpx.Response(201, json={"ok": True, "id": doc_id, "rev": rev})

    def _find(self, db, payload: Dict[str, Any]) -> httpx.Response:
        rows = [copy.deepcopy(d) for d in db.values() if matches(d, payload["selector"])]
        offset = int(payload.get("bookmark") or 0)
        limit = payload.get("limit", 25)
        page = rows[offset : offset + limit]
        return httpx.Response(200, json={"docs": page, "bookmark": str(offset + len(page))})


@pytest.fixture
def fake_couch() -> FakeCouchDB:
    return FakeCouchDB()


@pytest_asyncio.fixture
async def couch_store(fake_couch):
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(fake_couch.handler), base_url="http://couch.test"
    )
    store = Store(CouchBackend("http://couch.test", client=client))
    yield store
    await store.close()


@pytest.fixture
def couch_bound(couch_store, user):
    return couch_store.bind(RequestContext(), user)


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start a MongoDB container for integration tests.

    Session-scoped: the container starts once and is reused.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    container = MongoDbContainer(image="mongo:7.0", username="admin", password="admin")
    try:
        container.start()
    except Exception as e:  # noqa: BLE001 - no Docker daemon available
        pytest.skip(f"Could not start MongoDB container: {e}")
    yield container
    container.stop()


@pytest_asyncio.fixture
async def real_mongo_store(mongodb_container):
    """A Store connected to the test container; closed after the test."""
    store = Store.from_env(
        {
            "DB_PROTOCOL": "mongodb",
            "DB_HOST": mongodb_container.get_container_host_ip(),
            "DB_PORT": str(mongodb_container.get_exposed_port(27017)),
            "DB_USER": "admin",
            "DB_PASSWORD": "admin",
        }
    )
    await store.ping()
    yield store
    await store.close()
