"""
Centralized Test Configuration.
"""

import json
from datetime import datetime, timezone

import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from admin_console.app.main import app
from admin_console.app.db.session import get_db, Base
from admin_console.app.core.mutation_guard import OrderMutationGuard, get_mutation_guard
from admin_console.app.services.commerce_client import CommerceApiClient, get_commerce_client
from admin_console.app.services.tracking_store import TrackingStore, get_tracking_store
import admin_console.app.core.mutation_guard as mutation_guard_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
COMMERCE_BASE_URL = "https://commerce.test/v1"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None, nx=False):
        if self._closed:
            return False
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FakeCommerceApi:
    """In-process stand-in for the remote order / tracking service."""

    def __init__(self):
        self.orders = {}
        self.tracking = {}
        self.calls = []
        self._failures = {}

    # Seeding helpers

    def add_order(self, order_id, payment_status="paid", payment_method="online"):
        self.orders[order_id] = {
            "_id": order_id,
            "orderNumber": f"ORD-{order_id.upper()}",
            "paymentStatus": payment_status,
            "paymentMethod": payment_method,
            "items": [{"name": "Desk lamp", "quantity": 1}],
            "shippingAddress": {"name": "Test Customer", "city": "Dubai"},
            "createdAt": _now(),
        }
        return self.orders[order_id]

    def add_tracking(self, order_id, status="order_placed", carrier="DHL",
                     tracking_number="DHL123456", history=None):
        if history is None:
            history = [{"status": status, "notes": "seeded", "timestamp": _now()}]
        self.tracking[order_id] = {
            "_id": f"trk_{order_id}",
            "orderId": order_id,
            "carrier": carrier,
            "trackingNumber": tracking_number,
            "trackingUrl": None,
            "status": status,
            "statusHistory": history,
            "createdAt": _now(),
            "updatedAt": _now(),
        }
        return self.tracking[order_id]

    def fail_next(self, method, status_code, message=None):
        """Make the next call with this HTTP method fail."""
        body = {"success": False}
        if message is not None:
            body["message"] = message
        self._failures[method] = (status_code, body)

    def calls_for(self, method):
        return [c for c in self.calls if c[0] == method]

    # Transport

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path.removeprefix("/v1")
        body = json.loads(request.content) if request.content else None
        self.calls.append((method, path, body))

        if method in self._failures:
            status_code, payload = self._failures.pop(method)
            return httpx.Response(status_code, json=payload)

        parts = path.strip("/").split("/")

        if method == "GET" and parts[0] == "orders" and len(parts) == 2:
            order = self.orders.get(parts[1])
            if order is None:
                return httpx.Response(404, json={"success": False, "message": "Order not found"})
            return httpx.Response(200, json={"success": True, "data": order})

        if method == "GET" and parts[:2] == ["tracking", "order"] and len(parts) == 3:
            record = self.tracking.get(parts[2])
            if record is None:
                return httpx.Response(404, json={"success": False, "message": "Tracking not found"})
            return httpx.Response(200, json={"success": True, "data": record})

        if method == "POST" and parts == ["tracking-details"]:
            order_id = body["orderId"]
            if order_id in self.tracking:
                return httpx.Response(400, json={"success": False, "message": "Tracking already exists for this order"})
            record = self.add_tracking(
                order_id,
                carrier=body["carrier"],
                tracking_number=body["trackingNumber"],
                history=[],
            )
            record["trackingUrl"] = body.get("trackingUrl")
            return httpx.Response(201, json={"success": True, "data": record})

        if method == "PATCH" and parts[:2] == ["tracking", "order"] and parts[-1] == "status":
            record = self.tracking[parts[2]]
            record["status"] = body["status"]
            record["statusHistory"].append(
                {"status": body["status"], "notes": body["notes"], "timestamp": _now()}
            )
            record["updatedAt"] = _now()
            return httpx.Response(200, json={"success": True, "data": record})

        if method == "POST" and parts[:2] == ["tracking", "order"] and parts[-1] == "reset":
            record = self.tracking[parts[2]]
            record["status"] = "order_placed"
            record["statusHistory"].append(
                {"status": "order_placed", "notes": "Tracking reset", "timestamp": _now()}
            )
            record["updatedAt"] = _now()
            return httpx.Response(200, json={"success": True, "data": record})

        return httpx.Response(404, json={"success": False, "message": "Route not found"})


@pytest.fixture
def fake_api():
    api = FakeCommerceApi()
    api.add_order("ord_paid", payment_status="paid", payment_method="online")
    api.add_order("ord_unpaid", payment_status="unpaid", payment_method="online")
    api.add_order("ord_cod", payment_status="unpaid", payment_method="cash_on_delivery")
    return api


@pytest.fixture
async def commerce_client(fake_api):
    client = CommerceApiClient(
        base_url=COMMERCE_BASE_URL,
        token="test-token",
        transport=httpx.MockTransport(fake_api.handler),
    )
    yield client
    await client.aclose()


@pytest.fixture
def tracking_store():
    return TrackingStore()


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def mutation_guard(mock_redis):
    return OrderMutationGuard(mock_redis, ttl_seconds=30)


@pytest.fixture(autouse=True)
def apply_overrides(mock_redis, commerce_client, tracking_store, mutation_guard):
    """Point the app at the in-memory database, fake commerce API and mock Redis."""
    original_client = mutation_guard_module.redis_client
    mutation_guard_module.redis_client = mock_redis

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_commerce_client():
        return commerce_client

    async def override_get_tracking_store():
        return tracking_store

    async def override_get_mutation_guard():
        return mutation_guard

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_commerce_client] = override_get_commerce_client
    app.dependency_overrides[get_tracking_store] = override_get_tracking_store
    app.dependency_overrides[get_mutation_guard] = override_get_mutation_guard
    yield

    # Restore and clear
    app.dependency_overrides = {}
    mutation_guard_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session
