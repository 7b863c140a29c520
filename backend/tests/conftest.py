"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.redis_client import get_redis
from backend.app.core.reliability import gateway_circuit_breaker
from backend.app.domain.payments.fake_gateway import FakeGateway
from backend.app.domain.payments.gateway_factory import get_payment_gateway
from backend.app.models.enums import UserRole
from backend.app.models.rider import Rider
from backend.app.models.rider_enums import RiderStatus, RiderWorkStatus
from backend.app.models.user import User
from backend.tests.factories import ADMIN_EMAIL, parcel_payload

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


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


@pytest.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, mock_redis, fake_gateway):
    """Point the app at the per-test database, Redis and gateway."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway
    gateway_circuit_breaker.reset_state()

    yield

    app.dependency_overrides = {}
    gateway_circuit_breaker.reset_state()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def admin_user(db_session):
    user = User(email=ADMIN_EMAIL, display_name="Admin", role=UserRole.ADMIN)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def approved_rider(db_session):
    rider = Rider(
        name="Rafi Rider",
        email="rider@example.com",
        phone="01700000000",
        region="Dhaka",
        district="Dhaka",
        status=RiderStatus.APPROVED,
        work_status=RiderWorkStatus.AVAILABLE,
    )
    db_session.add(rider)
    await db_session.commit()
    await db_session.refresh(rider)
    return rider


@pytest.fixture
async def created_parcel(client):
    response = await client.post("/v1/parcels", json=parcel_payload())
    assert response.status_code == 201
    return response.json()
