"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool, Pool

from rentaldesk.app.main import app
from rentaldesk.app.db.session import get_db, Base
from rentaldesk.app.core.security import get_password_hash
from rentaldesk.app.models.enums import UserRole, UserStatus, DEFAULT_WORKER_PERMISSIONS
from rentaldesk.app.models.user import User
import rentaldesk.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_PASSWORD = "admin123"
WORKER_PASSWORD = "worker123"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
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

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        return await self.set(key, value, ex=ttl)

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


@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Next test opens a fresh connection on its own event loop
    await engine.dispose()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def create_user(db_session, username, password, role, email=None, permissions=None, status=UserStatus.ACTIVE):
    user = User(
        username=username,
        email=email or f"{username}@test.com",
        full_name=username.title(),
        hashed_password=get_password_hash(password),
        role=role,
        status=status,
        permissions=permissions if permissions is not None else [],
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def login(client, username, password):
    response = await client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_user(db_session):
    return await create_user(db_session, "admin", ADMIN_PASSWORD, UserRole.ADMIN)


@pytest.fixture
async def worker_user(db_session):
    return await create_user(
        db_session, "worker", WORKER_PASSWORD, UserRole.WORKER,
        permissions=[p.value for p in DEFAULT_WORKER_PERMISSIONS],
    )


@pytest.fixture
async def admin_headers(client, admin_user):
    return auth_headers(await login(client, "admin", ADMIN_PASSWORD))


@pytest.fixture
async def worker_headers(client, worker_user):
    return auth_headers(await login(client, "worker", WORKER_PASSWORD))


@pytest.fixture
async def vehicle(client, admin_headers):
    response = await client.post("/api/vehicles", json={
        "type": "scooter",
        "model": "Activa 6G",
        "number_plate": "KA01AB1234",
        "daily_rate": 500,
    }, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


def booking_payload(vehicle_id, phone="9876543210", start="2026-03-01T10:00:00", end="2026-03-03T10:00:00", **extra):
    payload = {
        "vehicle_id": vehicle_id,
        "start_date": start,
        "end_date": end,
        "pricing": {"base_price": 1000, "security_deposit": 500, "total_amount": 1000},
        "payment_method": "cash",
        "customer_details": {
            "full_name": "Ravi Kumar",
            "phone": phone,
            "email": "ravi@test.com",
            "city": "Bengaluru",
        },
    }
    payload.update(extra)
    return payload


@pytest.fixture
async def booking(client, admin_headers, vehicle):
    response = await client.post("/api/bookings", json=booking_payload(vehicle["id"]), headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["booking"]
