"""Shared test fixtures for the scheduling API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import Base, get_db
from app.main import app
from app.services.customers import create_customer_profile
from app.services.providers import WEEKDAY_KEYS, create_provider, create_service

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# A Monday far enough ahead that it is never "in the past"
FUTURE_MONDAY = date(2099, 1, 5)
NINE_TO_FIVE = {key: {"open": "09:00", "close": "17:00"} for key in WEEKDAY_KEYS}

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def quiet_notifications(monkeypatch):
    """No SMS during tests unless a test turns it back on."""
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture
async def provider(db):
    """Provider open 09:00-17:00 every day."""
    return await create_provider(db, name="Thandi's Salon", weekly_hours=NINE_TO_FIVE, phone="+27820000001")


@pytest_asyncio.fixture
async def service(db, provider):
    return await create_service(db, provider.id, name="Wash & Blow-dry", duration_minutes=60, price=Decimal("100.00"))


@pytest_asyncio.fixture
async def customer(db):
    return await create_customer_profile(db, name="Lerato M", phone="+27820000002", email="lerato@example.com")
