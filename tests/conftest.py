import os

# Must be set before the app modules read their configuration
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.dependencies import get_session, verify_telegram_authentication
from app.models.sql import Base
from app.services.currency import MepRateService
from main import app

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

MOCK_USER = {"id": "12345", "first_name": "TestUser", "username": "testuser"}

# Round number so conversions are easy to check by hand
TEST_MEP_RATE = Decimal("1000")


@pytest.fixture(autouse=True)
def mep_rate(monkeypatch):
    service = MepRateService()
    monkeypatch.setattr(service, "_rate", TEST_MEP_RATE)
    monkeypatch.setattr(service, "_last_update", None)
    return TEST_MEP_RATE


@pytest.fixture(scope="function")
async def db_engine(tmp_path):
    engine = create_async_engine(TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="function")
async def session(db_engine) -> AsyncGenerator[AsyncSession]:
    async_session_maker = async_sessionmaker(db_engine, expire_on_commit=False)
    async with async_session_maker() as session:
        yield session
        await session.close()


@pytest.fixture(scope="function")
async def client(session):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[verify_telegram_authentication] = lambda: MOCK_USER
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
