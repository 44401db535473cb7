import pytest
import random
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from stockaudit.main import app
from stockaudit.core.database import get_async_session
from stockaudit.core.locks import KeyedLockRegistry
from stockaudit.db.init_db import create_tables

# Fresh in-memory database per test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

USER_ID = 1
OTHER_USER_ID = 2

@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()

@pytest.fixture
async def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session

@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Create test client bound to the per-test database"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    app.state.locks = KeyedLockRegistry()
    app.state.schedule_rng = random.Random(1234)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-Id": str(USER_ID)}
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.schedule_rng = None

@pytest.fixture
def other_user_headers() -> dict:
    return {"X-User-Id": str(OTHER_USER_ID)}
