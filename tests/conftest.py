"""Pytest configuration and fixtures."""

import os

os.environ["TASKBOARD_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TASKBOARD_RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from taskboard.config import get_settings

get_settings.cache_clear()

from taskboard.models import Base
from taskboard.main import create_app
from taskboard.database import get_db
from taskboard.services.category_ledger import CategoryLedger

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_session(session_maker):
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
async def work_category(test_session):
    """A category owned by USER_ID."""
    category = await CategoryLedger(test_session).create_category(USER_ID, "Work", "#1E90FF")
    await test_session.commit()
    return category


@pytest.fixture
async def client(session_maker):
    """Create a test client with overridden database, acting as USER_ID."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": USER_ID},
    ) as ac:
        yield ac
