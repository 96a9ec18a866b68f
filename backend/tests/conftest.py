"""Shared fixtures: in-memory database, settings and an ASGI test client."""

from __future__ import annotations

import json
import os
from collections.abc import AsyncGenerator

# Keep the app's module-level engine off the developer database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from recap.config import Settings, get_settings
from recap.database import Base, get_db
from recap.main import app


BOB_EXTRACTION = json.dumps(
    {
        "Meeting Name": "Launch sync",
        "Description": "Weekly launch check-in",
        "Summary": "The team agreed to ship on Friday. Bob owns the release doc.",
        "Tasks": [{"description": "Write the release doc", "owner": "Bob", "due_date": "2025-06-11"}],
        "Decisions": [{"description": "Ship on Friday", "date": "2025-06-13"}],
    }
)

BOB_TRANSCRIPT = "We agreed to ship Friday. Bob will write the doc by Wed."


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="test-openai-key",
        upload_dir=tmp_path / "uploads",
    )


@pytest_asyncio.fixture
async def client(session_maker, settings) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with database and settings overridden."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
