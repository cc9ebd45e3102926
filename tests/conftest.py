import os

# Must be set before rap_dashboard.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LINKEDIN_WEBHOOK_SECRET"] = ""
os.environ["INSIGHT_SCHEDULER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, Session
from sqlmodel.ext.asyncio.session import AsyncSession

import rap_dashboard.models  # noqa: F401  registers tables
from rap_dashboard.config import Settings
from rap_dashboard.database import get_session
from rap_dashboard.api.deps import get_settings


@pytest.fixture()
def db_path(tmp_path):
    """SQLite file with the full schema.

    A file database with NullPool gives every event loop its own
    connection, so the TestClient loop and pytest-asyncio loops can share it.
    """
    path = tmp_path / "rap_dashboard.db"
    engine = create_engine(f"sqlite:///{path}")
    SQLModel.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture()
def sync_session(db_path):
    """Synchronous session for seeding and inspecting the test database."""
    engine = create_engine(f"sqlite:///{db_path}")
    with Session(engine, expire_on_commit=False) as session:
        yield session
    engine.dispose()


@pytest.fixture()
def async_engine(db_path):
    return create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)


@pytest.fixture()
async def session(async_engine):
    async with AsyncSession(async_engine, expire_on_commit=False) as s:
        yield s
    await async_engine.dispose()


@pytest.fixture()
def test_settings():
    return Settings(
        LINKEDIN_WEBHOOK_SECRET="",
        WEBHOOK_SIGNATURE_POLICY="permissive",
        ENUM_VALIDATION="permissive",
    )


@pytest.fixture()
def client(async_engine, test_settings):
    """FastAPI TestClient wired to the test database and settings."""
    from rap_dashboard.main import app

    async def override_get_session():
        async with AsyncSession(async_engine, expire_on_commit=False) as s:
            yield s

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = lambda: test_settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
