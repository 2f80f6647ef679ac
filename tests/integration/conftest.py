"""Integration test fixtures for database and HTTP client operations.

Tables are created in a fresh in-memory SQLite database per test and the
app is driven over httpx's ASGI transport.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from src.identity.api.dependencies import get_db_session
from src.identity.core.notifications import get_email_sender
from src.identity.main import create_app
from src.identity.models import Account
from tests.factories import AccountFactory
from tests.fakes import RecordingEmailSender


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session for arranging and inspecting data.

    Tests must call ``commit()`` to make rows visible to the app.
    """
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def app(engine: AsyncEngine, email_sender: RecordingEmailSender) -> FastAPI:
    app = create_app()

    async def _get_test_session() -> AsyncGenerator[AsyncSession]:
        async with AsyncSession(engine, expire_on_commit=False, autoflush=False) as session:
            yield session

    app.dependency_overrides[get_db_session] = _get_test_session
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def verified_account(db_session: AsyncSession) -> Account:
    account = AccountFactory.build(email="verified@example.com", full_name="Verified User")
    db_session.add(account)
    await db_session.commit()
    return account
