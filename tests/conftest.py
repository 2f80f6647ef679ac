"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os

# Set the environment before any app imports: disables rate limiting,
# points the engine at in-memory SQLite and keeps argon2 cheap.
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-identity-service-0123456789")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("RESEND_API_KEY", "")

# ruff: noqa: E402 - Imports must be after env var setup
from unittest.mock import AsyncMock

import pytest

from src.identity.core.config import get_settings
from src.identity.core.shutdown import request_tracker
from tests.fakes import FakeDatabase, RecordingEmailSender

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_request_tracker():
    request_tracker.reset()
    yield
    request_tracker.reset()


@pytest.fixture
def fake_db() -> FakeDatabase:
    """In-memory stand-in for the accounts and auth_sessions tables."""
    return FakeDatabase()


@pytest.fixture
def mock_session() -> AsyncMock:
    """AsyncSession double; services only commit and roll back through it."""
    session = AsyncMock()
    session.add = lambda entity: None
    return session


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()
