"""Pytest fixtures for orgstack tests."""

import logging
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
import structlog
from pydantic import SecretStr
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from orgstack.config.settings import Settings
from orgstack.core.audit import Audit, new_audit
from orgstack.core.encryption import generate_key, key_to_string
from orgstack.core.secure import CryptoRandomGenerator
from orgstack.db.config import create_session_factory
from orgstack.db.datastore import Datastore
from orgstack.db.models import Base, UserRow
from orgstack.db.repositories import AppRepository, UserRepository
from orgstack.db.schemas import FullGenesisResponse
from orgstack.services import ServiceRegistry, create_services
from orgstack.services.common import app_from_row, user_from_rows

# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    logging.getLogger().handlers.clear()


# =============================================================================
# Settings and keys
# =============================================================================


@pytest.fixture
def encryption_key() -> bytes:
    """A fresh 32-byte API key encryption key."""
    return generate_key()


@pytest.fixture
def test_settings(encryption_key: bytes) -> Settings:
    """Create settings for service testing."""
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        ENVIRONMENT="test",
        DEBUG=False,
        log_level="DEBUG",
        ENCRYPTION_KEY=SecretStr(key_to_string(encryption_key)),
    )


@pytest.fixture
def key_generator() -> CryptoRandomGenerator:
    return CryptoRandomGenerator()


@pytest.fixture
def seed_request() -> dict[str, str]:
    """Seed user details for the genesis bootstrap."""
    return {
        "seed_username": "root",
        "seed_user_first_name": "Otto",
        "seed_user_last_name": "Maddox",
    }


# =============================================================================
# Database fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a per-test in-memory SQLite engine with the schema applied."""
    # One shared connection so every session sees the same in-memory database
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest.fixture
def datastore(session_factory: async_sessionmaker[AsyncSession]) -> Datastore:
    return Datastore(session_factory)


@pytest.fixture
def services(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
    encryption_key: bytes,
) -> ServiceRegistry:
    """All services wired to the test database."""
    return create_services(session_factory, test_settings, encryption_key=encryption_key)


@pytest_asyncio.fixture
async def seeded(services: ServiceRegistry, seed_request: dict[str, str]) -> FullGenesisResponse:
    """Run the genesis bootstrap on the empty test database."""
    return await services.genesis.seed(seed_request)


@pytest_asyncio.fixture
async def actor_audit(services: ServiceRegistry, seeded: FullGenesisResponse) -> Audit:
    """Audit for mutations performed by the genesis app and seed user."""
    async with services.datastore.session() as session:
        app_row = await AppRepository(session).find_by_extl_id(seeded.genesis.app.external_id)
        user_row = await UserRepository(session).first(
            UserRow.org_id == app_row.org_id,
            UserRow.username == seeded.genesis.user.username,
        )
        users = await UserRepository(session).find_with_profiles({user_row.user_id})

    return new_audit(
        app_from_row(app_row),
        user_from_rows(*users[user_row.user_id]),
        datetime.now(UTC),
    )
