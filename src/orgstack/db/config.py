"""Database engine, session factory and schema migration configuration."""

from collections.abc import Callable
from functools import lru_cache
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from orgstack.config.settings import Settings, get_settings

# Alembic scripts live at the repository root, next to src/
MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create an async engine configured from settings.

    The test environment uses NullPool so connections never outlive a test.
    """
    if settings.ENVIRONMENT == "test":
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            poolclass=NullPool,
        )
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the process-wide engine built from cached settings."""
    return create_engine_from_settings(get_settings())


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose sessions keep loaded state after commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Verify connectivity before accepting work."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))


def _alembic_config(script_location: Path) -> Config:
    config = Config()
    config.set_main_option("script_location", str(script_location))
    return config


def _run_alembic(
    connection: Connection,
    command_fn: Callable[[Config, str], None],
    revision: str,
    script_location: Path,
) -> None:
    config = _alembic_config(script_location)
    config.attributes["connection"] = connection
    command_fn(config, revision)


async def upgrade_schema(
    engine: AsyncEngine | None = None,
    revision: str = "head",
    script_location: Path = MIGRATIONS_DIR,
) -> None:
    """Apply migrations up to ``revision`` on the engine's database."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(_run_alembic, command.upgrade, revision, script_location)


async def downgrade_schema(
    engine: AsyncEngine | None = None,
    revision: str = "base",
    script_location: Path = MIGRATIONS_DIR,
) -> None:
    """Revert migrations down to ``revision``."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(_run_alembic, command.downgrade, revision, script_location)


async def close_db(engine: AsyncEngine | None = None) -> None:
    """Release all pooled connections."""
    engine = engine or get_engine()
    await engine.dispose()
