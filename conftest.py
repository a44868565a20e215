import os
from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Load .env.test when present so a developer can point the suite at Postgres.
# Without it everything runs against a throwaway in-memory SQLite database.
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from libs.common.config import get_settings
from libs.db.base import Base

# Import all models so metadata includes every table
from services.attendance_service import models as _attendance_models  # noqa: F401
from services.class_bookings_service import models as _booking_models  # noqa: F401
from services.customers_service import models as _customer_models  # noqa: F401
from services.payments_service import models as _payment_models  # noqa: F401
from services.schedules_service import models as _schedule_models  # noqa: F401
from services.subscriptions_service import models as _subscription_models  # noqa: F401

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
settings = get_settings()


@pytest_asyncio.fixture
async def test_engine():
    """
    Create a fresh database for one test.

    SQLite in-memory databases live per connection, so the engine pins a
    single connection (StaticPool) and every session sees the same tables.
    """
    if settings.DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(settings.DATABASE_URL, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session configured like the application's AsyncSessionLocal.
    Operations commit on their own; the database is dropped afterwards.
    """
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    session = session_factory()

    try:
        yield session
    finally:
        await session.close()
