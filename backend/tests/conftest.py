import socket
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from signup_api.core.config import settings
from signup_api.core.rate_limiting import limiter
from signup_api.models import Base

# Use separate test database
TEST_DATABASE_URL = settings.database_url.replace(
    settings.database_name, f"{settings.database_name}_test"
)

# Low cost factor for fast tests
_TEST_BCRYPT_ROUNDS = 4


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on the configured host/port.
    """
    try:
        with socket.create_connection(
            (settings.database_host, settings.database_port), timeout=1
        ):
            return True
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available.

    Called by fixtures that require database connection.
    """
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            f"PostgreSQL not available on port {settings.database_port}. "
            "Start database with: docker compose up -d"
        )


@pytest.fixture(autouse=True)
def _fast_hashing_and_no_rate_limits() -> Iterator[None]:
    """Cheap bcrypt and no per-IP limits for every test.

    Rate limit enforcement has its own tests with a dedicated limiter.
    """
    original_rounds = settings.bcrypt_rounds
    original_enabled = limiter.enabled
    settings.bcrypt_rounds = _TEST_BCRYPT_ROUNDS
    limiter.enabled = False
    yield
    settings.bcrypt_rounds = original_rounds
    limiter.enabled = original_enabled


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()
