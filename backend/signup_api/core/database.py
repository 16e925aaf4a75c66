"""Async database engine and session management.

One engine per process. ``session_scope`` is the unit of work shared by
the request dependency and the maintenance scripts: it commits when the
block succeeds and rolls back when it raises.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from signup_api.core.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.environment == "development",
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session and commit it on success, roll back on error.

    Flows that commit explicitly (after storing a code, before emailing it)
    leave nothing pending, so the final commit is then a no-op.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a request-scoped database session."""
    async with session_scope() as session:
        yield session
