"""Storage call guard.

Bounds every record-store call by ``settings.storage_timeout_seconds`` and
turns driver/ORM failures into StorageError, so orchestration code sees a
single infrastructure error kind and nothing is retried silently.

Usage:
    async with storage_guard("verification.put"):
        await VerificationRepository.upsert(db, ...)
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError

from signup_api.core.config import settings
from signup_api.core.errors import StorageError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def storage_guard(operation: str) -> AsyncIterator[None]:
    """Run a block of storage calls under a timeout with error mapping.

    Args:
        operation: Short label for logs (e.g., "verification.get").

    Yields:
        None.

    Raises:
        StorageError: On timeout or any SQLAlchemy error raised inside
            the block.
    """
    try:
        async with asyncio.timeout(settings.storage_timeout_seconds):
            yield
    except TimeoutError as exc:
        logger.error("Storage operation %s timed out", operation)
        raise StorageError() from exc
    except SQLAlchemyError as exc:
        logger.error("Storage operation %s failed: %s", operation, type(exc).__name__)
        raise StorageError() from exc
