"""Physical deletion of expired passcodes.

Expired rows are already invisible to lookups, so this job only reclaims
space. Safe to run at any time and as often as desired.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.core.errors import StorageError
from signup_api.repositories.verification_repository import VerificationRepository

logger = logging.getLogger(__name__)


async def purge_expired_codes(db: AsyncSession) -> int:
    """Delete every passcode whose expiry has passed.

    The caller commits.

    Args:
        db: Database session.

    Returns:
        Number of rows deleted.

    Raises:
        StorageError: If the database operation fails.
    """
    try:
        deleted = await VerificationRepository.delete_expired(db)
    except SQLAlchemyError as exc:
        logger.error("Expired passcode cleanup failed: %s", exc)
        raise StorageError("Expired passcode cleanup failed") from exc
    logger.info("Purged %d expired passcodes", deleted)
    return deleted
