"""SQL-backed passcode store.

Implements VerificationCodeStore on top of VerificationRepository. Every
call runs under storage_guard, so timeouts and database failures surface
as StorageError.
"""

from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.core.storage import storage_guard
from signup_api.repositories.verification_repository import VerificationRepository
from signup_api.services.verification import VerificationRecord


class SqlVerificationCodeStore:
    """Passcode store bound to one request's database session.

    Writes are flushed but not committed; the owning flow commits.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize with a database session.

        Args:
            db: Async database session.
        """
        self._db = db

    async def put(self, identifier: str, value: str, ttl: timedelta) -> None:
        """Store a passcode hash, replacing any prior one (upsert)."""
        async with storage_guard("verification.put"):
            await VerificationRepository.upsert(
                self._db,
                identifier=identifier,
                value=value,
                expires_at=datetime.now(UTC) + ttl,
            )

    async def get(self, identifier: str) -> VerificationRecord | None:
        """Return the live record, or None if absent or expired."""
        async with storage_guard("verification.get"):
            row = await VerificationRepository.get_active(
                self._db, identifier=identifier
            )
        if row is None:
            return None
        return VerificationRecord(
            identifier=row.identifier,
            value=row.value,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )

    async def delete(self, identifier: str) -> None:
        """Delete the record for an identifier (idempotent)."""
        async with storage_guard("verification.delete"):
            await VerificationRepository.delete(self._db, identifier=identifier)

    async def delete_if_matches(self, identifier: str, value: str) -> bool:
        """Delete the record only if it still holds ``value``."""
        async with storage_guard("verification.delete_if_matches"):
            return await VerificationRepository.delete_if_value(
                self._db, identifier=identifier, value=value
            )
