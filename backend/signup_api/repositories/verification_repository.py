"""Repository for Verification CRUD operations.

Single-use passcodes stored as keyed hashes, one row per identifier,
time-limited by ``expires_at``. Expired rows are filtered on read.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.models.verification import Verification


class VerificationRepository:
    """Stateless repository for Verification table operations.

    All methods are static; there is no instance state.
    """

    @staticmethod
    async def upsert(
        db: AsyncSession,
        *,
        identifier: str,
        value: str,
        expires_at: datetime,
    ) -> None:
        """Insert a passcode, replacing any existing row for the identifier.

        A single ``INSERT ... ON CONFLICT DO UPDATE`` statement, so there is
        no window with zero live rows and concurrent writers never produce
        duplicates (last writer wins).

        Args:
            db: Async database session.
            identifier: ``{email}:{purpose}`` key.
            value: Keyed hash of the passcode.
            expires_at: Expiry timestamp.
        """
        stmt = insert(Verification).values(
            identifier=identifier,
            value=value,
            expires_at=expires_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Verification.identifier],
            set_={
                "value": stmt.excluded.value,
                "expires_at": stmt.excluded.expires_at,
                "created_at": func.now(),
                "updated_at": func.now(),
            },
        )
        await db.execute(stmt)

    @staticmethod
    async def get_active(
        db: AsyncSession,
        *,
        identifier: str,
        now: datetime | None = None,
    ) -> Verification | None:
        """Look up the live passcode for an identifier.

        Args:
            db: Async database session.
            identifier: ``{email}:{purpose}`` key.
            now: Reference time (defaults to current UTC time).

        Returns:
            Verification if present and not expired, None otherwise.
        """
        stmt = select(Verification).where(
            Verification.identifier == identifier,
            Verification.expires_at > (now or datetime.now(UTC)),
        ).execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def delete(db: AsyncSession, *, identifier: str) -> None:
        """Delete the passcode for an identifier (no-op if absent).

        Args:
            db: Async database session.
            identifier: ``{email}:{purpose}`` key.
        """
        stmt = delete(Verification).where(Verification.identifier == identifier)
        await db.execute(stmt)

    @staticmethod
    async def delete_if_value(
        db: AsyncSession,
        *,
        identifier: str,
        value: str,
    ) -> bool:
        """Compare-and-delete: remove the row only if it still holds ``value``.

        Args:
            db: Async database session.
            identifier: ``{email}:{purpose}`` key.
            value: Keyed hash expected to be stored.

        Returns:
            True if a row was deleted, False if it was already consumed or
            superseded by a newer code.
        """
        stmt = delete(Verification).where(
            Verification.identifier == identifier,
            Verification.value == value,
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count > 0

    @staticmethod
    async def delete_expired(db: AsyncSession, *, now: datetime | None = None) -> int:
        """Delete all expired passcodes (periodic cleanup).

        Args:
            db: Async database session.
            now: Reference time (defaults to current UTC time).

        Returns:
            Number of deleted rows.
        """
        stmt = delete(Verification).where(
            Verification.expires_at <= (now or datetime.now(UTC)),
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
