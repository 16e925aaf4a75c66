"""Repository for Credential CRUD operations.

Provides database access for the credentials table.
Follows the repository pattern established by UserRepository.
"""

import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.models.credential import PASSWORD_PROVIDER, Credential


class CredentialRepository:
    """Stateless repository for Credential table operations.

    All methods are static; there is no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def create_password(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        email: str,
        password_hash: str,
    ) -> Credential:
        """Attach an email + password credential to a user.

        Args:
            db: Async database session.
            user_id: FK to users table.
            email: Normalized email (provider account id).
            password_hash: bcrypt hash.

        Returns:
            Created Credential.

        Raises:
            sqlalchemy.exc.IntegrityError: If a password credential already
                exists for this email.
        """
        credential = Credential(
            user_id=user_id,
            provider=PASSWORD_PROVIDER,
            provider_account_id=email,
            password_hash=password_hash,
        )
        db.add(credential)
        await db.flush()
        await db.refresh(credential)
        return credential

    @staticmethod
    async def get_password(
        db: AsyncSession, user_id: uuid.UUID
    ) -> Credential | None:
        """Fetch the password credential for a user.

        Args:
            db: Async database session.
            user_id: UUID of the user.

        Returns:
            Credential if the user has a password, None otherwise.
        """
        stmt = select(Credential).where(
            Credential.user_id == user_id,
            Credential.provider == PASSWORD_PROVIDER,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def set_password_hash(
        db: AsyncSession, user_id: uuid.UUID, password_hash: str
    ) -> bool:
        """Replace the password hash on a user's password credential.

        Args:
            db: Async database session.
            user_id: UUID of the user.
            password_hash: New bcrypt hash.

        Returns:
            True if a credential was updated, False if the user has none.
        """
        stmt = (
            update(Credential)
            .where(
                Credential.user_id == user_id,
                Credential.provider == PASSWORD_PROVIDER,
            )
            .values(password_hash=password_hash)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count > 0
