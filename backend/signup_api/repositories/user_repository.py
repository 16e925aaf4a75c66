"""Repository for User CRUD operations.

Provides database access for the users table. The verified flag has its
own idempotent setter and is not reachable through any generic
update path.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.models.user import User


class UserRepository:
    """Stateless repository for User table operations.

    All methods are static; there is no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
        """Fetch a user by primary key.

        Args:
            db: Async database session.
            user_id: UUID primary key.

        Returns:
            User if found, None otherwise.
        """
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Fetch a user by email address (case-insensitive).

        Args:
            db: Async database session.
            email: Email address to look up.

        Returns:
            User if found, None otherwise.
        """
        stmt = select(User).where(User.email == email.strip().lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        name: str | None = None,
    ) -> User:
        """Create a new, unverified user.

        Email is normalized to lowercase before storage.

        Args:
            db: Async database session.
            email: User email address.
            name: Display name.

        Returns:
            Created User with database-generated fields populated.

        Raises:
            sqlalchemy.exc.IntegrityError: If email already exists.
        """
        user = User(
            email=email.strip().lower(),
            name=name,
            email_verified=False,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def mark_email_verified(db: AsyncSession, user_id: uuid.UUID) -> bool:
        """Flip email_verified to True.

        Idempotent: the UPDATE only touches rows still unverified, so a
        second call (or a concurrent duplicate) changes nothing and keeps
        the original email_verified_at.

        Args:
            db: Async database session.
            user_id: UUID of the user.

        Returns:
            True if this call performed the transition, False if the user
            was already verified or does not exist.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.email_verified.is_(False))
            .values(email_verified=True, email_verified_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count > 0
