"""Account persistence port and its SQL implementation.

The signup and password-reset flows depend on the AccountStore protocol,
not on the ORM, so they can be exercised against in-memory doubles. The
SQL implementation composes UserRepository and CredentialRepository.
"""

import uuid
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.core.errors import EmailAlreadyRegisteredError
from signup_api.core.storage import storage_guard
from signup_api.models.user import User
from signup_api.repositories.credential_repository import CredentialRepository
from signup_api.repositories.user_repository import UserRepository


@dataclass(frozen=True)
class AccountRecord:
    """Snapshot of an account as seen by the verification flows.

    Attributes:
        id: Account UUID.
        email: Normalized email.
        name: Display name.
        email_verified: Whether the email has been verified.
    """

    id: uuid.UUID
    email: str
    name: str | None
    email_verified: bool


class AccountStore(Protocol):
    """Persistence port for accounts and their password credential."""

    async def get_by_email(self, email: str) -> AccountRecord | None: ...

    async def create_unverified(
        self, *, email: str, name: str, password_hash: str
    ) -> AccountRecord: ...

    async def mark_verified(self, account_id: uuid.UUID) -> bool: ...

    async def set_password(self, account_id: uuid.UUID, password_hash: str) -> None: ...


class Transaction(Protocol):
    """Commit boundary for one request's writes (AsyncSession satisfies it)."""

    async def commit(self) -> None: ...


def _to_record(user: User) -> AccountRecord:
    return AccountRecord(
        id=user.id,
        email=user.email,
        name=user.name,
        email_verified=user.email_verified,
    )


class SqlAccountStore:
    """Account store bound to one request's database session.

    Writes are flushed but not committed; the owning flow commits.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize with a database session.

        Args:
            db: Async database session.
        """
        self._db = db

    async def get_by_email(self, email: str) -> AccountRecord | None:
        """Look up an account by email (case-insensitive)."""
        async with storage_guard("account.get_by_email"):
            user = await UserRepository.get_by_email(self._db, email)
        return _to_record(user) if user else None

    async def create_unverified(
        self, *, email: str, name: str, password_hash: str
    ) -> AccountRecord:
        """Create an unverified user and its password credential.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken, including
                when a concurrent signup won the unique-constraint race.
            StorageError: On any other storage failure.
        """
        async with storage_guard("account.create"):
            try:
                user = await UserRepository.create(self._db, email=email, name=name)
                await CredentialRepository.create_password(
                    self._db,
                    user_id=user.id,
                    email=user.email,
                    password_hash=password_hash,
                )
            except IntegrityError as exc:
                await self._db.rollback()
                raise EmailAlreadyRegisteredError() from exc
        return _to_record(user)

    async def mark_verified(self, account_id: uuid.UUID) -> bool:
        """Set email_verified (no-op if already verified)."""
        async with storage_guard("account.mark_verified"):
            return await UserRepository.mark_email_verified(self._db, account_id)

    async def set_password(self, account_id: uuid.UUID, password_hash: str) -> None:
        """Replace the password hash, creating the credential if missing."""
        async with storage_guard("account.set_password"):
            updated = await CredentialRepository.set_password_hash(
                self._db, account_id, password_hash
            )
            if not updated:
                user = await UserRepository.get_by_id(self._db, account_id)
                if user is not None:
                    await CredentialRepository.create_password(
                        self._db,
                        user_id=user.id,
                        email=user.email,
                        password_hash=password_hash,
                    )
