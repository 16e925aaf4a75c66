"""In-memory doubles for the store, mailer and transaction ports.

Service and API tests use these instead of PostgreSQL and Resend.
"""

import uuid
from datetime import UTC, datetime, timedelta

from signup_api.core.email import EmailMessage
from signup_api.core.errors import (
    DeliveryError,
    EmailAlreadyRegisteredError,
    StorageError,
)
from signup_api.services.account_store import AccountRecord
from signup_api.services.verification import VerificationRecord


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class InMemoryVerificationCodeStore:
    """Dict-backed passcode store with lazy expiry against a FakeClock.

    Set ``fail_with`` to make every call raise (e.g. StorageError()).
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock or FakeClock()
        self.records: dict[str, VerificationRecord] = {}
        self.fail_with: Exception | None = None
        self.puts = 0

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _live(self, identifier: str) -> VerificationRecord | None:
        record = self.records.get(identifier)
        if record is None or record.expires_at <= self.clock.now:
            return None
        return record

    async def put(self, identifier: str, value: str, ttl: timedelta) -> None:
        self._check()
        self.puts += 1
        self.records[identifier] = VerificationRecord(
            identifier=identifier,
            value=value,
            created_at=self.clock.now,
            expires_at=self.clock.now + ttl,
        )

    async def get(self, identifier: str) -> VerificationRecord | None:
        self._check()
        return self._live(identifier)

    async def delete(self, identifier: str) -> None:
        self._check()
        self.records.pop(identifier, None)

    async def delete_if_matches(self, identifier: str, value: str) -> bool:
        self._check()
        record = self.records.get(identifier)
        if record is None or record.value != value:
            return False
        del self.records[identifier]
        return True


class InMemoryAccountStore:
    """Dict-backed account store keyed by normalized email."""

    def __init__(self) -> None:
        self.accounts: dict[str, AccountRecord] = {}
        self.password_hashes: dict[uuid.UUID, str] = {}
        self.fail_with: Exception | None = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def add(
        self,
        email: str,
        *,
        name: str | None = "Test User",
        verified: bool = False,
        password_hash: str = "hash",
    ) -> AccountRecord:
        """Seed an account directly."""
        record = AccountRecord(
            id=uuid.uuid4(), email=email, name=name, email_verified=verified
        )
        self.accounts[email] = record
        self.password_hashes[record.id] = password_hash
        return record

    async def get_by_email(self, email: str) -> AccountRecord | None:
        self._check()
        return self.accounts.get(email.strip().lower())

    async def create_unverified(
        self, *, email: str, name: str, password_hash: str
    ) -> AccountRecord:
        self._check()
        if email in self.accounts:
            raise EmailAlreadyRegisteredError()
        return self.add(email, name=name, password_hash=password_hash)

    async def mark_verified(self, account_id: uuid.UUID) -> bool:
        self._check()
        for email, record in self.accounts.items():
            if record.id == account_id:
                if record.email_verified:
                    return False
                self.accounts[email] = AccountRecord(
                    id=record.id,
                    email=record.email,
                    name=record.name,
                    email_verified=True,
                )
                return True
        return False

    async def set_password(self, account_id: uuid.UUID, password_hash: str) -> None:
        self._check()
        self.password_hashes[account_id] = password_hash

    def remove(self, email: str) -> None:
        """Delete an account out of band (e.g. by an admin)."""
        record = self.accounts.pop(email)
        self.password_hashes.pop(record.id, None)


class RecordingMailer:
    """Mailer that keeps every message it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.sent.append(message)


class FailingMailer:
    """Mailer whose provider always rejects the message."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, message: EmailMessage) -> None:  # noqa: ARG002
        self.attempts += 1
        raise DeliveryError()


class RecordingTransaction:
    """Counts commits and snapshots the accounts each commit made durable.

    The in-memory stores write immediately, so ``committed_accounts`` is
    what a rollback at the end of the request would leave behind.
    """

    def __init__(self, accounts: "InMemoryAccountStore | None" = None) -> None:
        self.commits = 0
        self._accounts = accounts
        self.committed_accounts: dict[str, AccountRecord] = {}

    async def commit(self) -> None:
        self.commits += 1
        if self._accounts is not None:
            self.committed_accounts = dict(self._accounts.accounts)


def storage_down() -> StorageError:
    """The error a store raises when the database is unreachable."""
    return StorageError()


def hash_for_tests(password: str) -> str:
    """Cheap stand-in for bcrypt in service tests."""
    return f"hashed:{password}"
