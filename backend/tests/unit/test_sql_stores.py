"""Tests for the SQL-backed stores and the expired-code purge.

Requires PostgreSQL (skipped otherwise via the db_engine fixture).
"""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.core.errors import EmailAlreadyRegisteredError, StorageError
from signup_api.repositories.credential_repository import CredentialRepository
from signup_api.repositories.user_repository import UserRepository
from signup_api.services.account_store import SqlAccountStore
from signup_api.services.signup_service import SignupService
from signup_api.services.verification_cleanup import purge_expired_codes
from signup_api.services.verification_store import SqlVerificationCodeStore
from tests.fakes import (
    InMemoryVerificationCodeStore,
    RecordingMailer,
    hash_for_tests,
    storage_down,
)

pytestmark = pytest.mark.requires_db

_EMAIL = "a@x.com"
_IDENTIFIER = "a@x.com:email-verification"
_TTL = timedelta(minutes=5)


class TestSqlAccountStore:
    """Tests for SqlAccountStore."""

    async def test_create_unverified(self, db_session: AsyncSession):
        """Creates the user and its password credential."""
        store = SqlAccountStore(db_session)

        account = await store.create_unverified(
            email=_EMAIL, name="Ann", password_hash="h1"
        )

        assert account.email == _EMAIL
        assert account.name == "Ann"
        assert account.email_verified is False
        credential = await CredentialRepository.get_password(db_session, account.id)
        assert credential is not None
        assert credential.password_hash == "h1"

    async def test_duplicate_email_is_conflict(self, db_session: AsyncSession):
        """Unique violation surfaces as EmailAlreadyRegisteredError."""
        store = SqlAccountStore(db_session)
        await store.create_unverified(email=_EMAIL, name="Ann", password_hash="h1")
        await db_session.commit()

        with pytest.raises(EmailAlreadyRegisteredError):
            await store.create_unverified(
                email=_EMAIL.upper(), name="Ann", password_hash="h2"
            )

    async def test_get_by_email(self, db_session: AsyncSession):
        """Lookup returns a record or None."""
        store = SqlAccountStore(db_session)
        created = await store.create_unverified(
            email=_EMAIL, name="Ann", password_hash="h1"
        )

        found = await store.get_by_email("A@X.COM")
        assert found == created
        assert await store.get_by_email("b@x.com") is None

    async def test_mark_verified_once(self, db_session: AsyncSession):
        """Only the first call reports a transition."""
        store = SqlAccountStore(db_session)
        account = await store.create_unverified(
            email=_EMAIL, name="Ann", password_hash="h1"
        )

        assert await store.mark_verified(account.id) is True
        assert await store.mark_verified(account.id) is False

    async def test_set_password_replaces_hash(self, db_session: AsyncSession):
        """Existing credential is updated in place."""
        store = SqlAccountStore(db_session)
        account = await store.create_unverified(
            email=_EMAIL, name="Ann", password_hash="h1"
        )

        await store.set_password(account.id, "h2")

        db_session.expire_all()
        credential = await CredentialRepository.get_password(db_session, account.id)
        assert credential is not None
        assert credential.password_hash == "h2"


class TestSqlVerificationCodeStore:
    """Tests for SqlVerificationCodeStore."""

    async def test_put_and_get(self, db_session: AsyncSession):
        """Stored record carries value and an expiry after its issue time."""
        store = SqlVerificationCodeStore(db_session)
        await store.put(_IDENTIFIER, "v1", _TTL)

        record = await store.get(_IDENTIFIER)

        assert record is not None
        assert record.identifier == _IDENTIFIER
        assert record.value == "v1"
        assert record.expires_at > record.created_at

    async def test_put_supersedes(self, db_session: AsyncSession):
        """Second put wins."""
        store = SqlVerificationCodeStore(db_session)
        await store.put(_IDENTIFIER, "v1", _TTL)
        await store.put(_IDENTIFIER, "v2", _TTL)

        record = await store.get(_IDENTIFIER)
        assert record is not None
        assert record.value == "v2"

    async def test_non_positive_ttl_is_immediately_absent(
        self, db_session: AsyncSession
    ):
        """A record that is already expired reads as absent."""
        store = SqlVerificationCodeStore(db_session)
        await store.put(_IDENTIFIER, "v1", timedelta(seconds=-1))
        assert await store.get(_IDENTIFIER) is None

    async def test_delete_if_matches(self, db_session: AsyncSession):
        """Compare-and-delete succeeds once."""
        store = SqlVerificationCodeStore(db_session)
        await store.put(_IDENTIFIER, "v1", _TTL)

        assert await store.delete_if_matches(_IDENTIFIER, "v0") is False
        assert await store.delete_if_matches(_IDENTIFIER, "v1") is True
        assert await store.get(_IDENTIFIER) is None

    async def test_delete_missing_is_noop(self, db_session: AsyncSession):
        """Deleting an absent identifier does not fail."""
        store = SqlVerificationCodeStore(db_session)
        await store.delete(_IDENTIFIER)
        assert await store.get(_IDENTIFIER) is None


class TestPurgeExpiredCodes:
    """Tests for purge_expired_codes()."""

    async def test_purges_only_expired(self, db_session: AsyncSession):
        """Expired rows are deleted and counted; live rows stay."""
        store = SqlVerificationCodeStore(db_session)
        await store.put(_IDENTIFIER, "v1", _TTL)
        await store.put("b@x.com:email-verification", "v2", timedelta(seconds=-1))
        await store.put("c@x.com:password-reset", "v3", timedelta(seconds=-1))

        assert await purge_expired_codes(db_session) == 2
        assert await store.get(_IDENTIFIER) is not None

    async def test_nothing_to_purge(self, db_session: AsyncSession):
        """An empty table purges zero rows."""
        assert await purge_expired_codes(db_session) == 0


class TestSignupDurability:
    """Signup commits the account before it writes the code."""

    async def test_rollback_after_failed_code_write_keeps_account(
        self, db_session: AsyncSession
    ):
        """The request's final rollback cannot undo the account."""
        codes = InMemoryVerificationCodeStore()
        codes.fail_with = storage_down()
        service = SignupService(
            accounts=SqlAccountStore(db_session),
            codes=codes,
            mailer=RecordingMailer(),
            tx=db_session,
            hash_password=hash_for_tests,
        )

        with pytest.raises(StorageError):
            await service.signup(_EMAIL, "password123", "Ann")
        await db_session.rollback()

        user = await UserRepository.get_by_email(db_session, _EMAIL)
        assert user is not None
        assert user.email_verified is False
        credential = await CredentialRepository.get_password(db_session, user.id)
        assert credential is not None
