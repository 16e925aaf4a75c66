"""Tests for VerificationRepository.

Requires PostgreSQL (skipped otherwise via the db_engine fixture).
"""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.models.verification import Verification
from signup_api.repositories.verification_repository import VerificationRepository

pytestmark = pytest.mark.requires_db

_IDENTIFIER = "a@x.com:email-verification"


def _in(minutes: int) -> datetime:
    return datetime.now(UTC) + timedelta(minutes=minutes)


async def _row_count(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Verification))
    return result.scalar_one()


class TestUpsert:
    """Test VerificationRepository.upsert()."""

    async def test_insert_then_read(self, db_session: AsyncSession):
        """A stored code is returned while live."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v1", expires_at=_in(5)
        )

        row = await VerificationRepository.get_active(db_session, identifier=_IDENTIFIER)
        assert row is not None
        assert row.value == "v1"

    async def test_second_upsert_replaces_single_row(self, db_session: AsyncSession):
        """Re-issuing keeps exactly one row holding the newest value."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v1", expires_at=_in(5)
        )
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v2", expires_at=_in(10)
        )

        assert await _row_count(db_session) == 1
        row = await VerificationRepository.get_active(db_session, identifier=_IDENTIFIER)
        assert row is not None
        assert row.value == "v2"

    async def test_identifiers_are_independent(self, db_session: AsyncSession):
        """Different purposes for one email do not collide."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v1", expires_at=_in(5)
        )
        await VerificationRepository.upsert(
            db_session, identifier="a@x.com:password-reset", value="r1", expires_at=_in(5)
        )
        assert await _row_count(db_session) == 2


class TestGetActive:
    """Test VerificationRepository.get_active()."""

    async def test_expired_row_is_invisible(self, db_session: AsyncSession):
        """Rows past expires_at read as absent before any purge."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v1", expires_at=_in(-1)
        )

        assert (
            await VerificationRepository.get_active(db_session, identifier=_IDENTIFIER)
            is None
        )
        assert await _row_count(db_session) == 1

    async def test_reference_time_is_respected(self, db_session: AsyncSession):
        """An explicit now past expiry hides the row."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v1", expires_at=_in(5)
        )
        row = await VerificationRepository.get_active(
            db_session, identifier=_IDENTIFIER, now=_in(6)
        )
        assert row is None


class TestDelete:
    """Test delete(), delete_if_value() and delete_expired()."""

    async def test_delete_is_idempotent(self, db_session: AsyncSession):
        """Deleting twice (or a missing row) does not fail."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v1", expires_at=_in(5)
        )
        await VerificationRepository.delete(db_session, identifier=_IDENTIFIER)
        await VerificationRepository.delete(db_session, identifier=_IDENTIFIER)
        assert await _row_count(db_session) == 0

    async def test_delete_if_value_matches(self, db_session: AsyncSession):
        """Matching value is deleted exactly once."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v1", expires_at=_in(5)
        )

        first = await VerificationRepository.delete_if_value(
            db_session, identifier=_IDENTIFIER, value="v1"
        )
        second = await VerificationRepository.delete_if_value(
            db_session, identifier=_IDENTIFIER, value="v1"
        )

        assert (first, second) == (True, False)

    async def test_delete_if_value_keeps_newer_code(self, db_session: AsyncSession):
        """A superseded value cannot delete the newer code."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v2", expires_at=_in(5)
        )

        deleted = await VerificationRepository.delete_if_value(
            db_session, identifier=_IDENTIFIER, value="v1"
        )

        assert deleted is False
        assert await _row_count(db_session) == 1

    async def test_delete_expired_only_removes_expired(self, db_session: AsyncSession):
        """Live rows survive the purge."""
        await VerificationRepository.upsert(
            db_session, identifier=_IDENTIFIER, value="v1", expires_at=_in(5)
        )
        await VerificationRepository.upsert(
            db_session, identifier="b@x.com:email-verification", value="v", expires_at=_in(-5)
        )

        deleted = await VerificationRepository.delete_expired(db_session)

        assert deleted == 1
        assert await _row_count(db_session) == 1
