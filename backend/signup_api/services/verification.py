"""Verification engine for one-time passcodes.

Issues codes into a VerificationCodeStore and checks presented codes
against it. Checking is read-only: consuming a code is a separate,
explicit step owned by the flow that redeems it, so a failed attempt
never burns the pending code.

Outcome is tri-state internally (VALID / NOT_FOUND / MISMATCH); flows
collapse the two failures into one external error.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from signup_api.core.auth import normalize_email
from signup_api.core.config import settings
from signup_api.services.otp import generate_otp, hash_otp, otp_matches


class Purpose(str, Enum):
    """What a passcode authorizes. Part of the storage identifier."""

    EMAIL_VERIFICATION = "email-verification"
    PASSWORD_RESET = "password-reset"


class VerificationOutcome(Enum):
    """Result of checking a presented code."""

    VALID = "valid"
    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class VerificationRecord:
    """A live passcode as returned by the store.

    Attributes:
        identifier: ``{email}:{purpose}`` key.
        value: Keyed hash of the passcode.
        created_at: Issue time.
        expires_at: Expiry time.
    """

    identifier: str
    value: str
    created_at: datetime
    expires_at: datetime


class VerificationCodeStore(Protocol):
    """Persistence port for pending passcodes.

    Implementations keep at most one live record per identifier and treat
    expired records as absent.
    """

    async def put(self, identifier: str, value: str, ttl: timedelta) -> None: ...

    async def get(self, identifier: str) -> VerificationRecord | None: ...

    async def delete(self, identifier: str) -> None: ...

    async def delete_if_matches(self, identifier: str, value: str) -> bool: ...


def build_identifier(email: str, purpose: Purpose) -> str:
    """Compose the storage key for a subject and purpose.

    Args:
        email: Email address (any case).
        purpose: Passcode purpose.

    Returns:
        ``{normalized_email}:{purpose}``, e.g. ``a@x.com:email-verification``.
    """
    return f"{normalize_email(email)}:{purpose.value}"


def code_ttl() -> timedelta:
    """Current passcode lifetime (``OTP_EXPIRY_MINUTES``, read at call time)."""
    return timedelta(minutes=settings.otp_expiry_minutes)


async def issue_code(
    store: VerificationCodeStore,
    email: str,
    purpose: Purpose,
    *,
    generate: Callable[[], str] = generate_otp,
) -> str:
    """Generate a passcode and persist its hash, superseding any prior one.

    Args:
        store: Passcode store.
        email: Subject email.
        purpose: Passcode purpose.
        generate: Code source. Tests may inject a fixed value.

    Returns:
        Plaintext code, for delivery only.

    Raises:
        StorageError: If the store fails.
    """
    code = generate()
    await store.put(build_identifier(email, purpose), hash_otp(code), code_ttl())
    return code


async def verify_code(
    store: VerificationCodeStore,
    email: str,
    purpose: Purpose,
    presented: str,
) -> VerificationOutcome:
    """Check a presented code without consuming it.

    Args:
        store: Passcode store.
        email: Subject email.
        purpose: Passcode purpose.
        presented: Code supplied by the user.

    Returns:
        NOT_FOUND if no live code exists (never issued, already redeemed,
        superseded or expired), VALID on exact match, MISMATCH otherwise.

    Raises:
        StorageError: If the store fails.
    """
    record = await store.get(build_identifier(email, purpose))
    if record is None:
        return VerificationOutcome.NOT_FOUND
    if otp_matches(record.value, presented):
        return VerificationOutcome.VALID
    return VerificationOutcome.MISMATCH
