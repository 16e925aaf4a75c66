"""Email-verification signup flows.

Three operations share one passcode purpose (``email-verification``):

- signup: create and commit an unverified account with a password
  credential, then issue and commit a code, then deliver. A failed code
  write or delivery leaves the account in place; the user recovers
  through resend.
- confirm: redeem a code and mark the account verified. NOT_FOUND and
  MISMATCH are reported identically as InvalidOrExpiredCodeError.
- resend: supersede the pending code of an unverified account and deliver
  it. Delivery failure surfaces to the caller.

Collaborators are injected (account store, passcode store, mailer and the
commit boundary) so the flows run unchanged against in-memory doubles.
Plaintext codes are never logged.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from signup_api.core.auth import (
    hash_password as bcrypt_hash_password,
    normalize_email,
    validate_email_address,
    validate_password_strength,
)
from signup_api.core.email import Mailer
from signup_api.core.email_templates import render_verification_email
from signup_api.core.errors import (
    AccountNotFoundError,
    AlreadyVerifiedError,
    DeliveryError,
    EmailAlreadyRegisteredError,
    InvalidOrExpiredCodeError,
    ValidationError,
)
from signup_api.services.account_store import AccountStore, Transaction
from signup_api.services.otp import generate_otp, hash_otp, is_well_formed_otp
from signup_api.services.verification import (
    Purpose,
    VerificationCodeStore,
    VerificationOutcome,
    build_identifier,
    issue_code,
    verify_code,
)

logger = structlog.get_logger()

_MAX_NAME_LENGTH = 255


@dataclass(frozen=True)
class SignupResult:
    """Outcome of a successful signup.

    Attributes:
        account_id: New account UUID.
        email: Normalized email.
    """

    account_id: uuid.UUID
    email: str


@dataclass(frozen=True)
class ConfirmResult:
    """Outcome of a successful email confirmation.

    Attributes:
        account_id: Verified account UUID.
        email: Normalized email.
        name: Display name.
    """

    account_id: uuid.UUID
    email: str
    name: str | None


def validate_otp_format(code: str) -> None:
    """Reject a code that could never have been issued.

    Raises:
        ValidationError: If the code is not the configured number of digits.
    """
    if not is_well_formed_otp(code):
        raise ValidationError("Verification code must be a numeric code")


class SignupService:
    """Signup, confirm and resend for one request.

    Args:
        accounts: Account persistence.
        codes: Passcode persistence.
        mailer: Email delivery.
        tx: Commit boundary shared by both stores.
        hash_password: Password hasher.
        generate_code: Passcode source. Tests may inject a fixed value.
    """

    def __init__(
        self,
        *,
        accounts: AccountStore,
        codes: VerificationCodeStore,
        mailer: Mailer,
        tx: Transaction,
        hash_password: Callable[[str], str] = bcrypt_hash_password,
        generate_code: Callable[[], str] = generate_otp,
    ) -> None:
        self._accounts = accounts
        self._codes = codes
        self._mailer = mailer
        self._tx = tx
        self._hash_password = hash_password
        self._generate_code = generate_code

    # =========================================================================
    # Signup
    # =========================================================================

    async def signup(self, email: str, password: str, name: str) -> SignupResult:
        """Register an unverified account and send its verification code.

        Args:
            email: Email address (any case).
            password: Plaintext password.
            name: Display name.

        Returns:
            SignupResult for the new account.

        Raises:
            ValidationError: Bad email, empty name or weak password.
            EmailAlreadyRegisteredError: Email already belongs to an account.
            StorageError: If the account or code cannot be persisted. When
                only the code write fails the account is already committed.
        """
        normalized = validate_email_address(email)
        display_name = name.strip()
        if not display_name:
            raise ValidationError("Name is required")
        if len(display_name) > _MAX_NAME_LENGTH:
            raise ValidationError(
                f"Name must be at most {_MAX_NAME_LENGTH} characters"
            )
        validate_password_strength(password)

        if await self._accounts.get_by_email(normalized) is not None:
            raise EmailAlreadyRegisteredError()

        account = await self._accounts.create_unverified(
            email=normalized,
            name=display_name,
            password_hash=self._hash_password(password),
        )
        # The account outlives a failed code write; resend recovers it.
        await self._tx.commit()
        logger.info("Account created", account_id=str(account.id))

        code = await issue_code(
            self._codes,
            account.email,
            Purpose.EMAIL_VERIFICATION,
            generate=self._generate_code,
        )
        await self._tx.commit()

        try:
            await self._deliver(account.email, account.name, code)
        except DeliveryError:
            # Account and code are committed; resend recovers.
            logger.warning(
                "Verification email not delivered after signup",
                account_id=str(account.id),
            )

        return SignupResult(account_id=account.id, email=account.email)

    # =========================================================================
    # Confirm
    # =========================================================================

    async def confirm(self, email: str, code: str) -> ConfirmResult:
        """Redeem a verification code and mark the account verified.

        Promotion is idempotent and the code is removed with a
        compare-and-delete, so two concurrent confirms with the same code
        both leave the account verified and the record gone.

        A replay after the code was redeemed finds no live record and gets
        InvalidOrExpiredCodeError with no side effect; the account is
        already verified, so there is nothing left to repeat.

        Args:
            email: Email address (any case).
            code: Code typed by the user.

        Returns:
            ConfirmResult for the verified account.

        Raises:
            ValidationError: Code is not well formed.
            InvalidOrExpiredCodeError: No live code, or the code differs.
            AccountNotFoundError: The code is valid but the account is gone.
            StorageError: On storage failure.
        """
        validate_otp_format(code)
        normalized = normalize_email(email)

        outcome = await verify_code(
            self._codes, normalized, Purpose.EMAIL_VERIFICATION, code
        )
        if outcome is not VerificationOutcome.VALID:
            logger.info(
                "Verification code rejected",
                purpose=Purpose.EMAIL_VERIFICATION.value,
                outcome=outcome.value,
            )
            raise InvalidOrExpiredCodeError()

        account = await self._accounts.get_by_email(normalized)
        if account is None:
            raise AccountNotFoundError()

        promoted = await self._accounts.mark_verified(account.id)
        identifier = build_identifier(normalized, Purpose.EMAIL_VERIFICATION)
        deleted = await self._codes.delete_if_matches(identifier, hash_otp(code))
        if not deleted:
            logger.info(
                "Verification code already consumed",
                account_id=str(account.id),
            )
        await self._tx.commit()

        if promoted:
            logger.info("Email verified", account_id=str(account.id))
        return ConfirmResult(
            account_id=account.id, email=account.email, name=account.name
        )

    # =========================================================================
    # Resend
    # =========================================================================

    async def resend(self, email: str) -> None:
        """Issue a fresh code for an unverified account and deliver it.

        The new code supersedes any pending one.

        Args:
            email: Email address (any case).

        Raises:
            AccountNotFoundError: No account for the email.
            AlreadyVerifiedError: The account is already verified.
            StorageError: If the code cannot be stored.
            DeliveryError: If the email cannot be sent.
        """
        account = await self._accounts.get_by_email(normalize_email(email))
        if account is None:
            raise AccountNotFoundError()
        if account.email_verified:
            raise AlreadyVerifiedError()

        code = await issue_code(
            self._codes,
            account.email,
            Purpose.EMAIL_VERIFICATION,
            generate=self._generate_code,
        )
        await self._tx.commit()
        await self._deliver(account.email, account.name, code)
        logger.info("Verification code resent", account_id=str(account.id))

    async def _deliver(self, email: str, name: str | None, code: str) -> None:
        message = render_verification_email(to_email=email, name=name, code=code)
        await self._mailer.send(message)
