"""Password reset with a one-time passcode.

Reuses the signup machinery (generator, passcode store, verification
engine) under the ``password-reset`` purpose, so a reset code never
verifies an email and vice versa.

request_reset answers the same way whether or not the email belongs to an
account; only verified accounts are sent a code.
"""

from collections.abc import Callable

import structlog

from signup_api.core.auth import (
    hash_password as bcrypt_hash_password,
    normalize_email,
    validate_password_strength,
)
from signup_api.core.email import Mailer
from signup_api.core.email_templates import render_password_reset_email
from signup_api.core.errors import (
    AccountNotFoundError,
    DeliveryError,
    InvalidOrExpiredCodeError,
)
from signup_api.services.account_store import AccountStore, Transaction
from signup_api.services.otp import generate_otp, hash_otp
from signup_api.services.signup_service import validate_otp_format
from signup_api.services.verification import (
    Purpose,
    VerificationCodeStore,
    VerificationOutcome,
    build_identifier,
    issue_code,
    verify_code,
)

logger = structlog.get_logger()


class PasswordResetService:
    """Request and redeem password-reset codes for one request."""

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

    async def request_reset(self, email: str) -> None:
        """Send a reset code if a verified account exists.

        Silent when there is no such account, and when delivery fails.

        Raises:
            StorageError: If the code cannot be stored.
        """
        account = await self._accounts.get_by_email(normalize_email(email))
        if account is None or not account.email_verified:
            logger.info("Password reset requested for ineligible email")
            return

        code = await issue_code(
            self._codes,
            account.email,
            Purpose.PASSWORD_RESET,
            generate=self._generate_code,
        )
        await self._tx.commit()

        message = render_password_reset_email(
            to_email=account.email, name=account.name, code=code
        )
        try:
            await self._mailer.send(message)
        except DeliveryError:
            logger.warning(
                "Password reset email not delivered",
                account_id=str(account.id),
            )
            return
        logger.info("Password reset code sent", account_id=str(account.id))

    async def reset_password(self, email: str, code: str, new_password: str) -> None:
        """Redeem a reset code and replace the account password.

        Args:
            email: Email address (any case).
            code: Reset code typed by the user.
            new_password: Replacement plaintext password.

        Raises:
            ValidationError: Malformed code or weak password.
            InvalidOrExpiredCodeError: No live reset code, or it differs.
            AccountNotFoundError: The account no longer exists.
            StorageError: On storage failure.
        """
        validate_otp_format(code)
        validate_password_strength(new_password)
        normalized = normalize_email(email)

        outcome = await verify_code(
            self._codes, normalized, Purpose.PASSWORD_RESET, code
        )
        if outcome is not VerificationOutcome.VALID:
            logger.info(
                "Verification code rejected",
                purpose=Purpose.PASSWORD_RESET.value,
                outcome=outcome.value,
            )
            raise InvalidOrExpiredCodeError()

        account = await self._accounts.get_by_email(normalized)
        if account is None:
            raise AccountNotFoundError()

        identifier = build_identifier(normalized, Purpose.PASSWORD_RESET)
        if not await self._codes.delete_if_matches(identifier, hash_otp(code)):
            # A concurrent reset redeemed this code first.
            raise InvalidOrExpiredCodeError()

        await self._accounts.set_password(
            account.id, self._hash_password(new_password)
        )
        await self._tx.commit()
        logger.info("Password reset", account_id=str(account.id))
