"""Shared dependencies for API endpoints.

Services are built per request around the request's database session, so
both stores write inside one transaction and the service owns the commit.
Tests override get_signup_service / get_password_reset_service to run the
endpoints against in-memory stores.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from signup_api.core.database import get_db
from signup_api.core.email import Mailer, get_mailer
from signup_api.services.account_store import SqlAccountStore
from signup_api.services.password_reset_service import PasswordResetService
from signup_api.services.signup_service import SignupService
from signup_api.services.verification_store import SqlVerificationCodeStore

DbSession = Annotated[AsyncSession, Depends(get_db)]
MailerDep = Annotated[Mailer, Depends(get_mailer)]


def get_signup_service(db: DbSession, mailer: MailerDep) -> SignupService:
    """Build the signup service for this request."""
    return SignupService(
        accounts=SqlAccountStore(db),
        codes=SqlVerificationCodeStore(db),
        mailer=mailer,
        tx=db,
    )


def get_password_reset_service(
    db: DbSession, mailer: MailerDep
) -> PasswordResetService:
    """Build the password-reset service for this request."""
    return PasswordResetService(
        accounts=SqlAccountStore(db),
        codes=SqlVerificationCodeStore(db),
        mailer=mailer,
        tx=db,
    )


SignupServiceDep = Annotated[SignupService, Depends(get_signup_service)]
PasswordResetServiceDep = Annotated[
    PasswordResetService, Depends(get_password_reset_service)
]
