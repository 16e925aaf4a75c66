"""Signup and email-verification endpoints.

Unauthenticated. Every endpoint is rate limited per client IP.

- signup / verify-email / resend-verification: email ownership proof with
  a one-time passcode.
- forgot-password / reset-password: password recovery with a passcode of
  the password-reset purpose. forgot-password answers identically for
  known and unknown emails.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from signup_api.api.deps import PasswordResetServiceDep, SignupServiceDep
from signup_api.core.config import settings
from signup_api.core.rate_limiting import limiter
from signup_api.core.responses import (
    DataResponse,
    MessageData,
    SignupData,
    VerifiedAccountData,
)

router = APIRouter()

_FORGOT_PASSWORD_MSG = (
    "If an account exists for this email, a reset code has been sent."
)


# ===================================================================
# Request models
# ===================================================================


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    name: str = Field(min_length=1, max_length=255)


class VerifyEmailRequest(BaseModel):
    """Request body for POST /auth/verify-email."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    code: str = Field(min_length=1, max_length=16)


class EmailOnlyRequest(BaseModel):
    """Request body for endpoints that take only an email."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    code: str = Field(min_length=1, max_length=16)
    new_password: str = Field(min_length=1, max_length=128)


# ===================================================================
# POST /auth/signup
# ===================================================================


@router.post("/signup", status_code=201)
@limiter.limit(lambda: settings.rate_limit_signup)
async def signup(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: SignupRequest,
    service: SignupServiceDep,
) -> DataResponse[SignupData]:
    """Create an unverified account and email a verification code.

    Succeeds even if the email could not be delivered; the client offers
    resend in that case.
    """
    result = await service.signup(body.email, body.password, body.name)
    return DataResponse(
        data=SignupData(
            id=result.account_id,
            email=result.email,
            message="Check your email for a verification code.",
        )
    )


# ===================================================================
# POST /auth/verify-email
# ===================================================================


@router.post("/verify-email")
@limiter.limit(lambda: settings.rate_limit_verify)
async def verify_email(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: VerifyEmailRequest,
    service: SignupServiceDep,
) -> DataResponse[VerifiedAccountData]:
    """Redeem a verification code and activate the account."""
    result = await service.confirm(body.email, body.code)
    return DataResponse(
        data=VerifiedAccountData(
            id=result.account_id,
            email=result.email,
            name=result.name,
            message="Email verified.",
        )
    )


# ===================================================================
# POST /auth/resend-verification
# ===================================================================


@router.post("/resend-verification")
@limiter.limit(lambda: settings.rate_limit_resend)
async def resend_verification(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: EmailOnlyRequest,
    service: SignupServiceDep,
) -> DataResponse[MessageData]:
    """Replace the pending verification code and email it again."""
    await service.resend(body.email)
    return DataResponse(data=MessageData(message="Verification code sent."))


# ===================================================================
# POST /auth/forgot-password
# ===================================================================


@router.post("/forgot-password")
@limiter.limit(lambda: settings.rate_limit_password_reset)
async def forgot_password(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: EmailOnlyRequest,
    service: PasswordResetServiceDep,
) -> DataResponse[MessageData]:
    """Email a password-reset code to a verified account, if one exists."""
    await service.request_reset(body.email)
    return DataResponse(data=MessageData(message=_FORGOT_PASSWORD_MSG))


# ===================================================================
# POST /auth/reset-password
# ===================================================================


@router.post("/reset-password")
@limiter.limit(lambda: settings.rate_limit_password_reset)
async def reset_password(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: ResetPasswordRequest,
    service: PasswordResetServiceDep,
) -> DataResponse[MessageData]:
    """Redeem a reset code and set a new password."""
    await service.reset_password(body.email, body.code, body.new_password)
    return DataResponse(data=MessageData(message="Password updated."))
