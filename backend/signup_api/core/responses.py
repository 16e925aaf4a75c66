"""Response envelope models.

Success bodies are ``{"data": ...}``; failures are ``{"error": {...}}``,
whether raised as APIError, rejected by request validation or by the rate
limiter.
"""

import uuid
from typing import Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Standard response envelope for single resources.

    Usage:
        @router.post("/signup")
        async def signup(...) -> DataResponse[SignupData]:
            result = await service.signup(...)
            return DataResponse(data=SignupData(...))
    """

    data: T


class MessageData(BaseModel):
    """Payload for endpoints that only acknowledge the request."""

    message: str


class SignupData(MessageData):
    """Payload returned by signup. The passcode is never included."""

    id: uuid.UUID
    email: str


class VerifiedAccountData(MessageData):
    """Payload returned after a successful email verification."""

    id: uuid.UUID
    email: str
    name: str | None
    email_verified: bool = True


class ErrorDetail(BaseModel):
    """Error detail for response body.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_OR_EXPIRED_CODE").
        message: Human-readable error message.
        details: Optional list of field-level errors (for validation).
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope."""

    error: ErrorDetail


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[dict] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a JSONResponse carrying the error envelope."""
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(),
        headers=headers,
    )
