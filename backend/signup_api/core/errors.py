"""API error classes.

HTTP status codes and machine-readable error codes for every failure the
signup / verification workflow can surface.

Security: messages never include a passcode, its hash, or the composite
storage identifier.
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for malformed input: bad email, weak password, a code that is not
    the configured number of digits.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class NotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class ConflictError(APIError):
    """Duplicate or conflicting resource (409).

    Accepts custom code for specific conflict types.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )


class EmailAlreadyRegisteredError(ConflictError):
    """An account already exists for this email (409)."""

    def __init__(self) -> None:
        super().__init__(
            code="EMAIL_ALREADY_EXISTS",
            message="Email already registered",
        )


class AlreadyVerifiedError(ConflictError):
    """The account's email address is already verified (409).

    Raised by resend so codes are never re-issued for completed signups.
    """

    def __init__(self) -> None:
        super().__init__(
            code="EMAIL_ALREADY_VERIFIED",
            message="Email already verified",
        )


class InvalidOrExpiredCodeError(APIError):
    """Presented passcode was not accepted (400).

    Never issued, already redeemed, expired and wrong digits all map here.
    """

    def __init__(self) -> None:
        super().__init__(
            code="INVALID_OR_EXPIRED_CODE",
            message="Invalid or expired verification code",
            status_code=400,
        )


class AccountNotFoundError(NotFoundError):
    """No account exists for the given email (404)."""

    def __init__(self) -> None:
        APIError.__init__(
            self,
            code="ACCOUNT_NOT_FOUND",
            message="Account not found",
            status_code=404,
        )


class StorageError(APIError):
    """Underlying record store failed or timed out (503).

    Never swallowed by the orchestration layer; callers decide whether
    to retry.
    """

    def __init__(self, message: str = "Storage temporarily unavailable") -> None:
        super().__init__(
            code="STORAGE_UNAVAILABLE",
            message=message,
            status_code=503,
        )


class DeliveryError(APIError):
    """Outbound email could not be delivered (502)."""

    def __init__(self, message: str = "Failed to send verification email") -> None:
        super().__init__(
            code="EMAIL_DELIVERY_FAILED",
            message=message,
            status_code=502,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Use for unhandled exceptions. Never expose stack traces to clients.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )
