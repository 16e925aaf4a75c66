"""Per-client limits for the unauthenticated auth endpoints.

Passcodes are short, so guessing stays impractical only while attempts per
client are few. Every auth endpoint carries a slowapi limit read from
settings at request time, keyed on the client address.

Usage in routers:
    @router.post("/verify-email")
    @limiter.limit(lambda: settings.rate_limit_verify)
    async def verify_email(request: Request, ...):
        ...
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from signup_api.core.config import settings
from signup_api.core.responses import error_response

_DEFAULT_RETRY_AFTER = "60"


def _rate_limit_key_func(request: Request) -> str:
    """Key every limit on the client address ("ip:{address}")."""
    return f"ip:{get_remote_address(request)}"


# In-memory storage: counters are per process.
limiter = Limiter(
    key_func=_rate_limit_key_func,
    enabled=settings.rate_limit_enabled,
)


def _retry_after(detail: object) -> str:
    """Seconds to advertise in Retry-After.

    Uses the trailing number of the limit detail ("... 30" or "... 30s")
    and falls back to a minute.
    """
    try:
        last = str(detail).split()[-1].rstrip("s")
        return str(int(last))
    except (ValueError, IndexError):
        return _DEFAULT_RETRY_AFTER


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Render an exceeded limit as 429 RATE_LIMITED in the error envelope.

    Args:
        request: The incoming request.
        exc: The rate limit exception.

    Returns:
        JSONResponse with 429 status and a Retry-After header.
    """
    return error_response(
        429,
        "RATE_LIMITED",
        f"Rate limit exceeded: {exc.detail}",
        headers={"Retry-After": _retry_after(exc.detail)},
    )
