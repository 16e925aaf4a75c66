"""FastAPI application entry point.

Creates the signup API: security headers, CORS, rate limiting, the error
envelope handlers, the v1 router and the liveness/readiness probes.
"""

import asyncio

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from signup_api.api.deps import DbSession
from signup_api.api.v1.router import router as v1_router
from signup_api.core.config import settings
from signup_api.core.errors import APIError
from signup_api.core.rate_limiting import limiter, rate_limit_exceeded_handler
from signup_api.core.responses import error_response

logger = structlog.get_logger()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response.

    The API serves JSON only, so the content policy forbids loading any
    resource. API responses are never cached because they can carry
    account data. HSTS is sent in production only (TLS terminates at the
    reverse proxy).
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Add security headers to response."""
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'"
        )
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"

        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, max-age=0"

        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError in the error envelope.

    Args:
        request: The incoming request.
        exc: The APIError that was raised.

    Returns:
        JSONResponse with the error's status code.
    """
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request-body validation failures as 400 VALIDATION_ERROR.

    Only location, message and type are returned; submitted values (which
    may be passwords) are never echoed back.
    """
    return error_response(
        400,
        "VALIDATION_ERROR",
        "Request validation failed",
        [
            {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
            for e in exc.errors()
        ],
    )


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions.

    Logs the exception and returns 500 INTERNAL_ERROR with no detail.
    """
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))
    return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="SaaS Starter Signup API",
        version="1.0.0",
        description="Account signup with email verification codes",
    )

    # Starlette runs the last-added middleware first; CORS must see
    # preflight requests before anything else.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization", "X-Request-ID"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    app.state.limiter = limiter

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health")
    def health_check() -> dict:
        """Liveness probe.

        Returns:
            {"status": "healthy"} if the process is serving requests.
        """
        return {"status": "healthy"}

    @app.get("/health/db")
    async def database_health_check(db: DbSession) -> JSONResponse:
        """Readiness probe: run SELECT 1 within the storage timeout.

        Returns:
            200 {"status": "healthy"} or 503 {"status": "unavailable"}.
        """
        try:
            async with asyncio.timeout(settings.storage_timeout_seconds):
                await db.execute(text("SELECT 1"))
        except (TimeoutError, SQLAlchemyError) as exc:
            logger.warning("Database health check failed", error=type(exc).__name__)
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return JSONResponse(content={"status": "healthy"})

    return app


# uvicorn signup_api.main:app
app = create_app()
