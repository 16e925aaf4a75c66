"""Application configuration loaded from environment variables.

Settings for database, API, OTP issuance, email delivery and rate limiting.
Uses pydantic-settings for validation and .env file support.

Values are read from the module-level ``settings`` object at call time
(never copied into module constants) so tests can reconfigure OTP length,
expiry and providers by assigning attributes.
"""

from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "signup_dev_password"  # nosec B105

# Known insecure default OTP hashing key (development only)
_INSECURE_DEFAULT_OTP_SECRET = "dev-otp-secret-change-me"  # nosec B105

# Minimum length for OTP_SECRET in production (256 bits = 32 bytes)
_MIN_OTP_SECRET_LENGTH = 32

# Codes shorter than 4 digits are trivially guessable; longer than 10
# stop being typeable from an email.
_MIN_OTP_LENGTH = 4
_MAX_OTP_LENGTH = 10


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "signup_api"
    database_user: str = "signup_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # CORS (Security)
    # Never set to ["*"] when allow_credentials=True
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    app_name: str = "SaaS Starter"
    environment: str = "development"
    log_level: str = "INFO"

    # One-time passcodes
    otp_length: int = 6
    otp_expiry_minutes: int = 5
    otp_secret: SecretStr = SecretStr(_INSECURE_DEFAULT_OTP_SECRET)

    # Storage calls that exceed this are reported as StorageError
    storage_timeout_seconds: float = 5.0

    # Password hashing (bcrypt cost factor; tests lower it for speed)
    bcrypt_rounds: int = 12

    # Email delivery
    email_provider: Literal["resend", "console"] = "resend"
    email_from: str = "noreply@example.com"
    resend_api_key: SecretStr = SecretStr("")
    email_timeout_seconds: float = 10.0
    # Development only: the console mailer also logs the body (with the code)
    email_console_show_body: bool = False

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_signup: str = "5/hour"
    rate_limit_verify: str = "10/minute"
    rate_limit_resend: str = "3/15minute"
    rate_limit_password_reset: str = "5/hour"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - OTP length within the typeable range (all environments)
        - OTP expiry and storage timeout positive (all environments)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Database password must not be the default in production
        - OTP_SECRET must be changed and >= 32 chars in production
        - Resend API key must be set when the resend provider is used in production
        - Console body logging must be off in production
        """
        if not _MIN_OTP_LENGTH <= self.otp_length <= _MAX_OTP_LENGTH:
            msg = (
                f"OTP_LENGTH must be between {_MIN_OTP_LENGTH} and "
                f"{_MAX_OTP_LENGTH}. Got: {self.otp_length}"
            )
            raise ValueError(msg)

        if self.otp_expiry_minutes <= 0:
            msg = (
                "OTP_EXPIRY_MINUTES must be positive. "
                f"Got: {self.otp_expiry_minutes}"
            )
            raise ValueError(msg)

        if self.storage_timeout_seconds <= 0:
            msg = (
                "STORAGE_TIMEOUT_SECONDS must be positive. "
                f"Got: {self.storage_timeout_seconds}"
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            otp_secret = self.otp_secret.get_secret_value()
            if otp_secret == _INSECURE_DEFAULT_OTP_SECRET:
                msg = (
                    "OTP_SECRET must be set in production. "
                    'Generate with: python -c "import secrets; '
                    'print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)
            if len(otp_secret) < _MIN_OTP_SECRET_LENGTH:
                msg = (
                    f"OTP_SECRET must be at least {_MIN_OTP_SECRET_LENGTH} "
                    "characters for adequate security."
                )
                raise ValueError(msg)

            if self.email_console_show_body:
                msg = "EMAIL_CONSOLE_SHOW_BODY must not be enabled in production."
                raise ValueError(msg)

            if (
                self.email_provider == "resend"
                and not self.resend_api_key.get_secret_value()
            ):
                msg = "RESEND_API_KEY must be set when EMAIL_PROVIDER=resend in production."
                raise ValueError(msg)

        return self


settings = Settings()
