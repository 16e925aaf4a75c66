"""Credential helpers shared by the signup and password-reset flows.

Pipeline:
- normalize_email / validate_email_address: canonical subject identity
- validate_password_strength: format rules (sync, no network)
- hash_password: bcrypt hashing with the configured cost factor
"""

import re

import bcrypt
from email_validator import EmailNotValidError, validate_email

from signup_api.core.config import settings
from signup_api.core.errors import ValidationError


_MIN_PASSWORD_LENGTH = 8
_MAX_PASSWORD_LENGTH = 128

# bcrypt only uses the first 72 bytes of its input
_BCRYPT_MAX_BYTES = 72


def normalize_email(email: str) -> str:
    """Return the canonical form of an email address.

    Emails are compared case-insensitively everywhere, so the stored and
    looked-up forms are always stripped and lower-cased.

    Args:
        email: Raw email address.

    Returns:
        Stripped, lower-cased email.
    """
    return email.strip().lower()


def validate_email_address(email: str) -> str:
    """Validate email syntax and return its normalized form.

    Deliverability (DNS) is not checked; delivery failures are handled by
    the resend flow.

    Args:
        email: Raw email address.

    Returns:
        Normalized email.

    Raises:
        ValidationError: If the address is syntactically invalid.
    """
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError("Invalid email address") from exc
    return normalize_email(email)


def validate_password_strength(password: str) -> None:
    """Validate password meets strength requirements.

    8-128 chars, at least one letter and one number.

    Args:
        password: Plain-text password to validate.

    Raises:
        ValidationError: If password doesn't meet requirements.
    """
    if len(password) < _MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {_MIN_PASSWORD_LENGTH} characters"
        )
    if len(password) > _MAX_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at most {_MAX_PASSWORD_LENGTH} characters"
        )
    if not re.search(r"[a-zA-Z]", password):
        raise ValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise ValidationError("Password must contain at least one number")


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Multi-byte safe truncation to bcrypt's 72-byte input limit.

    Args:
        password: Plain-text password.

    Returns:
        bcrypt hash as a UTF-8 string.
    """
    pwd_bytes = password.encode()[:_BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(
        pwd_bytes, bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    ).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash.

    Args:
        password: Plain-text password.
        password_hash: Stored bcrypt hash.

    Returns:
        True if the password matches.
    """
    return bcrypt.checkpw(password.encode()[:_BCRYPT_MAX_BYTES], password_hash.encode())
