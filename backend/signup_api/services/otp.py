"""One-time passcode generation and hashing.

Codes are drawn digit by digit from the ``secrets`` CSPRNG. Only a keyed
HMAC-SHA256 of a code (key: ``OTP_SECRET``) is ever persisted.
"""

import hashlib
import hmac
import secrets

from signup_api.core.config import settings

_DIGITS = "0123456789"


def generate_otp(length: int | None = None) -> str:
    """Generate a numeric one-time passcode.

    Each digit is drawn independently and uniformly from 0-9, so leading
    zeros are as likely as any other digit.

    Args:
        length: Number of digits. Defaults to ``settings.otp_length``
            (read at call time).

    Returns:
        String of ``length`` decimal digits.
    """
    otp_length = length if length is not None else settings.otp_length
    return "".join(str(secrets.randbelow(10)) for _ in range(otp_length))


def hash_otp(code: str) -> str:
    """Compute the keyed hash stored in place of a passcode.

    Args:
        code: Plaintext passcode.

    Returns:
        64-char hex HMAC-SHA256 digest.
    """
    key = settings.otp_secret.get_secret_value().encode()
    return hmac.new(key, code.encode(), hashlib.sha256).hexdigest()


def otp_matches(stored_hash: str, presented: str) -> bool:
    """Check a presented passcode against a stored hash.

    Exact match on the digit string: "012345" never matches "12345".

    Args:
        stored_hash: Hash produced by ``hash_otp`` at issue time.
        presented: Code typed by the user.

    Returns:
        True if the presented code hashes to the stored value.
    """
    return hmac.compare_digest(stored_hash, hash_otp(presented))


def is_well_formed_otp(code: str, length: int | None = None) -> bool:
    """Check that a code has the configured number of ASCII digits.

    Args:
        code: Candidate code.
        length: Expected length. Defaults to ``settings.otp_length``.

    Returns:
        True if the code could have been produced by ``generate_otp``.
    """
    otp_length = length if length is not None else settings.otp_length
    return len(code) == otp_length and all(ch in _DIGITS for ch in code)
