"""SQLAlchemy ORM models for the signup API.

All models are exported from this module for convenient imports:
    from signup_api.models import User, Credential, Verification

- user.py: User (email_verified flag)
- credential.py: Credential (password hash per user)
- verification.py: Verification (pending passcode hashes)
"""

from signup_api.models.base import Base, TimestampMixin
from signup_api.models.credential import Credential
from signup_api.models.user import User
from signup_api.models.verification import Verification

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "Credential",
    "Verification",
]
