"""Verification model - pending one-time passcodes.

Exactly one row per identifier (``{email}:{purpose}``), enforced by a unique
constraint so issuing a new code is a single upsert. Only the keyed hash of
the code is stored.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from signup_api.models.base import Base, TimestampMixin

_DEFAULT_UUID = text("gen_random_uuid()")


class Verification(Base, TimestampMixin):
    """Pending passcode for a (subject, purpose) pair.

    Rows past ``expires_at`` are treated as absent by every read even if
    they have not been purged yet.

    Attributes:
        id: UUID primary key.
        identifier: Composite ``{email}:{purpose}`` key. Unique.
        value: HMAC-SHA256 hex digest of the passcode.
        expires_at: Expiry timestamp.
        created_at: When this code was issued (from TimestampMixin).
        updated_at: Last re-issue (from TimestampMixin).
    """

    __tablename__ = "verifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=_DEFAULT_UUID,
    )
    identifier: Mapped[str] = mapped_column(
        String(320),
        unique=True,
        nullable=False,
    )
    value: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
