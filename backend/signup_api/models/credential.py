"""Credential model - password credential attached to a user.

One row per (provider, provider_account_id). Signup creates the
``credential`` provider row holding the bcrypt hash; other providers
(OAuth) would add rows of their own.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from signup_api.models.base import Base

if TYPE_CHECKING:
    from signup_api.models.user import User

_DEFAULT_UUID = text("gen_random_uuid()")

PASSWORD_PROVIDER = "credential"


class Credential(Base):
    """Sign-in credential for a user.

    Attributes:
        id: UUID primary key.
        user_id: FK to users table.
        provider: Provider name ("credential" for email + password).
        provider_account_id: Provider's identity key (the email for passwords).
        password_hash: bcrypt hash. NULL for non-password providers.
        created_at: Record creation timestamp.
    """

    __tablename__ = "credentials"
    __table_args__ = (
        UniqueConstraint(
            "provider",
            "provider_account_id",
            name="uq_credentials_provider_account",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=_DEFAULT_UUID,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    provider_account_id: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="credentials")
