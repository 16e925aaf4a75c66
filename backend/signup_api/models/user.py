"""User model - the account being provisioned and verified.

An account is created unverified by signup and flips to verified exactly
once, when a valid email-verification code is redeemed.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from signup_api.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from signup_api.models.credential import Credential

_DEFAULT_UUID = text("gen_random_uuid()")


class User(Base, TimestampMixin):
    """User account.

    Attributes:
        id: UUID primary key.
        email: Unique, lower-cased email address.
        name: Display name given at signup.
        email_verified: False until a verification code is redeemed.
            Never reverts to False through the verification workflow.
        email_verified_at: When the email was verified. NULL = unverified.
        created_at: Account creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=_DEFAULT_UUID,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
        default=False,
    )
    email_verified_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )

    # Relationships
    credentials: Mapped[list["Credential"]] = relationship(
        "Credential",
        back_populates="user",
        cascade="all, delete-orphan",
    )
