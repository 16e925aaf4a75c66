"""Create users, credentials and verifications.

Revision ID: 001_auth_tables
Revises: 000_enable_extensions
Create Date: 2026-10-19

- users: accounts with a boolean email_verified flag (false at signup).
- credentials: sign-in methods; provider "credential" holds a bcrypt hash.
- verifications: one pending passcode hash per "{email}:{purpose}".
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_auth_tables"
down_revision: str | None = "000_enable_extensions"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # =========================================================================
    # users
    # =========================================================================
    op.create_table(
        "users",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column(
            "email_verified",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("email_verified_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # =========================================================================
    # credentials
    # =========================================================================
    op.create_table(
        "credentials",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column(
            "user_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("provider_account_id", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "provider",
            "provider_account_id",
            name="uq_credentials_provider_account",
        ),
    )
    op.create_index("ix_credentials_user_id", "credentials", ["user_id"])

    # =========================================================================
    # verifications
    # =========================================================================
    op.create_table(
        "verifications",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        # Upserts target this constraint (ON CONFLICT (identifier))
        sa.Column("identifier", sa.String(320), nullable=False, unique=True),
        sa.Column("value", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_verifications_expires_at", "verifications", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_verifications_expires_at", table_name="verifications")
    op.drop_table("verifications")

    op.drop_index("ix_credentials_user_id", table_name="credentials")
    op.drop_table("credentials")

    op.drop_table("users")
