"""Create secrets and audit_events tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Create secrets table
    op.create_table(
        "secrets",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("ciphertext", sa.LargeBinary, nullable=True),
        sa.Column("iv", sa.LargeBinary, nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("expires_at", sa.DateTime, nullable=False),
        sa.Column("accessed_at", sa.DateTime, nullable=True),
        sa.Column("cleared_at", sa.DateTime, nullable=True),
        sa.Column("access_count", sa.Integer, nullable=False, server_default="0"),
    )

    # Expiry sweep
    op.create_index("ix_secrets_expires_at", "secrets", ["expires_at"])

    # Create audit_events table
    op.create_table(
        "audit_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("secret_id", sa.String(64), nullable=False),
        sa.Column("event_type", sa.String(20), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )

    op.create_index("ix_audit_events_secret_id", "audit_events", ["secret_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_secret_id", table_name="audit_events")
    op.drop_table("audit_events")

    op.drop_index("ix_secrets_expires_at", table_name="secrets")
    op.drop_table("secrets")
