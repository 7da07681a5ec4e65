"""sessions, profiles, translation slugs

Revision ID: 0002_sessions_profiles
Revises: 0001_initial
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

revision = "0002_sessions_profiles"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])
    op.create_index("ix_sessions_token_hash", "sessions", ["token_hash"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("phone_number", sa.String(length=40), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=120), nullable=False),
        sa.Column("country", sa.String(length=120), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"], unique=True)

    op.add_column(
        "destination_translations",
        sa.Column("slug", sa.String(length=220), nullable=False, server_default=""),
    )
    op.create_index("ix_destination_translations_slug", "destination_translations", ["slug"])


def downgrade() -> None:
    op.drop_index("ix_destination_translations_slug", table_name="destination_translations")
    op.drop_column("destination_translations", "slug")
    op.drop_table("profiles")
    op.drop_table("sessions")
