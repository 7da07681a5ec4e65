"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(soft_delete: bool = False) -> list:
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]
    if soft_delete:
        cols.append(sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
    return cols


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="traveller"),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "countries",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("iso", sa.String(length=3), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("flag", sa.String(length=16), nullable=False, server_default=""),
        sa.Column("phone_code", sa.String(length=8), nullable=False, server_default=""),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="IDR"),
        *_timestamps(soft_delete=True),
    )
    op.create_index("ix_countries_iso", "countries", ["iso"], unique=True)

    op.create_table(
        "states",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("country_id", sa.String(length=36), sa.ForeignKey("countries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("latitude", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("longitude", sa.String(length=32), nullable=False, server_default=""),
        *_timestamps(soft_delete=True),
    )
    op.create_index("ix_states_country_id", "states", ["country_id"])

    op.create_table(
        "category_destinations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("code", sa.String(length=40), nullable=False),
        *_timestamps(soft_delete=True),
    )
    op.create_index("ix_category_destinations_code", "category_destinations", ["code"], unique=True)

    op.create_table(
        "destinations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("state_id", sa.String(length=36), sa.ForeignKey("states.id"), nullable=False),
        sa.Column("category_id", sa.String(length=36), sa.ForeignKey("category_destinations.id"), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("image_url", sa.String(length=512), nullable=False, server_default=""),
        *_timestamps(soft_delete=True),
    )
    op.create_index("ix_destinations_state_id", "destinations", ["state_id"])
    op.create_index("ix_destinations_category_id", "destinations", ["category_id"])

    op.create_table(
        "destination_translations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("destination_id", sa.String(length=36), sa.ForeignKey("destinations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("language", sa.String(length=8), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.UniqueConstraint("destination_id", "language", name="uq_destination_translation_lang"),
    )
    op.create_index("ix_destination_translations_destination_id", "destination_translations", ["destination_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("country_id", sa.String(length=36), sa.ForeignKey("countries.id"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False, server_default="0"),
        *_timestamps(soft_delete=True),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_country_id", "bookings", ["country_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    op.create_table(
        "booking_items",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("destination_id", sa.String(length=36), sa.ForeignKey("destinations.id"), nullable=False),
        sa.Column("visit_date", sa.Date(), nullable=False),
        *_timestamps(soft_delete=True),
    )
    op.create_index("ix_booking_items_booking_id", "booking_items", ["booking_id"])
    op.create_index("ix_booking_items_destination_id", "booking_items", ["destination_id"])
    op.create_index("ix_booking_items_visit_date", "booking_items", ["visit_date"])

    op.create_table(
        "tourists",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("gender", sa.String(length=8), nullable=False),
        sa.Column("phone_number", sa.String(length=40), nullable=True),
        sa.Column("nationality", sa.String(length=80), nullable=False),
        sa.Column("passport_number", sa.String(length=40), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tourists_booking_id", "tourists", ["booking_id"])
    # not unique: the registry checks passports before writing
    op.create_index("ix_tourists_passport_number", "tourists", ["passport_number"])

    op.create_table(
        "payments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("invoice_code", sa.String(length=16), nullable=False),
        sa.Column("total_tourists", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="IDR"),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("processor_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("processor_currency", sa.String(length=3), nullable=True),
        sa.Column("exchange_rate", sa.Numeric(18, 6), nullable=True),
        sa.Column("transaction_id", sa.String(length=120), nullable=True),
        sa.Column("payer_email", sa.String(length=320), nullable=True),
        sa.Column("redirect_url", sa.String(length=1024), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payments_user_id", "payments", ["user_id"])
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])
    op.create_index("ix_payments_invoice_code", "payments", ["invoice_code"])
    op.create_index("ix_payments_status", "payments", ["status"])
    op.create_index("ix_payments_transaction_id", "payments", ["transaction_id"])

    op.create_table(
        "sales",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("payment_id", sa.String(length=36), sa.ForeignKey("payments.id"), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="IDR"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        *_timestamps(),
    )
    op.create_index("ix_sales_booking_id", "sales", ["booking_id"])
    op.create_index("ix_sales_payment_id", "sales", ["payment_id"], unique=True)
    op.create_index("ix_sales_created_at", "sales", ["created_at"])

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("kind", sa.String(length=40), nullable=False),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("cc", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("html", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("related_ref", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_email_logs_kind", "email_logs", ["kind"])
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor", "audit_logs", ["actor"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])


def downgrade() -> None:
    for table in (
        "audit_logs",
        "email_logs",
        "sales",
        "payments",
        "tourists",
        "booking_items",
        "bookings",
        "destination_translations",
        "destinations",
        "category_destinations",
        "states",
        "countries",
        "users",
    ):
        op.drop_table(table)
