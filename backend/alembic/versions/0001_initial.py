"""initial booking schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

LIVE_STATUSES = sa.text("status IN ('PENDING', 'CONFIRMED')")
PENDING_REQUEST = sa.text("status = 'pending'")


def upgrade():
    op.create_table(
        "providers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_name", sa.Text(), nullable=False),
        sa.Column("timezone", sa.Text()),
        sa.Column("advance_booking_days", sa.Integer()),
        sa.Column("min_advance_hours", sa.Integer()),
        sa.Column("booking_buffer_minutes", sa.Integer()),
        sa.Column("same_day_booking_enabled", sa.Boolean()),
        sa.Column("instant_booking_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("currency", sa.Text(), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("payment_provider", sa.Text(), nullable=False, server_default=sa.text("'STRIPE'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "provider_availability",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Text(), nullable=False),
        sa.Column("end_time", sa.Text(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("provider_id", "day_of_week"),
    )

    op.create_table(
        "provider_time_off",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("all_day", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("start_time", sa.Text()),
        sa.Column("end_time", sa.Text()),
        sa.Column("reason", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_provider_time_off_provider_id", "provider_time_off", ["provider_id"])

    op.create_table(
        "provider_policies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("cancellation_window_hours", sa.Integer(), nullable=False),
        sa.Column("cancellation_fee_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("late_grace_period_minutes", sa.Integer(), nullable=False),
        sa.Column("late_cancellation_after_minutes", sa.Integer(), nullable=False),
        sa.Column("no_show_fee_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("reschedule_allowed", sa.Boolean(), nullable=False),
        sa.Column("reschedule_window_hours", sa.Integer(), nullable=False),
        sa.Column("max_reschedules", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit_type", sa.Text(), nullable=False, server_default=sa.text("'FIXED'")),
        sa.Column("deposit_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_services_provider_id", "services", ["provider_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.Text(), nullable=False),
        sa.Column("appointment_end_time", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("service_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("service_fee", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("balance_paid", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("currency", sa.Text(), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("payment_status", sa.Text(), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("payment_provider", sa.Text()),
        sa.Column("reschedule_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cancelled_by", sa.Text()),
        sa.Column("cancellation_reason", sa.Text()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.Column("no_show_reported_by", sa.Text()),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_bookings_client_id", "bookings", ["client_id"])
    op.create_index("ix_bookings_provider_date", "bookings", ["provider_id", "appointment_date"])
    op.create_index(
        "uq_bookings_live_start",
        "bookings",
        ["provider_id", "appointment_date", "appointment_time"],
        unique=True,
        sqlite_where=LIVE_STATUSES,
        postgresql_where=LIVE_STATUSES,
    )

    op.create_table(
        "reschedule_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("requested_by", sa.Text(), nullable=False),
        sa.Column("new_date", sa.Date(), nullable=False),
        sa.Column("new_time", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text()),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("response_reason", sa.Text()),
        sa.Column("requested_at", sa.DateTime(), nullable=False),
        sa.Column("responded_at", sa.DateTime()),
    )
    op.create_index("ix_reschedule_requests_booking_id", "reschedule_requests", ["booking_id"])
    op.create_index(
        "uq_reschedule_requests_pending",
        "reschedule_requests",
        ["booking_id"],
        unique=True,
        sqlite_where=PENDING_REQUEST,
        postgresql_where=PENDING_REQUEST,
    )

    op.create_table(
        "payment_instructions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.Text(), nullable=False),
        sa.Column("recipient", sa.Text(), nullable=False),
        sa.Column("payment_provider", sa.Text()),
        sa.Column("reason", sa.Text()),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'QUEUED'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_payment_instructions_booking_id", "payment_instructions", ["booking_id"])


def downgrade():
    op.drop_table("payment_instructions")
    op.drop_index("uq_reschedule_requests_pending", table_name="reschedule_requests")
    op.drop_table("reschedule_requests")
    op.drop_index("uq_bookings_live_start", table_name="bookings")
    op.drop_index("ix_bookings_provider_date", table_name="bookings")
    op.drop_index("ix_bookings_client_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("services")
    op.drop_table("provider_policies")
    op.drop_table("provider_time_off")
    op.drop_table("provider_availability")
    op.drop_table("providers")
