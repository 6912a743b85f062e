"""Create halls, services, bookings, payment_logs and coupons

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-12 10:14:03.118204

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b10"
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
Money = sa.Numeric(12, 2)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "halls",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("vendor_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("hall_type", sa.String(20), nullable=False, server_default="hall"),
        sa.Column("price_per_night", Money, nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("addons", JSONType, nullable=False),
        sa.Column("amenities", JSONType, nullable=False),
        sa.Column("policies", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("vendor_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("price", Money, nullable=False),
        sa.Column("price_per_adult", Money, nullable=True),
        sa.Column("price_per_child", Money, nullable=True),
        sa.Column("addons", JSONType, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("vendor_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("user_id", sa.Uuid(), nullable=True, index=True),
        sa.Column("hall_id", sa.Uuid(), sa.ForeignKey("halls.id"), nullable=True, index=True),
        sa.Column("chalet_id", sa.Uuid(), sa.ForeignKey("halls.id"), nullable=True, index=True),
        sa.Column(
            "service_id", sa.Uuid(), sa.ForeignKey("services.id"), nullable=True, index=True
        ),
        sa.Column("booking_date", sa.Date(), nullable=False, index=True),
        sa.Column("check_out_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("subtotal", Money, nullable=False, server_default="0"),
        sa.Column("discount_amount", Money, nullable=False, server_default="0"),
        sa.Column("vat_amount", Money, nullable=False, server_default="0"),
        sa.Column("total_amount", Money, nullable=False),
        sa.Column("applied_coupon", sa.String(), nullable=True),
        sa.Column("paid_amount", Money, nullable=False, server_default="0"),
        sa.Column(
            "payment_status", sa.String(20), nullable=False, server_default="unpaid", index=True
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending", index=True),
        sa.Column("booking_method", sa.String(20), nullable=True),
        sa.Column("hold_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("guest_name", sa.String(), nullable=True),
        sa.Column("guest_phone", sa.String(), nullable=True),
        sa.Column("guest_email", sa.String(), nullable=True),
        sa.Column("items", JSONType, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "(CASE WHEN hall_id IS NOT NULL THEN 1 ELSE 0 END"
            " + CASE WHEN chalet_id IS NOT NULL THEN 1 ELSE 0 END"
            " + CASE WHEN service_id IS NOT NULL THEN 1 ELSE 0 END) = 1",
            name="ck_bookings_single_target",
        ),
        sa.CheckConstraint("paid_amount >= 0", name="ck_bookings_paid_non_negative"),
    )

    op.create_table(
        "payment_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Uuid(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("vendor_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("amount", Money, nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reference", sa.String(255), nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint("amount > 0", name="ck_payment_logs_amount_positive"),
        sa.UniqueConstraint("reference", name="uq_payment_logs_reference"),
    )

    op.create_table(
        "coupons",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("vendor_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("discount_type", sa.String(20), nullable=False),
        sa.Column("discount_value", Money, nullable=False),
        sa.Column("target_ids", JSONType, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        sa.UniqueConstraint("vendor_id", "code", name="uq_coupons_vendor_code"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("coupons")
    op.drop_table("payment_logs")
    op.drop_table("bookings")
    op.drop_table("services")
    op.drop_table("halls")
