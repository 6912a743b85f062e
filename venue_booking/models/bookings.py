# models/bookings.py

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    Uuid,
)
from sqlalchemy.sql import func

from venue_booking.models.assets import JSONType
from venue_booking.models.base import Base


class Booking(Base):
    """
    ORM model for a reservation of a hall, chalet or service.

    Exactly one of hall_id / chalet_id / service_id is set. The financial
    columns are cached: paid_amount and payment_status are always recomputed
    from payment_logs by the ledger, and version is bumped on every such
    write so concurrent recomputations cannot overwrite each other.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN hall_id IS NOT NULL THEN 1 ELSE 0 END"
            " + CASE WHEN chalet_id IS NOT NULL THEN 1 ELSE 0 END"
            " + CASE WHEN service_id IS NOT NULL THEN 1 ELSE 0 END) = 1",
            name="ck_bookings_single_target",
        ),
        CheckConstraint("paid_amount >= 0", name="ck_bookings_paid_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id = Column(Uuid, nullable=False, index=True)
    user_id = Column(Uuid, nullable=True, index=True)

    hall_id = Column(Uuid, ForeignKey("halls.id"), nullable=True, index=True)
    chalet_id = Column(Uuid, ForeignKey("halls.id"), nullable=True, index=True)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=True, index=True)

    booking_date = Column(Date, nullable=False, index=True)
    check_out_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    vat_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    applied_coupon = Column(String, nullable=True)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default="unpaid", index=True)

    status = Column(String(20), nullable=False, default="pending", index=True)
    booking_method = Column(String(20), nullable=True)
    hold_expires_at = Column(DateTime(timezone=True), nullable=True)

    guest_name = Column(String, nullable=True)
    guest_phone = Column(String, nullable=True)
    guest_email = Column(String, nullable=True)

    items = Column(JSONType, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
