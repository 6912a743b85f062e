"""SQLAlchemy model for booking payment log entries."""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from venue_booking.models.base import Base


class PaymentLog(Base):
    """
    ORM model for one payment event against a booking.

    Rows are append-only: a wrong entry is deleted and re-entered, never edited.
    reference identifies an external payment (e.g. a gateway resource path) and
    is unique, so the same external payment is never logged twice.
    vendor_id is denormalized from the booking for vendor accounting reports.
    """

    __tablename__ = "payment_logs"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payment_logs_amount_positive"),
        UniqueConstraint("reference", name="uq_payment_logs_reference"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vendor_id = Column(Uuid, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    reference = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
