"""SQLAlchemy model for vendor discount coupons."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from venue_booking.models.assets import JSONType
from venue_booking.models.base import Base


class Coupon(Base):
    """
    ORM model for coupons.

    code is stored upper-cased and is unique per vendor. An empty target_ids
    list means the coupon applies to every asset of the vendor.
    """

    __tablename__ = "coupons"
    __table_args__ = (UniqueConstraint("vendor_id", "code", name="uq_coupons_vendor_code"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id = Column(Uuid, nullable=False, index=True)
    code = Column(String(64), nullable=False)
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False)
    target_ids = Column(JSONType, nullable=False, default=list)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
