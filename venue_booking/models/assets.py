"""SQLAlchemy models for bookable assets (halls, chalets/resorts and services).

These tables are owned by the vendor catalogue; the booking core only reads them.
"""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from venue_booking.models.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Hall(Base):
    """
    ORM model for halls and chalets/resorts.

    A chalet is a hall row whose hall_type is "chalet" or "resort"; bookings
    reference it through bookings.chalet_id instead of bookings.hall_id.
    addons holds a list of {"name", "price"} extras offered with the hall.
    """

    __tablename__ = "halls"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id = Column(Uuid, nullable=False, index=True)
    name = Column(String, nullable=False)
    hall_type = Column(String(20), nullable=False, server_default="hall")
    price_per_night = Column(Numeric(12, 2), nullable=False)
    capacity = Column(Integer, nullable=True)
    addons = Column(JSONType, nullable=False, default=list)
    amenities = Column(JSONType, nullable=False, default=list)
    policies = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Service(Base):
    """
    ORM model for vendor services (catering, photography, ...).

    Priced either with a flat price or per adult/child when those are set.
    """

    __tablename__ = "services"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id = Column(Uuid, nullable=False, index=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    price_per_adult = Column(Numeric(12, 2), nullable=True)
    price_per_child = Column(Numeric(12, 2), nullable=True)
    addons = Column(JSONType, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
