"""
Shared fixtures: an in-memory SQLite database with a small vendor catalogue.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Generator
from uuid import UUID

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from venue_booking.db.writers.coupons import insert_coupon
from venue_booking.models.assets import Hall, Service
from venue_booking.models.base import Base
from venue_booking.models.bookings import Booking  # noqa: F401
from venue_booking.models.coupons import Coupon  # noqa: F401
from venue_booking.models.payment_logs import PaymentLog  # noqa: F401
from venue_booking.schemas.bookings import ManualBookingCreate
from venue_booking.services.bookings import create_manual_booking

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
EVENT_DAY = date(2026, 3, 20)


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def vendor_id() -> UUID:
    return uuid.uuid4()


@pytest.fixture
def other_vendor_id() -> UUID:
    return uuid.uuid4()


def _insert(engine: Engine, model: Any, **values: Any) -> UUID:
    asset_id = uuid.uuid4()
    with engine.begin() as conn:
        conn.execute(insert(model).values(id=asset_id, **values))
    return asset_id


@pytest.fixture
def hall_id(db_engine: Engine, vendor_id: UUID) -> UUID:
    """A 2000 SAR/night wedding hall with a 300 SAR sound system add-on."""
    return _insert(
        db_engine,
        Hall,
        vendor_id=vendor_id,
        name="Al Noor Hall",
        hall_type="hall",
        price_per_night=Decimal("2000.00"),
        capacity=300,
        addons=[{"name": "Sound", "price": "300"}, {"name": "Lighting", "price": "150"}],
        amenities=["parking"],
        is_active=True,
    )


@pytest.fixture
def chalet_id(db_engine: Engine, vendor_id: UUID) -> UUID:
    return _insert(
        db_engine,
        Hall,
        vendor_id=vendor_id,
        name="Palm Chalet",
        hall_type="chalet",
        price_per_night=Decimal("800.00"),
        addons=[],
        amenities=["pool"],
        is_active=True,
    )


@pytest.fixture
def service_id(db_engine: Engine, vendor_id: UUID) -> UUID:
    return _insert(
        db_engine,
        Service,
        vendor_id=vendor_id,
        name="Buffet",
        price=Decimal("500.00"),
        price_per_adult=Decimal("50.00"),
        price_per_child=Decimal("25.00"),
        addons=[],
        is_active=True,
    )


@pytest.fixture
def coupon_id(db_engine: Engine, vendor_id: UUID) -> UUID:
    """SUMMER10: 10% off every asset of the vendor during 2026."""
    with db_engine.begin() as conn:
        return insert_coupon(
            conn,
            {
                "vendor_id": vendor_id,
                "code": "SUMMER10",
                "discount_type": "percentage",
                "discount_value": Decimal("10"),
                "target_ids": [],
                "start_date": date(2026, 1, 1),
                "end_date": date(2026, 12, 31),
                "is_active": True,
            },
        )


@pytest.fixture
def make_manual_booking(
    db_engine: Engine, vendor_id: UUID, hall_id: UUID, now: datetime
) -> Callable[..., dict[str, Any]]:
    """
    Factory for vendor bookings on the hall (defaults: confirmed, unpaid,
    EVENT_DAY, total 2645.00).
    """

    def factory(**overrides: Any) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "asset_id": hall_id,
            "booking_date": EVENT_DAY,
            "addons": ["Sound"],
            "guest_name": "Sara Al-Harbi",
            "guest_phone": "0500000000",
        }
        fields.update(overrides)
        return create_manual_booking(db_engine, vendor_id, ManualBookingCreate(**fields), now=now)

    return factory
