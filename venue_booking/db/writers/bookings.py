import json
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from venue_booking.config import DEBUG
from venue_booking.domain.enums import BookingStatus
from venue_booking.models.bookings import Booking
from venue_booking.models.payment_logs import PaymentLog
from venue_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_booking(conn: Connection, data: dict[str, Any]) -> UUID:
    """
    Insert a new booking row.

    Args:
        conn (Connection): SQLAlchemy DB connection (inside a transaction).
        data (dict[str, Any]): Booking columns; id is generated when missing.

    Returns:
        UUID: The booking ID.
    """
    now = utc_now()
    row = {
        "id": data.get("id") or uuid.uuid4(),
        "version": 1,
        "created_at": now,
        "updated_at": now,
        **{k: v for k, v in data.items() if k != "id"},
    }

    if DEBUG:
        logger.debug("Booking to insert:\n%s", json.dumps(row, default=str, indent=2))

    conn.execute(insert(Booking).values(**row))
    return row["id"]


def update_booking_aggregate(
    conn: Connection,
    booking_id: UUID,
    expected_version: int,
    paid_amount: Decimal,
    payment_status: str,
) -> bool:
    """
    Write recomputed paid_amount/payment_status guarded by the version token.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (UUID): Booking ID.
        expected_version (int): Version read before recomputing.
        paid_amount (Decimal): Sum of the booking's payment logs.
        payment_status (str): Status derived from paid_amount.

    Returns:
        bool: False when another writer bumped the version first.
    """
    stmt = (
        update(Booking)
        .where(Booking.id == booking_id)
        .where(Booking.version == expected_version)
        .values(
            paid_amount=paid_amount,
            payment_status=payment_status,
            version=Booking.version + 1,
            updated_at=utc_now(),
        )
    )
    return conn.execute(stmt).rowcount == 1


def update_booking_fields(
    conn: Connection,
    booking_id: UUID,
    data: dict[str, Any],
    expected_version: int | None = None,
) -> bool:
    """
    Update booking columns other than the payment aggregate.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (UUID): Booking ID.
        data (dict): Fields to update.
        expected_version (int | None): When given, only update if the version still matches.

    Returns:
        bool: True if a row was updated.
    """
    stmt = update(Booking).where(Booking.id == booking_id)
    if expected_version is not None:
        stmt = stmt.where(Booking.version == expected_version)
    stmt = stmt.values(**data, version=Booking.version + 1, updated_at=utc_now())
    return conn.execute(stmt).rowcount == 1


def cancel_bookings(conn: Connection, booking_ids: list[UUID], now: datetime) -> int:
    """
    Cancel several bookings at once (used by the hold expiry sweep).

    Payment logs are left untouched for audit.

    Returns:
        int: Number of bookings cancelled.
    """
    if not booking_ids:
        return 0

    stmt = (
        update(Booking)
        .where(Booking.id.in_(booking_ids))
        .values(
            status=BookingStatus.CANCELLED.value,
            hold_expires_at=None,
            version=Booking.version + 1,
            updated_at=now,
        )
    )
    return conn.execute(stmt).rowcount


def hard_delete_booking(conn: Connection, booking_id: UUID) -> None:
    """
    Permanently delete a booking together with its payment logs.

    Logs are deleted explicitly as well as through ON DELETE CASCADE, so
    databases without enforced foreign keys never keep orphaned logs.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (UUID): Booking ID.
    """
    conn.execute(delete(PaymentLog).where(PaymentLog.booking_id == booking_id))
    conn.execute(delete(Booking).where(Booking.id == booking_id))
