from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.engine import Connection

from venue_booking.domain.enums import BookingStatus
from venue_booking.models.bookings import Booking


def get_booking(
    conn: Connection, booking_id: UUID, for_update: bool = False
) -> Optional[dict[str, Any]]:
    """
    Fetch a booking row by id.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        booking_id (UUID): Booking ID.
        for_update (bool): Lock the row until the surrounding transaction ends.

    Returns:
        Optional[dict[str, Any]]: Booking columns or None if not found.
    """
    stmt = select(Booking.__table__).where(Booking.id == booking_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_active_bookings_for_asset(conn: Connection, asset_id: UUID) -> list[dict[str, Any]]:
    """
    Fetch all non-cancelled bookings of a hall, chalet or service.

    This is the snapshot handed to the availability checker.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        asset_id (UUID): Hall, chalet or service ID.

    Returns:
        list[dict[str, Any]]: Booking rows ordered by booking_date.
    """
    stmt = (
        select(Booking.__table__)
        .where(
            or_(
                Booking.hall_id == asset_id,
                Booking.chalet_id == asset_id,
                Booking.service_id == asset_id,
            )
        )
        .where(Booking.status != BookingStatus.CANCELLED.value)
        .order_by(Booking.booking_date)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_bookings(
    conn: Connection,
    vendor_id: Optional[UUID] = None,
    user_id: Optional[UUID] = None,
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    List bookings, newest first, filtered by any combination of owner and status.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        vendor_id (Optional[UUID]): Only bookings of this vendor.
        user_id (Optional[UUID]): Only bookings made by this registered user.
        status (Optional[str]): Booking status filter.
        payment_status (Optional[str]): Payment status filter.

    Returns:
        list[dict[str, Any]]: Matching booking rows.
    """
    stmt = select(Booking.__table__).order_by(Booking.created_at.desc())
    if vendor_id is not None:
        stmt = stmt.where(Booking.vendor_id == vendor_id)
    if user_id is not None:
        stmt = stmt.where(Booking.user_id == user_id)
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    if payment_status is not None:
        stmt = stmt.where(Booking.payment_status == payment_status)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_expired_hold_ids(conn: Connection, now: datetime) -> list[UUID]:
    """
    IDs of on_hold bookings whose hold deadline has passed.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        now (datetime): Current time.

    Returns:
        list[UUID]: Booking IDs to cancel.
    """
    stmt = (
        select(Booking.id)
        .where(Booking.status == BookingStatus.ON_HOLD.value)
        .where(Booking.hold_expires_at.is_not(None))
        .where(Booking.hold_expires_at <= now)
    )
    return [row[0] for row in conn.execute(stmt)]
