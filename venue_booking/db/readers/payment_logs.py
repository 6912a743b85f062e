from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from venue_booking.models.payment_logs import PaymentLog


def get_payment_log(conn: Connection, payment_log_id: UUID) -> Optional[dict[str, Any]]:
    """
    Fetch a single payment log entry.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        payment_log_id (UUID): Payment log ID.

    Returns:
        Optional[dict[str, Any]]: Log columns or None if not found.
    """
    row = (
        conn.execute(select(PaymentLog.__table__).where(PaymentLog.id == payment_log_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def list_payment_logs(conn: Connection, booking_id: UUID) -> list[dict[str, Any]]:
    """
    Fetch the full payment log of a booking, newest first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (UUID): Booking ID.

    Returns:
        list[dict[str, Any]]: Payment log rows.
    """
    stmt = (
        select(PaymentLog.__table__)
        .where(PaymentLog.booking_id == booking_id)
        .order_by(PaymentLog.created_at.desc())
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_payment_log_by_reference(conn: Connection, reference: str) -> Optional[dict[str, Any]]:
    """
    Fetch the payment log entry recorded for an external payment reference.

    Returns:
        Optional[dict[str, Any]]: Log columns or None if the reference is unused.
    """
    row = (
        conn.execute(select(PaymentLog.__table__).where(PaymentLog.reference == reference))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None
