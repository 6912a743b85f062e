import uuid
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection

from venue_booking.models.payment_logs import PaymentLog
from venue_booking.utils.datetime import utc_now


def insert_payment_log(
    conn: Connection,
    booking_id: UUID,
    vendor_id: UUID,
    amount: Decimal,
    payment_method: str,
    notes: Optional[str] = None,
    reference: Optional[str] = None,
) -> dict[str, Any]:
    """
    Append a payment event to a booking's log.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (UUID): Owning booking.
        vendor_id (UUID): Vendor of the booking (denormalized).
        amount (Decimal): Positive amount.
        payment_method (str): cash, card or transfer.
        notes (Optional[str]): Free text, e.g. "first instalment".
        reference (Optional[str]): Unique external payment reference.

    Returns:
        dict[str, Any]: The inserted row.
    """
    row = {
        "id": uuid.uuid4(),
        "booking_id": booking_id,
        "vendor_id": vendor_id,
        "amount": amount,
        "payment_method": payment_method,
        "notes": notes,
        "reference": reference,
        "created_at": utc_now(),
    }
    conn.execute(insert(PaymentLog).values(**row))
    return row


def delete_payment_log(conn: Connection, payment_log_id: UUID) -> bool:
    """
    Delete a payment log entry.

    Returns:
        bool: True if the entry existed.
    """
    result = conn.execute(delete(PaymentLog).where(PaymentLog.id == payment_log_id))
    return result.rowcount == 1
