import uuid
from typing import Any
from uuid import UUID

from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from venue_booking.models.coupons import Coupon
from venue_booking.utils.datetime import utc_now


def insert_coupon(conn: Connection, data: dict[str, Any]) -> UUID:
    """
    Insert a coupon row.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        data (dict[str, Any]): Coupon columns (code already normalized).

    Returns:
        UUID: The coupon ID.
    """
    coupon_id = uuid.uuid4()
    conn.execute(insert(Coupon).values(id=coupon_id, created_at=utc_now(), **data))
    return coupon_id


def update_coupon(conn: Connection, coupon_id: UUID, data: dict[str, Any]) -> None:
    """
    Update coupon fields.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        coupon_id (UUID): Coupon ID.
        data (dict): Fields to update (only non-None values)
    """
    conn.execute(update(Coupon).where(Coupon.id == coupon_id).values(**data))


def delete_coupon(conn: Connection, coupon_id: UUID) -> None:
    conn.execute(delete(Coupon).where(Coupon.id == coupon_id))
