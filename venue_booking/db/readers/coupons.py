from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from venue_booking.models.coupons import Coupon


def get_coupon(conn: Connection, coupon_id: UUID) -> Optional[dict[str, Any]]:
    """
    Fetch a coupon by id.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        coupon_id (UUID): Coupon ID.

    Returns:
        Optional[dict[str, Any]]: Coupon columns or None if not found.
    """
    row = conn.execute(select(Coupon.__table__).where(Coupon.id == coupon_id)).mappings().fetchone()
    return dict(row) if row else None


def list_coupons_for_vendor(
    conn: Connection, vendor_id: UUID, active_only: bool = False
) -> list[dict[str, Any]]:
    """
    Fetch a vendor's coupons, newest first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        vendor_id (UUID): Vendor ID.
        active_only (bool): Skip coupons the vendor switched off.

    Returns:
        list[dict[str, Any]]: Coupon rows.
    """
    stmt = (
        select(Coupon.__table__)
        .where(Coupon.vendor_id == vendor_id)
        .order_by(Coupon.created_at.desc())
    )
    if active_only:
        stmt = stmt.where(Coupon.is_active.is_(True))
    return [dict(row) for row in conn.execute(stmt).mappings()]
