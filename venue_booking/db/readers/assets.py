from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from venue_booking.domain.enums import AssetKind, HallType
from venue_booking.models.assets import Hall, Service


def get_asset(conn: Connection, asset_id: UUID, for_update: bool = False) -> Optional[dict[str, Any]]:
    """
    Fetch a hall, chalet or service by id.

    The returned dict carries a ``kind`` key (hall, chalet or service) telling
    which booking column references it. Locking the asset row serializes
    booking creation for that asset until the transaction ends.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        asset_id (UUID): Asset ID.
        for_update (bool): Lock the asset row.

    Returns:
        Optional[dict[str, Any]]: Asset columns plus ``kind``, or None if not found.
    """
    hall_stmt = select(Hall.__table__).where(Hall.id == asset_id)
    if for_update:
        hall_stmt = hall_stmt.with_for_update()
    hall = conn.execute(hall_stmt).mappings().fetchone()
    if hall:
        asset = dict(hall)
        asset["kind"] = (
            AssetKind.HALL if asset["hall_type"] == HallType.HALL.value else AssetKind.CHALET
        )
        return asset

    service_stmt = select(Service.__table__).where(Service.id == asset_id)
    if for_update:
        service_stmt = service_stmt.with_for_update()
    service = conn.execute(service_stmt).mappings().fetchone()
    if service:
        asset = dict(service)
        asset["kind"] = AssetKind.SERVICE
        return asset

    return None
