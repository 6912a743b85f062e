"""Vendor coupon administration and server-side coupon resolution."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from venue_booking.db.readers.assets import get_asset
from venue_booking.db.readers.coupons import get_coupon, list_coupons_for_vendor
from venue_booking.db.writers.coupons import delete_coupon, insert_coupon, update_coupon
from venue_booking.domain.coupons import CouponResolution, normalize_code, resolve_coupon
from venue_booking.errors import NotFoundError, PermissionDeniedError, ValidationError
from venue_booking.metrics import coupon_resolutions
from venue_booking.schemas.coupons import CouponCreatePayload, CouponUpdatePayload
from venue_booking.services.notifications import Notifier, notify
from venue_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def _coupon_columns(data: dict[str, Any]) -> dict[str, Any]:
    if "code" in data and data["code"] is not None:
        data["code"] = normalize_code(data["code"])
        if not data["code"]:
            raise ValidationError("MISSING_FIELD", "Coupon code is required")
    if "discount_type" in data and data["discount_type"] is not None:
        data["discount_type"] = data["discount_type"].value
    if "target_ids" in data and data["target_ids"] is not None:
        data["target_ids"] = [str(t) for t in data["target_ids"]]
    return data


def _check_window(start: Optional[date], end: Optional[date]) -> None:
    if start is not None and end is not None and end < start:
        raise ValidationError("INVALID_DATE_RANGE", "Coupon end_date precedes start_date")


def get_owned_coupon(conn: Connection, coupon_id: UUID, vendor_id: Optional[UUID]) -> dict[str, Any]:
    """
    Fetch a coupon, checking it belongs to the acting vendor (None = admin).

    Raises:
        NotFoundError: COUPON_NOT_FOUND
        PermissionDeniedError: FORBIDDEN
    """
    coupon = get_coupon(conn, coupon_id)
    if coupon is None:
        raise NotFoundError("COUPON_NOT_FOUND", f"Coupon {coupon_id} not found")
    if vendor_id is not None and coupon["vendor_id"] != vendor_id:
        raise PermissionDeniedError("FORBIDDEN", "Coupon belongs to another vendor")
    return coupon


def create_coupon(
    engine: Engine,
    vendor_id: UUID,
    payload: CouponCreatePayload,
    notifier: Notifier | None = None,
) -> dict[str, Any]:
    """
    Create a coupon for a vendor.

    Raises:
        ValidationError: MISSING_FIELD / INVALID_DATE_RANGE, or COUPON_REJECTED for a duplicate code
    """
    data = _coupon_columns(payload.model_dump())
    data["start_date"] = data["start_date"] or utc_now().date()
    _check_window(data["start_date"], data["end_date"])

    try:
        with engine.begin() as conn:
            coupon_id = insert_coupon(conn, {"vendor_id": vendor_id, **data})
            coupon = get_coupon(conn, coupon_id)
    except IntegrityError:
        raise ValidationError("COUPON_REJECTED", f"Coupon {data['code']} already exists")

    logger.info("coupon_created", coupon_id=str(coupon_id), vendor_id=str(vendor_id), code=data["code"])
    notify(notifier, "coupon_saved", coupon_id=str(coupon_id))
    return coupon


def update_coupon_fields(
    engine: Engine,
    coupon_id: UUID,
    vendor_id: Optional[UUID],
    payload: CouponUpdatePayload,
    notifier: Notifier | None = None,
) -> dict[str, Any]:
    """
    Update a coupon (including toggling is_active).

    Raises:
        NotFoundError: COUPON_NOT_FOUND
        PermissionDeniedError: FORBIDDEN
        ValidationError: INVALID_DATE_RANGE / COUPON_REJECTED for a duplicate code
    """
    data = _coupon_columns(payload.model_dump(exclude_unset=True))

    try:
        with engine.begin() as conn:
            coupon = get_owned_coupon(conn, coupon_id, vendor_id)
            _check_window(
                data.get("start_date", coupon["start_date"]), data.get("end_date", coupon["end_date"])
            )
            if data:
                update_coupon(conn, coupon_id, data)
            coupon = get_coupon(conn, coupon_id)
    except IntegrityError:
        raise ValidationError("COUPON_REJECTED", "Another coupon already uses this code")

    logger.info("coupon_updated", coupon_id=str(coupon_id), fields=sorted(data))
    notify(notifier, "coupon_saved", coupon_id=str(coupon_id))
    return coupon


def remove_coupon(engine: Engine, coupon_id: UUID, vendor_id: Optional[UUID]) -> None:
    with engine.begin() as conn:
        get_owned_coupon(conn, coupon_id, vendor_id)
        delete_coupon(conn, coupon_id)
    logger.info("coupon_deleted", coupon_id=str(coupon_id))


def list_vendor_coupons(engine: Engine, vendor_id: UUID) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        return list_coupons_for_vendor(conn, vendor_id)


def resolve_coupon_for_asset(
    engine: Engine,
    code: str,
    asset_id: UUID,
    today: Optional[date] = None,
) -> CouponResolution:
    """
    Resolve a code against the stored coupons of the asset's vendor.

    Raises:
        NotFoundError: ASSET_NOT_FOUND
    """
    with engine.connect() as conn:
        asset = get_asset(conn, asset_id)
        if asset is None:
            raise NotFoundError("ASSET_NOT_FOUND", f"Asset {asset_id} not found")
        coupons = list_coupons_for_vendor(conn, asset["vendor_id"])

    resolution = resolve_coupon(
        code,
        vendor_id=asset["vendor_id"],
        target_asset_id=asset_id,
        coupons=coupons,
        today=today or utc_now().date(),
    )
    outcome = "applied" if resolution.ok else resolution.rejected.value
    coupon_resolutions.labels(outcome=outcome).inc()
    logger.info("coupon_resolved", code=resolution.code, asset_id=str(asset_id), outcome=outcome)
    return resolution
