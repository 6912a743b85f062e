from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from venue_booking.dependencies import get_current_profile, get_db_engine, get_notifier
from venue_booking.errors import BookingError, ValidationError
from venue_booking.routes._helpers import require_vendor_or_403
from venue_booking.schemas.coupons import (
    CouponCreatePayload,
    CouponOut,
    CouponResolvePayload,
    CouponResolveResponse,
    CouponUpdatePayload,
)
from venue_booking.schemas.profiles import UserProfile
from venue_booking.services.coupons import (
    create_coupon,
    list_vendor_coupons,
    remove_coupon,
    resolve_coupon_for_asset,
    update_coupon_fields,
)
from venue_booking.services.notifications import Notifier

logger = structlog.get_logger(__name__)
router = APIRouter()


def _target_vendor(profile: UserProfile, vendor_id: Optional[UUID]) -> UUID:
    """Vendors act on their own coupons; admins name the vendor explicitly."""
    scope = require_vendor_or_403(profile)
    if scope is not None:
        return scope
    if vendor_id is None:
        raise ValidationError("MISSING_FIELD", "vendor_id is required for admins")
    return vendor_id


@router.post("/coupons/resolve", response_model=CouponResolveResponse)
def resolve(
    payload: CouponResolvePayload,
    engine: Engine = Depends(get_db_engine),
) -> CouponResolveResponse:
    """
    Check a coupon code against an asset. Rejections are returned, not raised.
    """
    try:
        resolution = resolve_coupon_for_asset(engine, payload.code, payload.asset_id)
        response = CouponResolveResponse(
            code=resolution.code, applied=resolution.ok, rejected=resolution.rejected
        )
        if resolution.ok:
            discount = resolution.discount()
            response.discount_type = discount.type
            response.discount_value = discount.value
            if payload.subtotal is not None:
                response.discount_amount = resolution.discount_amount(payload.subtotal)
        return response

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("coupon_resolve_failed", code=payload.code, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/coupons", response_model=list[CouponOut])
def get_coupons(
    vendor_id: Optional[UUID] = Query(None, description="Admins only"),
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
) -> list[CouponOut]:
    try:
        coupons = list_vendor_coupons(engine, _target_vendor(profile, vendor_id))
        return [CouponOut.model_validate(c) for c in coupons]

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("coupon_list_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/coupons", status_code=status.HTTP_201_CREATED, response_model=CouponOut)
def post_coupon(
    payload: CouponCreatePayload,
    vendor_id: Optional[UUID] = Query(None, description="Admins only"),
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> CouponOut:
    try:
        coupon = create_coupon(
            engine, _target_vendor(profile, vendor_id), payload, notifier=notifier
        )
        return CouponOut.model_validate(coupon)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("coupon_creation_failed", code=payload.code, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/coupons/{coupon_id}", response_model=CouponOut)
def patch_coupon(
    coupon_id: UUID,
    payload: CouponUpdatePayload,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> CouponOut:
    """
    Update a coupon; send {"is_active": false} to switch it off.
    """
    try:
        scope = require_vendor_or_403(profile)
        coupon = update_coupon_fields(engine, coupon_id, scope, payload, notifier=notifier)
        return CouponOut.model_validate(coupon)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("coupon_update_failed", coupon_id=str(coupon_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/coupons/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_coupon_endpoint(
    coupon_id: UUID,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
) -> None:
    try:
        remove_coupon(engine, coupon_id, require_vendor_or_403(profile))

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("coupon_delete_failed", coupon_id=str(coupon_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
