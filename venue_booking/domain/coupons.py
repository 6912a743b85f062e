"""
Coupon resolution.

Codes are compared case-insensitively (stripped and upper-cased). A coupon
applies when it is active, inside its validity window and either unscoped
(empty target_ids) or scoped to the booked asset.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from venue_booking.domain.enums import DiscountType
from venue_booking.domain.money import Discount, compute_discount, to_money
from venue_booking.utils.datetime import as_date


class CouponRejection(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    NOT_YET_VALID = "NOT_YET_VALID"
    OUT_OF_SCOPE = "OUT_OF_SCOPE"


class CouponResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    applied: Optional[dict[str, Any]] = None
    rejected: Optional[CouponRejection] = None

    @property
    def ok(self) -> bool:
        return self.applied is not None

    def discount(self) -> Optional[Discount]:
        """Discount rule of the applied coupon, or None when rejected."""
        if self.applied is None:
            return None
        return Discount(
            type=DiscountType(self.applied["discount_type"]),
            value=to_money(self.applied["discount_value"]),
        )

    def discount_amount(self, subtotal: Any) -> Decimal:
        """Discount produced by the money calculator for this subtotal."""
        return compute_discount(to_money(subtotal), self.discount())


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def _in_scope(coupon: Mapping[str, Any], target_asset_id: Any) -> bool:
    target_ids = coupon.get("target_ids") or []
    if not target_ids:
        return True
    return str(target_asset_id) in {str(t) for t in target_ids}


def resolve_coupon(
    code: str,
    vendor_id: Any,
    target_asset_id: Any,
    coupons: Iterable[Mapping[str, Any]],
    today: date | datetime,
) -> CouponResolution:
    """
    Validate a coupon code for a vendor's asset on a given day.

    Args:
        code: Code as typed by the user
        vendor_id: Owner of the booked asset
        target_asset_id: Booked hall/chalet/service id
        coupons: The vendor's coupons (any state)
        today: Day the coupon is being used

    Returns:
        CouponResolution: ``applied`` holds the coupon row; otherwise ``rejected`` holds the reason
    """
    normalized = normalize_code(code)
    day = as_date(today)

    match = next(
        (
            c
            for c in coupons
            if normalize_code(c.get("code", "")) == normalized
            and str(c.get("vendor_id")) == str(vendor_id)
        ),
        None,
    )

    if not normalized or match is None:
        return CouponResolution(code=normalized, rejected=CouponRejection.NOT_FOUND)
    if not match.get("is_active", False):
        return CouponResolution(code=normalized, rejected=CouponRejection.INACTIVE)

    end_date = match.get("end_date")
    if end_date is not None and day > as_date(end_date):
        return CouponResolution(code=normalized, rejected=CouponRejection.EXPIRED)

    start_date = match.get("start_date")
    if start_date is not None and day < as_date(start_date):
        return CouponResolution(code=normalized, rejected=CouponRejection.NOT_YET_VALID)

    if not _in_scope(match, target_asset_id):
        return CouponResolution(code=normalized, rejected=CouponRejection.OUT_OF_SCOPE)

    return CouponResolution(code=normalized, applied=dict(match))
