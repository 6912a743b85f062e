from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from venue_booking.domain.coupons import CouponRejection
from venue_booking.domain.enums import DiscountType


class CouponCreatePayload(BaseModel):
    """
    Schema for creating a vendor coupon. The code is stored upper-cased.
    """

    code: str = Field(..., min_length=1, max_length=64, description="Coupon code")
    discount_type: DiscountType = Field(DiscountType.PERCENTAGE, description="percentage or fixed")
    discount_value: Decimal = Field(..., gt=0, description="Percent or fixed amount")
    target_ids: list[UUID] = Field(default_factory=list, description="Empty = all assets")
    start_date: Optional[date] = Field(None, description="First valid day (defaults to today)")
    end_date: Optional[date] = Field(None, description="Last valid day (None = no expiry)")
    is_active: bool = True


class CouponUpdatePayload(BaseModel):
    """
    Schema for updating a coupon. All fields are optional.
    """

    code: Optional[str] = Field(None, min_length=1, max_length=64)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    target_ids: Optional[list[UUID]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class CouponResolvePayload(BaseModel):
    code: str = Field(..., description="Code as typed by the user")
    asset_id: UUID = Field(..., description="Hall, chalet or service being booked")
    subtotal: Optional[Decimal] = Field(None, ge=0, description="Subtotal to preview the discount on")


class CouponResolveResponse(BaseModel):
    code: str
    applied: bool
    rejected: Optional[CouponRejection] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None


class CouponOut(BaseModel):
    id: UUID
    vendor_id: UUID
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    target_ids: list[str]
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool
    created_at: Optional[datetime] = None
