from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from venue_booking.domain.coupons import CouponRejection
from venue_booking.domain.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentOption,
    PaymentStatus,
)


class QuoteRequest(BaseModel):
    """
    Schema for pricing a hall, chalet or service booking.
    """

    asset_id: UUID = Field(..., description="Hall, chalet or service ID")
    booking_date: date = Field(..., description="Booked day (check-in day for chalets)")
    check_out_date: Optional[date] = Field(None, description="Last day of a chalet stay")
    addons: list[str] = Field(default_factory=list, description="Names of selected add-ons")
    coupon_code: Optional[str] = Field(None, description="Coupon code (case-insensitive)")
    adults: Optional[int] = Field(None, ge=0, description="Adults, for per-person services")
    children: Optional[int] = Field(None, ge=0, description="Children, for per-person services")


class GuestBookingCreate(QuoteRequest):
    """
    Schema for a booking made through the public booking flow.
    Registered users may omit contact details; guests must provide name and phone.
    """

    start_time: Optional[time] = Field(None, description="Hall slot start")
    end_time: Optional[time] = Field(None, description="Hall slot end")
    payment_option: PaymentOption = Field(PaymentOption.LATER, description="full, deposit, later or hold")
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    guest_email: Optional[str] = None
    notes: Optional[str] = None


class ManualBookingCreate(QuoteRequest):
    """
    Schema for a booking entered by a vendor in the back office.
    """

    start_time: Optional[time] = None
    end_time: Optional[time] = None
    status: BookingStatus = Field(BookingStatus.CONFIRMED, description="Initial booking status")
    payment_status: PaymentStatus = Field(PaymentStatus.UNPAID, description="Initial payment status")
    paid_amount: Optional[Decimal] = Field(None, description="Amount already paid (partial only)")
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, description="Method of the initial payment")
    base_price: Optional[Decimal] = Field(None, ge=0, description="Overrides the asset's list price")
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    guest_email: Optional[str] = None
    user_id: Optional[UUID] = None
    notes: Optional[str] = None


class BookingUpdate(BaseModel):
    """
    Schema for editing a booking. All fields are optional.
    Note: paid_amount and payment_status are only changed through the payment ledger.
    """

    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    guest_email: Optional[str] = None
    notes: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    status: Optional[BookingStatus] = None


class TransitionRequest(BaseModel):
    status: BookingStatus


class ReadFlagRequest(BaseModel):
    is_read: bool = True


class CouponOutcome(BaseModel):
    code: str
    applied: bool
    rejected: Optional[CouponRejection] = None


class QuoteResponse(BaseModel):
    asset_id: UUID
    asset_kind: str
    vendor_id: UUID
    nights: int
    base_price: Decimal
    items: list[dict[str, Any]]
    subtotal: Decimal
    discount_amount: Decimal
    price_after_discount: Decimal
    vat_amount: Decimal
    total_amount: Decimal
    currency: str
    coupon: Optional[CouponOutcome] = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    vendor_id: UUID
    user_id: Optional[UUID] = None
    hall_id: Optional[UUID] = None
    chalet_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    booking_date: date
    check_out_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    subtotal: Decimal
    discount_amount: Decimal
    vat_amount: Decimal
    total_amount: Decimal
    applied_coupon: Optional[str] = None
    paid_amount: Decimal
    payment_status: PaymentStatus
    status: BookingStatus
    booking_method: Optional[str] = None
    hold_expires_at: Optional[datetime] = None
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    guest_email: Optional[str] = None
    items: list[dict[str, Any]] = Field(default_factory=list)
    notes: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
