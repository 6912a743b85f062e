from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from venue_booking.domain.enums import PaymentMethod, PaymentStatus


class PaymentCreatePayload(BaseModel):
    """
    Schema for registering a payment against a booking.
    """

    amount: Decimal = Field(..., description="Amount paid, must be greater than zero")
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, description="cash, card or transfer")
    notes: Optional[str] = Field(None, max_length=500)


class LedgerSummaryOut(BaseModel):
    booking_id: UUID
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    payment_status: PaymentStatus


class PaymentLogOut(BaseModel):
    id: UUID
    booking_id: UUID
    vendor_id: UUID
    amount: Decimal
    payment_method: PaymentMethod
    notes: Optional[str] = None
    reference: Optional[str] = None
    created_at: Optional[datetime] = None


class LedgerOut(BaseModel):
    summary: LedgerSummaryOut
    entries: list[PaymentLogOut]
