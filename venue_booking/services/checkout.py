"""
Online card payments for a booking's remaining balance through HyperPay.

The gateway is only the transport: a verified payment is recorded through
the ledger as a card payment, exactly like a payment typed in by a vendor.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel
from sqlalchemy.engine import Engine

from venue_booking import config
from venue_booking.db.readers.payment_logs import get_payment_log_by_reference
from venue_booking.domain.enums import BookingStatus, PaymentMethod
from venue_booking.domain.money import remaining_amount, to_money
from venue_booking.errors import GatewayError, StateError, ValidationError
from venue_booking.network import hyperpay
from venue_booking.services.bookings import get_booking_or_404
from venue_booking.services.ledger import LedgerSummary, add_payment, get_ledger
from venue_booking.services.notifications import Notifier

logger = structlog.get_logger(__name__)

NON_PAYABLE_STATUSES = {
    BookingStatus.CANCELLED.value,
    BookingStatus.COMPLETED.value,
    BookingStatus.BLOCKED.value,
}


class Checkout(BaseModel):
    checkout_id: str
    url: str
    amount: Decimal
    currency: str


def _ensure_enabled() -> None:
    if not config.HYPERPAY_ENABLED:
        raise GatewayError("GATEWAY_DISABLED", "HyperPay credentials are not configured")


def _split_name(full_name: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    if not full_name or not full_name.strip():
        return None, None
    given, _, surname = full_name.strip().partition(" ")
    return given, surname.strip() or None


def start_checkout(
    engine: Engine,
    booking_id: UUID,
    billing_city: Optional[str] = None,
    billing_country: str = "SA",
) -> Checkout:
    """
    Prepare a gateway checkout for the booking's remaining amount.

    Raises:
        GatewayError: GATEWAY_DISABLED, or the gateway refused the checkout
        NotFoundError: BOOKING_NOT_FOUND
        StateError: INVALID_STATE when nothing is left to pay
    """
    _ensure_enabled()

    with engine.connect() as conn:
        booking = get_booking_or_404(conn, booking_id)

    if booking["status"] in NON_PAYABLE_STATUSES:
        raise StateError("INVALID_STATE", f"Booking is {booking['status']}")
    amount = remaining_amount(booking["total_amount"], booking["paid_amount"])
    if amount <= 0:
        raise StateError("INVALID_STATE", "Booking is already fully paid")

    given_name, surname = _split_name(booking["guest_name"])
    session = hyperpay.create_checkout(
        amount,
        merchant_transaction_id=str(booking_id),
        customer_email=booking["guest_email"],
        given_name=given_name,
        surname=surname,
        billing_city=billing_city,
        billing_country=billing_country,
    )
    logger.info(
        "booking_checkout_started",
        booking_id=str(booking_id),
        checkout_id=session.checkout_id,
        amount=str(amount),
    )
    return Checkout(
        checkout_id=session.checkout_id,
        url=session.url,
        amount=amount,
        currency=config.CURRENCY,
    )


def complete_checkout(
    engine: Engine,
    booking_id: UUID,
    resource_path: str,
    notifier: Notifier | None = None,
) -> LedgerSummary:
    """
    Verify a finished checkout and record it as a card payment.

    Verifying the same resource path twice records the payment once: the
    ledger skips a reference it has already logged, so concurrent verifies of
    one checkout cannot both record it.

    Raises:
        GatewayError: GATEWAY_DISABLED, or the payment was not successful
        ValidationError: INVALID_TARGET when the payment belongs to another booking
        NotFoundError: BOOKING_NOT_FOUND
    """
    _ensure_enabled()
    reference = f"hyperpay:{resource_path}"

    with engine.connect() as conn:
        booking = get_booking_or_404(conn, booking_id)
        existing = get_payment_log_by_reference(conn, reference)
        if existing is not None and existing["booking_id"] == booking_id:
            logger.info("checkout_already_recorded", booking_id=str(booking_id))
            return get_ledger(conn, booking_id).summary

    result = hyperpay.verify_payment(resource_path)
    if not result.success:
        logger.warning(
            "checkout_payment_failed", booking_id=str(booking_id), code=result.code
        )
        raise GatewayError(result.code or "GATEWAY_ERROR", result.description)

    if result.merchant_transaction_id and result.merchant_transaction_id != str(booking_id):
        raise ValidationError(
            "INVALID_TARGET",
            "Payment was made for another booking",
            merchant_transaction_id=result.merchant_transaction_id,
        )

    amount = result.amount
    if amount is None:
        amount = remaining_amount(booking["total_amount"], booking["paid_amount"])

    return add_payment(
        engine,
        booking_id,
        to_money(amount),
        PaymentMethod.CARD,
        notes="HyperPay checkout",
        reference=reference,
        notifier=notifier,
    )
