"""
Booking lifecycle: status transitions, payment status derivation and the
initial state of newly created bookings.

    pending   -> confirmed | cancelled | on_hold | blocked | completed
    confirmed -> cancelled | completed
    on_hold   -> confirmed | cancelled
    cancelled, completed, blocked are terminal
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from venue_booking.config import DEPOSIT_RATE, ON_HOLD_TTL_HOURS
from venue_booking.domain.enums import BookingStatus, PaymentOption, PaymentStatus
from venue_booking.domain.money import ZERO, MoneyLike, quantize, to_money
from venue_booking.errors import StateError, ValidationError

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
            BookingStatus.ON_HOLD,
            BookingStatus.BLOCKED,
            BookingStatus.COMPLETED,
        }
    ),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.ON_HOLD: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.BLOCKED: frozenset(),
}

# Statuses a vendor may pick when entering a booking by hand
MANUAL_INITIAL_STATUSES = frozenset(
    {
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        BookingStatus.ON_HOLD,
        BookingStatus.BLOCKED,
        BookingStatus.COMPLETED,
    }
)


class InitialState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: BookingStatus
    payment_status: PaymentStatus
    paid_amount: Decimal
    hold_expires_at: Optional[datetime] = None


def is_terminal(status: BookingStatus) -> bool:
    return not ALLOWED_TRANSITIONS[BookingStatus(status)]


def derive_payment_status(paid_amount: MoneyLike, total_amount: MoneyLike) -> PaymentStatus:
    """
    Payment status implied by the paid amount.

    paid once the total is covered (a zero total counts as covered), partial
    when something was paid, unpaid otherwise.
    """
    paid = to_money(paid_amount)
    if paid >= to_money(total_amount):
        return PaymentStatus.PAID
    if paid > ZERO:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def ensure_paid_within_total(paid_amount: MoneyLike, total_amount: MoneyLike) -> None:
    if to_money(paid_amount) > to_money(total_amount):
        raise StateError(
            "INVALID_STATE",
            "paid_amount exceeds total_amount",
            paid_amount=str(paid_amount),
            total_amount=str(total_amount),
        )


def validate_transition(
    current: BookingStatus | str,
    target: BookingStatus | str,
    paid_amount: MoneyLike,
    total_amount: MoneyLike,
) -> BookingStatus:
    """
    Check a status change before it is persisted.

    Re-applying the current status is allowed and changes nothing.

    Returns:
        BookingStatus: The validated target status

    Raises:
        StateError: INVALID_TRANSITION for a disallowed edge,
            INVALID_STATE when paid_amount exceeds total_amount
    """
    current_status = BookingStatus(current)
    target_status = BookingStatus(target)

    if target_status != current_status and target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise StateError(
            "INVALID_TRANSITION",
            f"Cannot move booking from {current_status.value} to {target_status.value}",
            current=current_status.value,
            target=target_status.value,
        )

    ensure_paid_within_total(paid_amount, total_amount)
    return target_status


def hold_deadline(now: datetime, ttl_hours: int = ON_HOLD_TTL_HOURS) -> datetime:
    return now + timedelta(hours=ttl_hours)


def initial_state_for_option(
    option: PaymentOption | str,
    total_amount: MoneyLike,
    now: datetime,
    deposit_rate: Decimal = DEPOSIT_RATE,
) -> InitialState:
    """
    Initial state of a booking made through the public booking flow.

    full    -> confirmed, paid, paid_amount = total
    deposit -> pending, partial, paid_amount = total x deposit_rate
    later   -> pending, unpaid, 0
    hold    -> on_hold, unpaid, 0, expiring after ON_HOLD_TTL_HOURS
    """
    total = to_money(total_amount)
    choice = PaymentOption(option)

    if choice == PaymentOption.FULL:
        return InitialState(
            status=BookingStatus.CONFIRMED,
            payment_status=derive_payment_status(total, total),
            paid_amount=total,
        )
    if choice == PaymentOption.DEPOSIT:
        deposit = quantize(total * Decimal(deposit_rate))
        return InitialState(
            status=BookingStatus.PENDING,
            payment_status=derive_payment_status(deposit, total),
            paid_amount=deposit,
        )
    if choice == PaymentOption.HOLD:
        return InitialState(
            status=BookingStatus.ON_HOLD,
            payment_status=PaymentStatus.UNPAID,
            paid_amount=ZERO,
            hold_expires_at=hold_deadline(now),
        )
    return InitialState(
        status=BookingStatus.PENDING,
        payment_status=PaymentStatus.UNPAID,
        paid_amount=ZERO,
    )


def normalize_manual_state(
    status: BookingStatus | str,
    payment_status: PaymentStatus | str,
    paid_amount: Optional[MoneyLike],
    total_amount: MoneyLike,
    now: datetime,
) -> InitialState:
    """
    Validate and normalize the state a vendor entered by hand.

    paid     -> paid_amount forced to the total
    partial  -> paid_amount must be > 0; an amount covering the total becomes paid
    unpaid   -> paid_amount forced to 0

    Raises:
        StateError: INVALID_TRANSITION for a status a new booking cannot start in
        ValidationError: INVALID_AMOUNT for a partial payment without a positive amount
    """
    booking_status = BookingStatus(status)
    if booking_status not in MANUAL_INITIAL_STATUSES:
        raise StateError(
            "INVALID_TRANSITION",
            f"A booking cannot be created as {booking_status.value}",
            target=booking_status.value,
        )

    total = to_money(total_amount)
    requested = PaymentStatus(payment_status)

    if requested == PaymentStatus.PAID:
        paid = total
    elif requested == PaymentStatus.PARTIAL:
        paid = to_money(paid_amount)
        if paid <= ZERO:
            raise ValidationError("INVALID_AMOUNT", "Partial payment requires a positive amount")
        # An amount covering the total is recorded as exactly the total
        paid = min(paid, total)
    else:
        paid = ZERO

    return InitialState(
        status=booking_status,
        payment_status=derive_payment_status(paid, total),
        paid_amount=paid,
        hold_expires_at=hold_deadline(now) if booking_status == BookingStatus.ON_HOLD else None,
    )
