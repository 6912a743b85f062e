"""
Money and VAT calculation for bookings.

All arithmetic uses Decimal. Every figure that is persisted or displayed is
quantized to 2 decimal places with ROUND_HALF_UP.

Example:
    >>> totals = compute_totals(Decimal("2000"), [Extra(name="Sound", price=Decimal("300"))],
    ...                         Discount(type=DiscountType.PERCENTAGE, value=Decimal("10")))
    >>> totals.total
    Decimal('2380.50')
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict

from venue_booking.config import VAT_RATE
from venue_booking.domain.enums import DiscountType
from venue_booking.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, int, float, str]


class Extra(BaseModel):
    """A selected add-on/extra line. Mirrors the booking ``items`` entries."""

    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal
    qty: int = 1
    type: str = "addon"


class Discount(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: DiscountType
    value: Decimal


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    discount_amount: Decimal
    price_after_discount: Decimal
    vat_amount: Decimal
    total: Decimal


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Optional[MoneyLike]) -> Decimal:
    """
    Convert a user-supplied number to a 2-decimal Decimal.

    Floats go through ``str`` so 0.1 stays 0.10 rather than its binary expansion.
    None is treated as zero.

    Raises:
        ValidationError: INVALID_AMOUNT if the value is not a finite number
    """
    if value is None:
        return ZERO
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("INVALID_AMOUNT", f"Not a monetary amount: {value!r}")
    if not amount.is_finite():
        raise ValidationError("INVALID_AMOUNT", f"Not a monetary amount: {value!r}")
    return quantize(amount)


def _non_negative(value: MoneyLike, field: str) -> Decimal:
    amount = to_money(value)
    if amount < 0:
        raise ValidationError("INVALID_AMOUNT", f"{field} must not be negative", field=field)
    return amount


def compute_discount(subtotal: Decimal, discount: Optional[Discount]) -> Decimal:
    """
    Discount amount for a subtotal, clamped so it never exceeds the subtotal.

    Args:
        subtotal: Non-negative subtotal before discount
        discount: Discount rule, or None for no discount

    Returns:
        Decimal: Discount amount in [0, subtotal]
    """
    if discount is None:
        return ZERO

    value = _non_negative(discount.value, "discount_value")
    if discount.type == DiscountType.PERCENTAGE:
        amount = quantize(subtotal * value / Decimal(100))
    else:
        amount = value
    return min(amount, subtotal)


def compute_totals(
    base_price: MoneyLike,
    extras: Iterable[Extra] = (),
    discount: Optional[Discount] = None,
    vat_rate: MoneyLike = VAT_RATE,
) -> Totals:
    """
    Compute subtotal, discount, VAT and total for a booking.

    Args:
        base_price: Asset price for the booked date/range
        extras: Selected add-ons (price x qty each)
        discount: Optional coupon/vendor discount
        vat_rate: VAT rate as a fraction (defaults to configured VAT_RATE)

    Returns:
        Totals: All amounts non-negative and rounded to 2 decimals

    Raises:
        ValidationError: INVALID_AMOUNT for negative prices, quantities or rates
    """
    subtotal = _non_negative(base_price, "base_price")
    for extra in extras:
        if extra.qty < 0:
            raise ValidationError("INVALID_AMOUNT", "Extra quantity must not be negative")
        subtotal += _non_negative(extra.price, "extra_price") * extra.qty

    rate = Decimal(str(vat_rate)) if isinstance(vat_rate, float) else Decimal(vat_rate)
    if rate < 0:
        raise ValidationError("INVALID_AMOUNT", "VAT rate must not be negative")

    discount_amount = compute_discount(subtotal, discount)
    price_after_discount = max(ZERO, subtotal - discount_amount)
    vat_amount = quantize(price_after_discount * rate)

    return Totals(
        subtotal=quantize(subtotal),
        discount_amount=discount_amount,
        price_after_discount=quantize(price_after_discount),
        vat_amount=vat_amount,
        total=quantize(price_after_discount + vat_amount),
    )


def remaining_amount(total: MoneyLike, paid: MoneyLike) -> Decimal:
    """Amount still owed on a booking; never negative."""
    return max(ZERO, to_money(total) - to_money(paid))
