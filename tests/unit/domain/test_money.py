"""
Unit tests for the money calculator.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from venue_booking.domain.enums import DiscountType
from venue_booking.domain.money import (
    Discount,
    Extra,
    compute_discount,
    compute_totals,
    remaining_amount,
    to_money,
)
from venue_booking.errors import ValidationError


@pytest.mark.unit
def test_hall_with_addon_and_percentage_coupon() -> None:
    """2000 hall + 300 add-on, 10% off, 15% VAT."""
    totals = compute_totals(
        Decimal("2000"),
        [Extra(name="Sound", price=Decimal("300"))],
        Discount(type=DiscountType.PERCENTAGE, value=Decimal("10")),
    )

    assert totals.subtotal == Decimal("2300.00")
    assert totals.discount_amount == Decimal("230.00")
    assert totals.price_after_discount == Decimal("2070.00")
    assert totals.vat_amount == Decimal("310.50")
    assert totals.total == Decimal("2380.50")


@pytest.mark.unit
def test_totals_without_discount() -> None:
    totals = compute_totals(Decimal("2000"), [Extra(name="Sound", price=Decimal("300"))])

    assert totals.discount_amount == Decimal("0.00")
    assert totals.vat_amount == Decimal("345.00")
    assert totals.total == Decimal("2645.00")


@pytest.mark.unit
def test_extra_quantity_is_multiplied() -> None:
    totals = compute_totals(
        Decimal("100"), [Extra(name="Chairs", price=Decimal("12.50"), qty=4)], vat_rate=Decimal(0)
    )

    assert totals.subtotal == Decimal("150.00")
    assert totals.total == Decimal("150.00")


@pytest.mark.unit
def test_fixed_discount_is_clamped_to_subtotal() -> None:
    totals = compute_totals(
        Decimal("1000"), discount=Discount(type=DiscountType.FIXED, value=Decimal("5000"))
    )

    assert totals.discount_amount == Decimal("1000.00")
    assert totals.price_after_discount == Decimal("0.00")
    assert totals.vat_amount == Decimal("0.00")
    assert totals.total == Decimal("0.00")


@pytest.mark.unit
def test_percentage_over_hundred_is_clamped() -> None:
    discount = Discount(type=DiscountType.PERCENTAGE, value=Decimal("150"))

    assert compute_discount(Decimal("80.00"), discount) == Decimal("80.00")


@pytest.mark.unit
@pytest.mark.parametrize(
    "subtotal, percent, expected",
    [
        ("999.99", "15", "150.00"),
        ("2300", "10", "230.00"),
        ("33.33", "50", "16.67"),
    ],
)
def test_percentage_discount_rounds_half_up(subtotal: str, percent: str, expected: str) -> None:
    discount = Discount(type=DiscountType.PERCENTAGE, value=Decimal(percent))

    assert compute_discount(Decimal(subtotal), discount) == Decimal(expected)


@pytest.mark.unit
def test_vat_rounds_half_up() -> None:
    totals = compute_totals(Decimal("0.10"))

    assert totals.vat_amount == Decimal("0.02")
    assert totals.total == Decimal("0.12")


@pytest.mark.unit
def test_float_vat_rate_matches_decimal_rate() -> None:
    from_float = compute_totals(Decimal("0.10"), vat_rate=0.15)
    from_decimal = compute_totals(Decimal("0.10"), vat_rate=Decimal("0.15"))

    assert from_float.vat_amount == Decimal("0.02")
    assert from_float == from_decimal


@pytest.mark.unit
@pytest.mark.parametrize(
    "base, extras, discount",
    [
        ("1500", ["120.25"], ("fixed", "99.99")),
        ("0", ["10"], ("percentage", "5")),
        ("875.55", [], None),
        ("250", ["40", "60"], ("fixed", "1000")),
    ],
)
def test_total_is_price_after_discount_plus_vat(
    base: str, extras: list[str], discount: tuple[str, str] | None
) -> None:
    rule = Discount(type=DiscountType(discount[0]), value=Decimal(discount[1])) if discount else None
    totals = compute_totals(
        Decimal(base), [Extra(name=f"x{i}", price=Decimal(p)) for i, p in enumerate(extras)], rule
    )

    assert totals.total == totals.price_after_discount + totals.vat_amount
    assert totals.discount_amount <= totals.subtotal
    for amount in totals.model_dump().values():
        assert amount >= 0
        assert amount == amount.quantize(Decimal("0.01"))


@pytest.mark.unit
def test_negative_base_price_is_rejected() -> None:
    with pytest.raises(ValidationError) as exc_info:
        compute_totals(Decimal("-1"))

    assert exc_info.value.code == "INVALID_AMOUNT"


@pytest.mark.unit
def test_negative_extra_price_is_rejected() -> None:
    with pytest.raises(ValidationError) as exc_info:
        compute_totals(Decimal("100"), [Extra(name="Refund", price=Decimal("-20"))])

    assert exc_info.value.code == "INVALID_AMOUNT"


@pytest.mark.unit
def test_to_money_conversions() -> None:
    assert to_money(None) == Decimal("0.00")
    assert to_money(0.1) == Decimal("0.10")
    assert to_money("12.345") == Decimal("12.35")
    assert to_money(7) == Decimal("7.00")


@pytest.mark.unit
@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
def test_to_money_rejects_non_numbers(value: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        to_money(value)

    assert exc_info.value.code == "INVALID_AMOUNT"


@pytest.mark.unit
def test_remaining_amount_never_negative() -> None:
    assert remaining_amount(Decimal("2380.50"), Decimal("1000")) == Decimal("1380.50")
    assert remaining_amount(Decimal("100"), Decimal("150")) == Decimal("0.00")
