"""
Integration tests for vendor coupon administration and resolution.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy.engine import Engine

from venue_booking.domain.coupons import CouponRejection
from venue_booking.errors import NotFoundError, PermissionDeniedError, ValidationError
from venue_booking.schemas.coupons import CouponCreatePayload, CouponUpdatePayload
from venue_booking.services.coupons import (
    create_coupon,
    list_vendor_coupons,
    remove_coupon,
    resolve_coupon_for_asset,
    update_coupon_fields,
)
from venue_booking.services.notifications import RecordingNotifier

IN_MARCH = date(2026, 3, 10)


def payload(**overrides):
    fields = {
        "code": " eid25 ",
        "discount_type": "fixed",
        "discount_value": Decimal("250"),
        "start_date": date(2026, 3, 1),
        "end_date": date(2026, 4, 30),
    }
    fields.update(overrides)
    return CouponCreatePayload(**fields)


@pytest.mark.integration
def test_create_normalizes_code_and_notifies(db_engine: Engine, vendor_id: UUID) -> None:
    notifier = RecordingNotifier()

    coupon = create_coupon(db_engine, vendor_id, payload(), notifier=notifier)

    assert coupon["code"] == "EID25"
    assert coupon["discount_type"] == "fixed"
    assert coupon["vendor_id"] == vendor_id
    assert notifier.sent[0][:2] == ("coupon_saved", "تم حفظ الكوبون")
    assert [c["code"] for c in list_vendor_coupons(db_engine, vendor_id)] == ["EID25"]


@pytest.mark.integration
def test_duplicate_code_is_rejected(db_engine: Engine, vendor_id: UUID, other_vendor_id: UUID) -> None:
    create_coupon(db_engine, vendor_id, payload())

    with pytest.raises(ValidationError) as exc_info:
        create_coupon(db_engine, vendor_id, payload(code="EID25"))

    assert exc_info.value.code == "COUPON_REJECTED"
    # Codes are unique per vendor only
    assert create_coupon(db_engine, other_vendor_id, payload())["code"] == "EID25"


@pytest.mark.integration
def test_window_must_be_ordered(db_engine: Engine, vendor_id: UUID) -> None:
    with pytest.raises(ValidationError) as exc_info:
        create_coupon(
            db_engine, vendor_id, payload(start_date=date(2026, 5, 1), end_date=date(2026, 4, 1))
        )

    assert exc_info.value.code == "INVALID_DATE_RANGE"


@pytest.mark.integration
def test_blank_code_is_rejected(db_engine: Engine, vendor_id: UUID) -> None:
    with pytest.raises(ValidationError) as exc_info:
        create_coupon(db_engine, vendor_id, payload(code="   "))

    assert exc_info.value.code == "MISSING_FIELD"


@pytest.mark.integration
def test_resolve_applies_fixed_discount(db_engine: Engine, vendor_id: UUID, hall_id: UUID) -> None:
    create_coupon(db_engine, vendor_id, payload())

    resolution = resolve_coupon_for_asset(db_engine, "Eid25", hall_id, today=IN_MARCH)

    assert resolution.ok
    assert resolution.discount_amount(Decimal("2000")) == Decimal("250.00")
    # A fixed discount never exceeds the subtotal
    assert resolution.discount_amount(Decimal("100")) == Decimal("100.00")


@pytest.mark.integration
def test_resolve_reports_rejections(
    db_engine: Engine, vendor_id: UUID, hall_id: UUID, chalet_id: UUID
) -> None:
    create_coupon(db_engine, vendor_id, payload(target_ids=[chalet_id]))
    create_coupon(db_engine, vendor_id, payload(code="OFF", is_active=False))

    def rejection(code: str, asset_id: UUID, today: date = IN_MARCH) -> CouponRejection:
        return resolve_coupon_for_asset(db_engine, code, asset_id, today=today).rejected

    assert rejection("EID25", chalet_id) is None
    assert rejection("EID25", hall_id) == CouponRejection.OUT_OF_SCOPE
    assert rejection("EID25", chalet_id, today=date(2026, 5, 1)) == CouponRejection.EXPIRED
    assert rejection("EID25", chalet_id, today=date(2026, 2, 1)) == CouponRejection.NOT_YET_VALID
    assert rejection("OFF", hall_id) == CouponRejection.INACTIVE
    assert rejection("NOPE", hall_id) == CouponRejection.NOT_FOUND


@pytest.mark.integration
def test_resolve_ignores_other_vendors_coupons(
    db_engine: Engine, other_vendor_id: UUID, hall_id: UUID
) -> None:
    create_coupon(db_engine, other_vendor_id, payload())

    resolution = resolve_coupon_for_asset(db_engine, "EID25", hall_id, today=IN_MARCH)

    assert resolution.rejected == CouponRejection.NOT_FOUND


@pytest.mark.integration
def test_resolve_unknown_asset(db_engine: Engine) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        resolve_coupon_for_asset(db_engine, "EID25", uuid4(), today=IN_MARCH)

    assert exc_info.value.code == "ASSET_NOT_FOUND"


@pytest.mark.integration
def test_update_toggles_and_checks_ownership(
    db_engine: Engine, vendor_id: UUID, other_vendor_id: UUID, hall_id: UUID
) -> None:
    coupon = create_coupon(db_engine, vendor_id, payload())

    updated = update_coupon_fields(
        db_engine, coupon["id"], vendor_id, CouponUpdatePayload(is_active=False)
    )
    assert updated["is_active"] is False
    assert updated["code"] == "EID25"
    assert (
        resolve_coupon_for_asset(db_engine, "EID25", hall_id, today=IN_MARCH).rejected
        == CouponRejection.INACTIVE
    )

    with pytest.raises(PermissionDeniedError):
        update_coupon_fields(
            db_engine, coupon["id"], other_vendor_id, CouponUpdatePayload(is_active=True)
        )
    with pytest.raises(ValidationError) as exc_info:
        update_coupon_fields(
            db_engine, coupon["id"], vendor_id, CouponUpdatePayload(end_date=date(2026, 2, 1))
        )
    assert exc_info.value.code == "INVALID_DATE_RANGE"

    # Admins act without a vendor scope
    reactivated = update_coupon_fields(
        db_engine, coupon["id"], None, CouponUpdatePayload(is_active=True)
    )
    assert reactivated["is_active"] is True


@pytest.mark.integration
def test_remove_coupon(db_engine: Engine, vendor_id: UUID, other_vendor_id: UUID) -> None:
    coupon = create_coupon(db_engine, vendor_id, payload())

    with pytest.raises(PermissionDeniedError):
        remove_coupon(db_engine, coupon["id"], other_vendor_id)
    remove_coupon(db_engine, coupon["id"], vendor_id)

    assert list_vendor_coupons(db_engine, vendor_id) == []
    with pytest.raises(NotFoundError) as exc_info:
        remove_coupon(db_engine, coupon["id"], vendor_id)
    assert exc_info.value.code == "COUPON_NOT_FOUND"
