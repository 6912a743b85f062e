"""
Integration tests for booking creation, pricing, availability and lifecycle.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Callable
from uuid import UUID, uuid4

import pytest
from sqlalchemy.engine import Engine

from venue_booking.db.readers.bookings import get_booking
from venue_booking.db.writers.coupons import insert_coupon
from venue_booking.domain.availability import UnavailableReason
from venue_booking.domain.coupons import CouponRejection
from venue_booking.domain.enums import BookingStatus, PaymentMethod, PaymentStatus
from venue_booking.errors import NotFoundError, PermissionDeniedError, StateError, ValidationError
from venue_booking.schemas.bookings import (
    BookingUpdate,
    GuestBookingCreate,
    ManualBookingCreate,
    QuoteRequest,
)
from venue_booking.services.bookings import (
    check_asset_availability,
    create_guest_booking,
    create_manual_booking,
    delete_booking,
    get_blocked_dates,
    quote_booking,
    set_read_flag,
    sweep_expired_holds,
    transition_booking,
    update_booking_details,
)
from venue_booking.services.ledger import add_payment, get_ledger
from venue_booking.services.notifications import RecordingNotifier

EVENT_DAY = date(2026, 3, 20)


def guest_request(asset_id: UUID, **overrides: Any) -> GuestBookingCreate:
    fields: dict[str, Any] = {
        "asset_id": asset_id,
        "booking_date": EVENT_DAY,
        "guest_name": "Sara Al-Harbi",
        "guest_phone": "0500000000",
        "guest_email": "sara@example.com",
    }
    fields.update(overrides)
    return GuestBookingCreate(**fields)


def stored(engine: Engine, booking_id: Any) -> dict[str, Any]:
    with engine.connect() as conn:
        return get_booking(conn, booking_id)


# -----------------------------------------------------------------------------
# Quotes
# -----------------------------------------------------------------------------


@pytest.mark.integration
def test_quote_hall_with_addon_and_coupon(
    db_engine: Engine, hall_id: UUID, coupon_id: UUID, now: datetime
) -> None:
    quote = quote_booking(
        db_engine,
        QuoteRequest(
            asset_id=hall_id, booking_date=EVENT_DAY, addons=["Sound"], coupon_code="summer10"
        ),
        now=now,
    )

    assert quote.asset_kind.value == "hall"
    assert quote.base_price == Decimal("2000.00")
    assert quote.totals.subtotal == Decimal("2300.00")
    assert quote.totals.discount_amount == Decimal("230.00")
    assert quote.totals.vat_amount == Decimal("310.50")
    assert quote.totals.total == Decimal("2380.50")
    assert quote.coupon is not None and quote.coupon.ok


@pytest.mark.integration
def test_quote_reports_rejected_coupon_without_discount(
    db_engine: Engine, hall_id: UUID, coupon_id: UUID
) -> None:
    late = datetime(2027, 1, 5, 9, 0)

    quote = quote_booking(
        db_engine,
        QuoteRequest(asset_id=hall_id, booking_date=date(2027, 1, 20), coupon_code="SUMMER10"),
        now=late,
    )

    assert quote.coupon is not None
    assert quote.coupon.rejected == CouponRejection.EXPIRED
    assert quote.totals.discount_amount == Decimal("0.00")
    assert quote.totals.total == Decimal("2300.00")


@pytest.mark.integration
def test_quote_chalet_prices_per_night(db_engine: Engine, chalet_id: UUID, now: datetime) -> None:
    quote = quote_booking(
        db_engine,
        QuoteRequest(
            asset_id=chalet_id, booking_date=EVENT_DAY, check_out_date=EVENT_DAY + timedelta(3)
        ),
        now=now,
    )

    assert quote.nights == 3
    assert quote.totals.subtotal == Decimal("2400.00")


@pytest.mark.integration
def test_quote_service_prices_per_person(db_engine: Engine, service_id: UUID, now: datetime) -> None:
    per_person = quote_booking(
        db_engine,
        QuoteRequest(asset_id=service_id, booking_date=EVENT_DAY, adults=10, children=4),
        now=now,
    )
    flat = quote_booking(
        db_engine, QuoteRequest(asset_id=service_id, booking_date=EVENT_DAY), now=now
    )

    assert per_person.totals.subtotal == Decimal("600.00")
    assert flat.totals.subtotal == Decimal("500.00")


@pytest.mark.integration
def test_quote_errors(db_engine: Engine, hall_id: UUID, now: datetime) -> None:
    with pytest.raises(ValidationError) as addon_exc:
        quote_booking(
            db_engine,
            QuoteRequest(asset_id=hall_id, booking_date=EVENT_DAY, addons=["Fireworks"]),
            now=now,
        )
    with pytest.raises(ValidationError) as range_exc:
        quote_booking(
            db_engine,
            QuoteRequest(
                asset_id=hall_id, booking_date=EVENT_DAY, check_out_date=EVENT_DAY + timedelta(1)
            ),
            now=now,
        )
    with pytest.raises(NotFoundError) as asset_exc:
        quote_booking(db_engine, QuoteRequest(asset_id=uuid4(), booking_date=EVENT_DAY), now=now)

    assert addon_exc.value.code == "UNKNOWN_ADDON"
    assert range_exc.value.code == "INVALID_DATE_RANGE"
    assert asset_exc.value.code == "ASSET_NOT_FOUND"


# -----------------------------------------------------------------------------
# Guest bookings
# -----------------------------------------------------------------------------


@pytest.mark.integration
def test_full_payment_booking_is_confirmed_and_logged(
    db_engine: Engine, hall_id: UUID, now: datetime
) -> None:
    notifier = RecordingNotifier()

    booking = create_guest_booking(
        db_engine,
        guest_request(hall_id, payment_option="full", addons=["Sound"]),
        now=now,
        notifier=notifier,
    )

    assert booking["status"] == "confirmed"
    assert booking["payment_status"] == "paid"
    assert booking["paid_amount"] == booking["total_amount"] == Decimal("2645.00")
    assert booking["booking_method"] == "full"
    assert booking["items"] == [{"name": "Sound", "price": "300.00", "qty": 1, "type": "addon"}]
    with db_engine.connect() as conn:
        entries = get_ledger(conn, booking["id"]).entries
    assert [(e.amount, e.payment_method) for e in entries] == [
        (Decimal("2645.00"), PaymentMethod.CARD)
    ]
    assert notifier.kinds() == ["booking_created"]


@pytest.mark.integration
def test_deposit_booking_is_partial(db_engine: Engine, hall_id: UUID, now: datetime) -> None:
    booking = create_guest_booking(
        db_engine, guest_request(hall_id, payment_option="deposit"), now=now
    )

    assert booking["status"] == "pending"
    assert booking["payment_status"] == "partial"
    assert booking["paid_amount"] == Decimal("690.00")  # 30% of 2300.00 incl. VAT


@pytest.mark.integration
def test_hold_booking_expires_and_frees_the_date(
    db_engine: Engine, hall_id: UUID, now: datetime
) -> None:
    notifier = RecordingNotifier()
    held = create_guest_booking(
        db_engine, guest_request(hall_id, payment_option="hold"), now=now, notifier=notifier
    )
    assert held["status"] == "on_hold"
    assert held["hold_expires_at"] is not None
    assert notifier.kinds() == ["booking_on_hold"]
    assert "48 ساعة" in notifier.sent[0][1]

    before_expiry = now + timedelta(hours=47)
    result = check_asset_availability(db_engine, hall_id, EVENT_DAY, now=before_expiry)
    assert result.reason == UnavailableReason.OVERLAP

    after_expiry = now + timedelta(hours=49)
    second = create_guest_booking(db_engine, guest_request(hall_id), now=after_expiry)

    assert second["status"] == "pending"
    assert stored(db_engine, held["id"])["status"] == "cancelled"


@pytest.mark.integration
def test_sweep_cancels_only_expired_holds(db_engine: Engine, hall_id: UUID, now: datetime) -> None:
    create_guest_booking(db_engine, guest_request(hall_id, payment_option="hold"), now=now)
    create_guest_booking(
        db_engine,
        guest_request(hall_id, payment_option="hold", booking_date=EVENT_DAY + timedelta(1)),
        now=now + timedelta(hours=24),
    )

    assert sweep_expired_holds(db_engine, now=now + timedelta(hours=50)) == 1
    assert sweep_expired_holds(db_engine, now=now + timedelta(hours=50)) == 0


@pytest.mark.integration
def test_guest_without_contact_details_is_rejected(
    db_engine: Engine, hall_id: UUID, now: datetime
) -> None:
    with pytest.raises(ValidationError) as exc_info:
        create_guest_booking(
            db_engine, guest_request(hall_id, guest_name=None, guest_phone=None), now=now
        )

    assert exc_info.value.code == "MISSING_FIELD"


@pytest.mark.integration
def test_registered_user_needs_no_contact_details(
    db_engine: Engine, hall_id: UUID, now: datetime
) -> None:
    user_id = uuid4()

    booking = create_guest_booking(
        db_engine,
        guest_request(hall_id, guest_name=None, guest_phone=None),
        user_id=user_id,
        now=now,
    )

    assert booking["user_id"] == user_id


@pytest.mark.integration
def test_same_day_booking_overlaps(db_engine: Engine, hall_id: UUID, now: datetime) -> None:
    create_guest_booking(db_engine, guest_request(hall_id), now=now)

    with pytest.raises(ValidationError) as exc_info:
        create_guest_booking(db_engine, guest_request(hall_id), now=now)

    assert exc_info.value.code == "OVERLAP"
    assert exc_info.value.context["conflicting_dates"] == [EVENT_DAY.isoformat()]


@pytest.mark.integration
def test_cancelled_booking_releases_date(db_engine: Engine, hall_id: UUID, now: datetime) -> None:
    first = create_guest_booking(db_engine, guest_request(hall_id), now=now)
    transition_booking(db_engine, first["id"], BookingStatus.CANCELLED, now=now)

    second = create_guest_booking(db_engine, guest_request(hall_id), now=now)

    assert second["id"] != first["id"]


@pytest.mark.integration
def test_past_date_is_rejected(db_engine: Engine, hall_id: UUID, now: datetime) -> None:
    with pytest.raises(ValidationError) as exc_info:
        create_guest_booking(
            db_engine, guest_request(hall_id, booking_date=date(2026, 2, 1)), now=now
        )

    assert exc_info.value.code == "PAST_DATE"


@pytest.mark.integration
def test_chalet_stay_blocks_every_night(db_engine: Engine, chalet_id: UUID, now: datetime) -> None:
    create_guest_booking(
        db_engine,
        guest_request(chalet_id, check_out_date=EVENT_DAY + timedelta(2)),
        now=now,
    )

    assert get_blocked_dates(db_engine, chalet_id, now=now) == [
        EVENT_DAY,
        EVENT_DAY + timedelta(1),
        EVENT_DAY + timedelta(2),
    ]
    with pytest.raises(ValidationError) as exc_info:
        create_guest_booking(
            db_engine,
            guest_request(
                chalet_id,
                booking_date=EVENT_DAY + timedelta(2),
                check_out_date=EVENT_DAY + timedelta(4),
            ),
            now=now,
        )
    assert exc_info.value.context["conflicting_dates"] == [(EVENT_DAY + timedelta(2)).isoformat()]


@pytest.mark.integration
def test_rejected_coupon_blocks_creation(
    db_engine: Engine, hall_id: UUID, coupon_id: UUID, now: datetime
) -> None:
    with pytest.raises(ValidationError) as exc_info:
        create_guest_booking(db_engine, guest_request(hall_id, coupon_code="WINTER5"), now=now)

    assert exc_info.value.code == "COUPON_REJECTED"
    assert exc_info.value.context["reason"] == "NOT_FOUND"


@pytest.mark.integration
def test_hall_time_slot(db_engine: Engine, hall_id: UUID, now: datetime) -> None:
    booking = create_guest_booking(
        db_engine, guest_request(hall_id, start_time=time(18, 0), end_time=time(23, 0)), now=now
    )
    assert booking["start_time"] == time(18, 0)

    with pytest.raises(ValidationError) as exc_info:
        create_guest_booking(
            db_engine,
            guest_request(
                hall_id,
                booking_date=EVENT_DAY + timedelta(1),
                start_time=time(23, 0),
                end_time=time(18, 0),
            ),
            now=now,
        )
    assert exc_info.value.code == "INVALID_TIME_RANGE"


# -----------------------------------------------------------------------------
# Manual bookings
# -----------------------------------------------------------------------------


@pytest.mark.integration
def test_manual_partial_booking_logs_initial_payment(
    make_manual_booking: Callable[..., dict[str, Any]], db_engine: Engine
) -> None:
    booking = make_manual_booking(
        payment_status="partial", paid_amount=Decimal("500"), payment_method="transfer"
    )

    assert booking["payment_status"] == "partial"
    assert booking["paid_amount"] == Decimal("500.00")
    assert booking["booking_method"] == "manual"
    assert booking["is_read"] is True
    with db_engine.connect() as conn:
        entries = get_ledger(conn, booking["id"]).entries
    assert [(e.amount, e.payment_method) for e in entries] == [
        (Decimal("500.00"), PaymentMethod.TRANSFER)
    ]


@pytest.mark.integration
def test_manual_base_price_override(make_manual_booking: Callable[..., dict[str, Any]]) -> None:
    booking = make_manual_booking(base_price=Decimal("1000"), addons=[])

    assert booking["subtotal"] == Decimal("1000.00")
    assert booking["total_amount"] == Decimal("1150.00")


@pytest.mark.integration
def test_manual_blocked_day_needs_no_guest(
    make_manual_booking: Callable[..., dict[str, Any]],
) -> None:
    booking = make_manual_booking(status="blocked", guest_name=None, guest_phone=None)

    assert booking["status"] == "blocked"


@pytest.mark.integration
def test_manual_booking_requires_guest_name(
    make_manual_booking: Callable[..., dict[str, Any]],
) -> None:
    with pytest.raises(ValidationError) as exc_info:
        make_manual_booking(guest_name=None)

    assert exc_info.value.code == "MISSING_FIELD"


@pytest.mark.integration
def test_manual_booking_overlap_is_checked(
    make_manual_booking: Callable[..., dict[str, Any]],
) -> None:
    make_manual_booking()

    with pytest.raises(ValidationError) as exc_info:
        make_manual_booking()

    assert exc_info.value.code == "OVERLAP"


@pytest.mark.integration
def test_vendor_cannot_book_another_vendors_asset(
    db_engine: Engine, hall_id: UUID, other_vendor_id: UUID, now: datetime
) -> None:
    with pytest.raises(PermissionDeniedError) as exc_info:
        create_manual_booking(
            db_engine,
            other_vendor_id,
            ManualBookingCreate(asset_id=hall_id, booking_date=EVENT_DAY, guest_name="Walk-in"),
            now=now,
        )

    assert exc_info.value.code == "FORBIDDEN"


@pytest.mark.integration
def test_admin_may_book_any_asset(db_engine: Engine, hall_id: UUID, now: datetime) -> None:
    booking = create_manual_booking(
        db_engine,
        None,
        ManualBookingCreate(asset_id=hall_id, booking_date=EVENT_DAY, guest_name="Walk-in"),
        now=now,
    )

    assert booking["status"] == "confirmed"


# -----------------------------------------------------------------------------
# Edits and lifecycle
# -----------------------------------------------------------------------------


@pytest.mark.integration
def test_contact_edit_keeps_status_and_payment(
    db_engine: Engine, make_manual_booking: Callable[..., dict[str, Any]], now: datetime
) -> None:
    booking = make_manual_booking(payment_status="paid")

    updated = update_booking_details(
        db_engine,
        booking["id"],
        BookingUpdate(notes="Needs 20 extra chairs", guest_phone="0555555555"),
        now=now,
    )

    assert updated["notes"] == "Needs 20 extra chairs"
    assert updated["guest_phone"] == "0555555555"
    assert updated["status"] == "confirmed"
    assert updated["payment_status"] == "paid"
    assert updated["version"] > booking["version"]


@pytest.mark.integration
def test_edit_to_on_hold_sets_deadline(
    db_engine: Engine, make_manual_booking: Callable[..., dict[str, Any]], now: datetime
) -> None:
    booking = make_manual_booking(status="pending")

    held = update_booking_details(
        db_engine, booking["id"], BookingUpdate(status=BookingStatus.ON_HOLD), now=now
    )
    confirmed = transition_booking(db_engine, booking["id"], "confirmed", now=now)

    assert held["status"] == "on_hold"
    assert held["hold_expires_at"] is not None
    assert confirmed["hold_expires_at"] is None


@pytest.mark.integration
def test_edit_time_slot_is_validated(
    db_engine: Engine, make_manual_booking: Callable[..., dict[str, Any]], now: datetime
) -> None:
    booking = make_manual_booking()

    with pytest.raises(ValidationError) as exc_info:
        update_booking_details(
            db_engine,
            booking["id"],
            BookingUpdate(start_time=time(22, 0), end_time=time(20, 0)),
            now=now,
        )

    assert exc_info.value.code == "INVALID_TIME_RANGE"


@pytest.mark.integration
def test_cancelled_booking_cannot_be_revived(
    db_engine: Engine, make_manual_booking: Callable[..., dict[str, Any]], now: datetime
) -> None:
    booking = make_manual_booking(payment_status="partial", paid_amount=Decimal("100"))
    cancelled = transition_booking(db_engine, booking["id"], "cancelled", now=now)

    with pytest.raises(StateError) as exc_info:
        transition_booking(db_engine, booking["id"], "confirmed", now=now)

    assert exc_info.value.code == "INVALID_TRANSITION"
    # Cancelling never reverses payments
    assert cancelled["paid_amount"] == Decimal("100.00")


@pytest.mark.integration
def test_read_flag_is_independent_of_status(
    db_engine: Engine, hall_id: UUID, now: datetime
) -> None:
    booking = create_guest_booking(db_engine, guest_request(hall_id), now=now)
    assert booking["is_read"] is False

    read = set_read_flag(db_engine, booking["id"])
    unread = set_read_flag(db_engine, booking["id"], is_read=False)

    assert read["is_read"] is True
    assert unread["is_read"] is False
    assert unread["status"] == booking["status"]


@pytest.mark.integration
def test_delete_booking_removes_its_payments(
    db_engine: Engine, make_manual_booking: Callable[..., dict[str, Any]]
) -> None:
    booking = make_manual_booking(payment_status="paid")

    delete_booking(db_engine, booking["id"])

    assert stored(db_engine, booking["id"]) is None
    with pytest.raises(NotFoundError):
        with db_engine.connect() as conn:
            get_ledger(conn, booking["id"])
    with pytest.raises(NotFoundError):
        delete_booking(db_engine, booking["id"])


@pytest.mark.integration
def test_booking_to_completion(
    db_engine: Engine, hall_id: UUID, coupon_id: UUID, now: datetime
) -> None:
    """Quote, book, pay in two instalments, confirm and complete."""
    booking = create_guest_booking(
        db_engine,
        guest_request(hall_id, addons=["Sound"], coupon_code="SUMMER10"),
        now=now,
    )
    assert booking["total_amount"] == Decimal("2380.50")
    assert booking["applied_coupon"] == "SUMMER10"
    assert booking["payment_status"] == "unpaid"

    partial = add_payment(db_engine, booking["id"], Decimal("1000"), PaymentMethod.CASH)
    assert partial.payment_status == PaymentStatus.PARTIAL
    assert partial.remaining_amount == Decimal("1380.50")

    paid = add_payment(db_engine, booking["id"], Decimal("1380.50"), PaymentMethod.CARD)
    assert paid.payment_status == PaymentStatus.PAID
    assert paid.remaining_amount == Decimal("0.00")

    transition_booking(db_engine, booking["id"], "confirmed", now=now)
    completed = transition_booking(db_engine, booking["id"], "completed", now=now)

    assert completed["status"] == "completed"
    assert completed["paid_amount"] == Decimal("2380.50")


@pytest.mark.integration
def test_fully_discounted_booking_paid_now_is_paid(
    db_engine: Engine, hall_id: UUID, vendor_id: UUID, now: datetime
) -> None:
    with db_engine.begin() as conn:
        insert_coupon(
            conn,
            {
                "vendor_id": vendor_id,
                "code": "FREE100",
                "discount_type": "percentage",
                "discount_value": Decimal("100"),
                "target_ids": [],
                "start_date": date(2026, 1, 1),
                "end_date": None,
                "is_active": True,
            },
        )

    booking = create_guest_booking(
        db_engine, guest_request(hall_id, payment_option="full", coupon_code="FREE100"), now=now
    )

    assert booking["total_amount"] == Decimal("0.00")
    assert booking["status"] == "confirmed"
    assert booking["payment_status"] == "paid"
    assert booking["paid_amount"] == Decimal("0.00")
    with db_engine.connect() as conn:
        assert get_ledger(conn, booking["id"]).summary.payment_status == PaymentStatus.PAID


@pytest.mark.integration
def test_hold_message_follows_configured_hold_window(
    db_engine: Engine, hall_id: UUID, now: datetime, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("venue_booking.services.bookings.ON_HOLD_TTL_HOURS", 24)
    notifier = RecordingNotifier()

    create_guest_booking(
        db_engine, guest_request(hall_id, payment_option="hold"), now=now, notifier=notifier
    )

    kind, message, context = notifier.sent[0]
    assert kind == "booking_on_hold"
    assert message == "تم حجز الموعد لمدة 24 ساعة. يرجى الدفع للتأكيد."
    assert context["hold_hours"] == 24
