"""
Booking orchestration: quotes, guest and vendor booking creation, edits,
status transitions and on-hold expiry.

Both creation paths run the same steps inside one transaction:

1. lock the asset row (serializes concurrent bookings of the same asset)
2. cancel expired holds, then check availability against a fresh snapshot
3. price the booking with the money calculator (and coupon resolver)
4. derive the initial lifecycle state and insert the booking
5. record any initial payment through the ledger
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel
from sqlalchemy.engine import Connection, Engine

from venue_booking.config import CURRENCY, ON_HOLD_TTL_HOURS
from venue_booking.db.readers.assets import get_asset
from venue_booking.db.readers.bookings import (
    get_active_bookings_for_asset,
    get_booking,
    get_expired_hold_ids,
)
from venue_booking.db.readers.coupons import list_coupons_for_vendor
from venue_booking.db.writers.bookings import (
    cancel_bookings,
    hard_delete_booking,
    insert_booking,
    update_booking_fields,
)
from venue_booking.domain.availability import (
    AvailabilityResult,
    DateRange,
    blocked_dates,
    check_availability,
)
from venue_booking.domain.coupons import CouponResolution, resolve_coupon
from venue_booking.domain.enums import (
    AssetKind,
    BookingStatus,
    PaymentMethod,
    PaymentOption,
)
from venue_booking.domain.lifecycle import (
    InitialState,
    hold_deadline,
    initial_state_for_option,
    normalize_manual_state,
    validate_transition,
)
from venue_booking.domain.money import Extra, Totals, compute_totals, to_money
from venue_booking.errors import (
    ConsistencyError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from venue_booking.metrics import (
    availability_rejections,
    booking_transitions,
    bookings_created,
    coupon_resolutions,
    holds_expired,
)
from venue_booking.schemas.bookings import (
    BookingUpdate,
    GuestBookingCreate,
    ManualBookingCreate,
    QuoteRequest,
)
from venue_booking.services.ledger import record_payment
from venue_booking.services.notifications import Notifier, notify
from venue_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

ASSET_COLUMN = {
    AssetKind.HALL: "hall_id",
    AssetKind.CHALET: "chalet_id",
    AssetKind.SERVICE: "service_id",
}


class Quote(BaseModel):
    asset_id: UUID
    asset_kind: AssetKind
    vendor_id: UUID
    nights: int
    base_price: Decimal
    items: list[Extra]
    totals: Totals
    coupon: Optional[CouponResolution] = None
    currency: str = CURRENCY


# -----------------------------------------------------------------------------
# Pricing
# -----------------------------------------------------------------------------


def _validate_schedule(
    kind: AssetKind,
    booking_date: date,
    check_out_date: Optional[date],
    start_time: Any = None,
    end_time: Any = None,
) -> None:
    if check_out_date is not None:
        if kind != AssetKind.CHALET:
            raise ValidationError("INVALID_DATE_RANGE", "Only chalets can be booked for a range")
        if check_out_date < booking_date:
            raise ValidationError("INVALID_DATE_RANGE", "check_out_date precedes booking_date")

    if start_time is not None or end_time is not None:
        if kind != AssetKind.HALL:
            raise ValidationError("INVALID_TIME_RANGE", "Only halls can be booked for a time slot")
        if start_time is None or end_time is None or start_time >= end_time:
            raise ValidationError("INVALID_TIME_RANGE", "start_time must be before end_time")


def _nights(booking_date: date, check_out_date: Optional[date]) -> int:
    if check_out_date is None:
        return 1
    return max(1, (check_out_date - booking_date).days)


def _base_price(asset: dict[str, Any], request: QuoteRequest, nights: int) -> Decimal:
    if asset["kind"] == AssetKind.SERVICE:
        per_adult = asset.get("price_per_adult")
        if per_adult is not None and (request.adults or request.children):
            per_child = asset.get("price_per_child") or 0
            return to_money(per_adult) * (request.adults or 0) + to_money(per_child) * (
                request.children or 0
            )
        return to_money(asset["price"])
    return to_money(asset["price_per_night"]) * nights


def _selected_extras(asset: dict[str, Any], names: list[str]) -> list[Extra]:
    offered = {addon["name"]: addon for addon in asset.get("addons") or []}
    extras = []
    for name in names:
        addon = offered.get(name)
        if addon is None:
            raise ValidationError("UNKNOWN_ADDON", f"Add-on {name!r} is not offered", addon=name)
        extras.append(Extra(name=name, price=to_money(addon["price"]), qty=1, type="addon"))
    return extras


def _load_asset_or_404(
    conn: Connection, asset_id: UUID, for_update: bool = False
) -> dict[str, Any]:
    asset = get_asset(conn, asset_id, for_update=for_update)
    if asset is None or not asset.get("is_active", True):
        raise NotFoundError("ASSET_NOT_FOUND", f"Asset {asset_id} not found")
    return asset


def build_quote(
    conn: Connection,
    asset: dict[str, Any],
    request: QuoteRequest,
    today: date,
    base_price: Optional[Decimal] = None,
) -> Quote:
    """
    Price a booking request against an asset.

    A rejected coupon does not fail the quote: the totals are computed
    without discount and the rejection is reported on ``coupon``.
    """
    nights = _nights(request.booking_date, request.check_out_date)
    price = to_money(base_price) if base_price is not None else _base_price(asset, request, nights)
    extras = _selected_extras(asset, request.addons)

    resolution = None
    if request.coupon_code:
        resolution = resolve_coupon(
            request.coupon_code,
            vendor_id=asset["vendor_id"],
            target_asset_id=asset["id"],
            coupons=list_coupons_for_vendor(conn, asset["vendor_id"]),
            today=today,
        )
        coupon_resolutions.labels(
            outcome="applied" if resolution.ok else resolution.rejected.value
        ).inc()

    totals = compute_totals(price, extras, resolution.discount() if resolution else None)

    return Quote(
        asset_id=asset["id"],
        asset_kind=asset["kind"],
        vendor_id=asset["vendor_id"],
        nights=nights,
        base_price=price,
        items=extras,
        totals=totals,
        coupon=resolution,
    )


def quote_booking(engine: Engine, request: QuoteRequest, now: Optional[datetime] = None) -> Quote:
    """
    Price a booking without persisting anything.

    Raises:
        NotFoundError: ASSET_NOT_FOUND
        ValidationError: INVALID_DATE_RANGE / UNKNOWN_ADDON
    """
    now = now or utc_now()
    with engine.connect() as conn:
        asset = _load_asset_or_404(conn, request.asset_id)
        _validate_schedule(asset["kind"], request.booking_date, request.check_out_date)
        return build_quote(conn, asset, request, now.date())


# -----------------------------------------------------------------------------
# Availability
# -----------------------------------------------------------------------------


def expire_stale_holds(conn: Connection, now: datetime) -> int:
    """
    Cancel on_hold bookings whose hold deadline passed. Runs in the caller's transaction.

    Returns:
        int: Number of bookings cancelled
    """
    expired = get_expired_hold_ids(conn, now)
    if not expired:
        return 0

    count = cancel_bookings(conn, expired, now)
    holds_expired.inc(count)
    logger.info("holds_expired", count=count, booking_ids=[str(b) for b in expired])
    return count


def sweep_expired_holds(engine: Engine, now: Optional[datetime] = None) -> int:
    """Periodic variant of expire_stale_holds with its own transaction."""
    with engine.begin() as conn:
        return expire_stale_holds(conn, now or utc_now())


def _ensure_available(
    conn: Connection, asset_id: UUID, start: date, end: date, now: datetime
) -> None:
    expire_stale_holds(conn, now)
    snapshot = get_active_bookings_for_asset(conn, asset_id)
    result = check_availability(DateRange(asset_id=asset_id, start=start, end=end), snapshot, now)
    if not result.ok:
        availability_rejections.labels(reason=result.reason.value).inc()
        raise ValidationError(
            result.reason.value,
            f"Asset {asset_id} is not available",
            conflicting_dates=[d.isoformat() for d in result.conflicting_dates],
        )


def check_asset_availability(
    engine: Engine,
    asset_id: UUID,
    start: date,
    end: Optional[date] = None,
    now: Optional[datetime] = None,
) -> AvailabilityResult:
    """
    Availability of an asset for a day or an inclusive range.

    Raises:
        NotFoundError: ASSET_NOT_FOUND
    """
    now = now or utc_now()
    with engine.begin() as conn:
        _load_asset_or_404(conn, asset_id)
        expire_stale_holds(conn, now)
        snapshot = get_active_bookings_for_asset(conn, asset_id)

    result = check_availability(DateRange(asset_id=asset_id, start=start, end=end), snapshot, now)
    if not result.ok:
        availability_rejections.labels(reason=result.reason.value).inc()
    return result


def get_blocked_dates(engine: Engine, asset_id: UUID, now: Optional[datetime] = None) -> list[date]:
    """Sorted blocked calendar days of an asset, for date pickers."""
    now = now or utc_now()
    with engine.begin() as conn:
        _load_asset_or_404(conn, asset_id)
        expire_stale_holds(conn, now)
        snapshot = get_active_bookings_for_asset(conn, asset_id)
    return sorted(blocked_dates(snapshot, asset_id))


# -----------------------------------------------------------------------------
# Creation
# -----------------------------------------------------------------------------


def _booking_row(
    quote: Quote,
    request: QuoteRequest,
    state: InitialState,
    method: str,
    extra: dict[str, Any],
) -> dict[str, Any]:
    row = {
        "vendor_id": quote.vendor_id,
        ASSET_COLUMN[quote.asset_kind]: quote.asset_id,
        "booking_date": request.booking_date,
        "check_out_date": request.check_out_date,
        "subtotal": quote.totals.subtotal,
        "discount_amount": quote.totals.discount_amount,
        "vat_amount": quote.totals.vat_amount,
        "total_amount": quote.totals.total,
        "applied_coupon": quote.coupon.code if quote.coupon and quote.coupon.ok else None,
        "paid_amount": Decimal("0.00"),
        "payment_status": state.payment_status.value,
        "status": state.status.value,
        "booking_method": method,
        "hold_expires_at": state.hold_expires_at,
        "items": [
            {"name": e.name, "price": str(e.price), "qty": e.qty, "type": e.type}
            for e in quote.items
        ],
        "is_read": False,
    }
    row.update(extra)
    return row


def _create_booking(
    engine: Engine,
    request: QuoteRequest,
    now: datetime,
    build_state: Callable[[Decimal], InitialState],
    method: str,
    extra: dict[str, Any],
    initial_payment_method: PaymentMethod,
    base_price: Optional[Decimal] = None,
    acting_vendor_id: Optional[UUID] = None,
) -> tuple[dict[str, Any], Quote]:
    with engine.begin() as conn:
        asset = _load_asset_or_404(conn, request.asset_id, for_update=True)
        if acting_vendor_id is not None and asset["vendor_id"] != acting_vendor_id:
            raise PermissionDeniedError("FORBIDDEN", "Asset belongs to another vendor")

        _validate_schedule(
            asset["kind"],
            request.booking_date,
            request.check_out_date,
            getattr(request, "start_time", None),
            getattr(request, "end_time", None),
        )
        _ensure_available(
            conn,
            asset["id"],
            request.booking_date,
            request.check_out_date or request.booking_date,
            now,
        )

        quote = build_quote(conn, asset, request, now.date(), base_price=base_price)
        if quote.coupon is not None and not quote.coupon.ok:
            raise ValidationError(
                "COUPON_REJECTED",
                f"Coupon {quote.coupon.code} rejected",
                reason=quote.coupon.rejected.value,
            )

        state: InitialState = build_state(quote.totals.total)
        booking_id = insert_booking(conn, _booking_row(quote, request, state, method, extra))

        if state.paid_amount > 0:
            booking = get_booking(conn, booking_id, for_update=True)
            record_payment(
                conn, booking, state.paid_amount, initial_payment_method, "initial payment"
            )

        created = get_booking(conn, booking_id)

    return created, quote


def create_guest_booking(
    engine: Engine,
    request: GuestBookingCreate,
    user_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
    notifier: Notifier | None = None,
) -> dict[str, Any]:
    """
    Create a booking from the public booking flow.

    The payment option decides the initial state (see
    venue_booking.domain.lifecycle.initial_state_for_option). Online
    payments made at booking time are recorded as card payments.

    Raises:
        ValidationError: MISSING_FIELD, PAST_DATE, OVERLAP, COUPON_REJECTED, ...
        NotFoundError: ASSET_NOT_FOUND
    """
    now = now or utc_now()
    if user_id is None and not (request.guest_name and request.guest_phone):
        raise ValidationError("MISSING_FIELD", "Guest name and phone are required")

    booking, quote = _create_booking(
        engine,
        request,
        now,
        build_state=lambda total: initial_state_for_option(request.payment_option, total, now),
        method=request.payment_option.value,
        extra={
            "user_id": user_id,
            "guest_name": request.guest_name,
            "guest_phone": request.guest_phone,
            "guest_email": request.guest_email,
            "start_time": request.start_time,
            "end_time": request.end_time,
            "notes": request.notes,
        },
        initial_payment_method=PaymentMethod.CARD,
    )

    bookings_created.labels(channel="guest", status=booking["status"]).inc()
    logger.info(
        "booking_created",
        channel="guest",
        booking_id=str(booking["id"]),
        asset_id=str(quote.asset_id),
        booking_date=booking["booking_date"].isoformat(),
        total_amount=str(booking["total_amount"]),
        status=booking["status"],
        payment_status=booking["payment_status"],
    )
    if request.payment_option == PaymentOption.HOLD:
        notify(
            notifier,
            "booking_on_hold",
            booking_id=str(booking["id"]),
            hold_hours=ON_HOLD_TTL_HOURS,
        )
    else:
        notify(notifier, "booking_created", booking_id=str(booking["id"]))
    return booking


def create_manual_booking(
    engine: Engine,
    vendor_id: Optional[UUID],
    request: ManualBookingCreate,
    now: Optional[datetime] = None,
    notifier: Notifier | None = None,
) -> dict[str, Any]:
    """
    Create a booking entered by a vendor.

    The vendor picks status and payment status; the state is normalized by
    venue_booking.domain.lifecycle.normalize_manual_state. ``vendor_id`` is
    the acting vendor (None for admins, who may book any asset).

    Raises:
        ValidationError: MISSING_FIELD, INVALID_AMOUNT, PAST_DATE, OVERLAP, ...
        StateError: INVALID_TRANSITION for a status a booking cannot start in
        PermissionDeniedError: FORBIDDEN when the asset belongs to another vendor
        NotFoundError: ASSET_NOT_FOUND
    """
    now = now or utc_now()
    needs_guest = request.status != BookingStatus.BLOCKED and request.user_id is None
    if needs_guest and not request.guest_name:
        raise ValidationError("MISSING_FIELD", "Guest name is required")

    booking, quote = _create_booking(
        engine,
        request,
        now,
        build_state=lambda total: normalize_manual_state(
            request.status, request.payment_status, request.paid_amount, total, now
        ),
        method="manual",
        extra={
            "user_id": request.user_id,
            "guest_name": request.guest_name,
            "guest_phone": request.guest_phone,
            "guest_email": request.guest_email,
            "start_time": request.start_time,
            "end_time": request.end_time,
            "notes": request.notes,
            "is_read": True,
        },
        initial_payment_method=request.payment_method,
        base_price=request.base_price,
        acting_vendor_id=vendor_id,
    )

    bookings_created.labels(channel="manual", status=booking["status"]).inc()
    logger.info(
        "booking_created",
        channel="manual",
        booking_id=str(booking["id"]),
        asset_id=str(quote.asset_id),
        total_amount=str(booking["total_amount"]),
        status=booking["status"],
        payment_status=booking["payment_status"],
    )
    notify(notifier, "booking_manual_created", booking_id=str(booking["id"]))
    return booking


# -----------------------------------------------------------------------------
# Updates
# -----------------------------------------------------------------------------


def get_booking_or_404(
    conn: Connection, booking_id: UUID, for_update: bool = False
) -> dict[str, Any]:
    booking = get_booking(conn, booking_id, for_update=for_update)
    if booking is None:
        raise NotFoundError("BOOKING_NOT_FOUND", f"Booking {booking_id} not found")
    return booking


def _write_guarded(conn: Connection, booking: dict[str, Any], data: dict[str, Any]) -> None:
    if not update_booking_fields(conn, booking["id"], data, expected_version=booking["version"]):
        raise ConsistencyError("LEDGER_CONFLICT", f"Booking {booking['id']} changed concurrently")


def _status_change(
    booking: dict[str, Any], target: BookingStatus, now: datetime
) -> dict[str, Any]:
    validate_transition(booking["status"], target, booking["paid_amount"], booking["total_amount"])
    if target.value == booking["status"]:
        return {}

    changes: dict[str, Any] = {"status": target.value}
    if target == BookingStatus.ON_HOLD:
        changes["hold_expires_at"] = hold_deadline(now)
    elif booking["status"] == BookingStatus.ON_HOLD.value:
        changes["hold_expires_at"] = None
    return changes


def update_booking_details(
    engine: Engine,
    booking_id: UUID,
    request: BookingUpdate,
    now: Optional[datetime] = None,
    notifier: Notifier | None = None,
) -> dict[str, Any]:
    """
    Edit contact details, notes, the time slot and optionally the status.

    Contact/notes/time edits never touch status or payment status.

    Raises:
        NotFoundError: BOOKING_NOT_FOUND
        ValidationError: INVALID_TIME_RANGE
        StateError: INVALID_TRANSITION / INVALID_STATE
    """
    now = now or utc_now()
    data = request.model_dump(exclude_unset=True)
    target = data.pop("status", None)

    with engine.begin() as conn:
        booking = get_booking_or_404(conn, booking_id, for_update=True)

        if "start_time" in data or "end_time" in data:
            asset_id = booking["hall_id"] or booking["chalet_id"] or booking["service_id"]
            asset = _load_asset_or_404(conn, asset_id)
            _validate_schedule(
                asset["kind"],
                booking["booking_date"],
                booking["check_out_date"],
                data.get("start_time", booking["start_time"]),
                data.get("end_time", booking["end_time"]),
            )

        previous_status = booking["status"]
        if target is not None:
            data.update(_status_change(booking, BookingStatus(target), now))

        if data:
            _write_guarded(conn, booking, data)
        updated = get_booking(conn, booking_id)

    if updated["status"] != previous_status:
        booking_transitions.labels(from_status=previous_status, to_status=updated["status"]).inc()
    logger.info("booking_updated", booking_id=str(booking_id), fields=sorted(data))
    notify(notifier, "booking_updated", booking_id=str(booking_id))
    return updated


def transition_booking(
    engine: Engine,
    booking_id: UUID,
    target: BookingStatus | str,
    now: Optional[datetime] = None,
    notifier: Notifier | None = None,
) -> dict[str, Any]:
    """
    Move a booking to another status.

    Cancelling never reverses payment logs.

    Raises:
        NotFoundError: BOOKING_NOT_FOUND
        StateError: INVALID_TRANSITION / INVALID_STATE
    """
    now = now or utc_now()
    target_status = BookingStatus(target)

    with engine.begin() as conn:
        booking = get_booking_or_404(conn, booking_id, for_update=True)
        changes = _status_change(booking, target_status, now)
        if changes:
            _write_guarded(conn, booking, changes)
        updated = get_booking(conn, booking_id)

    if changes:
        booking_transitions.labels(
            from_status=booking["status"], to_status=target_status.value
        ).inc()
        logger.info(
            "booking_status_changed",
            booking_id=str(booking_id),
            from_status=booking["status"],
            to_status=target_status.value,
        )
        notify(
            notifier,
            "booking_status_changed",
            booking_id=str(booking_id),
            status=target_status.value,
        )
    return updated


def set_read_flag(engine: Engine, booking_id: UUID, is_read: bool = True) -> dict[str, Any]:
    """Mark a booking read/unread in the vendor inbox. Independent of status."""
    with engine.begin() as conn:
        get_booking_or_404(conn, booking_id, for_update=True)
        update_booking_fields(conn, booking_id, {"is_read": is_read})
        return get_booking(conn, booking_id)


def delete_booking(engine: Engine, booking_id: UUID, notifier: Notifier | None = None) -> None:
    """
    Permanently delete a booking and its payment logs.

    Raises:
        NotFoundError: BOOKING_NOT_FOUND
    """
    with engine.begin() as conn:
        get_booking_or_404(conn, booking_id, for_update=True)
        hard_delete_booking(conn, booking_id)

    logger.info("booking_deleted", booking_id=str(booking_id))
    notify(notifier, "booking_deleted", booking_id=str(booking_id))
