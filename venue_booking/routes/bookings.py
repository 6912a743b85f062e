from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from venue_booking.db.readers.bookings import list_bookings
from venue_booking.dependencies import get_current_profile, get_db_engine, get_notifier
from venue_booking.domain.enums import BookingStatus, PaymentStatus, Role
from venue_booking.errors import BookingError, PermissionDeniedError
from venue_booking.routes._helpers import (
    ensure_booking_access_or_403,
    ensure_booking_owner_or_403,
    require_vendor_or_403,
)
from venue_booking.schemas.bookings import (
    BookingOut,
    BookingUpdate,
    CouponOutcome,
    GuestBookingCreate,
    ManualBookingCreate,
    QuoteRequest,
    QuoteResponse,
    ReadFlagRequest,
    TransitionRequest,
)
from venue_booking.schemas.profiles import UserProfile
from venue_booking.services.bookings import (
    Quote,
    create_guest_booking,
    create_manual_booking,
    delete_booking,
    get_booking_or_404,
    quote_booking,
    set_read_flag,
    transition_booking,
    update_booking_details,
)
from venue_booking.services.notifications import Notifier

logger = structlog.get_logger(__name__)
router = APIRouter()


def _quote_response(quote: Quote) -> QuoteResponse:
    coupon = None
    if quote.coupon is not None:
        coupon = CouponOutcome(
            code=quote.coupon.code, applied=quote.coupon.ok, rejected=quote.coupon.rejected
        )
    return QuoteResponse(
        asset_id=quote.asset_id,
        asset_kind=quote.asset_kind.value,
        vendor_id=quote.vendor_id,
        nights=quote.nights,
        base_price=quote.base_price,
        items=[item.model_dump() for item in quote.items],
        subtotal=quote.totals.subtotal,
        discount_amount=quote.totals.discount_amount,
        price_after_discount=quote.totals.price_after_discount,
        vat_amount=quote.totals.vat_amount,
        total_amount=quote.totals.total,
        currency=quote.currency,
        coupon=coupon,
    )


def _load_for_owner(engine: Engine, booking_id: UUID, profile: UserProfile) -> dict[str, Any]:
    with engine.connect() as conn:
        booking = get_booking_or_404(conn, booking_id)
    ensure_booking_owner_or_403(profile, booking)
    return booking


@router.post("/bookings/quote", response_model=QuoteResponse)
def quote(
    payload: QuoteRequest,
    engine: Engine = Depends(get_db_engine),
) -> QuoteResponse:
    """
    Price a booking: subtotal, discount, VAT and total, plus the coupon outcome.
    """
    try:
        return _quote_response(quote_booking(engine, payload))

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("quote_failed", asset_id=str(payload.asset_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bookings", status_code=status.HTTP_201_CREATED, response_model=BookingOut)
def create_booking(
    payload: GuestBookingCreate,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> BookingOut:
    """
    Create a booking through the public flow. Signed-in users are linked to it;
    anonymous guests must provide name and phone.
    """
    try:
        user_id = profile.user_id if profile.role == Role.USER else None
        booking = create_guest_booking(engine, payload, user_id=user_id, notifier=notifier)
        return BookingOut.model_validate(booking)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_creation_failed", asset_id=str(payload.asset_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bookings/manual", status_code=status.HTTP_201_CREATED, response_model=BookingOut)
def create_manual(
    payload: ManualBookingCreate,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> BookingOut:
    """
    Create a booking from the vendor back office (walk-ins, phone bookings, blocked days).
    """
    try:
        vendor_scope = require_vendor_or_403(profile)
        booking = create_manual_booking(engine, vendor_scope, payload, notifier=notifier)
        return BookingOut.model_validate(booking)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("manual_booking_failed", asset_id=str(payload.asset_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/bookings", response_model=list[BookingOut])
def get_bookings(
    vendor_id: Optional[UUID] = Query(None, description="Admins only: filter by vendor"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(None),
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
) -> list[BookingOut]:
    """
    List bookings newest first. Vendors see their own bookings, users the
    bookings they made, admins everything.
    """
    try:
        user_id = None
        if profile.role == Role.VENDOR:
            vendor_id = profile.user_id
        elif profile.role == Role.USER:
            vendor_id, user_id = None, profile.user_id
        elif not profile.is_admin:
            raise PermissionDeniedError("FORBIDDEN", "Sign in to list bookings")

        with engine.connect() as conn:
            rows = list_bookings(
                conn,
                vendor_id=vendor_id,
                user_id=user_id,
                status=booking_status.value if booking_status else None,
                payment_status=payment_status.value if payment_status else None,
            )
        return [BookingOut.model_validate(row) for row in rows]

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_list_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking_endpoint(
    booking_id: UUID,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
) -> BookingOut:
    try:
        with engine.connect() as conn:
            booking = get_booking_or_404(conn, booking_id)
        ensure_booking_access_or_403(profile, booking)
        return BookingOut.model_validate(booking)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_fetch_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/bookings/{booking_id}", response_model=BookingOut)
def update_booking(
    booking_id: UUID,
    payload: BookingUpdate,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> BookingOut:
    """
    Edit contact details, notes, time slot and status. Payment fields only
    change through the payments endpoints.
    """
    try:
        _load_for_owner(engine, booking_id, profile)
        booking = update_booking_details(engine, booking_id, payload, notifier=notifier)
        return BookingOut.model_validate(booking)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_update_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bookings/{booking_id}/transition", response_model=BookingOut)
def transition(
    booking_id: UUID,
    payload: TransitionRequest,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> BookingOut:
    try:
        _load_for_owner(engine, booking_id, profile)
        booking = transition_booking(engine, booking_id, payload.status, notifier=notifier)
        return BookingOut.model_validate(booking)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_transition_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bookings/{booking_id}/read", response_model=BookingOut)
def mark_read(
    booking_id: UUID,
    payload: ReadFlagRequest,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
) -> BookingOut:
    try:
        _load_for_owner(engine, booking_id, profile)
        return BookingOut.model_validate(set_read_flag(engine, booking_id, payload.is_read))

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_read_flag_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_booking(
    booking_id: UUID,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> None:
    """
    Permanently delete a booking together with its payment logs.
    """
    try:
        _load_for_owner(engine, booking_id, profile)
        delete_booking(engine, booking_id, notifier=notifier)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_delete_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
