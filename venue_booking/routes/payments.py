"""
Payment ledger endpoints.

Vendors and admins register and remove payments; other callers get a
read-only view (READ_ONLY).
"""

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from venue_booking.db.readers.payment_logs import get_payment_log
from venue_booking.dependencies import get_current_profile, get_db_engine, get_notifier
from venue_booking.errors import BookingError, NotFoundError, ValidationError
from venue_booking.routes._helpers import ensure_booking_access_or_403
from venue_booking.schemas.payments import LedgerOut, LedgerSummaryOut, PaymentCreatePayload
from venue_booking.schemas.profiles import UserProfile
from venue_booking.services.bookings import get_booking_or_404
from venue_booking.services.ledger import add_payment, get_ledger, recompute_booking, remove_payment
from venue_booking.services.notifications import Notifier

logger = structlog.get_logger(__name__)
router = APIRouter()


def _check_access(engine: Engine, booking_id: UUID, profile: UserProfile) -> None:
    with engine.connect() as conn:
        booking = get_booking_or_404(conn, booking_id)
    ensure_booking_access_or_403(profile, booking)


@router.get("/bookings/{booking_id}/payments", response_model=LedgerOut)
def booking_ledger(
    booking_id: UUID,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
) -> LedgerOut:
    """
    Payment log of a booking (newest first) with paid, remaining and status.
    """
    try:
        _check_access(engine, booking_id, profile)
        with engine.connect() as conn:
            ledger = get_ledger(conn, booking_id)
        return LedgerOut.model_validate(ledger.model_dump())

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("ledger_fetch_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/bookings/{booking_id}/payments",
    status_code=status.HTTP_201_CREATED,
    response_model=LedgerSummaryOut,
)
def register_payment(
    booking_id: UUID,
    payload: PaymentCreatePayload,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> LedgerSummaryOut:
    try:
        _check_access(engine, booking_id, profile)
        summary = add_payment(
            engine,
            booking_id,
            payload.amount,
            payload.payment_method,
            payload.notes,
            can_register=profile.can_register_payments,
            notifier=notifier,
        )
        return LedgerSummaryOut.model_validate(summary.model_dump())

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("payment_registration_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bookings/{booking_id}/payments/recompute", response_model=LedgerSummaryOut)
def recompute(
    booking_id: UUID,
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
) -> LedgerSummaryOut:
    """
    Re-derive paid amount and payment status from the payment log.
    """
    try:
        _check_access(engine, booking_id, profile)
        summary = recompute_booking(engine, booking_id)
        return LedgerSummaryOut.model_validate(summary.model_dump())

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("ledger_recompute_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/payments/{payment_log_id}", response_model=LedgerSummaryOut)
def delete_payment(
    payment_log_id: UUID,
    confirm: bool = Query(False, description="Must be true: removing a payment is irreversible"),
    engine: Engine = Depends(get_db_engine),
    profile: UserProfile = Depends(get_current_profile),
    notifier: Notifier = Depends(get_notifier),
) -> LedgerSummaryOut:
    """
    Remove an erroneous payment entry; the booking is recomputed from the remaining log.
    """
    try:
        if not confirm:
            raise ValidationError("CONFIRMATION_REQUIRED", "Pass confirm=true to remove a payment")

        with engine.connect() as conn:
            log = get_payment_log(conn, payment_log_id)
        if log is None:
            raise NotFoundError("PAYMENT_NOT_FOUND", f"Payment {payment_log_id} not found")
        _check_access(engine, log["booking_id"], profile)

        summary = remove_payment(
            engine,
            payment_log_id,
            can_register=profile.can_register_payments,
            notifier=notifier,
        )
        return LedgerSummaryOut.model_validate(summary.model_dump())

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("payment_removal_failed", payment_log_id=str(payment_log_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
