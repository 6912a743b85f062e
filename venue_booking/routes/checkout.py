from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine

from venue_booking.dependencies import get_db_engine, get_notifier
from venue_booking.errors import BookingError, GatewayError
from venue_booking.schemas.checkout import CheckoutCreatePayload, CheckoutOut, CheckoutVerifyPayload
from venue_booking.schemas.payments import LedgerSummaryOut
from venue_booking.services.checkout import complete_checkout, start_checkout
from venue_booking.services.notifications import Notifier

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/bookings/{booking_id}/checkout",
    status_code=status.HTTP_201_CREATED,
    response_model=CheckoutOut,
)
def create_checkout_endpoint(
    booking_id: UUID,
    payload: CheckoutCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> CheckoutOut:
    """
    Start an online card payment for the booking's remaining balance.
    """
    try:
        checkout = start_checkout(
            engine,
            booking_id,
            billing_city=payload.billing_city,
            billing_country=payload.billing_country,
        )
        return CheckoutOut.model_validate(checkout.model_dump())

    except (HTTPException, BookingError, GatewayError):
        raise
    except Exception as e:
        logger.exception("checkout_creation_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bookings/{booking_id}/checkout/verify", response_model=LedgerSummaryOut)
def verify_checkout_endpoint(
    booking_id: UUID,
    payload: CheckoutVerifyPayload,
    engine: Engine = Depends(get_db_engine),
    notifier: Notifier = Depends(get_notifier),
) -> LedgerSummaryOut:
    """
    Verify the gateway result after the shopper redirect and record the card payment.
    """
    try:
        summary = complete_checkout(engine, booking_id, payload.resource_path, notifier=notifier)
        return LedgerSummaryOut.model_validate(summary.model_dump())

    except (HTTPException, BookingError, GatewayError):
        raise
    except Exception as e:
        logger.exception("checkout_verification_failed", booking_id=str(booking_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
