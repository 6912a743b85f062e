from datetime import date
from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from venue_booking.dependencies import get_db_engine
from venue_booking.errors import BookingError
from venue_booking.services.bookings import check_asset_availability, get_blocked_dates

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/assets/{asset_id}/availability")
def asset_availability(
    asset_id: UUID,
    date_from: date = Query(..., description="First day"),
    date_to: Optional[date] = Query(None, description="Last day (inclusive), defaults to date_from"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Check whether an asset can be booked for a day or an inclusive range.

    Returns:
        dict: available flag, rejection reason and the conflicting days
    """
    try:
        result = check_asset_availability(engine, asset_id, date_from, date_to)
        return {
            "asset_id": str(asset_id),
            "available": result.ok,
            "reason": result.reason.value if result.reason else None,
            "conflicting_dates": [d.isoformat() for d in result.conflicting_dates],
        }

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("availability_check_failed", asset_id=str(asset_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/assets/{asset_id}/blocked-dates")
def asset_blocked_dates(
    asset_id: UUID,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    All blocked calendar days of an asset, for the booking calendar.
    """
    try:
        days = get_blocked_dates(engine, asset_id)
        return {"asset_id": str(asset_id), "blocked_dates": [d.isoformat() for d in days]}

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("blocked_dates_failed", asset_id=str(asset_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
