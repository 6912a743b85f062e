"""
Date availability checks against a snapshot of existing bookings.

The checker never queries the store: callers hand it the bookings they
fetched (see venue_booking.db.readers.bookings.get_active_bookings_for_asset).
Any non-cancelled booking blocks every calendar day from its booking_date
to its check_out_date inclusive. Time slots are not disambiguated, so a
same-day booking blocks the whole day.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from venue_booking.domain.enums import BookingStatus
from venue_booking.utils.datetime import as_date, iter_days

ASSET_COLUMNS = ("hall_id", "chalet_id", "service_id")


class UnavailableReason(str, Enum):
    PAST_DATE = "PAST_DATE"
    OVERLAP = "OVERLAP"


class DateRange(BaseModel):
    """Candidate booking: a single day (end == start) or an inclusive range."""

    model_config = ConfigDict(frozen=True)

    asset_id: Any
    start: date
    end: date

    @model_validator(mode="before")
    @classmethod
    def _default_end(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("end") is None:
            data = {**data, "end": data.get("start")}
        return data

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class AvailabilityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool
    reason: Optional[UnavailableReason] = None
    conflicting_dates: list[date] = []


def booking_asset_id(booking: Mapping[str, Any]) -> Any:
    """The asset id a booking targets (hall, chalet or service)."""
    for column in ASSET_COLUMNS:
        value = booking.get(column)
        if value is not None:
            return value
    return None


def _is_active(booking: Mapping[str, Any]) -> bool:
    status = booking.get("status")
    return status not in (BookingStatus.CANCELLED, BookingStatus.CANCELLED.value)


def blocked_dates(bookings: Iterable[Mapping[str, Any]], asset_id: Any = None) -> set[date]:
    """
    Expand non-cancelled bookings into the set of blocked calendar days.

    Args:
        bookings: Booking rows (mappings with booking_date, check_out_date, status, asset ids)
        asset_id: When given, only bookings targeting this asset are counted

    Returns:
        set[date]: Every blocked day
    """
    days: set[date] = set()
    for booking in bookings:
        if not _is_active(booking):
            continue
        if asset_id is not None and str(booking_asset_id(booking)) != str(asset_id):
            continue
        start = as_date(booking["booking_date"])
        check_out = booking.get("check_out_date")
        end = as_date(check_out) if check_out else start
        days.update(iter_days(start, end))
    return days


def check_availability(
    candidate: DateRange,
    existing_bookings: Iterable[Mapping[str, Any]],
    now: datetime | date,
) -> AvailabilityResult:
    """
    Decide whether a candidate date or range can be booked.

    Args:
        candidate: Asset and requested day(s)
        existing_bookings: Snapshot of bookings, any asset, any status
        now: Current time; only its calendar day matters

    Returns:
        AvailabilityResult: ok, or the reason and the conflicting days
    """
    if candidate.start < as_date(now):
        return AvailabilityResult(ok=False, reason=UnavailableReason.PAST_DATE)

    blocked = blocked_dates(existing_bookings, candidate.asset_id)
    conflicts = sorted(day for day in iter_days(candidate.start, candidate.end) if day in blocked)
    if conflicts:
        return AvailabilityResult(
            ok=False, reason=UnavailableReason.OVERLAP, conflicting_dates=conflicts
        )
    return AvailabilityResult(ok=True)
