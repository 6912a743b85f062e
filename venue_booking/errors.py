"""
Error taxonomy for booking, ledger and coupon operations.

Every error carries a stable machine-readable ``code`` plus optional context.
Routes translate them into HTTP responses with a localized user-facing
message (see venue_booking.messages).
"""

from __future__ import annotations

from typing import Any


class BookingError(Exception):
    """Base class for expected failures of the booking core."""

    code = "BOOKING_ERROR"
    http_status = 400

    def __init__(self, code: str | None = None, message: str | None = None, **context: Any):
        self.code = code or self.code
        self.context = context
        super().__init__(message or self.code)


class ValidationError(BookingError):
    """User input rejected: bad amount, bad dates, unavailable date, coupon not applicable."""

    code = "VALIDATION_ERROR"
    http_status = 400


class NotFoundError(BookingError):
    code = "NOT_FOUND"
    http_status = 404


class StateError(BookingError):
    """A lifecycle transition would violate the booking invariants."""

    code = "INVALID_STATE"
    http_status = 409


class ConsistencyError(BookingError):
    """
    The ledger and the cached booking aggregate could not be reconciled.

    Retryable: the aggregate is always derived from the full payment log.
    """

    code = "LEDGER_CONFLICT"
    http_status = 503


class PermissionDeniedError(BookingError):
    code = "FORBIDDEN"
    http_status = 403


class GatewayError(Exception):
    """Payment gateway rejected a request or could not be reached."""

    http_status = 502

    def __init__(self, code: str, description: str):
        self.code = code
        self.description = description
        super().__init__(f"{code}: {description}")
