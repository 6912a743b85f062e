"""
Internal helpers shared by the route handlers: error translation and
access checks on the caller's profile.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from venue_booking.errors import BookingError, GatewayError, PermissionDeniedError
from venue_booking.messages import message_for
from venue_booking.schemas.profiles import UserProfile

logger = structlog.get_logger(__name__)


def error_body(code: str, detail: Any = None) -> dict[str, Any]:
    return {"error": code, "message": message_for(code), "detail": detail}


def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """
    Translate a BookingError into its HTTP status with a localized message.
    """
    logger.info(
        "request_rejected", path=request.url.path, error=exc.code, status_code=exc.http_status
    )
    detail: dict[str, Any] = {"reason": str(exc)}
    detail.update(exc.context)
    return JSONResponse(status_code=exc.http_status, content=error_body(exc.code, detail))


def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if exc.code == "GATEWAY_DISABLED"
        else status.HTTP_502_BAD_GATEWAY
    )
    logger.warning("gateway_error", path=request.url.path, code=exc.code)
    body = error_body("GATEWAY_DISABLED" if exc.code == "GATEWAY_DISABLED" else "GATEWAY_ERROR")
    body["detail"] = {"code": exc.code, "description": exc.description}
    return JSONResponse(status_code=status_code, content=body)


def require_vendor_or_403(profile: UserProfile) -> Optional[UUID]:
    """
    Allow vendors and admins only.

    Returns:
        Optional[UUID]: Vendor scope of the caller (None for admins)

    Raises:
        PermissionDeniedError: FORBIDDEN for any other role
    """
    if not profile.can_register_payments:
        raise PermissionDeniedError("FORBIDDEN", f"Role {profile.role.value} cannot manage bookings")
    return profile.vendor_scope


def ensure_booking_access_or_403(profile: UserProfile, booking: dict[str, Any]) -> None:
    """
    Admins see everything, vendors their own bookings, users the bookings they made.

    Raises:
        PermissionDeniedError: FORBIDDEN
    """
    if profile.is_admin:
        return
    if profile.user_id is not None and profile.user_id in (booking["vendor_id"], booking["user_id"]):
        return
    raise PermissionDeniedError("FORBIDDEN", "Booking belongs to someone else")


def ensure_booking_owner_or_403(profile: UserProfile, booking: dict[str, Any]) -> None:
    """Write access: the booking's vendor or an admin."""
    vendor_scope = require_vendor_or_403(profile)
    if vendor_scope is not None and booking["vendor_id"] != vendor_scope:
        raise PermissionDeniedError("FORBIDDEN", "Booking belongs to another vendor")
