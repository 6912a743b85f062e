"""
FastAPI dependency injection providers.

Dependencies can be overridden in tests using app.dependency_overrides, making
it easy to inject an in-memory engine, a fixed caller profile or a recording
notifier.
"""

from __future__ import annotations

from typing import Generator, Optional
from uuid import UUID

import structlog
from fastapi import Header, HTTPException, status
from sqlalchemy.engine import Engine

from venue_booking.db.engine import engine
from venue_booking.domain.enums import Role
from venue_booking.schemas.profiles import UserProfile
from venue_booking.services.notifications import Notifier, default_notifier

logger = structlog.get_logger(__name__)


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
        >>> client = TestClient(app)
        >>> client.get(f"/assets/{hall_id}/blocked-dates")
    """
    yield engine


def get_current_profile(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> UserProfile:
    """
    Build the caller's profile from the identity headers set by the auth proxy.

    Requests without headers are anonymous guests.

    Raises:
        HTTPException: 400 if the user ID or role header is malformed
    """
    try:
        user_id = UUID(x_user_id) if x_user_id else None
        role = Role(x_user_role.lower()) if x_user_role else (Role.USER if user_id else Role.GUEST)
    except ValueError:
        logger.warning("invalid_identity_headers", user_id=x_user_id, role=x_user_role)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-Id or X-User-Role header",
        )

    if role in (Role.VENDOR, Role.USER) and user_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"X-User-Id is required for role {role.value}",
        )

    return UserProfile(user_id=user_id, role=role, email=x_user_email, full_name=x_user_name)


def get_notifier() -> Notifier:
    return default_notifier
