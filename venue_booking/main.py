# venue_booking/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from venue_booking.config import ALLOWED_ORIGINS, HYPERPAY_ENABLED, HYPERPAY_MODE
from venue_booking.errors import BookingError, GatewayError
from venue_booking.logging_config import setup_logging
from venue_booking.middleware import RequestIDMiddleware
from venue_booking.routes._helpers import booking_error_handler, gateway_error_handler
from venue_booking.routes.availability import router as availability_router
from venue_booking.routes.bookings import router as bookings_router
from venue_booking.routes.checkout import router as checkout_router
from venue_booking.routes.coupons import router as coupons_router
from venue_booking.routes.health import router as health_router
from venue_booking.routes.metrics import router as metrics_router
from venue_booking.routes.payments import router as payments_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Venue Booking API",
    description="Bookings, payments and coupons for halls, chalets and services",
    version="1.0.0",
)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
app.add_exception_handler(GatewayError, gateway_error_handler)  # type: ignore[arg-type]

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(availability_router, tags=["Availability"])
app.include_router(bookings_router, tags=["Bookings"])
app.include_router(payments_router, tags=["Payments"])
app.include_router(coupons_router, tags=["Coupons"])
app.include_router(checkout_router, tags=["Checkout"])


@app.on_event("startup")
def startup_event() -> None:
    """Log the runtime configuration on startup."""
    logger.info(
        "application_started",
        hyperpay_enabled=HYPERPAY_ENABLED,
        hyperpay_mode=HYPERPAY_MODE,
    )
    if not HYPERPAY_ENABLED:
        logger.warning("hyperpay_disabled", reason="missing entity id or access token")
