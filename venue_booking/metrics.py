"""
Prometheus metrics for bookings, the payment ledger and the payment gateway.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from venue_booking.metrics import payments_registered
    >>> payments_registered.labels(payment_method="cash").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Booking Metrics
# =============================================================================

bookings_created = Counter(
    "venue_bookings_created_total",
    "Total number of bookings created",
    ["channel", "status"],
)
"""
Counter for created bookings.

Labels:
    channel: guest (public booking flow) or manual (vendor back office)
    status: Initial booking status
"""

booking_transitions = Counter(
    "venue_booking_transitions_total",
    "Total number of booking status transitions",
    ["from_status", "to_status"],
)

holds_expired = Counter(
    "venue_booking_holds_expired_total",
    "Total number of on_hold bookings cancelled after their hold expired",
)

availability_rejections = Counter(
    "venue_availability_rejections_total",
    "Availability checks that refused a date",
    ["reason"],
)
"""
Counter for refused availability checks.

Labels:
    reason: PAST_DATE or OVERLAP
"""

coupon_resolutions = Counter(
    "venue_coupon_resolutions_total",
    "Coupon resolution attempts",
    ["outcome"],
)
"""
Counter for coupon resolutions.

Labels:
    outcome: applied, or the rejection reason (NOT_FOUND, EXPIRED, ...)
"""

# =============================================================================
# Ledger Metrics
# =============================================================================

payments_registered = Counter(
    "venue_payments_registered_total",
    "Total number of payment log entries added",
    ["payment_method"],
)

payments_removed = Counter(
    "venue_payments_removed_total",
    "Total number of payment log entries deleted",
)

ledger_recomputes = Counter(
    "venue_ledger_recomputes_total",
    "Booking aggregate recomputations from the payment log",
    ["outcome"],
)
"""
Counter for ledger recomputations.

Labels:
    outcome: success, conflict (version mismatch, retried) or failed
"""

ledger_duration = Histogram(
    "venue_ledger_unit_of_work_seconds",
    "Duration of a ledger unit of work (log write + aggregate update)",
    ["operation"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, float("inf")),
)

# =============================================================================
# Payment Gateway Metrics
# =============================================================================

gateway_requests = Counter(
    "venue_gateway_requests_total",
    "Total payment gateway requests made",
    ["operation", "status_code"],
)

gateway_latency = Histogram(
    "venue_gateway_latency_seconds",
    "Payment gateway request latency in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)
