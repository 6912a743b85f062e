"""
Booking payment ledger.

The payment log is the source of truth: after every mutation the booking's
paid_amount and payment_status are recomputed from the full set of log
entries, never incremented or decremented. The log write and the aggregate
write happen in one transaction; the aggregate write is guarded by the
booking's version token, and a unit of work that loses the race is rolled
back and retried from scratch.

Example:
    >>> summary = add_payment(engine, booking_id, Decimal("500"), PaymentMethod.CASH)
    >>> summary.payment_status
    <PaymentStatus.PARTIAL: 'partial'>
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, OperationalError

from venue_booking.config import LEDGER_MAX_RETRIES
from venue_booking.db.readers.bookings import get_booking
from venue_booking.db.readers.payment_logs import (
    get_payment_log,
    get_payment_log_by_reference,
    list_payment_logs,
)
from venue_booking.db.writers.bookings import update_booking_aggregate
from venue_booking.db.writers.payment_logs import delete_payment_log, insert_payment_log
from venue_booking.domain.enums import PaymentMethod, PaymentStatus
from venue_booking.domain.lifecycle import derive_payment_status
from venue_booking.domain.money import MoneyLike, remaining_amount, to_money
from venue_booking.errors import (
    ConsistencyError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from venue_booking.metrics import (
    ledger_duration,
    ledger_recomputes,
    payments_registered,
    payments_removed,
)
from venue_booking.services.notifications import Notifier, notify

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class LedgerSummary(BaseModel):
    booking_id: UUID
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    payment_status: PaymentStatus


class LedgerEntry(BaseModel):
    id: UUID
    booking_id: UUID
    vendor_id: UUID
    amount: Decimal
    payment_method: PaymentMethod
    notes: Optional[str] = None
    reference: Optional[str] = None
    created_at: Any = None


class Ledger(BaseModel):
    summary: LedgerSummary
    entries: list[LedgerEntry]


class StaleBookingError(Exception):
    """The booking's version changed between read and aggregate write."""


def _summarize(booking: dict[str, Any], logs: list[dict[str, Any]]) -> LedgerSummary:
    paid = sum((to_money(log["amount"]) for log in logs), Decimal("0.00"))
    total = to_money(booking["total_amount"])
    return LedgerSummary(
        booking_id=booking["id"],
        total_amount=total,
        paid_amount=paid,
        remaining_amount=remaining_amount(total, paid),
        payment_status=derive_payment_status(paid, total),
    )


def recompute_aggregate(conn: Connection, booking: dict[str, Any]) -> LedgerSummary:
    """
    Recompute and persist a booking's paid_amount/payment_status from its full log.

    Must run inside the caller's transaction, with ``booking`` read (and
    locked) in that same transaction.

    Raises:
        StaleBookingError: Another writer updated the booking since it was read
    """
    summary = _summarize(booking, list_payment_logs(conn, booking["id"]))

    updated = update_booking_aggregate(
        conn,
        booking["id"],
        expected_version=booking["version"],
        paid_amount=summary.paid_amount,
        payment_status=summary.payment_status.value,
    )
    if not updated:
        raise StaleBookingError(str(booking["id"]))

    if summary.paid_amount > summary.total_amount:
        logger.warning(
            "booking_overpaid",
            booking_id=str(booking["id"]),
            paid_amount=str(summary.paid_amount),
            total_amount=str(summary.total_amount),
        )
    return summary


def record_payment(
    conn: Connection,
    booking: dict[str, Any],
    amount: Decimal,
    method: PaymentMethod,
    notes: Optional[str] = None,
    reference: Optional[str] = None,
) -> LedgerSummary:
    """
    Append a log entry and recompute the aggregate inside an open transaction.

    Used directly by booking creation so initial payments go through the
    same path as later ones.
    """
    insert_payment_log(
        conn,
        booking_id=booking["id"],
        vendor_id=booking["vendor_id"],
        amount=amount,
        payment_method=method.value,
        notes=notes,
        reference=reference,
    )
    return recompute_aggregate(conn, booking)


def _load_booking_or_404(conn: Connection, booking_id: UUID) -> dict[str, Any]:
    booking = get_booking(conn, booking_id, for_update=True)
    if booking is None:
        raise NotFoundError("BOOKING_NOT_FOUND", f"Booking {booking_id} not found")
    return booking


def _run_unit_of_work(engine: Engine, operation: str, work: Callable[[Connection], T]) -> T:
    """
    Run ``work`` in its own transaction, retrying on version conflicts and
    transient database errors.

    Raises:
        ConsistencyError: All attempts failed
    """
    for attempt in range(1, LEDGER_MAX_RETRIES + 1):
        started = time.time()
        try:
            with engine.begin() as conn:
                result = work(conn)
            ledger_recomputes.labels(outcome="success").inc()
            return result
        except StaleBookingError as e:
            ledger_recomputes.labels(outcome="conflict").inc()
            logger.warning(
                "ledger_version_conflict", operation=operation, booking_id=str(e), attempt=attempt
            )
        except OperationalError as e:
            ledger_recomputes.labels(outcome="conflict").inc()
            logger.warning(
                "ledger_transient_failure", operation=operation, attempt=attempt, error=str(e)
            )
        finally:
            ledger_duration.labels(operation=operation).observe(time.time() - started)

    ledger_recomputes.labels(outcome="failed").inc()
    logger.error("ledger_unit_of_work_failed", operation=operation, attempts=LEDGER_MAX_RETRIES)
    raise ConsistencyError("LEDGER_CONFLICT", f"{operation} could not be committed")


def _ensure_can_register(can_register: bool) -> None:
    if not can_register:
        raise PermissionDeniedError("READ_ONLY", "Payment registration is disabled for this view")


def add_payment(
    engine: Engine,
    booking_id: UUID,
    amount: MoneyLike,
    method: PaymentMethod | str,
    notes: Optional[str] = None,
    *,
    reference: Optional[str] = None,
    can_register: bool = True,
    notifier: Notifier | None = None,
) -> LedgerSummary:
    """
    Register a payment against a booking.

    A payment carrying a reference that is already logged for the booking is
    not recorded again; the current aggregate is returned instead.

    Args:
        engine: SQLAlchemy engine
        booking_id: Booking ID
        amount: Positive amount paid
        method: cash, card or transfer
        notes: Optional free text
        reference: Unique external payment reference, e.g. a gateway resource path
        can_register: Capability flag of the calling view; False means read-only
        notifier: Notification sink

    Returns:
        LedgerSummary: Aggregate after the payment

    Raises:
        PermissionDeniedError: READ_ONLY when can_register is False
        ValidationError: INVALID_AMOUNT / INVALID_METHOD, or DUPLICATE_REFERENCE
            when the reference is logged against another booking
        NotFoundError: BOOKING_NOT_FOUND
        ConsistencyError: The unit of work could not be committed
    """
    _ensure_can_register(can_register)

    value = to_money(amount)
    if value <= 0:
        raise ValidationError("INVALID_AMOUNT", "Payment amount must be greater than zero")
    try:
        payment_method = PaymentMethod(method)
    except ValueError:
        raise ValidationError("INVALID_METHOD", f"Unknown payment method {method!r}")

    def work(conn: Connection) -> tuple[LedgerSummary, bool]:
        booking = _load_booking_or_404(conn, booking_id)
        if reference is not None:
            existing = get_payment_log_by_reference(conn, reference)
            if existing is not None:
                if existing["booking_id"] != booking_id:
                    raise ValidationError(
                        "DUPLICATE_REFERENCE",
                        f"Payment reference {reference} belongs to another booking",
                    )
                return _summarize(booking, list_payment_logs(conn, booking_id)), False
        summary = record_payment(conn, booking, value, payment_method, notes, reference)
        return summary, True

    try:
        summary, recorded = _run_unit_of_work(engine, "add_payment", work)
    except IntegrityError:
        if reference is None:
            raise
        # another transaction logged the same reference first
        summary, recorded = _run_unit_of_work(engine, "add_payment", work)

    if not recorded:
        logger.info(
            "payment_already_recorded",
            booking_id=str(booking_id),
            reference=reference,
            paid_amount=str(summary.paid_amount),
        )
        return summary

    payments_registered.labels(payment_method=payment_method.value).inc()
    logger.info(
        "payment_added",
        booking_id=str(booking_id),
        amount=str(value),
        payment_method=payment_method.value,
        paid_amount=str(summary.paid_amount),
        payment_status=summary.payment_status.value,
    )
    notify(notifier, "payment_added", booking_id=str(booking_id), amount=str(value))
    return summary


def remove_payment(
    engine: Engine,
    payment_log_id: UUID,
    *,
    can_register: bool = True,
    notifier: Notifier | None = None,
) -> LedgerSummary:
    """
    Delete an erroneous payment log entry and recompute its booking.

    The operator confirmation is the caller's responsibility.

    Raises:
        PermissionDeniedError: READ_ONLY when can_register is False
        NotFoundError: PAYMENT_NOT_FOUND / BOOKING_NOT_FOUND
        ConsistencyError: The unit of work could not be committed
    """
    _ensure_can_register(can_register)

    def work(conn: Connection) -> LedgerSummary:
        log = get_payment_log(conn, payment_log_id)
        if log is None:
            raise NotFoundError("PAYMENT_NOT_FOUND", f"Payment {payment_log_id} not found")
        booking = _load_booking_or_404(conn, log["booking_id"])
        delete_payment_log(conn, payment_log_id)
        return recompute_aggregate(conn, booking)

    summary = _run_unit_of_work(engine, "remove_payment", work)

    payments_removed.inc()
    logger.info(
        "payment_removed",
        payment_log_id=str(payment_log_id),
        booking_id=str(summary.booking_id),
        paid_amount=str(summary.paid_amount),
        payment_status=summary.payment_status.value,
    )
    notify(notifier, "payment_removed", booking_id=str(summary.booking_id))
    return summary


def recompute_booking(engine: Engine, booking_id: UUID) -> LedgerSummary:
    """
    Re-derive a booking's aggregate from its log. Idempotent.

    Raises:
        NotFoundError: BOOKING_NOT_FOUND
        ConsistencyError: The unit of work could not be committed
    """

    def work(conn: Connection) -> LedgerSummary:
        booking = _load_booking_or_404(conn, booking_id)
        return recompute_aggregate(conn, booking)

    summary = _run_unit_of_work(engine, "recompute", work)
    logger.info(
        "ledger_recomputed",
        booking_id=str(booking_id),
        paid_amount=str(summary.paid_amount),
        payment_status=summary.payment_status.value,
    )
    return summary


def get_ledger(conn: Connection, booking_id: UUID) -> Ledger:
    """
    Read a booking's payment log (newest first) with totals derived from it.

    Raises:
        NotFoundError: BOOKING_NOT_FOUND
    """
    booking = get_booking(conn, booking_id)
    if booking is None:
        raise NotFoundError("BOOKING_NOT_FOUND", f"Booking {booking_id} not found")

    logs = list_payment_logs(conn, booking_id)
    return Ledger(
        summary=_summarize(booking, logs),
        entries=[LedgerEntry(**log) for log in logs],
    )
