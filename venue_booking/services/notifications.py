"""
Notification sink for operator-facing messages ("payment registered", ...).

Services report outcomes through a Notifier. The default implementation
writes a structured log event carrying the localized message; a UI or
messaging integration can supply its own notifier instead.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from venue_booking.messages import message_for

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    def notify(self, kind: str, message: str, **context: Any) -> None: ...


class LogNotifier:
    """Notifier that emits each notification as a log event."""

    def notify(self, kind: str, message: str, **context: Any) -> None:
        logger.info("notification", kind=kind, message=message, **context)


class RecordingNotifier:
    """Keeps notifications in memory. Useful in tests and scripts."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict[str, Any]]] = []

    def notify(self, kind: str, message: str, **context: Any) -> None:
        self.sent.append((kind, message, context))

    def kinds(self) -> list[str]:
        return [kind for kind, _, _ in self.sent]


default_notifier = LogNotifier()


def notify(notifier: Notifier | None, kind: str, **context: Any) -> None:
    """Send the localized message registered for ``kind``."""
    (notifier or default_notifier).notify(kind, message_for(kind, **context), **context)
