"""
Notification sinks: consumers of review notifications.

The sink is an external collaborator (a UI toast, a message bus). The
Review Service only depends on the ``NotificationSink`` protocol.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol

from action_review.ledger.store import DecisionLedger
from action_review.models.notification import NotificationType, ReviewNotification

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Protocol for notification delivery, pluggable backend."""

    def publish(self, notification: ReviewNotification) -> None: ...


class InMemorySink:
    """Collects notifications in order. Useful for tests and for polling UIs."""

    def __init__(self):
        self._events: List[ReviewNotification] = []
        self._lock = threading.Lock()

    def publish(self, notification: ReviewNotification) -> None:
        with self._lock:
            self._events.append(notification)

    @property
    def events(self) -> List[ReviewNotification]:
        with self._lock:
            return list(self._events)

    def of_type(self, type_: NotificationType) -> List[ReviewNotification]:
        return [e for e in self.events if e.type == type_]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class LoggingSink:
    """Writes each notification to the log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def publish(self, notification: ReviewNotification) -> None:
        self._log.info(
            f"Action {notification.id} {notification.type.value} "
            f"({notification.outcome}) for {notification.subject_id}"
        )


class LedgerSink:
    """Appends each notification to the decision ledger."""

    def __init__(self, ledger: DecisionLedger):
        self.ledger = ledger

    def publish(self, notification: ReviewNotification) -> None:
        self.ledger.append(notification)


class CompositeSink:
    """
    Fans out to several sinks in order. A failing sink does not stop delivery
    to the others; the first failure is re-raised once every sink was tried.
    """

    def __init__(self, sinks: List[NotificationSink]):
        self.sinks = list(sinks)

    def publish(self, notification: ReviewNotification) -> None:
        first_error: Optional[Exception] = None
        for sink in self.sinks:
            try:
                sink.publish(notification)
            except Exception as e:
                logger.error(
                    f"Sink {type(sink).__name__} failed on notification "
                    f"{notification.notification_id}: {e}"
                )
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
