"""
Logging Notification Channel

Stands in for e-mail, SMS, the kitchen display and the dispatch board in
development. No actual messages are sent - just logged and kept in memory
so they can be inspected.
"""

import logging
import threading
import uuid

from ordering.services.notifications.base import NotificationChannel, NotificationResult

logger = logging.getLogger(__name__)


class LogChannel(NotificationChannel):
    """
    Development channel that logs every message.

    Attributes:
        name: Label used in log lines (e.g. "email", "kitchen")
        sent: Delivered messages as (address, subject, body) tuples
    """

    def __init__(self, name: str = "log"):
        self.name = name
        self.sent: list[tuple[str, str, str]] = []
        self._lock = threading.Lock()

    @property
    def provider_name(self) -> str:
        return "mock"

    def send(self, address: str, subject: str, body: str) -> NotificationResult:
        message_id = f"{self.name}_mock_{uuid.uuid4().hex[:12]}"
        with self._lock:
            self.sent.append((address, subject, body))
        logger.info(f"Mock {self.name} to {address}: {subject} (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )
