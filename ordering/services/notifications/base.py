"""
Notification Channel Abstract Base Class

Defines the transport interface observers hand their formatted messages to.
Supports both logging (development) and real (production) implementations.

Channels are fire-and-forget from the order engine's point of view: a failed
delivery is reported in the NotificationResult, never raised.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class NotificationChannel(ABC):
    """Abstract base class for notification transports."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    def send(self, address: str, subject: str, body: str) -> NotificationResult:
        """Deliver ``body`` to ``address``."""
        pass
