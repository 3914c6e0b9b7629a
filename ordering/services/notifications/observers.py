"""
Order Notification Observers

Each stakeholder (customer, kitchen, delivery) gets an observer that turns an
order status change into a message for its own channel. An observer's job
ends once the message is built, its counter incremented, and the message
handed to the channel; the channel's outcome does not affect the count.

Counters are guarded per observer, so observers never share state.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from ordering.core.exceptions import InvalidArgumentError
from ordering.domain import Order, OrderStatus
from ordering.services.notifications.base import NotificationChannel, NotificationResult
from ordering.services.notifications.mock import LogChannel

logger = logging.getLogger(__name__)


class NotificationObserver(ABC):
    """Anything that wants to hear about order status changes."""

    @abstractmethod
    def on_status_changed(self, order: Order, event_type: OrderStatus, message: str) -> None:
        pass


class ChannelObserver(NotificationObserver):
    """
    Observer that formats a message and sends it over a channel.

    Attributes:
        channel: Transport used for delivery
        address: Channel-specific destination
        notification_count: Notifications handled so far
        last_result: Outcome of the most recent delivery
    """

    stakeholder = "generic"

    def __init__(self, channel: Optional[NotificationChannel] = None, address: str = ""):
        self.channel = channel or LogChannel(self.stakeholder)
        self.address = address
        self.last_message: Optional[tuple[str, str]] = None
        self.last_result: Optional[NotificationResult] = None
        self._count = 0
        self._lock = threading.Lock()

    @property
    def notification_count(self) -> int:
        with self._lock:
            return self._count

    @abstractmethod
    def format_message(self, order: Order, event_type: OrderStatus, message: str) -> tuple[str, str]:
        """Return (subject, body) for this stakeholder."""
        pass

    def on_status_changed(self, order: Order, event_type: OrderStatus, message: str) -> None:
        subject, body = self.format_message(order, event_type, message)
        with self._lock:
            self._count += 1
            self.last_message = (subject, body)
            address = self.address

        self.last_result = self.channel.send(address, subject, body)
        if not self.last_result.success:
            logger.warning(
                f"{self.stakeholder} notification for Order #{order.id} not delivered: "
                f"{self.last_result.error_message}"
            )


class CustomerObserver(ChannelObserver):
    """Keeps the customer informed by e-mail or SMS."""

    stakeholder = "customer"

    def set_contact_address(self, address: str) -> None:
        if not address or not address.strip():
            raise InvalidArgumentError("Customer contact address cannot be null or empty")
        with self._lock:
            self.address = address.strip()

    def format_message(self, order, event_type, message):
        if event_type is OrderStatus.CUSTOM:
            return "Restaurant Notice", message
        subject = f"Order #{order.id} Status Update"
        body = f"Your order status has been updated to: {event_type.value}"
        if message:
            body = f"{body}. {message}"
        return subject, body


class KitchenObserver(ChannelObserver):
    """Pushes work to the kitchen display system."""

    stakeholder = "kitchen"

    def format_message(self, order, event_type, message):
        if event_type is OrderStatus.CUSTOM:
            return "Kitchen Notice", message
        if event_type is OrderStatus.PREPARING:
            items = ", ".join(line.describe() for line in order.line_items)
            return (
                f"Prepare Order #{order.id}",
                f"Order #{order.id} is ready for preparation: {items or 'no items'}",
            )
        if event_type is OrderStatus.CANCELLED:
            return f"Cancel Order #{order.id}", f"Stop work on Order #{order.id}"
        return f"Order #{order.id}", f"Order #{order.id} is now {event_type.value}"


class DeliveryObserver(ChannelObserver):
    """Posts hand-offs to the delivery dispatch board."""

    stakeholder = "delivery"

    def format_message(self, order, event_type, message):
        if event_type is OrderStatus.CUSTOM:
            return "Dispatch Notice", message
        if event_type is OrderStatus.READY:
            return (
                f"Pickup Order #{order.id}",
                f"Order #{order.id} is ready for delivery",
            )
        return f"Order #{order.id}", f"Order #{order.id} is now {event_type.value}"
