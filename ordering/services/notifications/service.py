"""
Notification Service

Coordinates order monitoring: attaches the customer, kitchen and delivery
observers to orders, keeps the registry of monitored orders, and exposes the
status-update entry points the rest of the application uses.

One instance is built at process start and handed to its collaborators;
there is no global instance. The registry and each observer's counter are
guarded by locks, so the service can be shared between threads.

Lookup policy:
    Monitored orders that already have a stored id are indexed by it, and
    only one instance per id is ever monitored. Orders registered before
    they are stored are indexed when start_monitoring() sees them with an id.
    update_order_status() silently ignores ids that are not being monitored.
    Callers that need to know whether an order was found use
    find_order() or the boolean return value.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ordering.core.exceptions import InvalidArgumentError
from ordering.domain import Order, OrderStatus
from ordering.services.notifications.observers import (
    CustomerObserver,
    DeliveryObserver,
    KitchenObserver,
)

logger = logging.getLogger(__name__)

StatusListener = Callable[[Order], None]


@dataclass(frozen=True)
class NotificationStats:
    """Point-in-time snapshot of the monitoring registry and counters."""
    monitored_orders: int
    customer_notifications: int
    kitchen_notifications: int
    delivery_notifications: int

    def to_dict(self) -> dict:
        return {
            "monitored_orders": self.monitored_orders,
            "customer_notifications": self.customer_notifications,
            "kitchen_notifications": self.kitchen_notifications,
            "delivery_notifications": self.delivery_notifications,
        }

    def __str__(self):
        return (
            f"Monitoring {self.monitored_orders} orders\n"
            f"Customer notifications: {self.customer_notifications}\n"
            f"Kitchen notifications: {self.kitchen_notifications}\n"
            f"Delivery notifications: {self.delivery_notifications}"
        )


class NotificationService:
    """
    Order monitoring coordinator.

    Attributes:
        customer_observer: Shared customer observer (its address follows the
            most recent start_monitoring call)
        kitchen_observer: Kitchen display observer
        delivery_observer: Delivery dispatch observer
        default_contact_address: Used when start_monitoring gets no address

    Example:
        >>> service = NotificationService()
        >>> service.start_monitoring(order, "jane@example.com")
        >>> service.update_order_status(order.id, "Preparing")
        True
    """

    def __init__(
        self,
        customer_observer: Optional[CustomerObserver] = None,
        kitchen_observer: Optional[KitchenObserver] = None,
        delivery_observer: Optional[DeliveryObserver] = None,
        default_contact_address: str = "customer@example.com",
    ):
        self.customer_observer = customer_observer or CustomerObserver()
        self.kitchen_observer = kitchen_observer or KitchenObserver()
        self.delivery_observer = delivery_observer or DeliveryObserver()
        self.default_contact_address = default_contact_address

        self._lock = threading.RLock()
        self._monitored: dict[int, Order] = {}
        self._by_order_id: dict[int, Order] = {}
        self._listeners: list[StatusListener] = []

    @property
    def observers(self) -> tuple:
        return (self.customer_observer, self.kitchen_observer, self.delivery_observer)

    # =========================================================================
    # MONITORING
    # =========================================================================

    def start_monitoring(self, order: Order, contact_address: Optional[str] = None) -> Order:
        """
        Attach all observers to ``order`` and register it.

        Calling this again for the same order changes nothing but the
        customer address. If another instance with the same stored id is
        already monitored, that instance stays registered and ``order`` is
        left untouched.

        Returns:
            The monitored instance for this order

        Raises:
            InvalidArgumentError: If order is None or contact_address is blank
        """
        if order is None:
            raise InvalidArgumentError("Order cannot be null")
        if contact_address is None:
            contact_address = self.default_contact_address

        with self._lock:
            self.customer_observer.set_contact_address(contact_address)
            existing = self._by_order_id.get(order.id) if order.id else None
            if existing is not None and existing is not order:
                return existing
            for observer in self.observers:
                order.attach(observer)
            if order.id:
                self._by_order_id[order.id] = order
            if id(order) in self._monitored:
                return order
            self._monitored[id(order)] = order

        logger.info(f"Started monitoring Order #{order.id} for customer {contact_address}")
        return order

    def stop_monitoring(self, order: Order) -> None:
        """Detach all observers and unregister. Safe for unregistered orders."""
        if order is None:
            return

        with self._lock:
            for observer in self.observers:
                order.detach(observer)
            removed = self._monitored.pop(id(order), None)
            if order.id and self._by_order_id.get(order.id) is order:
                del self._by_order_id[order.id]

        if removed is not None:
            logger.info(f"Stopped monitoring Order #{order.id}")

    def is_monitoring(self, order: Order) -> bool:
        with self._lock:
            return id(order) in self._monitored

    def get_monitored_orders(self) -> list[Order]:
        with self._lock:
            return list(self._monitored.values())

    def find_order(self, order_id: int) -> Optional[Order]:
        """Return the monitored order with ``order_id``, or None."""
        with self._lock:
            return self._by_order_id.get(order_id)

    # =========================================================================
    # STATUS UPDATES
    # =========================================================================

    def trigger_status_update(self, order: Order, new_status: Union[OrderStatus, str]) -> bool:
        if order is None:
            raise InvalidArgumentError("Order cannot be null")
        applied = order.update_status(new_status)
        if applied:
            logger.info(f"Order #{order.id} status updated to: {OrderStatus.parse(new_status).value}")
        return applied

    def update_order_status(self, order_id: int, new_status: Union[OrderStatus, str]) -> bool:
        """
        Update a monitored order by id and fire the status-change event.

        Unknown ids are ignored without error.

        Returns:
            True if a monitored order was found and updated
        """
        if not isinstance(order_id, int) or order_id <= 0:
            raise InvalidArgumentError("Order ID must be positive")
        status = OrderStatus.parse(new_status)

        order = self.find_order(order_id)
        if order is None:
            logger.debug(f"Order #{order_id} is not monitored; ignoring {status.value}")
            return False

        if not order.update_status(status, f"Status updated to: {status.value}"):
            return False

        self._fire_status_changed(order)
        logger.info(f"Order #{order_id} status updated to: {status.value}")
        return True

    def send_custom_notification(self, message: str) -> None:
        """Broadcast ``message`` to every stakeholder once."""
        if not message or not message.strip():
            raise InvalidArgumentError("Message cannot be null or empty")

        carrier = Order()
        for observer in self.observers:
            carrier.attach(observer)
        carrier.update_status(OrderStatus.CUSTOM, message)

        logger.info(f"Custom notification sent: {message}")

    def get_notification_stats(self) -> NotificationStats:
        with self._lock:
            monitored = len(self._monitored)
        return NotificationStats(
            monitored_orders=monitored,
            customer_notifications=self.customer_observer.notification_count,
            kitchen_notifications=self.kitchen_observer.notification_count,
            delivery_notifications=self.delivery_observer.notification_count,
        )

    # =========================================================================
    # EVENT SURFACE
    # =========================================================================

    def subscribe(self, listener: StatusListener) -> None:
        """Register a callback for order_status_changed(order)."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: StatusListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _fire_status_changed(self, order: Order) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(order)
            except Exception:
                logger.exception(f"Status listener failed for Order #{order.id}")
