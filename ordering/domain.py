"""
Order Domain Model

The Order aggregate is both a state machine and the subject that notification
observers attach to. Status changes are appended to an audit history and
fanned out synchronously to every attached observer in attachment order.

Status workflow:
    Pending -> Preparing -> Ready -> Delivered -> Completed
    Cancelled is reachable from any non-terminal status.
    Custom is a broadcast-only pseudo-status: observers hear it, but the
    order's status and history are left alone.

Terminal-state policy:
    Once an order is Completed or Cancelled, update_status() is a no-op that
    returns False. It neither raises nor notifies. Payment status can still
    change.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Optional, Union

from ordering.core.exceptions import InvalidArgumentError, InvalidStateTransitionError

if TYPE_CHECKING:
    from ordering.services.notifications.observers import NotificationObserver

logger = logging.getLogger(__name__)


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "Pending"
    PREPARING = "Preparing"
    READY = "Ready"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    CUSTOM = "Custom"

    @classmethod
    def parse(cls, value: Union["OrderStatus", str]) -> "OrderStatus":
        """Parse a status name case-insensitively."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise InvalidArgumentError("Status cannot be null or empty")
        key = value.strip().lower()
        for status in cls:
            if status.value.lower() == key:
                return status
        raise InvalidArgumentError(f"Unknown order status: {value}")

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class PaymentStatus(str, enum.Enum):
    """Payment status, tracked separately from the order status."""
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"

    @classmethod
    def parse(cls, value: Union["PaymentStatus", str]) -> "PaymentStatus":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise InvalidArgumentError("Payment status cannot be null or empty")
        key = value.strip().lower()
        for status in cls:
            if status.value.lower() == key:
                return status
        raise InvalidArgumentError(f"Unknown payment status: {value}")


@dataclass
class Customer:
    """Registered customer."""
    id: int
    name: str
    email: Optional[str] = None
    address: Optional[str] = None
    preferred_payment_method: Optional[str] = None


@dataclass
class MenuItem:
    """Menu item offered for ordering."""
    id: int
    name: str
    price: float
    category: str
    description: str = ""
    available: bool = True
    prep_time: int = 15


@dataclass(frozen=True)
class Customization:
    """Named change to a line item with a per-unit surcharge."""
    name: str
    additional_cost: float = 0.0


@dataclass
class OrderLine:
    """
    Single line item in an order.

    Customization surcharges are charged per unit, so the line total is
    quantity * (unit_price + surcharge). Change lines through the owning
    Order so its total stays in step.
    """
    item_id: int
    quantity: int
    unit_price: float
    item_name: str = ""
    customizations: list[Customization] = field(default_factory=list)

    @property
    def unit_surcharge(self) -> float:
        return round(sum(c.additional_cost for c in self.customizations), 2)

    @property
    def base_price(self) -> float:
        return round(self.quantity * self.unit_price, 2)

    @property
    def customization_cost(self) -> float:
        return round(self.quantity * self.unit_surcharge, 2)

    @property
    def total_price(self) -> float:
        return round(self.quantity * (self.unit_price + self.unit_surcharge), 2)

    def add_customization(self, name: str, additional_cost: float = 0.0) -> Customization:
        if not name or not name.strip():
            raise InvalidArgumentError("Customization cannot be null or empty")
        if additional_cost is None or additional_cost < 0:
            raise InvalidArgumentError("Customization cost cannot be negative")
        customization = Customization(name.strip(), float(additional_cost))
        self.customizations.append(customization)
        return customization

    def remove_customization(self, name: str) -> bool:
        """Remove the first customization called ``name`` and its surcharge."""
        for index, customization in enumerate(self.customizations):
            if customization.name == name:
                del self.customizations[index]
                return True
        return False

    def update_quantity(self, quantity: int) -> None:
        if quantity is None or quantity < 1:
            raise InvalidArgumentError("Quantity must be at least 1")
        self.quantity = quantity

    def describe(self) -> str:
        """Kitchen-facing label, e.g. ``Pizza x2 (Extra cheese, No onions)``."""
        label = f"{self.item_name or f'item {self.item_id}'} x{self.quantity}"
        if self.customizations:
            label += f" ({', '.join(c.name for c in self.customizations)})"
        return label


@dataclass(frozen=True)
class StatusUpdate:
    """One entry of an order's status history."""
    status: OrderStatus
    message: str
    timestamp: datetime


class Order:
    """
    Order aggregate root.

    Attributes:
        id: Store-assigned identifier (0 until persisted, then immutable)
        customer_id: Owning customer
        line_items: Ordered line items
        total_amount: Sum of line totals including per-unit customization
            surcharges, recomputed on every line change
        status: Current OrderStatus
        payment_status: PaymentStatus, independent of status
        status_history: Append-only audit of status changes

    Example:
        >>> order = Order(customer_id=1)
        >>> order.add_item(item_id=3, quantity=2, unit_price=5.00)
        >>> order.update_status("Preparing", "Kitchen has started")
        True
        >>> len(order.status_history)
        2
    """

    CREATED_MESSAGE = "Your order has been placed successfully"
    CANCELLED_MESSAGE = "Your order has been cancelled"

    def __init__(
        self,
        customer_id: int = 0,
        line_items: Optional[Iterable[OrderLine]] = None,
        *,
        order_id: int = 0,
        status: Union[OrderStatus, str] = OrderStatus.PENDING,
        payment_status: Union[PaymentStatus, str] = PaymentStatus.PENDING,
        payment_method: str = "",
        history: Optional[Iterable[StatusUpdate]] = None,
        created_at: Optional[datetime] = None,
        delivered_at: Optional[datetime] = None,
    ):
        """
        Build an order.

        New orders start Pending with a single creation entry in their
        history. Passing ``history`` restores a previously persisted order
        as-is instead.
        """
        if customer_id is None or customer_id < 0:
            raise InvalidArgumentError("Customer ID cannot be negative")

        self._lock = threading.RLock()
        self._id = 0
        self._observers: list[NotificationObserver] = []

        self.customer_id = customer_id
        self.payment_method = payment_method
        self.created_at = created_at or datetime.now()
        self.delivered_at = delivered_at
        self._status = OrderStatus.parse(status)
        self._payment_status = PaymentStatus.parse(payment_status)
        self._line_items: list[OrderLine] = []
        self._total_amount = 0.0

        for line in line_items or ():
            self._validate_line(line.quantity, line.unit_price)
            self._line_items.append(line)
        self._recalculate_total()

        if history is None:
            self._history: list[StatusUpdate] = [
                StatusUpdate(self._status, self.CREATED_MESSAGE, self.created_at)
            ]
        else:
            self._history = list(history)

        if order_id:
            self.assign_id(order_id)

    # =========================================================================
    # IDENTITY
    # =========================================================================

    @property
    def id(self) -> int:
        return self._id

    def assign_id(self, order_id: int) -> None:
        """Set the store-assigned id. An id can be assigned only once."""
        if not isinstance(order_id, int) or order_id <= 0:
            raise InvalidArgumentError("Order ID must be a positive integer")
        with self._lock:
            if self._id and self._id != order_id:
                raise InvalidStateTransitionError(
                    f"Order already has id {self._id}; cannot reassign to {order_id}"
                )
            self._id = order_id

    # =========================================================================
    # LINE ITEMS
    # =========================================================================

    @property
    def line_items(self) -> list[OrderLine]:
        return list(self._line_items)

    @property
    def total_amount(self) -> float:
        return self._total_amount

    @staticmethod
    def _validate_line(quantity: int, unit_price: float) -> None:
        if quantity is None or quantity < 1:
            raise InvalidArgumentError("Quantity must be at least 1")
        if unit_price is None or unit_price < 0:
            raise InvalidArgumentError("Unit price cannot be negative")

    def _recalculate_total(self) -> None:
        self._total_amount = round(sum(line.total_price for line in self._line_items), 2)

    def _ensure_mutable(self) -> None:
        if self._status.is_terminal:
            raise InvalidStateTransitionError(
                f"Order #{self._id} is {self._status.value}; line items are frozen"
            )

    def add_item(
        self,
        item_id: int,
        quantity: int,
        unit_price: float,
        item_name: str = "",
    ) -> OrderLine:
        """Append a line item and recompute the total."""
        self._validate_line(quantity, unit_price)
        with self._lock:
            self._ensure_mutable()
            line = OrderLine(item_id, quantity, unit_price, item_name)
            self._line_items.append(line)
            self._recalculate_total()
        return line

    def remove_item(self, item_id: int) -> bool:
        """Remove the first line for ``item_id``. Returns False if absent."""
        with self._lock:
            self._ensure_mutable()
            for index, line in enumerate(self._line_items):
                if line.item_id == item_id:
                    del self._line_items[index]
                    self._recalculate_total()
                    return True
        return False

    def _find_line(self, item_id: int) -> OrderLine:
        for line in self._line_items:
            if line.item_id == item_id:
                return line
        raise InvalidArgumentError(f"Order #{self._id} has no line for item {item_id}")

    def customize_item(self, item_id: int, customization: str, additional_cost: float = 0.0) -> OrderLine:
        """
        Add a customization to the first line for ``item_id``.

        ``additional_cost`` is charged per unit on that line.

        Raises:
            InvalidArgumentError: Unknown line, blank name or negative cost
            InvalidStateTransitionError: If the order is Completed or Cancelled
        """
        with self._lock:
            self._ensure_mutable()
            line = self._find_line(item_id)
            line.add_customization(customization, additional_cost)
            self._recalculate_total()
        return line

    def remove_customization(self, item_id: int, customization: str) -> bool:
        with self._lock:
            self._ensure_mutable()
            removed = self._find_line(item_id).remove_customization(customization)
            if removed:
                self._recalculate_total()
        return removed

    def update_item_quantity(self, item_id: int, quantity: int) -> OrderLine:
        with self._lock:
            self._ensure_mutable()
            line = self._find_line(item_id)
            line.update_quantity(quantity)
            self._recalculate_total()
        return line

    # =========================================================================
    # STATUS
    # =========================================================================

    @property
    def status(self) -> OrderStatus:
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self._status.is_terminal

    @property
    def payment_status(self) -> PaymentStatus:
        return self._payment_status

    @payment_status.setter
    def payment_status(self, value: Union[PaymentStatus, str]) -> None:
        # Allowed in terminal states too.
        self._payment_status = PaymentStatus.parse(value)

    @property
    def status_history(self) -> list[StatusUpdate]:
        return list(self._history)

    def _append_history(self, status: OrderStatus, message: str) -> StatusUpdate:
        now = datetime.now()
        if self._history and now < self._history[-1].timestamp:
            now = self._history[-1].timestamp
        entry = StatusUpdate(status, message, now)
        self._history.append(entry)
        return entry

    def update_status(self, new_status: Union[OrderStatus, str], message: str = "") -> bool:
        """
        Move the order to ``new_status`` and notify attached observers.

        Returns:
            True if the update was applied (or broadcast, for Custom),
            False if the order is already terminal and the call was ignored.

        Raises:
            InvalidArgumentError: If ``new_status`` is not a known status
        """
        status = OrderStatus.parse(new_status)
        message = message or ""

        with self._lock:
            if self._status.is_terminal:
                logger.warning(
                    f"Order #{self._id} is {self._status.value}; "
                    f"ignoring update to {status.value}"
                )
                return False

            if status is not OrderStatus.CUSTOM:
                self._status = status
                entry = self._append_history(status, message)
                if status is OrderStatus.DELIVERED:
                    self.delivered_at = entry.timestamp

            observers = list(self._observers)

        logger.debug(f"Order #{self._id} -> {status.value} ({len(observers)} observers)")
        self._notify_all(status, message, observers)
        return True

    def cancel_order(self, message: str = CANCELLED_MESSAGE) -> bool:
        """Cancel the order. No-op if already Completed or Cancelled."""
        return self.update_status(OrderStatus.CANCELLED, message)

    # =========================================================================
    # SUBJECT
    # =========================================================================

    @property
    def observers(self) -> tuple:
        return tuple(self._observers)

    def attach(self, observer: "NotificationObserver") -> bool:
        """Attach an observer. Attaching the same instance twice is a no-op."""
        if observer is None:
            raise InvalidArgumentError("Observer cannot be null")
        with self._lock:
            if any(existing is observer for existing in self._observers):
                return False
            self._observers.append(observer)
            return True

    def detach(self, observer: "NotificationObserver") -> bool:
        with self._lock:
            for index, existing in enumerate(self._observers):
                if existing is observer:
                    del self._observers[index]
                    return True
        return False

    def _notify_all(self, event_type: OrderStatus, message: str, observers=None) -> None:
        # A failing observer is logged and skipped; the rest still hear the event.
        for observer in self._observers if observers is None else observers:
            try:
                observer.on_status_changed(self, event_type, message)
            except Exception:
                logger.exception(
                    f"Observer {type(observer).__name__} failed on "
                    f"Order #{self._id} {event_type.value}"
                )

    # =========================================================================
    # REPORTING
    # =========================================================================

    def latest_status(self) -> StatusUpdate:
        return self._history[-1]

    def is_ready_for_delivery(self) -> bool:
        return (
            self._status is OrderStatus.READY
            and self._payment_status is PaymentStatus.COMPLETED
        )

    def track(self) -> str:
        return f"Order {self._id}: {self._status.value} - Total: ${self._total_amount:.2f}"

    def summary(self) -> str:
        return (
            f"Order #{self._id} - {len(self._line_items)} items - "
            f"${self._total_amount:.2f} - {self._status.value}"
        )

    def __repr__(self):
        return f"<Order #{self._id} - customer {self.customer_id} - {self._status.value}>"
