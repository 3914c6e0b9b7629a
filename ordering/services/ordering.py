"""
Ordering Service

Orchestrates order placement and fulfilment:
    1. Validate the request and resolve customer and menu items
    2. Build the Order and persist it (the store assigns the id)
    3. Register the order with the NotificationService
    4. Create the payment through PaymentFactory, process it, and copy the
       outcome onto the order's payment status

Payment failures are reported as a failed result, never raised, so a declined
card does not undo an otherwise valid order.

checkout() performs step 4 in one call and saves both the payment and
the order. process_payment() is the bare strategy call for callers that
synchronise the order themselves.
"""

import asyncio
import logging
from collections import Counter
from typing import Any, Iterable, Optional, Union

from ordering.core.config import Settings, get_settings
from ordering.core.exceptions import (
    InvalidArgumentError,
    InvalidStateTransitionError,
    OrderNotFoundError,
    UnsupportedPaymentMethodError,
)
from ordering.domain import Customer, MenuItem, Order, OrderStatus, PaymentStatus
from ordering.services.notifications import NotificationService
from ordering.services.payment import Payment, PaymentFactory, PaymentResult
from ordering.services.repository import OrderRepository

logger = logging.getLogger(__name__)


class OrderingService:
    """
    Order placement and lifecycle orchestration.

    Args:
        repository: Persistence collaborator
        notifications: The process-wide NotificationService
        settings: Application settings (payment methods, contact default)
    """

    def __init__(
        self,
        repository: OrderRepository,
        notifications: NotificationService,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.notifications = notifications
        self.settings = settings or get_settings()
        self._order_locks: dict[int, asyncio.Lock] = {}

    # =========================================================================
    # CATALOG & CUSTOMERS
    # =========================================================================

    async def get_all_items(self) -> list[MenuItem]:
        return await self.repository.list_items(available_only=True)

    async def get_items_by_category(self, category: str) -> list[MenuItem]:
        if not category or not category.strip():
            raise InvalidArgumentError("Category cannot be null or empty")
        return await self.repository.list_items_by_category(category)

    async def get_customer_by_id(self, customer_id: int) -> Optional[Customer]:
        return await self.repository.get_customer(customer_id)

    async def get_order_history(self, customer_id: int) -> list[Order]:
        return await self.repository.list_orders_by_customer(customer_id)

    async def get_order(self, order_id: int) -> Optional[Order]:
        """Monitored instance if there is one, otherwise the stored order."""
        order = self.notifications.find_order(order_id)
        if order is not None:
            return order
        return await self.repository.get_order(order_id)

    async def list_orders(
        self,
        status: Optional[Union[OrderStatus, str]] = None,
        customer_id: Optional[int] = None,
    ) -> list[Order]:
        if status is not None and customer_id is not None:
            wanted = OrderStatus.parse(status)
            orders = await self.repository.list_orders_by_customer(customer_id)
            return [o for o in orders if o.status is wanted]
        if status is not None:
            return await self.repository.list_orders_by_status(status)
        if customer_id is not None:
            return await self.repository.list_orders_by_customer(customer_id)
        return await self.repository.list_orders()

    def get_available_payment_methods(self) -> list[str]:
        supported = PaymentFactory.supported_methods()
        return [m for m in self.settings.payment_methods_list if m in supported]

    # =========================================================================
    # PLACEMENT
    # =========================================================================

    async def place_order(
        self,
        customer_id: int,
        item_ids: Union[Iterable[int], dict[int, int]],
        contact_address: Optional[str] = None,
        customizations: Optional[dict[int, Iterable[tuple[str, float]]]] = None,
    ) -> Order:
        """
        Create, persist and start monitoring a new order.

        Args:
            customer_id: Ordering customer
            item_ids: Item ids (repeats add quantity) or an {item_id: quantity} map
            contact_address: Notification address; defaults to the customer's
                e-mail, then to the configured default
            customizations: Optional {item_id: [(name, per-unit cost), ...]}

        Raises:
            InvalidArgumentError: Empty item list, unknown customer, unknown or
                unavailable item, non-positive quantity, or a customization for an
                item that is not in the order or with a blank name or negative cost
        """
        quantities = Counter(item_ids or ())
        if not quantities:
            raise InvalidArgumentError("Item IDs list cannot be null or empty")
        if any(q < 1 for q in quantities.values()):
            raise InvalidArgumentError("Quantities must be at least 1")

        customer = await self.repository.get_customer(customer_id)
        if customer is None:
            raise InvalidArgumentError(f"Customer with ID {customer_id} not found")

        order = Order(customer_id)
        for item_id, quantity in quantities.items():
            item = await self.repository.get_item(item_id)
            if item is None or not item.available:
                raise InvalidArgumentError(f"Item {item_id} not found or unavailable")
            order.add_item(item.id, quantity, item.price, item.name)

        for item_id, extras in (customizations or {}).items():
            if item_id not in quantities:
                raise InvalidArgumentError(f"Item {item_id} is not part of this order")
            for name, additional_cost in extras:
                order.customize_item(item_id, name, additional_cost)

        await self.repository.create_order(order)
        self.notifications.start_monitoring(
            order, contact_address or customer.email or None
        )

        logger.info(
            f"Order #{order.id} placed by customer {customer_id} - "
            f"{len(order.line_items)} lines - ${order.total_amount:.2f}"
        )
        return order

    # =========================================================================
    # PAYMENT
    # =========================================================================

    def ensure_payment_method(self, method: str) -> str:
        """Return the normalised method name if it is offered here."""
        key = method.strip().lower() if isinstance(method, str) else None
        if key not in self.get_available_payment_methods():
            raise UnsupportedPaymentMethodError(method)
        return key

    def create_payment(self, method: str, amount: float, **details: Any) -> Payment:
        """Build a payment, restricted to the configured methods."""
        return PaymentFactory.create(self.ensure_payment_method(method), amount, **details)

    def process_payment(self, payment: Payment) -> bool:
        """
        Process ``payment`` and report success.

        The order's payment status is NOT updated here; use checkout() for
        that.
        """
        if payment is None:
            raise InvalidArgumentError("Payment cannot be null")
        result = payment.process()
        logger.info(f"Payment processed: {result.success}")
        return result.success

    async def checkout(self, order: Order, method: str, **details: Any) -> PaymentResult:
        """
        Pay for ``order`` in one step.

        Creates the payment for the order total, processes it, copies the
        result onto ``order.payment_status``, and saves payment and order.

        Raises:
            InvalidArgumentError: If the order is unsaved or has no items
            InvalidStateTransitionError: If the order was cancelled or is paid
            UnsupportedPaymentMethodError / InvalidAmountError: From the factory
        """
        if order is None or not order.id:
            raise InvalidArgumentError("Order must be placed before checkout")

        async with self._order_lock(order.id):
            if order.status is OrderStatus.CANCELLED:
                raise InvalidStateTransitionError(f"Order #{order.id} is cancelled")
            if order.payment_status is PaymentStatus.COMPLETED:
                raise InvalidStateTransitionError(f"Order #{order.id} is already paid")

            payment = self.create_payment(method, order.total_amount, **details)
            result = payment.process()

            order.payment_status = payment.status
            order.payment_method = payment.method
            await self.repository.save_payment(order.id, payment)
            await self.repository.save_order(order)

        if result.success:
            logger.info(f"Order #{order.id} paid by {payment.method} - {result.transaction_id}")
        else:
            logger.warning(f"Order #{order.id} payment failed - {result.error_message}")
        return result

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def _order_lock(self, order_id: int) -> asyncio.Lock:
        lock = self._order_locks.get(order_id)
        if lock is None:
            lock = self._order_locks.setdefault(order_id, asyncio.Lock())
        return lock

    async def resume_monitoring(self, order_id: int, contact_address: Optional[str] = None) -> Order:
        """
        Return the monitored instance of an order, loading it if needed.

        Concurrent callers for the same order all get the same instance.

        Raises:
            OrderNotFoundError: If the store has no such order
        """
        order = self.notifications.find_order(order_id)
        if order is not None:
            return order

        order = await self.repository.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        if contact_address is None:
            customer = await self.repository.get_customer(order.customer_id)
            contact_address = customer.email if customer and customer.email else None
        return self.notifications.start_monitoring(order, contact_address)

    async def update_order_status(self, order_id: int, new_status: Union[OrderStatus, str]) -> Order:
        """
        Advance a stored order and persist the change.

        Updates to one order are applied and saved one at a time. Terminal
        orders are returned unchanged.
        """
        async with self._order_lock(order_id):
            order = await self.resume_monitoring(order_id)
            if self.notifications.update_order_status(order_id, new_status):
                await self.repository.save_order(order)
            return order

    async def customize_item(
        self,
        order_id: int,
        item_id: int,
        customization: str,
        additional_cost: float = 0.0,
    ) -> Order:
        """Add a customization to a stored order's line and persist the new total."""
        async with self._order_lock(order_id):
            order = await self.resume_monitoring(order_id)
            order.customize_item(item_id, customization, additional_cost)
            await self.repository.save_order(order)
            return order

    async def remove_customization(self, order_id: int, item_id: int, customization: str) -> Order:
        async with self._order_lock(order_id):
            order = await self.resume_monitoring(order_id)
            if order.remove_customization(item_id, customization):
                await self.repository.save_order(order)
            return order

    async def cancel_order(self, order_id: int) -> Order:
        async with self._order_lock(order_id):
            order = await self.resume_monitoring(order_id)
            if order.cancel_order():
                await self.repository.save_order(order)
                logger.info(f"Order #{order_id} cancelled")
            return order
