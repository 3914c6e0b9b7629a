"""
Notification Service Tests

Covers monitoring registration, status updates by id, custom broadcasts,
the status-change event, and concurrent use of one shared service.

Test Categories:
1. Monitoring registry
2. Status updates
3. Custom notifications and statistics
4. Observer message formatting
5. Concurrency
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from ordering.core.config import Settings
from ordering.core.exceptions import InvalidArgumentError
from ordering.domain import Order, OrderStatus
from ordering.services.notifications import (
    LogChannel,
    NotificationResult,
    build_notification_service,
)
from ordering.services.notifications.base import NotificationChannel


def _counts(service):
    stats = service.get_notification_stats()
    return (
        stats.customer_notifications,
        stats.kitchen_notifications,
        stats.delivery_notifications,
    )


class FailingChannel(NotificationChannel):
    @property
    def provider_name(self):
        return "failing"

    def send(self, address, subject, body):
        return NotificationResult(success=False, error_message="gateway down", provider="failing")


# ============================================================================
# MONITORING REGISTRY
# ============================================================================

class TestMonitoring:

    def test_start_monitoring_attaches_all_observers(self, notification_service, order):
        notification_service.start_monitoring(order, "jane@example.com")

        assert notification_service.is_monitoring(order)
        assert order.observers == notification_service.observers
        assert notification_service.customer_observer.address == "jane@example.com"

    def test_start_monitoring_is_idempotent(self, notification_service, order):
        notification_service.start_monitoring(order)
        notification_service.start_monitoring(order)

        assert len(notification_service.get_monitored_orders()) == 1
        assert len(order.observers) == 3

        order.update_status(OrderStatus.PREPARING)
        assert _counts(notification_service) == (1, 1, 1)

    def test_default_contact_address_used(self, notification_service, order):
        notification_service.start_monitoring(order)
        assert notification_service.customer_observer.address == "customer@example.com"

    def test_blank_contact_address_rejected(self, notification_service, order):
        with pytest.raises(InvalidArgumentError):
            notification_service.start_monitoring(order, "   ")

    def test_none_order_rejected(self, notification_service):
        with pytest.raises(InvalidArgumentError):
            notification_service.start_monitoring(None)

    def test_stop_monitoring_detaches(self, notification_service, order):
        notification_service.start_monitoring(order)
        notification_service.stop_monitoring(order)

        assert not notification_service.is_monitoring(order)
        assert order.observers == ()
        order.update_status(OrderStatus.READY)
        assert _counts(notification_service) == (0, 0, 0)

    def test_stop_monitoring_unregistered_is_noop(self, notification_service, order):
        notification_service.stop_monitoring(order)
        notification_service.stop_monitoring(None)
        assert notification_service.get_monitored_orders() == []

    def test_monitored_orders_is_a_copy(self, notification_service, order):
        notification_service.start_monitoring(order)
        notification_service.get_monitored_orders().clear()
        assert notification_service.is_monitoring(order)

    def test_find_order_by_id(self, notification_service, order):
        order.assign_id(9)
        notification_service.start_monitoring(order)

        assert notification_service.find_order(9) is order
        assert notification_service.find_order(10) is None

    def test_second_instance_with_same_id_is_not_registered(self, notification_service, order):
        order.assign_id(9)
        copy = Order(customer_id=order.customer_id, order_id=9)

        assert notification_service.start_monitoring(order) is order
        assert notification_service.start_monitoring(copy) is order

        assert notification_service.get_monitored_orders() == [order]
        assert copy.observers == ()
        assert notification_service.find_order(9) is order

    def test_stop_monitoring_clears_id_index(self, notification_service, order):
        order.assign_id(9)
        notification_service.start_monitoring(order)
        notification_service.stop_monitoring(order)

        assert notification_service.find_order(9) is None
        copy = Order(customer_id=order.customer_id, order_id=9)
        assert notification_service.start_monitoring(copy) is copy

    def test_unstored_order_is_not_found_by_id(self, notification_service):
        draft = Order(customer_id=1)
        notification_service.start_monitoring(draft)

        assert notification_service.is_monitoring(draft)
        assert notification_service.find_order(0) is None

        draft.assign_id(11)
        notification_service.start_monitoring(draft)
        assert notification_service.find_order(11) is draft
        assert len(notification_service.get_monitored_orders()) == 1


# ============================================================================
# STATUS UPDATES
# ============================================================================

class TestStatusUpdates:

    def test_update_by_id(self, notification_service, order):
        order.assign_id(3)
        notification_service.start_monitoring(order)

        assert notification_service.update_order_status(3, "Ready") is True

        assert order.status is OrderStatus.READY
        assert order.latest_status().message == "Status updated to: Ready"
        assert _counts(notification_service) == (1, 1, 1)

    def test_unknown_id_is_silently_ignored(self, notification_service, order):
        order.assign_id(3)
        notification_service.start_monitoring(order)

        assert notification_service.update_order_status(999, "Ready") is False

        assert order.status is OrderStatus.PENDING
        assert len(order.status_history) == 1
        assert _counts(notification_service) == (0, 0, 0)

    @pytest.mark.parametrize("bad_id", [0, -1])
    def test_non_positive_id_rejected(self, notification_service, bad_id):
        with pytest.raises(InvalidArgumentError):
            notification_service.update_order_status(bad_id, "Ready")

    def test_listener_fires_once_per_update(self, notification_service, order):
        heard = []
        order.assign_id(4)
        notification_service.start_monitoring(order)
        notification_service.subscribe(heard.append)
        notification_service.subscribe(heard.append)

        notification_service.update_order_status(4, "Preparing")

        assert heard == [order]

    def test_listener_not_fired_for_terminal_order(self, notification_service, order):
        heard = []
        order.assign_id(4)
        notification_service.start_monitoring(order)
        notification_service.update_order_status(4, "Cancelled")
        notification_service.subscribe(heard.append)

        assert notification_service.update_order_status(4, "Ready") is False
        assert heard == []

    def test_unsubscribed_listener_hears_nothing(self, notification_service, order):
        heard = []
        order.assign_id(4)
        notification_service.start_monitoring(order)
        notification_service.subscribe(heard.append)
        notification_service.unsubscribe(heard.append)

        notification_service.update_order_status(4, "Preparing")
        assert heard == []

    def test_failing_listener_is_isolated(self, notification_service, order):
        heard = []

        def broken(_order):
            raise RuntimeError("boom")

        order.assign_id(4)
        notification_service.start_monitoring(order)
        notification_service.subscribe(broken)
        notification_service.subscribe(heard.append)

        assert notification_service.update_order_status(4, "Preparing") is True
        assert heard == [order]

    def test_trigger_status_update(self, notification_service, order):
        notification_service.start_monitoring(order)

        assert notification_service.trigger_status_update(order, OrderStatus.PREPARING) is True
        assert order.status is OrderStatus.PREPARING


# ============================================================================
# CUSTOM NOTIFICATIONS & STATS
# ============================================================================

class TestCustomNotifications:

    def test_custom_notification_reaches_each_stakeholder_once(
        self, notification_service, order, customer_channel
    ):
        notification_service.start_monitoring(order)

        notification_service.send_custom_notification("Kitchen delayed")

        assert _counts(notification_service) == (1, 1, 1)
        assert notification_service.get_monitored_orders() == [order]
        assert order.status is OrderStatus.PENDING
        assert customer_channel.sent[-1] == (
            "customer@example.com", "Restaurant Notice", "Kitchen delayed"
        )

    @pytest.mark.parametrize("message", ["", "  ", None])
    def test_blank_message_rejected(self, notification_service, message):
        with pytest.raises(InvalidArgumentError):
            notification_service.send_custom_notification(message)

    def test_stats_snapshot(self, notification_service, order):
        notification_service.start_monitoring(order)
        order.update_status(OrderStatus.PREPARING)

        stats = notification_service.get_notification_stats()

        assert stats.to_dict() == {
            "monitored_orders": 1,
            "customer_notifications": 1,
            "kitchen_notifications": 1,
            "delivery_notifications": 1,
        }
        assert str(stats) == (
            "Monitoring 1 orders\n"
            "Customer notifications: 1\n"
            "Kitchen notifications: 1\n"
            "Delivery notifications: 1"
        )


# ============================================================================
# OBSERVER MESSAGES
# ============================================================================

class TestObserverMessages:

    def test_kitchen_gets_items_when_preparing(self, notification_service, order):
        order.assign_id(8)
        notification_service.start_monitoring(order)
        order.update_status(OrderStatus.PREPARING)

        subject, body = notification_service.kitchen_observer.last_message
        assert subject == "Prepare Order #8"
        assert "Margherita Pizza x1" in body
        assert "Garlic Bread x3" in body

    def test_kitchen_sees_customizations(self, notification_service, order):
        order.assign_id(8)
        order.customize_item(1, "Extra cheese", 1.50)
        notification_service.start_monitoring(order)
        order.update_status(OrderStatus.PREPARING)

        _, body = notification_service.kitchen_observer.last_message
        assert "Margherita Pizza x1 (Extra cheese)" in body

    def test_delivery_gets_pickup_when_ready(self, notification_service, order):
        order.assign_id(8)
        notification_service.start_monitoring(order)
        order.update_status(OrderStatus.READY)

        subject, _ = notification_service.delivery_observer.last_message
        assert subject == "Pickup Order #8"

    def test_customer_message_includes_status(self, notification_service, order, customer_channel):
        order.assign_id(8)
        notification_service.start_monitoring(order, "jane@example.com")
        order.update_status(OrderStatus.READY, "Come and get it")

        address, subject, body = customer_channel.sent[-1]
        assert address == "jane@example.com"
        assert subject == "Order #8 Status Update"
        assert body == "Your order status has been updated to: Ready. Come and get it"

    def test_undelivered_message_still_counts(self, notification_service, order):
        notification_service.customer_observer.channel = FailingChannel()
        notification_service.start_monitoring(order)
        order.update_status(OrderStatus.PREPARING)

        observer = notification_service.customer_observer
        assert observer.notification_count == 1
        assert observer.last_result.success is False


# ============================================================================
# FACTORY
# ============================================================================

class TestBuildNotificationService:

    def test_development_uses_log_channels(self):
        service = build_notification_service(Settings(env_mode="development"))

        assert isinstance(service.customer_observer.channel, LogChannel)
        assert service.kitchen_observer.address
        assert service.default_contact_address == "customer@example.com"

    def test_each_build_is_independent(self):
        settings = Settings(env_mode="development")
        assert build_notification_service(settings) is not build_notification_service(settings)


# ============================================================================
# CONCURRENCY
# ============================================================================

class TestConcurrency:

    def test_concurrent_registration_attaches_once(self, notification_service):
        orders = [Order(customer_id=1) for _ in range(50)]
        for index, order in enumerate(orders, start=1):
            order.assign_id(index)

        def register(order):
            notification_service.start_monitoring(order)

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(register, orders * 8))

        assert len(notification_service.get_monitored_orders()) == 50
        assert all(len(order.observers) == 3 for order in orders)

    def test_concurrent_loads_of_one_order_register_one_instance(self, notification_service):
        copies = [Order(customer_id=1, order_id=7) for _ in range(32)]

        with ThreadPoolExecutor(max_workers=16) as pool:
            winners = list(pool.map(notification_service.start_monitoring, copies))

        monitored = notification_service.get_monitored_orders()
        assert len(monitored) == 1
        assert all(winner is monitored[0] for winner in winners)
        assert sum(1 for copy in copies if copy.observers) == 1

    def test_concurrent_updates_count_every_notification(self, notification_service):
        orders = [Order(customer_id=1) for _ in range(40)]
        for index, order in enumerate(orders, start=1):
            order.assign_id(index)
            notification_service.start_monitoring(order)

        def advance(order_id):
            for status in ("Preparing", "Ready", "Delivered", "Completed"):
                notification_service.update_order_status(order_id, status)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(advance, range(1, 41)))

        assert _counts(notification_service) == (160, 160, 160)
        assert all(len(order.status_history) == 5 for order in orders)
