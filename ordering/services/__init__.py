"""
                        Services Module

Business logic for the order lifecycle:
    - payment: Payment strategy variants and factory
    - notifications: Observers, channels and the NotificationService
    - repository: SQLAlchemy persistence collaborator
    - ordering: Placement, checkout and status orchestration
"""

from ordering.services.notifications import NotificationService, build_notification_service
from ordering.services.ordering import OrderingService
from ordering.services.payment import PaymentFactory, create_payment
from ordering.services.repository import OrderRepository

__all__ = [
    "NotificationService",
    "build_notification_service",
    "OrderingService",
    "OrderRepository",
    "PaymentFactory",
    "create_payment",
]
