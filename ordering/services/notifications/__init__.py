"""
Notification Service Factory

Builds the NotificationService with logging or real channels depending on
ENV_MODE. Unlike the cached settings, the service itself is not cached: the
application builds one at startup and passes it around.
"""

import logging
from typing import Optional

from ordering.core.config import Settings, get_settings
from ordering.services.notifications.base import NotificationChannel, NotificationResult
from ordering.services.notifications.mock import LogChannel
from ordering.services.notifications.observers import (
    ChannelObserver,
    CustomerObserver,
    DeliveryObserver,
    KitchenObserver,
    NotificationObserver,
)
from ordering.services.notifications.service import NotificationService, NotificationStats

logger = logging.getLogger(__name__)


def build_customer_channel(settings: Settings) -> NotificationChannel:
    """Pick the customer transport for the current environment."""
    if settings.is_development:
        return LogChannel(settings.customer_channel)

    # Imported here so development installs never touch the SDKs.
    from ordering.services.notifications.real import SendGridEmailChannel, TwilioSmsChannel

    if settings.customer_channel == "sms":
        return TwilioSmsChannel(settings)
    return SendGridEmailChannel(settings)


def build_notification_service(settings: Optional[Settings] = None) -> NotificationService:
    """Create a NotificationService wired for ``settings``."""
    settings = settings or get_settings()

    customer_channel = build_customer_channel(settings)
    logger.info(
        f"Notification Service: customer channel {customer_channel.provider_name} "
        f"({settings.env_mode.value} mode)"
    )

    return NotificationService(
        customer_observer=CustomerObserver(customer_channel),
        kitchen_observer=KitchenObserver(LogChannel("kitchen"), settings.kitchen_station),
        delivery_observer=DeliveryObserver(LogChannel("delivery"), settings.delivery_board),
        default_contact_address=settings.default_contact_address,
    )


__all__ = [
    "build_notification_service",
    "build_customer_channel",
    "NotificationService",
    "NotificationStats",
    "NotificationChannel",
    "NotificationResult",
    "NotificationObserver",
    "ChannelObserver",
    "CustomerObserver",
    "KitchenObserver",
    "DeliveryObserver",
    "LogChannel",
]
