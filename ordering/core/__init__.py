"""
Core module initialization.
Exports configuration, logging utilities and domain exceptions.
"""

from ordering.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from ordering.core.exceptions import (
    OrderingError,
    InvalidArgumentError,
    InvalidAmountError,
    UnsupportedPaymentMethodError,
    OrderNotFoundError,
    InvalidStateTransitionError,
    PaymentProcessingError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "OrderingError",
    "InvalidArgumentError",
    "InvalidAmountError",
    "UnsupportedPaymentMethodError",
    "OrderNotFoundError",
    "InvalidStateTransitionError",
    "PaymentProcessingError",
]
