"""
Payment Factory

Provides a single entry point for obtaining a payment instance. The factory
keeps the rest of the application agnostic about which variant is in use and
guarantees every payment starts Pending.

Usage:
    from ordering.services.payment import create_payment

    payment = create_payment("Credit", 29.99, card_holder_name="Jane Doe")
    result = payment.process()
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from ordering.core.exceptions import InvalidAmountError, UnsupportedPaymentMethodError
from ordering.services.payment.base import Payment, PaymentResult
from ordering.services.payment.cash import CashPayment
from ordering.services.payment.check import CheckPayment
from ordering.services.payment.credit import CreditPayment

logger = logging.getLogger(__name__)


def _credit_defaults() -> dict[str, Any]:
    return {
        "card_number": "1234567890123456",
        "card_holder_name": "Test User",
        "expiry_date": datetime.now() + timedelta(days=365),
        "cvv": "123",
    }


def _check_defaults() -> dict[str, Any]:
    return {"cheque_number": "123456", "bank_name": "Test Bank"}


class PaymentFactory:
    """
    Builds Payment variants by method name.

    Method names are matched case-insensitively. Keyword details override
    the method's defaults.
    """

    _registry: dict[str, tuple[type[Payment], Callable[[], dict[str, Any]]]] = {
        "cash": (CashPayment, dict),
        "credit": (CreditPayment, _credit_defaults),
        "check": (CheckPayment, _check_defaults),
    }

    @classmethod
    def supported_methods(cls) -> list[str]:
        return list(cls._registry)

    @classmethod
    def create(cls, method: str, amount: float, **details: Any) -> Payment:
        """
        Create a Pending payment.

        Raises:
            InvalidAmountError: If amount is not a positive number
            UnsupportedPaymentMethodError: If method is unknown
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            raise InvalidAmountError(amount)

        key = method.strip().lower() if isinstance(method, str) else None
        if key not in cls._registry:
            raise UnsupportedPaymentMethodError(method)

        payment_cls, defaults = cls._registry[key]
        params = {**defaults(), **details}
        payment = payment_cls(amount, **params)

        logger.debug(f"Created {key} payment for ${amount:.2f}")
        return payment


def create_payment(method: str, amount: float, **details: Any) -> Payment:
    """Shortcut for PaymentFactory.create()."""
    return PaymentFactory.create(method, amount, **details)


__all__ = [
    "PaymentFactory",
    "create_payment",
    "Payment",
    "PaymentResult",
    "CashPayment",
    "CreditPayment",
    "CheckPayment",
]
