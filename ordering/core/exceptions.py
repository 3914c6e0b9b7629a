"""
Domain Exceptions

Every error raised by the ordering engine derives from OrderingError so
callers can catch the whole family at a service boundary.

Payment validation failures are raised internally as PaymentProcessingError
and converted to a Failed payment status; they do not escape process().
"""

from typing import Optional


class OrderingError(Exception):
    """Base class for ordering engine errors."""


class InvalidArgumentError(OrderingError, ValueError):
    """Null, empty, malformed or non-positive input at a service boundary."""


class InvalidAmountError(InvalidArgumentError):
    """A payment amount that is not a positive number."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Payment amount must be greater than 0 (got {amount!r})")


class UnsupportedPaymentMethodError(OrderingError, ValueError):
    """Payment method name not recognised by the factory."""

    def __init__(self, method):
        self.method = method
        super().__init__(f"Unsupported payment method: {method}")


class OrderNotFoundError(OrderingError, LookupError):
    """An order id lookup that chose to report the miss."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order #{order_id} not found")


class InvalidStateTransitionError(OrderingError):
    """An operation not allowed in the entity's current state."""


class PaymentProcessingError(OrderingError):
    """
    Payment validation failure.

    Attributes:
        method: Payment method tag
        amount: Amount being charged
        error_code: Machine-readable failure code
    """

    def __init__(
        self,
        message: str,
        method: str,
        amount: float,
        error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.method = method
        self.amount = amount
        self.error_code = error_code or "payment_failed"
