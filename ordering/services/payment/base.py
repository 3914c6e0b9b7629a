"""
Payment Abstract Base Class

Defines the interface contract for all payment variants. Cash, Credit and
Check each implement their own validation, while the processing lifecycle
(Pending -> Completed | Failed, exactly once) lives here.

Design Pattern: Strategy Pattern
    - The processing behaviour is selected at runtime by method name
    - New payment methods can be added without modifying the order flow
    - PaymentFactory is the single construction point, so every payment
      starts Pending

Validation failures are raised as PaymentProcessingError inside the variant
and converted into a Failed status here; process() never raises for a
declined payment.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ordering.core.exceptions import (
    InvalidAmountError,
    InvalidStateTransitionError,
    PaymentProcessingError,
)
from ordering.domain import PaymentStatus

logger = logging.getLogger(__name__)


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive local time so it compares with now()."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


@dataclass
class PaymentResult:
    """
    Standardized result from payment processing.

    Every variant returns this same structure so the ordering flow can treat
    cash, card and cheque payments identically.

    Attributes:
        success: Whether the payment was successful
        method: Payment method tag ("cash", "credit", "check")
        amount: Amount charged
        status: Resulting PaymentStatus
        transaction_id: Unique identifier for a successful payment
        change_due: Change owed to the customer (cash only)
        error_code: Machine-readable error code
        error_message: Error description if payment failed
    """
    success: bool
    method: str
    amount: float
    status: PaymentStatus
    transaction_id: Optional[str] = None
    change_due: Optional[float] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "method": self.method,
            "amount": self.amount,
            "status": self.status.value,
            "transaction_id": self.transaction_id,
            "change_due": self.change_due,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class Payment(ABC):
    """
    Abstract base class for payments.

    Subclasses provide ``method`` and ``validate()``; ``validate()`` raises
    PaymentProcessingError describing the first rule that fails.

    Example:
        >>> payment = create_payment("cash", 12.50)
        >>> result = payment.process()
        >>> result.success, payment.status
        (True, <PaymentStatus.COMPLETED: 'Completed'>)
    """

    method: str = ""

    def __init__(self, amount: float):
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            raise InvalidAmountError(amount)
        self._amount = float(amount)
        self._status = PaymentStatus.PENDING
        self.transaction_id: Optional[str] = None
        self.processed_at: Optional[datetime] = None
        self.failure_reason: Optional[str] = None

    @property
    def amount(self) -> float:
        return self._amount

    @property
    def status(self) -> PaymentStatus:
        return self._status

    @abstractmethod
    def validate(self) -> None:
        """
        Check the payment details.

        Raises:
            PaymentProcessingError: If the payment cannot be accepted
        """
        pass

    def _fail(self, reason: str, error_code: str) -> PaymentProcessingError:
        return PaymentProcessingError(reason, self.method, self._amount, error_code)

    def _generate_transaction_id(self) -> str:
        return f"{self.method}_{uuid.uuid4().hex[:24]}"

    def _result(self, error: Optional[PaymentProcessingError] = None) -> PaymentResult:
        return PaymentResult(
            success=self._status == PaymentStatus.COMPLETED,
            method=self.method,
            amount=self._amount,
            status=self._status,
            transaction_id=self.transaction_id,
            error_code=error.error_code if error else None,
            error_message=str(error) if error else None,
        )

    def process(self) -> PaymentResult:
        """
        Run the payment once.

        Returns:
            PaymentResult describing the outcome

        Raises:
            InvalidStateTransitionError: If this payment was already processed
        """
        if self._status != PaymentStatus.PENDING:
            raise InvalidStateTransitionError(
                f"{self.method} payment already processed ({self._status.value})"
            )

        self.processed_at = datetime.now()
        try:
            self.validate()
        except PaymentProcessingError as e:
            self._status = PaymentStatus.FAILED
            self.failure_reason = str(e)
            logger.warning(
                f"{self.method.capitalize()} payment of ${self._amount:.2f} failed - "
                f"{e.error_code}: {e}"
            )
            return self._result(e)

        self._status = PaymentStatus.COMPLETED
        self.transaction_id = self._generate_transaction_id()
        logger.info(
            f"{self.method.capitalize()} payment processed - "
            f"{self.transaction_id} - ${self._amount:.2f}"
        )
        return self._result()

    def refund(self) -> None:
        """Refund a completed payment."""
        if self._status != PaymentStatus.COMPLETED:
            raise InvalidStateTransitionError(
                f"Only completed payments can be refunded ({self._status.value})"
            )
        self._status = PaymentStatus.REFUNDED
        logger.info(f"Payment {self.transaction_id} refunded - ${self._amount:.2f}")

    def details(self) -> dict:
        """Method-specific details safe to persist (no secrets)."""
        return {}

    def get_payment_details(self) -> str:
        return (
            f"Payment ID: {self.transaction_id or '-'}, Amount: ${self._amount:.2f}, "
            f"Status: {self._status.value}, Method: {self.method}"
        )

    def __repr__(self):
        return f"<{type(self).__name__} ${self._amount:.2f} {self._status.value}>"
