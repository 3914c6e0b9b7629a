"""
Cash Payment

Succeeds when the amount tendered covers the amount due; the change owed is
reported on the result.
"""

import logging
from typing import Optional

from ordering.core.exceptions import InvalidArgumentError
from ordering.services.payment.base import Payment, PaymentResult

logger = logging.getLogger(__name__)


class CashPayment(Payment):
    """Cash handed over at the counter or to the driver."""

    method = "cash"

    def __init__(self, amount: float, amount_tendered: Optional[float] = None):
        super().__init__(amount)
        self.amount_tendered = self.amount if amount_tendered is None else amount_tendered

    @property
    def amount_tendered(self) -> float:
        return self._amount_tendered

    @amount_tendered.setter
    def amount_tendered(self, value: float) -> None:
        if value is None or value < 0:
            raise InvalidArgumentError("Amount tendered cannot be negative")
        self._amount_tendered = float(value)

    @property
    def change_due(self) -> float:
        return round(self._amount_tendered - self.amount, 2)

    def validate(self) -> None:
        if self.change_due < 0:
            raise self._fail(
                f"Insufficient amount tendered: ${self._amount_tendered:.2f} "
                f"for ${self.amount:.2f}",
                "insufficient_funds",
            )

    def process(self) -> PaymentResult:
        result = super().process()
        if result.success:
            result.change_due = self.change_due
            logger.debug(
                f"Cash tendered ${self._amount_tendered:.2f}, change ${self.change_due:.2f}"
            )
        return result

    def details(self) -> dict:
        return {"amount_tendered": self._amount_tendered, "change_due": self.change_due}
