"""
Cheque Payment

There is no clearing system behind this variant: a cheque with a number and a
bank that is not post-dated is accepted immediately.
"""

from datetime import datetime
from typing import Optional

from ordering.services.payment.base import Payment, to_local_naive


class CheckPayment(Payment):
    """Paper cheque payment."""

    method = "check"

    def __init__(
        self,
        amount: float,
        cheque_number: str = "",
        bank_name: str = "",
        check_date: Optional[datetime] = None,
    ):
        super().__init__(amount)
        self.cheque_number = cheque_number
        self.bank_name = bank_name
        self.check_date = to_local_naive(check_date) or datetime.now()

    def validate(self) -> None:
        if not (self.cheque_number or "").strip():
            raise self._fail("Cheque number is required", "invalid_cheque")
        if not (self.bank_name or "").strip():
            raise self._fail("Bank name is required", "invalid_bank")
        if self.check_date > datetime.now():
            raise self._fail("Cheque is post-dated", "post_dated")

    def details(self) -> dict:
        return {
            "cheque_number": self.cheque_number,
            "bank_name": self.bank_name,
            "check_date": self.check_date.isoformat(),
        }
