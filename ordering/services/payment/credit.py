"""
Credit Card Payment

Validates card data locally. No gateway is contacted: a card that passes the
format and expiry checks is accepted.

Security Notes:
    - Never log full card numbers or CVVs
    - details() exposes only the last four digits
"""

import re
from datetime import datetime
from typing import Optional

from ordering.services.payment.base import Payment, to_local_naive

CARD_NUMBER_PATTERN = re.compile(r"^\d{13,19}$")
CVV_PATTERN = re.compile(r"^\d{3,4}$")


class CreditPayment(Payment):
    """
    Credit card payment.

    Attributes:
        card_number: 13-19 digits; spaces and dashes are ignored
        card_holder_name: Name printed on the card
        expiry_date: Last valid moment of the card
        cvv: 3 or 4 digit security code
    """

    method = "credit"

    def __init__(
        self,
        amount: float,
        card_number: str = "",
        card_holder_name: str = "",
        expiry_date: Optional[datetime] = None,
        cvv: str = "",
    ):
        super().__init__(amount)
        self.card_number = card_number
        self.card_holder_name = card_holder_name
        self.expiry_date = to_local_naive(expiry_date)
        self.cvv = cvv

    @property
    def normalized_card_number(self) -> str:
        return re.sub(r"[\s-]", "", str(self.card_number or ""))

    @property
    def masked_card_number(self) -> str:
        digits = self.normalized_card_number
        return f"****{digits[-4:]}" if len(digits) >= 4 else "****"

    def validate(self) -> None:
        if not CARD_NUMBER_PATTERN.match(self.normalized_card_number):
            raise self._fail("Card number must be 13-19 digits", "invalid_number")

        if not (self.card_holder_name or "").strip():
            raise self._fail("Card holder name is required", "invalid_holder")

        if self.expiry_date is None or self.expiry_date < datetime.now():
            raise self._fail("Your card has expired.", "expired_card")

        if not CVV_PATTERN.match(str(self.cvv or "")):
            raise self._fail("Your card's security code is incorrect.", "incorrect_cvc")

    def details(self) -> dict:
        return {
            "card": self.masked_card_number,
            "card_holder_name": self.card_holder_name,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
        }
