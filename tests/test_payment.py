"""
Payment Strategy Tests

Covers the factory and the three payment variants. Declined payments are
reported through the result and the Failed status, never raised.

Test Categories:
1. Factory construction and validation
2. Cash
3. Credit
4. Check
5. Processing lifecycle
"""
from datetime import datetime, timedelta, timezone

import pytest

from ordering.core.exceptions import (
    InvalidAmountError,
    InvalidArgumentError,
    InvalidStateTransitionError,
    UnsupportedPaymentMethodError,
)
from ordering.domain import PaymentStatus
from ordering.services.payment import (
    CashPayment,
    CheckPayment,
    CreditPayment,
    PaymentFactory,
    create_payment,
)


# ============================================================================
# FACTORY
# ============================================================================

class TestPaymentFactory:

    @pytest.mark.parametrize("method,expected", [
        ("cash", CashPayment),
        ("Credit", CreditPayment),
        ("  CHECK ", CheckPayment),
    ])
    def test_methods_match_case_insensitively(self, method, expected):
        payment = PaymentFactory.create(method, 10.0)

        assert isinstance(payment, expected)
        assert payment.status is PaymentStatus.PENDING
        assert payment.amount == 10.0

    def test_unknown_method_rejected(self):
        with pytest.raises(UnsupportedPaymentMethodError):
            create_payment("bogus", 10.0)

    def test_unsupported_method_is_a_value_error(self):
        with pytest.raises(ValueError):
            create_payment("bitcoin", 10.0)

    @pytest.mark.parametrize("amount", [0, -5, "10", None, True])
    def test_invalid_amount_rejected(self, amount):
        with pytest.raises(InvalidAmountError):
            create_payment("cash", amount)

    def test_amount_checked_before_method(self):
        with pytest.raises(InvalidAmountError):
            create_payment("bogus", 0)

    def test_details_override_defaults(self):
        payment = create_payment("credit", 15.0, card_holder_name="Jane Doe")

        assert payment.card_holder_name == "Jane Doe"
        assert payment.card_number == "1234567890123456"

    def test_supported_methods(self):
        assert PaymentFactory.supported_methods() == ["cash", "credit", "check"]


# ============================================================================
# CASH
# ============================================================================

class TestCashPayment:

    def test_exact_amount_completes_with_no_change(self):
        payment = create_payment("cash", 10.0, amount_tendered=10.0)
        result = payment.process()

        assert result.success is True
        assert payment.status is PaymentStatus.COMPLETED
        assert result.change_due == 0
        assert result.transaction_id.startswith("cash_")

    def test_change_reported(self):
        result = create_payment("cash", 12.5, amount_tendered=20.0).process()
        assert result.change_due == 7.5

    def test_insufficient_tender_fails(self):
        payment = create_payment("cash", 10.0, amount_tendered=5.0)
        result = payment.process()

        assert result.success is False
        assert payment.status is PaymentStatus.FAILED
        assert result.error_code == "insufficient_funds"
        assert payment.failure_reason
        assert payment.transaction_id is None

    def test_tender_defaults_to_amount_due(self):
        assert create_payment("cash", 8.0).process().success is True

    def test_negative_tender_rejected(self):
        with pytest.raises(InvalidArgumentError):
            CashPayment(10.0, amount_tendered=-1)


# ============================================================================
# CREDIT
# ============================================================================

class TestCreditPayment:

    def _card(self, **overrides):
        details = {
            "card_number": "4242 4242 4242 4242",
            "card_holder_name": "Jane Doe",
            "expiry_date": datetime.now() + timedelta(days=30),
            "cvv": "123",
        }
        details.update(overrides)
        return create_payment("credit", 25.0, **details)

    def test_valid_card_completes(self):
        payment = self._card()
        result = payment.process()

        assert result.success is True
        assert payment.status is PaymentStatus.COMPLETED

    def test_factory_defaults_are_valid(self):
        assert create_payment("credit", 25.0).process().success is True

    @pytest.mark.parametrize("overrides,error_code", [
        ({"card_number": "1234"}, "invalid_number"),
        ({"card_number": "4242abcd42424242"}, "invalid_number"),
        ({"card_holder_name": "  "}, "invalid_holder"),
        ({"expiry_date": datetime.now() - timedelta(days=1)}, "expired_card"),
        ({"expiry_date": None}, "expired_card"),
        ({"cvv": "12"}, "incorrect_cvc"),
        ({"cvv": "12345"}, "incorrect_cvc"),
    ])
    def test_invalid_card_fails(self, overrides, error_code):
        payment = self._card(**overrides)
        result = payment.process()

        assert result.success is False
        assert result.error_code == error_code
        assert payment.status is PaymentStatus.FAILED

    @pytest.mark.parametrize("days,success", [(30, True), (-1, False)])
    def test_timezone_aware_expiry_compared_as_local_time(self, days, success):
        expiry = datetime.now(timezone.utc) + timedelta(days=days)
        payment = self._card(expiry_date=expiry)
        result = payment.process()

        assert result.success is success
        assert payment.status is (PaymentStatus.COMPLETED if success else PaymentStatus.FAILED)
        assert payment.expiry_date.tzinfo is None
        if not success:
            assert result.error_code == "expired_card"

    def test_details_never_expose_full_number(self):
        details = self._card().details()

        assert details["card"] == "****4242"
        assert "cvv" not in details


# ============================================================================
# CHECK
# ============================================================================

class TestCheckPayment:

    def test_valid_cheque_completes(self):
        payment = create_payment("check", 40.0, cheque_number="000123", bank_name="First Bank")
        assert payment.process().success is True

    @pytest.mark.parametrize("overrides,error_code", [
        ({"cheque_number": ""}, "invalid_cheque"),
        ({"bank_name": " "}, "invalid_bank"),
        ({"check_date": datetime.now() + timedelta(days=7)}, "post_dated"),
    ])
    def test_invalid_cheque_fails(self, overrides, error_code):
        result = create_payment("check", 40.0, **overrides).process()

        assert result.success is False
        assert result.error_code == error_code

    @pytest.mark.parametrize("days,error_code", [(-1, None), (7, "post_dated")])
    def test_timezone_aware_cheque_date(self, days, error_code):
        check_date = datetime.now(timezone(timedelta(hours=5))) + timedelta(days=days)
        payment = create_payment("check", 40.0, check_date=check_date)
        result = payment.process()

        assert result.error_code == error_code
        assert payment.status is (PaymentStatus.FAILED if error_code else PaymentStatus.COMPLETED)
        assert payment.check_date.tzinfo is None


# ============================================================================
# PROCESSING LIFECYCLE
# ============================================================================

class TestPaymentLifecycle:

    def test_payment_processes_only_once(self):
        payment = create_payment("cash", 10.0)
        payment.process()

        with pytest.raises(InvalidStateTransitionError):
            payment.process()

    def test_failed_payment_cannot_be_retried(self):
        payment = create_payment("cash", 10.0, amount_tendered=1.0)
        payment.process()

        with pytest.raises(InvalidStateTransitionError):
            payment.process()
        assert payment.status is PaymentStatus.FAILED

    def test_refund_completed_payment(self):
        payment = create_payment("cash", 10.0)
        payment.process()
        payment.refund()

        assert payment.status is PaymentStatus.REFUNDED

    def test_refund_requires_completed_payment(self):
        payment = create_payment("cash", 10.0)

        with pytest.raises(InvalidStateTransitionError):
            payment.refund()

    def test_result_serializes(self):
        result = create_payment("cash", 10.0).process()
        data = result.to_dict()

        assert data["status"] == "Completed"
        assert data["method"] == "cash"
        assert data["amount"] == 10.0

    def test_payment_details_string(self):
        payment = create_payment("check", 5.0)
        assert payment.get_payment_details() == (
            "Payment ID: -, Amount: $5.00, Status: Pending, Method: check"
        )
