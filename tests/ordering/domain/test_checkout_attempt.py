"""Tests for the CheckoutAttempt aggregate and its state machine."""

from decimal import Decimal

import pytest
from ordering.checkout.attempt import CheckoutAttempt, CheckoutStatus
from ordering.checkout.events import (
    CheckoutAbandoned,
    CheckoutCompleted,
    CheckoutFailed,
    CheckoutStarted,
    PaymentIntentCreated,
    SettlementStarted,
)
from ordering.checkout.state import CheckoutLine, CheckoutState
from protean.exceptions import ValidationError


def _state(wallet_balance="0", requested_wallet=None):
    return CheckoutState.build(
        customer_id="cust-001",
        lines=[CheckoutLine("prod-001", "Apples", Decimal("10.00"), 2, 3)],
        wallet_balance=Decimal(wallet_balance),
        points_balance=0,
        requested_wallet=Decimal(requested_wallet) if requested_wallet else None,
    )


def _awaiting():
    attempt = CheckoutAttempt.start(_state())
    attempt.record_intent("card_session", "Stripe", "cs_123", redirect_url="https://pay.test/cs_123")
    return attempt


class TestStart:
    def test_start(self):
        attempt = CheckoutAttempt.start(_state())
        assert attempt.status == CheckoutStatus.REVIEWING.value
        assert attempt.payable_cents == 2160
        assert attempt.payable == Decimal("21.60")
        event = attempt._events[-1]
        assert isinstance(event, CheckoutStarted)
        assert event.payable_cents == 2160

    def test_snapshot_is_kept(self):
        state = _state()
        attempt = CheckoutAttempt.start(state)
        assert attempt.checkout_state() == state


class TestRecordIntent:
    def test_record_intent(self):
        attempt = _awaiting()
        assert attempt.status == CheckoutStatus.AWAITING_GATEWAY.value
        assert attempt.intent_ref == "cs_123"
        assert attempt.payment_method == "Stripe"
        assert isinstance(attempt._events[-1], PaymentIntentCreated)

    def test_nothing_payable_cannot_use_gateway(self):
        attempt = CheckoutAttempt.start(_state(wallet_balance="50", requested_wallet="50"))
        with pytest.raises(ValidationError):
            attempt.record_intent("card_session", "Stripe", "cs_123")

    def test_intent_only_once(self):
        attempt = _awaiting()
        with pytest.raises(ValidationError):
            attempt.record_intent("card_session", "Stripe", "cs_456")


class TestSettlement:
    def test_begin_settlement_after_gateway(self):
        attempt = _awaiting()
        attempt.begin_settlement(captured_cents=2160, gateway_transaction_id="pi_1")
        assert attempt.status == CheckoutStatus.SETTLING.value
        assert attempt.captured_cents == 2160
        assert isinstance(attempt._events[-1], SettlementStarted)

    def test_cannot_settle_unpaid_review(self):
        attempt = CheckoutAttempt.start(_state())
        with pytest.raises(ValidationError):
            attempt.begin_settlement(captured_cents=0)

    def test_zero_payable_settles_from_review(self):
        attempt = CheckoutAttempt.start(_state(wallet_balance="50", requested_wallet="50"))
        attempt.begin_settlement()
        assert attempt.status == CheckoutStatus.SETTLING.value
        assert attempt.payment_method == "Wallet"

    def test_complete(self):
        attempt = _awaiting()
        attempt.begin_settlement(captured_cents=2160)
        attempt.complete("order-001")
        assert attempt.status == CheckoutStatus.COMPLETED.value
        assert attempt.order_id == "order-001"
        assert attempt.is_terminal
        assert isinstance(attempt._events[-1], CheckoutCompleted)

    def test_complete_requires_settling(self):
        with pytest.raises(ValidationError):
            _awaiting().complete("order-001")


class TestFailAndAbandon:
    def test_fail_while_awaiting(self):
        attempt = _awaiting()
        attempt.fail("Card declined")
        assert attempt.status == CheckoutStatus.FAILED.value
        event = attempt._events[-1]
        assert isinstance(event, CheckoutFailed)
        assert event.previous_status == "AwaitingGateway"
        assert event.reason == "Card declined"

    def test_abandon(self):
        attempt = _awaiting()
        attempt.abandon()
        assert attempt.status == CheckoutStatus.ABANDONED.value
        assert isinstance(attempt._events[-1], CheckoutAbandoned)

    def test_cannot_abandon_while_settling(self):
        attempt = _awaiting()
        attempt.begin_settlement(captured_cents=2160)
        with pytest.raises(ValidationError):
            attempt.abandon()

    def test_terminal_states_do_not_move(self):
        attempt = _awaiting()
        attempt.abandon()
        with pytest.raises(ValidationError):
            attempt.fail("late failure")
