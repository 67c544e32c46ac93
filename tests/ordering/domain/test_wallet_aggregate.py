"""Tests for the Wallet and WalletTransaction aggregates."""

from decimal import Decimal

import pytest
from ordering.checkout.errors import InsufficientFunds, InsufficientPoints
from ordering.wallet.events import PointsAwarded, PointsRedeemed, TransactionRecorded, WalletDebited, WalletToppedUp
from ordering.wallet.wallet import TransactionMethod, TransactionType, Wallet, WalletTransaction
from protean.exceptions import ValidationError


def _make_wallet(balance_cents=0, points=0):
    wallet = Wallet.create("cust-001")
    if balance_cents:
        wallet.top_up(balance_cents)
    if points:
        wallet.award_points(points)
    return wallet


class TestTopUp:
    def test_new_wallet_is_empty(self):
        wallet = Wallet.create("cust-001")
        assert wallet.id == "cust-001"
        assert wallet.balance == Decimal("0.00")
        assert wallet.points == 0

    def test_top_up(self):
        wallet = _make_wallet(balance_cents=500)
        assert wallet.balance == Decimal("5.00")
        assert isinstance(wallet._events[-1], WalletToppedUp)

    def test_top_up_must_be_positive(self):
        with pytest.raises(ValidationError):
            Wallet.create("cust-001").top_up(0)


class TestDebit:
    def test_debit(self):
        wallet = _make_wallet(balance_cents=500)
        wallet.debit(300, reference="chk-001")
        assert wallet.balance_cents == 200
        event = wallet._events[-1]
        assert isinstance(event, WalletDebited)
        assert event.reference == "chk-001"

    def test_exact_balance(self):
        wallet = _make_wallet(balance_cents=500)
        wallet.debit(500)
        assert wallet.balance_cents == 0

    def test_overdraft_refused(self):
        wallet = _make_wallet(balance_cents=500)
        with pytest.raises(InsufficientFunds):
            wallet.debit(501)
        assert wallet.balance_cents == 500


class TestPoints:
    def test_award(self):
        wallet = _make_wallet(points=25)
        assert wallet.points == 25
        assert isinstance(wallet._events[-1], PointsAwarded)

    def test_redeem(self):
        wallet = _make_wallet(points=25)
        wallet.redeem_points(20, reference="chk-001")
        assert wallet.points == 5
        assert isinstance(wallet._events[-1], PointsRedeemed)

    def test_redeem_more_than_held(self):
        wallet = _make_wallet(points=25)
        with pytest.raises(InsufficientPoints):
            wallet.redeem_points(30)
        assert wallet.points == 25


class TestTransactionRecord:
    def test_record(self):
        txn = WalletTransaction.record(
            customer_id="cust-001",
            transaction_type=TransactionType.PAYMENT,
            method=TransactionMethod.WALLET.value,
            amount_cents=500,
            reference="chk-001",
        )
        assert txn.type == "Payment"
        assert txn.method == "Wallet"
        assert txn.currency == "SGD"
        assert txn.status == "Completed"
        event = txn._events[-1]
        assert isinstance(event, TransactionRecorded)
        assert event.amount_cents == 500
