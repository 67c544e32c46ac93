"""Application tests for wallet top-ups and points awards."""

from decimal import Decimal

from ordering.wallet.management import AwardPoints, TopUpWallet
from ordering.wallet.wallet import transactions_for, wallet_for
from protean import current_domain


class TestTopUpWallet:
    def test_top_up_pairs_with_transaction(self):
        balance = current_domain.process(
            TopUpWallet(customer_id="cust-001", amount_cents=2500, method="PayPal", reference="PAY-1"),
            asynchronous=False,
        )
        assert balance == 2500
        assert wallet_for("cust-001").balance == Decimal("25.00")

        [txn] = transactions_for("cust-001")
        assert txn.type == "TopUp"
        assert txn.method == "PayPal"
        assert txn.amount_cents == 2500
        assert txn.currency == "SGD"

    def test_top_ups_accumulate(self):
        for _ in range(3):
            current_domain.process(TopUpWallet(customer_id="cust-001", amount_cents=100), asynchronous=False)
        assert wallet_for("cust-001").balance_cents == 300
        assert len(transactions_for("cust-001")) == 3


class TestAwardPoints:
    def test_award(self):
        points = current_domain.process(AwardPoints(customer_id="cust-001", points=25), asynchronous=False)
        assert points == 25

        [txn] = transactions_for("cust-001")
        assert txn.type == "Credit"
        assert txn.method == "Points"
        assert txn.points == 25


class TestUnknownWallet:
    def test_reads_as_empty_without_persisting(self):
        wallet = wallet_for("cust-unknown")
        assert wallet.balance_cents == 0
        assert wallet.points == 0
        assert transactions_for("cust-unknown") == []
