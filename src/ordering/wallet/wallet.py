"""Wallet and WalletTransaction aggregates — stored value and loyalty points.

A wallet holds a non-negative balance (in cents) and a non-negative points
count for one customer; its identity is the customer id. Debits and
redemptions re-check the current balance before mutating and fail instead of
overdrawing.

WalletTransaction is the append-only audit trail: every balance or points
change is recorded in the same unit of work as the change itself, and no
operation edits or removes a recorded transaction.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.checkout.errors import InsufficientFunds, InsufficientPoints
from ordering.domain import ordering
from ordering.shared.money import from_cents
from ordering.wallet.events import (
    PointsAwarded,
    PointsRedeemed,
    TransactionRecorded,
    WalletDebited,
    WalletToppedUp,
)


class TransactionType(Enum):
    TOP_UP = "TopUp"
    PAYMENT = "Payment"
    REDEEM = "Redeem"
    CREDIT = "Credit"
    DEBIT = "Debit"


class TransactionMethod(Enum):
    WALLET = "Wallet"
    POINTS = "Points"
    PAYPAL = "PayPal"
    STRIPE = "Stripe"
    NETS_QR = "NetsQR"
    CARD = "Card"
    FAKE = "Fake"


@ordering.aggregate
class Wallet:
    customer_id = Identifier(required=True)
    balance_cents = Integer(default=0, min_value=0)
    points = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(
            id=str(customer_id),
            customer_id=str(customer_id),
            balance_cents=0,
            points=0,
            created_at=now,
            updated_at=now,
        )

    @property
    def balance(self):
        return from_cents(self.balance_cents)

    def top_up(self, amount_cents):
        if amount_cents <= 0:
            raise ValidationError({"amount": ["Top-up amount must be positive"]})

        self.balance_cents += amount_cents
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            WalletToppedUp(
                customer_id=str(self.customer_id),
                amount_cents=amount_cents,
                new_balance_cents=self.balance_cents,
                occurred_at=now,
            )
        )

    def debit(self, amount_cents, reference=None):
        if amount_cents <= 0:
            raise ValidationError({"amount": ["Debit amount must be positive"]})
        if amount_cents > self.balance_cents:
            raise InsufficientFunds(
                "Wallet balance is lower than the amount to pay",
                balance=str(self.balance),
                requested=str(from_cents(amount_cents)),
            )

        self.balance_cents -= amount_cents
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            WalletDebited(
                customer_id=str(self.customer_id),
                amount_cents=amount_cents,
                new_balance_cents=self.balance_cents,
                reference=reference,
                occurred_at=now,
            )
        )

    def redeem_points(self, points, reference=None):
        if points <= 0:
            raise ValidationError({"points": ["Points to redeem must be positive"]})
        if points > self.points:
            raise InsufficientPoints(
                "Not enough loyalty points",
                points_balance=self.points,
                requested=points,
            )

        self.points -= points
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            PointsRedeemed(
                customer_id=str(self.customer_id),
                points=points,
                new_points=self.points,
                reference=reference,
                occurred_at=now,
            )
        )

    def award_points(self, points):
        """Credit loyalty points. Used when seeding or adjusting a customer's points."""
        if points <= 0:
            raise ValidationError({"points": ["Points to award must be positive"]})
        self.points += points
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            PointsAwarded(
                customer_id=str(self.customer_id),
                points=points,
                new_points=self.points,
                occurred_at=now,
            )
        )


@ordering.aggregate
class WalletTransaction:
    customer_id = Identifier(required=True)
    type = String(required=True, choices=TransactionType)
    method = String(required=True, max_length=50)
    amount_cents = Integer(required=True, min_value=0)
    points = Integer(default=0, min_value=0)
    currency = String(max_length=3, default="SGD")
    status = String(max_length=20, default="Completed")
    reference = String(max_length=255)
    created_at = DateTime()

    @classmethod
    def record(cls, customer_id, transaction_type, method, amount_cents, points=0, currency="SGD", reference=None):
        now = datetime.now(UTC)
        transaction = cls(
            customer_id=str(customer_id),
            type=transaction_type.value,
            method=method,
            amount_cents=amount_cents,
            points=points,
            currency=currency,
            status="Completed",
            reference=reference,
            created_at=now,
        )
        transaction.raise_(
            TransactionRecorded(
                transaction_id=str(transaction.id),
                customer_id=str(customer_id),
                type=transaction_type.value,
                method=method,
                amount_cents=amount_cents,
                points=points,
                reference=reference,
                recorded_at=now,
            )
        )
        return transaction


def wallet_for(customer_id):
    """Load the customer's wallet, or an empty one that is saved on first mutation."""
    try:
        return current_domain.repository_for(Wallet).get(str(customer_id))
    except ObjectNotFoundError:
        return Wallet.create(customer_id)


def transactions_for(customer_id):
    """Transaction history for a customer, newest first."""
    repo = current_domain.repository_for(WalletTransaction)
    rows = repo._dao.query.filter(customer_id=str(customer_id)).all().items
    return sorted(rows, key=lambda t: t.created_at, reverse=True)
