"""Domain events for the Wallet and WalletTransaction aggregates."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Wallet")
class WalletToppedUp:
    __version__ = 1

    customer_id = Identifier(required=True)
    amount_cents = Integer(required=True)
    new_balance_cents = Integer(required=True)
    occurred_at = DateTime(required=True)


@ordering.event(part_of="Wallet")
class WalletDebited:
    __version__ = 1

    customer_id = Identifier(required=True)
    amount_cents = Integer(required=True)
    new_balance_cents = Integer(required=True)
    reference = String()
    occurred_at = DateTime(required=True)


@ordering.event(part_of="Wallet")
class PointsRedeemed:
    __version__ = 1

    customer_id = Identifier(required=True)
    points = Integer(required=True)
    new_points = Integer(required=True)
    reference = String()
    occurred_at = DateTime(required=True)


@ordering.event(part_of="WalletTransaction")
class TransactionRecorded:
    """An entry was appended to the customer's transaction history."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    type = String(required=True)
    method = String(required=True)
    amount_cents = Integer(required=True)
    points = Integer()
    reference = String()
    recorded_at = DateTime(required=True)


@ordering.event(part_of="Wallet")
class PointsAwarded:
    __version__ = 1

    customer_id = Identifier(required=True)
    points = Integer(required=True)
    new_points = Integer(required=True)
    occurred_at = DateTime(required=True)
