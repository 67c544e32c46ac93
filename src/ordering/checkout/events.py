"""Domain events for the CheckoutAttempt and ReconciliationEntry aggregates."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="CheckoutAttempt")
class CheckoutStarted:
    __version__ = 1

    checkout_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    payable_cents = Integer(required=True)
    started_at = DateTime(required=True)


@ordering.event(part_of="CheckoutAttempt")
class PaymentIntentCreated:
    __version__ = 1

    checkout_id = Identifier(required=True)
    gateway = String(required=True)
    intent_ref = String(required=True)
    amount_cents = Integer(required=True)
    created_at = DateTime(required=True)


@ordering.event(part_of="CheckoutAttempt")
class SettlementStarted:
    """The gateway confirmed payment (or nothing was owed) and the commit may begin."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    captured_cents = Integer(required=True)
    gateway_transaction_id = String()
    started_at = DateTime(required=True)


@ordering.event(part_of="CheckoutAttempt")
class CheckoutCompleted:
    __version__ = 1

    checkout_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@ordering.event(part_of="CheckoutAttempt")
class CheckoutFailed:
    __version__ = 1

    checkout_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="CheckoutAttempt")
class CheckoutAbandoned:
    __version__ = 1

    checkout_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    abandoned_at = DateTime(required=True)


@ordering.event(part_of="ReconciliationEntry")
class ReconciliationRequired:
    """Money may be held by a gateway without a matching local order."""

    __version__ = 1

    entry_id = Identifier(required=True)
    checkout_id = Identifier(required=True)
    gateway = String()
    intent_ref = String()
    captured_cents = Integer(required=True)
    expected_cents = Integer(required=True)
    reason = String(required=True)
    recorded_at = DateTime(required=True)


@ordering.event(part_of="ReconciliationEntry")
class ReconciliationResolved:
    __version__ = 1

    entry_id = Identifier(required=True)
    note = String()
    resolved_at = DateTime(required=True)
