"""CheckoutAttempt aggregate — one customer's pass from review to an order.

The attempt carries the CheckoutState snapshot taken when the customer
started checkout, the payable amount the gateway was asked to collect, and
the gateway references. Its status is the checkout state machine:

State Machine:
    REVIEWING → AWAITING_GATEWAY | SETTLING (nothing payable) | FAILED | ABANDONED
    AWAITING_GATEWAY → SETTLING | FAILED | ABANDONED
    SETTLING → COMPLETED | FAILED
    COMPLETED, FAILED, ABANDONED are terminal
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.checkout.events import (
    CheckoutAbandoned,
    CheckoutCompleted,
    CheckoutFailed,
    CheckoutStarted,
    PaymentIntentCreated,
    SettlementStarted,
)
from ordering.checkout.state import CheckoutState
from ordering.domain import ordering
from ordering.shared.money import from_cents, to_cents


class CheckoutStatus(Enum):
    REVIEWING = "Reviewing"
    AWAITING_GATEWAY = "AwaitingGateway"
    SETTLING = "Settling"
    COMPLETED = "Completed"
    FAILED = "Failed"
    ABANDONED = "Abandoned"


_VALID_TRANSITIONS = {
    CheckoutStatus.REVIEWING: {
        CheckoutStatus.AWAITING_GATEWAY,
        CheckoutStatus.SETTLING,
        CheckoutStatus.FAILED,
        CheckoutStatus.ABANDONED,
    },
    CheckoutStatus.AWAITING_GATEWAY: {
        CheckoutStatus.SETTLING,
        CheckoutStatus.FAILED,
        CheckoutStatus.ABANDONED,
    },
    CheckoutStatus.SETTLING: {CheckoutStatus.COMPLETED, CheckoutStatus.FAILED},
    CheckoutStatus.COMPLETED: set(),  # Terminal
    CheckoutStatus.FAILED: set(),  # Terminal
    CheckoutStatus.ABANDONED: set(),  # Terminal
}

TERMINAL_STATUSES = {CheckoutStatus.COMPLETED, CheckoutStatus.FAILED, CheckoutStatus.ABANDONED}


@ordering.aggregate
class CheckoutAttempt:
    customer_id = Identifier(required=True)
    status = String(choices=CheckoutStatus, default=CheckoutStatus.REVIEWING.value)
    snapshot = Text(required=True)
    payable_cents = Integer(required=True, min_value=0)
    gateway = String(max_length=50)
    payment_method = String(max_length=50)
    intent_ref = String(max_length=255)
    redirect_url = String(max_length=1000)
    qr_code = Text()
    captured_cents = Integer(min_value=0)
    gateway_transaction_id = String(max_length=255)
    order_id = Identifier()
    failure_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def start(cls, state: CheckoutState):
        now = datetime.now(UTC)
        attempt = cls(
            customer_id=state.customer_id,
            status=CheckoutStatus.REVIEWING.value,
            snapshot=state.to_json(),
            payable_cents=to_cents(state.payable_total),
            created_at=now,
            updated_at=now,
        )
        attempt.raise_(
            CheckoutStarted(
                checkout_id=str(attempt.id),
                customer_id=state.customer_id,
                payable_cents=attempt.payable_cents,
                started_at=now,
            )
        )
        return attempt

    @property
    def payable(self):
        return from_cents(self.payable_cents)

    @property
    def is_terminal(self) -> bool:
        return CheckoutStatus(self.status) in TERMINAL_STATUSES

    def checkout_state(self) -> CheckoutState:
        return CheckoutState.from_json(self.snapshot)

    def _transition(self, target: CheckoutStatus):
        current = CheckoutStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition checkout from {current.value} to {target.value}"]})
        self.status = target.value
        self.updated_at = datetime.now(UTC)
        return current

    # -------------------------------------------------------------------
    # Gateway
    # -------------------------------------------------------------------
    def record_intent(self, gateway, payment_method, intent_ref, redirect_url=None, qr_code=None):
        if self.payable_cents == 0:
            raise ValidationError({"gateway": ["Nothing is payable through a gateway for this checkout"]})
        if not intent_ref:
            raise ValidationError({"intent_ref": ["Gateway did not return a payment reference"]})

        self._transition(CheckoutStatus.AWAITING_GATEWAY)
        self.gateway = gateway
        self.payment_method = payment_method
        self.intent_ref = intent_ref
        self.redirect_url = redirect_url
        self.qr_code = qr_code

        self.raise_(
            PaymentIntentCreated(
                checkout_id=str(self.id),
                gateway=gateway,
                intent_ref=intent_ref,
                amount_cents=self.payable_cents,
                created_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Settlement
    # -------------------------------------------------------------------
    def begin_settlement(self, captured_cents=0, gateway_transaction_id=None):
        if CheckoutStatus(self.status) == CheckoutStatus.REVIEWING and self.payable_cents > 0:
            raise ValidationError({"status": ["Payment has not been requested from a gateway yet"]})

        self._transition(CheckoutStatus.SETTLING)
        self.captured_cents = captured_cents
        self.gateway_transaction_id = gateway_transaction_id
        if self.payable_cents == 0 and not self.payment_method:
            self.payment_method = "Wallet"

        self.raise_(
            SettlementStarted(
                checkout_id=str(self.id),
                captured_cents=captured_cents,
                gateway_transaction_id=gateway_transaction_id,
                started_at=self.updated_at,
            )
        )

    def complete(self, order_id):
        self._transition(CheckoutStatus.COMPLETED)
        self.order_id = str(order_id)

        self.raise_(
            CheckoutCompleted(
                checkout_id=str(self.id),
                customer_id=str(self.customer_id),
                order_id=str(order_id),
                completed_at=self.updated_at,
            )
        )

    def fail(self, reason):
        previous = self._transition(CheckoutStatus.FAILED)
        self.failure_reason = (reason or "Checkout failed")[:500]

        self.raise_(
            CheckoutFailed(
                checkout_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=previous.value,
                reason=self.failure_reason,
                failed_at=self.updated_at,
            )
        )

    def abandon(self):
        self._transition(CheckoutStatus.ABANDONED)

        self.raise_(
            CheckoutAbandoned(
                checkout_id=str(self.id),
                customer_id=str(self.customer_id),
                abandoned_at=self.updated_at,
            )
        )
