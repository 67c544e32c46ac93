"""Card session adapter — hosted Stripe Checkout sessions.

The customer is redirected to a Stripe-hosted page; completion is observed
by retrieving the session. Amounts are sent in minor units.
"""

from decimal import Decimal

import stripe
import structlog

from payments.gateway.errors import GatewayUnavailable
from payments.gateway.port import Failed, GatewayAdapter, GatewayKind, IntentRef, Pending, Settled

logger = structlog.get_logger(__name__)


class StripeCardSession(GatewayAdapter):
    kind = GatewayKind.CARD_SESSION
    method = "Stripe"

    def __init__(self, api_key: str, sessions=None) -> None:
        self.api_key = api_key
        self.sessions = sessions if sessions is not None else stripe.checkout.Session

    def create_intent(self, amount, currency, idempotency_key, return_url=None):
        amount_cents = int((Decimal(amount) * 100).to_integral_value())
        return_url = return_url or "http://localhost:8000/checkout/return"
        try:
            session = self.sessions.create(
                api_key=self.api_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": currency.lower(),
                            "product_data": {"name": "Supermarket order"},
                            "unit_amount": amount_cents,
                        },
                        "quantity": 1,
                    }
                ],
                success_url=f"{return_url}?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{return_url}?cancelled=1",
                client_reference_id=idempotency_key,
                metadata={"checkout_id": idempotency_key},
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as exc:
            logger.warning("stripe_session_create_failed", error=str(exc), checkout_id=idempotency_key)
            raise GatewayUnavailable("Card payments are unavailable right now", gateway=self.kind.value) from exc

        return IntentRef(ref=session.id, redirect_url=session.url)

    def resolve(self, intent_ref):
        try:
            session = self.sessions.retrieve(intent_ref, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.warning("stripe_session_retrieve_failed", error=str(exc), session_id=intent_ref)
            raise GatewayUnavailable("Card payments are unavailable right now", gateway=self.kind.value) from exc

        if session.payment_status == "paid":
            captured = Decimal(session.amount_total) / 100
            return Settled(captured_amount=captured, gateway_transaction_id=session.payment_intent or session.id)
        if session.status == "expired":
            return Failed(reason="Card session expired before payment")
        return Pending(status=session.status)
