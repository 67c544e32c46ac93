"""Scriptable fake payment gateway for development and testing.

Simulates any of the three gateway kinds without external calls. Outcomes
are scripted per intent (or for all intents) and every call is recorded, so
tests can assert exactly what the coordinator asked for.
"""

from collections import deque
from decimal import Decimal
from uuid import uuid4

from payments.gateway.errors import GatewayUnavailable
from payments.gateway.port import Failed, GatewayAdapter, GatewayKind, IntentRef, Pending, Settled


class FakeGateway(GatewayAdapter):
    def __init__(self, kind: GatewayKind = GatewayKind.CARD_SESSION, method: str = "Fake") -> None:
        self.kind = kind
        self.method = method
        self.available: bool = True
        self.calls: list[dict] = []
        self.intents: dict[str, Decimal] = {}
        self._by_key: dict[str, str] = {}
        self._scripts: dict[str, deque] = {}
        self._default: str = "settled"
        self.failure_reason: str = "Payment declined"
        self.capture_override: Decimal | None = None

    def configure(
        self,
        outcome: str = "settled",
        failure_reason: str = "Payment declined",
        available: bool = True,
        captured_amount: Decimal | None = None,
    ) -> None:
        """Set the outcome every unscripted ``resolve`` returns.

        ``outcome`` is one of ``settled``, ``pending`` or ``failed``.
        ``captured_amount`` makes settled outcomes report a different amount
        than was requested.
        """
        if outcome not in ("settled", "pending", "failed"):
            raise ValueError(f"Unknown fake outcome: {outcome}")
        self._default = outcome
        self.failure_reason = failure_reason
        self.available = available
        self.capture_override = captured_amount

    def script(self, intent_ref: str, *outcomes: str) -> None:
        """Queue outcomes for one intent; the last one repeats once the queue drains."""
        self._scripts[intent_ref] = deque(outcomes)

    def create_intent(self, amount, currency, idempotency_key, return_url=None):
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "idempotency_key": idempotency_key,
                "return_url": return_url,
            }
        )
        if not self.available:
            raise GatewayUnavailable("Fake gateway is unavailable", gateway=self.kind.value)

        ref = self._by_key.get(idempotency_key)
        if ref is None:
            ref = f"fake_{self.kind.value}_{uuid4().hex[:12]}"
            self._by_key[idempotency_key] = ref
            self.intents[ref] = Decimal(amount)

        if self.kind == GatewayKind.PUSH_QR:
            return IntentRef(ref=ref, qr_code=f"FAKEQR:{ref}:{amount}")
        return IntentRef(ref=ref, redirect_url=f"https://fake-gateway.test/pay/{ref}")

    def resolve(self, intent_ref):
        self.calls.append({"method": "resolve", "intent_ref": intent_ref})
        if not self.available:
            raise GatewayUnavailable("Fake gateway is unavailable", gateway=self.kind.value)

        queue = self._scripts.get(intent_ref)
        if queue:
            outcome = queue.popleft() if len(queue) > 1 else queue[0]
        else:
            outcome = self._default

        if outcome == "pending":
            return Pending(status="waiting")
        if outcome == "failed":
            return Failed(reason=self.failure_reason)

        captured = self.capture_override if self.capture_override is not None else self.intents.get(intent_ref)
        if captured is None:
            return Failed(reason="Unknown payment reference")
        return Settled(captured_amount=captured, gateway_transaction_id=f"fake_txn_{intent_ref[-12:]}")
