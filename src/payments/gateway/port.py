"""Payment gateway port (abstract interface).

Every external payment provider is driven through the same two calls:
``create_intent`` asks the provider to collect an amount and returns a
reference plus whatever the customer needs to act on it (a redirect URL or a
QR payload); ``resolve`` asks what happened to that reference. Adapters map
provider-specific states onto ``Settled``, ``Pending`` and ``Failed`` so the
checkout coordinator never sees a provider's vocabulary.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class GatewayKind(Enum):
    CARD_SESSION = "card_session"
    PUSH_QR = "push_qr"
    REDIRECT_WALLET = "redirect_wallet"


@dataclass(frozen=True)
class IntentRef:
    """A payment request the provider accepted."""

    ref: str
    redirect_url: str | None = None
    qr_code: str | None = None


@dataclass(frozen=True)
class Settled:
    captured_amount: Decimal
    gateway_transaction_id: str | None = None


@dataclass(frozen=True)
class Pending:
    status: str | None = None


@dataclass(frozen=True)
class Failed:
    reason: str


PaymentOutcome = Settled | Pending | Failed


class GatewayAdapter(ABC):
    """Abstract payment gateway interface."""

    kind: GatewayKind
    method: str

    @abstractmethod
    def create_intent(
        self,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        return_url: str | None = None,
    ) -> IntentRef:
        """Ask the provider to collect ``amount``.

        ``idempotency_key`` is the checkout id; providers that support it
        must return the same intent when called twice with the same key.
        Raises ``GatewayUnavailable`` when the provider cannot be reached.
        """
        ...

    @abstractmethod
    def resolve(self, intent_ref: str) -> PaymentOutcome:
        """Report the current outcome of a previously created intent."""
        ...
