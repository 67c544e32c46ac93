"""Payment gateway registry.

Provides get_gateway() / set_gateway() to swap implementations per kind:
- FakeGateway for development and testing (the default)
- Stripe, NETS QR and PayPal adapters when GATEWAY_ADAPTER=live
"""

import os

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import GatewayAdapter, GatewayKind

_FAKE_METHODS = {
    GatewayKind.CARD_SESSION: "Stripe",
    GatewayKind.PUSH_QR: "NetsQR",
    GatewayKind.REDIRECT_WALLET: "PayPal",
}

_gateways: dict[GatewayKind, GatewayAdapter] = {}


def _build_live(kind: GatewayKind) -> GatewayAdapter:
    if kind == GatewayKind.CARD_SESSION:
        from payments.gateway.card_session import StripeCardSession

        return StripeCardSession(api_key=os.environ["STRIPE_SECRET_KEY"])
    if kind == GatewayKind.PUSH_QR:
        from payments.gateway.push_qr import NetsQR

        return NetsQR(api_base=os.environ["NETS_API_BASE"], api_key=os.environ["NETS_API_KEY"])

    from payments.gateway.redirect_wallet import PayPalRedirect

    return PayPalRedirect(
        client_id=os.environ["PAYPAL_CLIENT_ID"],
        client_secret=os.environ["PAYPAL_CLIENT_SECRET"],
        api_base=os.environ.get("PAYPAL_API_BASE", "https://api-m.sandbox.paypal.com"),
    )


def get_gateway(kind: GatewayKind | str) -> GatewayAdapter:
    """Return the adapter for ``kind``. Defaults to a FakeGateway of that kind."""
    kind = GatewayKind(kind)
    if kind not in _gateways:
        if os.environ.get("GATEWAY_ADAPTER", "fake").lower() == "live":
            _gateways[kind] = _build_live(kind)
        else:
            _gateways[kind] = FakeGateway(kind=kind, method=_FAKE_METHODS[kind])
    return _gateways[kind]


def set_gateway(kind: GatewayKind | str, gateway: GatewayAdapter) -> None:
    """Override the adapter for one kind (useful for tests)."""
    _gateways[GatewayKind(kind)] = gateway


def reset_gateways() -> None:
    """Reset to default gateways."""
    _gateways.clear()
