"""Push QR adapter — NETS-style QR payment requests.

A request returns a QR payload the customer scans in their banking app.
The provider is polled for the request's status; there is no capture step.
"""

from decimal import Decimal

import httpx
import structlog

from payments.gateway.errors import GatewayUnavailable
from payments.gateway.port import Failed, GatewayAdapter, GatewayKind, IntentRef, Pending, Settled

logger = structlog.get_logger(__name__)

FAILED_STATUSES = {"FAILED", "DECLINED", "CANCELLED", "EXPIRED"}


class NetsQR(GatewayAdapter):
    kind = GatewayKind.PUSH_QR
    method = "NetsQR"

    def __init__(self, api_base: str, api_key: str, client: httpx.Client | None = None) -> None:
        self.client = client or httpx.Client(
            base_url=api_base,
            timeout=httpx.Timeout(5.0, read=10.0),
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def _send(self, method, url, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("qr_request_failed", url=url, error=str(exc))
            raise GatewayUnavailable("QR payments are unavailable right now", gateway=self.kind.value) from exc
        if response.status_code >= 500:
            logger.warning("qr_request_rejected", url=url, status_code=response.status_code)
            raise GatewayUnavailable("QR payments are unavailable right now", gateway=self.kind.value)
        return response

    def create_intent(self, amount, currency, idempotency_key, return_url=None):
        response = self._send(
            "POST",
            "/qr/requests",
            json={"amount": f"{Decimal(amount):.2f}", "currency": currency, "reference": idempotency_key},
            headers={"Idempotency-Key": idempotency_key},
        )
        if response.status_code >= 400:
            raise GatewayUnavailable("QR request was rejected", gateway=self.kind.value, status=response.status_code)
        body = response.json()
        return IntentRef(ref=body["id"], qr_code=body.get("qr_code"))

    def resolve(self, intent_ref):
        response = self._send("GET", f"/qr/requests/{intent_ref}")
        if response.status_code == 404:
            return Failed(reason="QR request not found")
        body = response.json()
        status = (body.get("status") or "").upper()

        if status == "PAID":
            return Settled(captured_amount=Decimal(str(body["amount"])), gateway_transaction_id=body.get("transaction_id"))
        if status in FAILED_STATUSES:
            return Failed(reason=body.get("reason") or f"QR payment {status.lower()}")
        return Pending(status=status or None)
