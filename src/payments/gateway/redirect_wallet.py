"""Redirect wallet adapter — PayPal Orders v2.

The customer approves the order on PayPal; resolving an approved order
captures it. Capturing is idempotent on PayPal's side through the
``PayPal-Request-Id`` header, so resolving twice never charges twice.
"""

from decimal import Decimal

import httpx
import structlog

from payments.gateway.errors import GatewayUnavailable
from payments.gateway.port import Failed, GatewayAdapter, GatewayKind, IntentRef, Pending, Settled

logger = structlog.get_logger(__name__)

PENDING_STATUSES = {"CREATED", "SAVED", "PAYER_ACTION_REQUIRED"}


class PayPalRedirect(GatewayAdapter):
    kind = GatewayKind.REDIRECT_WALLET
    method = "PayPal"

    def __init__(self, client_id: str, client_secret: str, api_base: str, client: httpx.Client | None = None) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.client = client or httpx.Client(base_url=api_base, timeout=httpx.Timeout(5.0, read=10.0))

    def _token(self) -> str:
        response = self._send(
            "POST",
            "/v1/oauth2/token",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
        )
        return response.json()["access_token"]

    def _send(self, method, url, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("paypal_request_failed", url=url, error=str(exc))
            raise GatewayUnavailable("PayPal is unavailable right now", gateway=self.kind.value) from exc
        if response.status_code >= 500 or response.status_code in (401, 403):
            logger.warning("paypal_request_rejected", url=url, status_code=response.status_code)
            raise GatewayUnavailable("PayPal is unavailable right now", gateway=self.kind.value)
        return response

    def create_intent(self, amount, currency, idempotency_key, return_url=None):
        token = self._token()
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": idempotency_key,
                    "amount": {"currency_code": currency, "value": f"{Decimal(amount):.2f}"},
                }
            ],
        }
        if return_url:
            payload["application_context"] = {"return_url": return_url, "cancel_url": f"{return_url}?cancelled=1"}

        response = self._send(
            "POST",
            "/v2/checkout/orders",
            json=payload,
            headers={"Authorization": f"Bearer {token}", "PayPal-Request-Id": idempotency_key},
        )
        if response.status_code >= 400:
            raise GatewayUnavailable("PayPal rejected the order", gateway=self.kind.value, status=response.status_code)

        body = response.json()
        approve = next((link["href"] for link in body.get("links", []) if link.get("rel") in ("approve", "payer-action")), None)
        return IntentRef(ref=body["id"], redirect_url=approve)

    def resolve(self, intent_ref):
        token = self._token()
        headers = {"Authorization": f"Bearer {token}"}
        response = self._send("GET", f"/v2/checkout/orders/{intent_ref}", headers=headers)
        if response.status_code == 404:
            return Failed(reason="PayPal order not found")
        body = response.json()
        status = body.get("status")

        if status == "APPROVED":
            response = self._send(
                "POST",
                f"/v2/checkout/orders/{intent_ref}/capture",
                headers={**headers, "PayPal-Request-Id": f"capture-{intent_ref}", "Content-Type": "application/json"},
            )
            if response.status_code == 422:
                issue = _first_issue(response)
                if issue == "ORDER_NOT_APPROVED":
                    return Pending(status="APPROVED")
                if issue != "ORDER_ALREADY_CAPTURED":
                    return Failed(reason=f"PayPal capture refused: {issue}")
                response = self._send("GET", f"/v2/checkout/orders/{intent_ref}", headers=headers)
            body = response.json()
            status = body.get("status")

        if status == "COMPLETED":
            capture = _first_capture(body)
            if capture is None:
                return Pending(status=status)
            if capture.get("status") not in ("COMPLETED", None):
                return Failed(reason=f"PayPal capture {capture.get('status')}")
            return Settled(captured_amount=Decimal(capture["amount"]["value"]), gateway_transaction_id=capture.get("id"))
        if status in PENDING_STATUSES:
            return Pending(status=status)
        return Failed(reason=f"PayPal order {status or 'in unknown state'}")


def _first_issue(response):
    try:
        details = response.json().get("details") or [{}]
    except ValueError:
        return None
    return details[0].get("issue")


def _first_capture(body):
    for unit in body.get("purchase_units", []):
        captures = unit.get("payments", {}).get("captures", [])
        if captures:
            return captures[0]
    return None
