"""Tests for the NETS QR push-payment adapter."""

import json
from decimal import Decimal

import httpx
import pytest
from payments.gateway.errors import GatewayUnavailable
from payments.gateway.port import Failed, Pending, Settled
from payments.gateway.push_qr import NetsQR


@pytest.fixture
def nets(mock_http):
    def _adapter(handler):
        return NetsQR(api_base="https://nets.test", api_key="key", client=mock_http(handler, base_url="https://nets.test"))

    return _adapter


@pytest.fixture
def status_of(nets):
    def _status(body):
        return nets(lambda request: httpx.Response(200, json=body)).resolve("QR-1")

    return _status


class TestCreateIntent:
    def test_returns_qr_payload(self, nets):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"id": "QR-1", "qr_code": "000201..."})

        intent = nets(handler).create_intent(Decimal("14.6"), "SGD", "chk-001")

        assert intent.ref == "QR-1"
        assert intent.qr_code == "000201..."
        assert json.loads(seen[0].content) == {"amount": "14.60", "currency": "SGD", "reference": "chk-001"}
        assert seen[0].headers["Idempotency-Key"] == "chk-001"

    def test_unavailable(self, nets):
        with pytest.raises(GatewayUnavailable):
            nets(lambda request: httpx.Response(500)).create_intent(Decimal("1.00"), "SGD", "chk-001")


class TestResolve:
    def test_paid(self, status_of):
        assert status_of({"status": "PAID", "amount": "14.60", "transaction_id": "T-1"}) == Settled(
            captured_amount=Decimal("14.60"), gateway_transaction_id="T-1"
        )

    def test_waiting(self, status_of):
        assert isinstance(status_of({"status": "PENDING"}), Pending)

    def test_declined(self, status_of):
        outcome = status_of({"status": "declined", "reason": "Insufficient balance"})
        assert outcome == Failed(reason="Insufficient balance")

    def test_unknown_request(self, nets):
        assert isinstance(nets(lambda request: httpx.Response(404, json={})).resolve("QR-1"), Failed)
