"""Tests for bounded, cancellable gateway polling."""

import asyncio
from decimal import Decimal

import pytest
from payments.gateway.errors import GatewayTimeout
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.polling import poll_until_resolved
from payments.gateway.port import Failed, GatewayKind, Pending, Settled


def _gateway():
    gateway = FakeGateway(kind=GatewayKind.PUSH_QR, method="NetsQR")
    ref = gateway.create_intent(Decimal("14.60"), "SGD", "chk-001").ref
    return gateway, ref


def _poll(gateway, ref, max_attempts=5, cancel_event=None):
    return asyncio.run(
        poll_until_resolved(gateway, ref, interval=0, max_attempts=max_attempts, max_seconds=5, cancel_event=cancel_event)
    )


class TestPolling:
    def test_returns_once_settled(self):
        gateway, ref = _gateway()
        gateway.script(ref, "pending", "settled")
        assert _poll(gateway, ref) == Settled(captured_amount=Decimal("14.60"), gateway_transaction_id=f"fake_txn_{ref[-12:]}")

    def test_returns_failure(self):
        gateway, ref = _gateway()
        gateway.script(ref, "failed")
        assert isinstance(_poll(gateway, ref), Failed)

    def test_attempts_are_bounded(self):
        gateway, ref = _gateway()
        gateway.script(ref, "pending")
        with pytest.raises(GatewayTimeout) as exc:
            _poll(gateway, ref, max_attempts=3)
        assert exc.value.retryable
        assert len([c for c in gateway.calls if c["method"] == "resolve"]) == 3

    def test_wall_clock_is_bounded(self):
        gateway, ref = _gateway()
        gateway.script(ref, "pending")
        with pytest.raises(GatewayTimeout):
            asyncio.run(poll_until_resolved(gateway, ref, interval=1, max_attempts=100, max_seconds=0.5))

    def test_cancel_stops_without_resolving(self):
        gateway, ref = _gateway()

        async def run():
            cancel = asyncio.Event()
            cancel.set()
            return await poll_until_resolved(gateway, ref, interval=0, max_attempts=5, max_seconds=5, cancel_event=cancel)

        assert asyncio.run(run()) == Pending(status="cancelled")
        assert [c for c in gateway.calls if c["method"] == "resolve"] == []

    def test_cancel_while_waiting(self):
        gateway, ref = _gateway()
        gateway.script(ref, "pending")

        async def run():
            cancel = asyncio.Event()
            asyncio.get_running_loop().call_later(0.05, cancel.set)
            return await poll_until_resolved(gateway, ref, interval=10, max_attempts=5, max_seconds=60, cancel_event=cancel)

        assert asyncio.run(run()) == Pending(status="cancelled")

    def test_unavailable_gateway_costs_an_attempt(self):
        gateway, ref = _gateway()
        gateway.available = False
        with pytest.raises(GatewayTimeout):
            _poll(gateway, ref, max_attempts=2)
