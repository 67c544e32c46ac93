"""Bounded, cancellable polling of a gateway intent.

Used for push-style gateways where the customer pays out of band. The loop
stops on a terminal outcome, when ``cancel_event`` is set (the client went
away), or when either the attempt count or the wall-clock budget runs out.
"""

import asyncio
import time

import structlog

from payments.gateway.errors import GatewayTimeout, GatewayUnavailable
from payments.gateway.port import GatewayAdapter, Pending, PaymentOutcome

logger = structlog.get_logger(__name__)


async def poll_until_resolved(
    adapter: GatewayAdapter,
    intent_ref: str,
    *,
    interval: float,
    max_attempts: int,
    max_seconds: float,
    cancel_event: asyncio.Event | None = None,
) -> PaymentOutcome:
    """Resolve ``intent_ref`` until it settles or fails.

    Returns ``Pending(status="cancelled")`` if ``cancel_event`` is set before
    a terminal outcome. Raises ``GatewayTimeout`` once ``max_attempts``
    resolves or ``max_seconds`` have passed without one. A gateway that is
    briefly unreachable only costs an attempt.
    """
    started = time.monotonic()
    attempts = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("gateway_poll_cancelled", intent_ref=intent_ref, attempts=attempts)
            return Pending(status="cancelled")

        attempts += 1
        try:
            outcome = await asyncio.to_thread(adapter.resolve, intent_ref)
        except GatewayUnavailable as exc:
            logger.warning("gateway_poll_unavailable", intent_ref=intent_ref, attempt=attempts, error=exc.message)
            outcome = Pending(status="unavailable")

        if not isinstance(outcome, Pending):
            logger.info("gateway_poll_resolved", intent_ref=intent_ref, attempts=attempts, outcome=type(outcome).__name__)
            return outcome

        elapsed = time.monotonic() - started
        if attempts >= max_attempts or elapsed + interval > max_seconds:
            logger.warning("gateway_poll_timed_out", intent_ref=intent_ref, attempts=attempts, elapsed=round(elapsed, 2))
            raise GatewayTimeout(
                "Payment was not confirmed in time",
                intent_ref=intent_ref,
                attempts=attempts,
            )

        if cancel_event is None:
            await asyncio.sleep(interval)
            continue
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=interval)
        except TimeoutError:
            pass
