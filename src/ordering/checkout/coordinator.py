"""Checkout coordinator — drives one attempt from review to a settled order.

The coordinator is the only caller of gateway adapters. It treats every
adapter the same way (``create_intent`` then ``resolve``) and hands the
outcome to the checkout commands; no provider-specific branching reaches the
settlement commit.

Whenever a gateway reports money captured that cannot become an order, a
ReconciliationEntry is written before the failure is reported, so the
gateway reference is never lost.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.checkout.attempt import CheckoutAttempt, CheckoutStatus
from ordering.checkout.errors import CaptureMismatch, CheckoutError, CommitError
from ordering.checkout.reconciliation import RecordReconciliation, reconciliations_for_checkout
from ordering.checkout.settlement import (
    AbandonCheckout,
    BeginSettlement,
    FailCheckout,
    RecordPaymentIntent,
    SettleCheckout,
    StartCheckout,
)
from ordering.config import get_settings
from ordering.shared.money import from_cents, to_cents, to_decimal
from payments.gateway import get_gateway
from payments.gateway.errors import GatewayTimeout
from payments.gateway.polling import poll_until_resolved
from payments.gateway.port import Failed, GatewayKind, Pending, Settled

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    checkout_id: str
    status: str
    payable: Decimal
    order_id: str | None = None
    redirect_url: str | None = None
    qr_code: str | None = None
    failure_reason: str | None = None

    @classmethod
    def of(cls, attempt: CheckoutAttempt) -> "CheckoutResult":
        return cls(
            checkout_id=str(attempt.id),
            status=attempt.status,
            payable=attempt.payable,
            order_id=str(attempt.order_id) if attempt.order_id else None,
            redirect_url=attempt.redirect_url,
            qr_code=attempt.qr_code,
            failure_reason=attempt.failure_reason,
        )


def _load(checkout_id) -> CheckoutAttempt:
    return current_domain.repository_for(CheckoutAttempt).get(str(checkout_id))


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _reconcile(attempt, captured_cents, reason):
    if reconciliations_for_checkout(attempt.id):
        return
    _process(
        RecordReconciliation(
            checkout_id=str(attempt.id),
            customer_id=str(attempt.customer_id),
            gateway=attempt.gateway,
            intent_ref=attempt.intent_ref,
            captured_cents=captured_cents,
            expected_cents=attempt.payable_cents,
            reason=reason,
        )
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------
def start_checkout(customer_id, wallet_amount=None, points=None) -> CheckoutResult:
    """Snapshot the live cart and rewards into a new attempt.

    Nothing is payable through a gateway when wallet and points cover the
    total; such an attempt settles immediately.
    """
    checkout_id = _process(
        StartCheckout(
            customer_id=str(customer_id),
            wallet_amount_cents=to_cents(wallet_amount) if wallet_amount is not None else None,
            points=points,
        )
    )
    attempt = _load(checkout_id)
    if attempt.payable_cents == 0:
        _process(BeginSettlement(checkout_id=checkout_id, captured_cents=0))
        return _settle(checkout_id, captured_cents=0)
    return CheckoutResult.of(attempt)


def begin_payment(checkout_id, gateway: GatewayKind | str, return_url=None) -> CheckoutResult:
    """Ask ``gateway`` to collect the attempt's payable total.

    Calling it again for an attempt already awaiting the gateway returns the
    existing intent; ``GatewayUnavailable`` leaves the attempt in review so
    the customer can retry or pick another gateway.
    """
    attempt = _load(checkout_id)
    status = CheckoutStatus(attempt.status)
    if status == CheckoutStatus.AWAITING_GATEWAY:
        return CheckoutResult.of(attempt)
    if status != CheckoutStatus.REVIEWING:
        raise ValidationError({"status": [f"Checkout is already {status.value}"]})
    if attempt.payable_cents == 0:
        raise ValidationError({"gateway": ["Nothing is payable through a gateway for this checkout"]})

    settings = get_settings()
    adapter = get_gateway(gateway)
    intent = adapter.create_intent(
        amount=attempt.payable,
        currency=settings.currency,
        idempotency_key=str(attempt.id),
        return_url=return_url or f"{settings.public_base_url}/checkout/attempts/{attempt.id}/return",
    )
    _process(
        RecordPaymentIntent(
            checkout_id=str(attempt.id),
            gateway=adapter.kind.value,
            payment_method=adapter.method,
            intent_ref=intent.ref,
            redirect_url=intent.redirect_url,
            qr_code=intent.qr_code,
        )
    )
    logger.info("payment_intent_created", checkout_id=str(attempt.id), gateway=adapter.kind.value, intent_ref=intent.ref)
    return CheckoutResult.of(_load(checkout_id))


def resolve_payment(checkout_id) -> CheckoutResult:
    """Ask the attempt's gateway once for the outcome and apply it.

    This is the return-callback and capture step. Settled attempts stay
    idempotent: resolving a completed attempt returns its order.
    """
    attempt = _load(checkout_id)
    status = CheckoutStatus(attempt.status)
    if status in (CheckoutStatus.COMPLETED, CheckoutStatus.SETTLING) or not attempt.gateway:
        if status == CheckoutStatus.SETTLING:
            return _settle(checkout_id, captured_cents=attempt.captured_cents or 0)
        return CheckoutResult.of(attempt)

    outcome = get_gateway(attempt.gateway).resolve(attempt.intent_ref)
    return _apply_resolution(attempt, outcome)


async def await_payment(checkout_id, cancel_event=None, settings=None) -> CheckoutResult:
    """Poll the attempt's gateway until it resolves, then apply the outcome.

    Cancellation leaves the attempt awaiting the gateway so it can be
    resumed. A timeout fails the attempt and raises ``GatewayTimeout``.
    """
    settings = settings or get_settings()
    attempt = _load(checkout_id)
    if CheckoutStatus(attempt.status) != CheckoutStatus.AWAITING_GATEWAY:
        return resolve_payment(checkout_id)

    try:
        outcome = await poll_until_resolved(
            get_gateway(attempt.gateway),
            attempt.intent_ref,
            interval=settings.poll_interval_seconds,
            max_attempts=settings.poll_max_attempts,
            max_seconds=settings.poll_max_seconds,
            cancel_event=cancel_event,
        )
    except GatewayTimeout:
        if CheckoutStatus(_load(checkout_id).status) == CheckoutStatus.AWAITING_GATEWAY:
            _process(FailCheckout(checkout_id=str(checkout_id), reason="Payment was not confirmed in time"))
        raise

    return _apply_resolution(_load(checkout_id), outcome)


def abandon_checkout(checkout_id) -> CheckoutResult:
    """Discard an attempt that has not reached settlement. No ledger is touched."""
    _process(AbandonCheckout(checkout_id=str(checkout_id)))
    return CheckoutResult.of(_load(checkout_id))


# ---------------------------------------------------------------------------
# Outcome handling
# ---------------------------------------------------------------------------
def _apply_resolution(attempt: CheckoutAttempt, outcome) -> CheckoutResult:
    checkout_id = str(attempt.id)
    status = CheckoutStatus(attempt.status)

    if isinstance(outcome, Pending):
        return CheckoutResult.of(attempt)

    if isinstance(outcome, Failed):
        if status == CheckoutStatus.AWAITING_GATEWAY:
            _process(FailCheckout(checkout_id=checkout_id, reason=outcome.reason))
        return CheckoutResult.of(_load(checkout_id))

    if not isinstance(outcome, Settled):
        raise TypeError(f"Unexpected gateway outcome: {outcome!r}")

    captured = to_decimal(outcome.captured_amount)
    captured_cents = max(to_cents(captured), 0)
    if status in (CheckoutStatus.FAILED, CheckoutStatus.ABANDONED):
        if captured_cents > 0:
            _reconcile(attempt, captured_cents, f"Payment captured after checkout was {status.value.lower()}")
        return CheckoutResult.of(attempt)
    if status != CheckoutStatus.AWAITING_GATEWAY:
        return CheckoutResult.of(attempt)

    # Compared before conversion to cents so sub-cent captures cannot round into a match
    if captured != attempt.payable:
        reason = "Gateway captured a different amount than the checkout total"
        _fail_settlement(checkout_id, captured_cents, reason)
        raise CaptureMismatch(reason, checkout_id=checkout_id, captured=str(captured), expected=str(attempt.payable))

    _process(
        BeginSettlement(
            checkout_id=checkout_id,
            captured_cents=captured_cents,
            gateway_transaction_id=outcome.gateway_transaction_id,
        )
    )
    return _settle(checkout_id, captured_cents=captured_cents)


def _settle(checkout_id, captured_cents) -> CheckoutResult:
    try:
        _process(SettleCheckout(checkout_id=str(checkout_id)))
    except (CheckoutError, ValidationError) as exc:
        reason = exc.message if isinstance(exc, CheckoutError) else _first_message(exc)
        _fail_settlement(checkout_id, captured_cents, reason)
        raise
    except Exception as exc:
        logger.exception("checkout_commit_failed", checkout_id=str(checkout_id))
        _fail_settlement(checkout_id, captured_cents, f"Commit failed: {exc}")
        raise CommitError("Order could not be recorded", checkout_id=str(checkout_id)) from exc

    return CheckoutResult.of(_load(checkout_id))


def _fail_settlement(checkout_id, captured_cents, reason):
    attempt = _load(checkout_id)
    if captured_cents > 0:
        _reconcile(attempt, captured_cents, reason)
    _process(FailCheckout(checkout_id=str(checkout_id), reason=reason))
    logger.warning(
        "checkout_settlement_failed",
        checkout_id=str(checkout_id),
        captured=str(from_cents(captured_cents)),
        reason=reason,
    )


def _first_message(exc: ValidationError) -> str:
    for field, messages in (exc.messages or {}).items():
        if messages:
            return f"{field}: {messages[0]}"
    return str(exc)
