"""Checkout commands — start, gateway bookkeeping and the settlement commit.

Each command runs in its own unit of work. ``SettleCheckout`` is the only
place that turns a checkout into ledger writes: it re-reads the cart,
products and wallet, re-validates everything against the attempt's snapshot,
and only then decrements stock, debits the wallet and points, appends the
transaction rows, places the order and clears the cart. Any failure before
the commit leaves every ledger untouched.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart, cart_for
from ordering.catalog.product import Product
from ordering.checkout.attempt import CheckoutAttempt, CheckoutStatus
from ordering.checkout.errors import CaptureMismatch, InsufficientFunds, InsufficientPoints
from ordering.checkout.review import checkout_lines, ensure_in_stock, review_checkout
from ordering.checkout.state import CheckoutState
from ordering.config import get_settings
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.shared.money import from_cents
from ordering.wallet.wallet import (
    TransactionMethod,
    TransactionType,
    Wallet,
    WalletTransaction,
    wallet_for,
)

logger = structlog.get_logger(__name__)


@ordering.command(part_of="CheckoutAttempt")
class StartCheckout:
    customer_id = Identifier(required=True)
    wallet_amount_cents = Integer()
    points = Integer()


@ordering.command(part_of="CheckoutAttempt")
class RecordPaymentIntent:
    checkout_id = Identifier(required=True)
    gateway = String(required=True, max_length=50)
    payment_method = String(required=True, max_length=50)
    intent_ref = String(required=True, max_length=255)
    redirect_url = String(max_length=1000)
    qr_code = Text()


@ordering.command(part_of="CheckoutAttempt")
class BeginSettlement:
    checkout_id = Identifier(required=True)
    captured_cents = Integer(default=0, min_value=0)
    gateway_transaction_id = String(max_length=255)


@ordering.command(part_of="CheckoutAttempt")
class SettleCheckout:
    checkout_id = Identifier(required=True)


@ordering.command(part_of="CheckoutAttempt")
class FailCheckout:
    checkout_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@ordering.command(part_of="CheckoutAttempt")
class AbandonCheckout:
    checkout_id = Identifier(required=True)


def attempts_for(customer_id):
    repo = current_domain.repository_for(CheckoutAttempt)
    rows = repo._dao.query.filter(customer_id=str(customer_id)).all().items
    return sorted(rows, key=lambda a: a.created_at, reverse=True)


def attempt_for_intent(intent_ref):
    repo = current_domain.repository_for(CheckoutAttempt)
    rows = repo._dao.query.filter(intent_ref=intent_ref).all().items
    return rows[0] if rows else None


@ordering.command_handler(part_of=CheckoutAttempt)
class CheckoutHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        wallet_amount = from_cents(command.wallet_amount_cents) if command.wallet_amount_cents is not None else None
        state = review_checkout(command.customer_id, wallet_amount=wallet_amount, points=command.points)

        attempt = CheckoutAttempt.start(state)
        current_domain.repository_for(CheckoutAttempt).add(attempt)

        logger.info(
            "checkout_started",
            checkout_id=str(attempt.id),
            customer_id=command.customer_id,
            payable_cents=attempt.payable_cents,
        )
        return str(attempt.id)

    @handle(RecordPaymentIntent)
    def record_payment_intent(self, command):
        existing = attempt_for_intent(command.intent_ref)
        if existing is not None and str(existing.id) != str(command.checkout_id):
            raise ValidationError({"intent_ref": ["Payment reference is already bound to another checkout"]})

        repo = current_domain.repository_for(CheckoutAttempt)
        attempt = repo.get(command.checkout_id)
        attempt.record_intent(
            gateway=command.gateway,
            payment_method=command.payment_method,
            intent_ref=command.intent_ref,
            redirect_url=command.redirect_url,
            qr_code=command.qr_code,
        )
        repo.add(attempt)

    @handle(BeginSettlement)
    def begin_settlement(self, command):
        repo = current_domain.repository_for(CheckoutAttempt)
        attempt = repo.get(command.checkout_id)
        attempt.begin_settlement(
            captured_cents=command.captured_cents or 0,
            gateway_transaction_id=command.gateway_transaction_id,
        )
        repo.add(attempt)

    @handle(SettleCheckout)
    def settle_checkout(self, command):
        attempt_repo = current_domain.repository_for(CheckoutAttempt)
        attempt = attempt_repo.get(command.checkout_id)

        status = CheckoutStatus(attempt.status)
        if status == CheckoutStatus.COMPLETED:
            return str(attempt.order_id)
        if status != CheckoutStatus.SETTLING:
            raise ValidationError({"status": [f"Checkout cannot be settled while {status.value}"]})

        captured = attempt.captured_cents or 0
        if captured != attempt.payable_cents:
            raise CaptureMismatch(
                "Gateway captured a different amount than the checkout total",
                captured=str(from_cents(captured)),
                expected=str(attempt.payable),
            )

        state = attempt.checkout_state()
        products = {}

        # Validate everything against the live ledgers before the first write
        cart = cart_for(attempt.customer_id)
        live_lines = checkout_lines(cart, products)
        live = CheckoutState.build(
            customer_id=attempt.customer_id,
            lines=live_lines,
            wallet_balance=0,
            points_balance=0,
            tax_rate=get_settings().tax_rate,
        )
        if not live_lines or live.pricing_terms() != state.pricing_terms():
            raise ValidationError({"cart": ["Cart or prices changed since checkout started"]})

        ensure_in_stock(live_lines)

        pricing = state.order_pricing()
        wallet = wallet_for(attempt.customer_id)
        if wallet.balance_cents < pricing["wallet_applied_cents"]:
            raise InsufficientFunds(
                "Wallet balance no longer covers the amount applied at checkout",
                balance=str(wallet.balance),
                requested=str(from_cents(pricing["wallet_applied_cents"])),
            )
        if wallet.points < pricing["points_redeemed"]:
            raise InsufficientPoints(
                "Points balance no longer covers the points applied at checkout",
                points_balance=wallet.points,
                requested=pricing["points_redeemed"],
            )

        # Commit
        checkout_id = str(attempt.id)
        product_repo = current_domain.repository_for(Product)
        for line in live_lines:
            product = products[line.product_id]
            product.decrement_stock(line.quantity)
            product_repo.add(product)

        currency = get_settings().currency
        txn_repo = current_domain.repository_for(WalletTransaction)
        if pricing["wallet_applied_cents"] > 0:
            wallet.debit(pricing["wallet_applied_cents"], reference=checkout_id)
            txn_repo.add(
                WalletTransaction.record(
                    customer_id=attempt.customer_id,
                    transaction_type=TransactionType.PAYMENT,
                    method=TransactionMethod.WALLET.value,
                    amount_cents=pricing["wallet_applied_cents"],
                    currency=currency,
                    reference=checkout_id,
                )
            )
        if pricing["points_redeemed"] > 0:
            wallet.redeem_points(pricing["points_redeemed"], reference=checkout_id)
            txn_repo.add(
                WalletTransaction.record(
                    customer_id=attempt.customer_id,
                    transaction_type=TransactionType.REDEEM,
                    method=TransactionMethod.POINTS.value,
                    amount_cents=pricing["points_discount_cents"],
                    points=pricing["points_redeemed"],
                    currency=currency,
                    reference=checkout_id,
                )
            )
        if pricing["wallet_applied_cents"] > 0 or pricing["points_redeemed"] > 0:
            current_domain.repository_for(Wallet).add(wallet)

        if pricing["total_cents"] > 0:
            txn_repo.add(
                WalletTransaction.record(
                    customer_id=attempt.customer_id,
                    transaction_type=TransactionType.PAYMENT,
                    method=attempt.payment_method,
                    amount_cents=pricing["total_cents"],
                    currency=currency,
                    reference=attempt.gateway_transaction_id or attempt.intent_ref,
                )
            )

        order = Order.place(
            customer_id=attempt.customer_id,
            checkout_id=checkout_id,
            lines_data=[line.to_order_line() for line in state.lines],
            pricing=pricing,
            payment_method=attempt.payment_method,
            gateway_reference=attempt.gateway_transaction_id or attempt.intent_ref,
        )
        current_domain.repository_for(Order).add(order)

        cart.clear(checkout_id=checkout_id)
        current_domain.repository_for(ShoppingCart).add(cart)

        attempt.complete(order.id)
        attempt_repo.add(attempt)

        logger.info(
            "checkout_settled",
            checkout_id=checkout_id,
            order_id=str(order.id),
            customer_id=str(attempt.customer_id),
            payable_cents=pricing["total_cents"],
            wallet_applied_cents=pricing["wallet_applied_cents"],
            points_redeemed=pricing["points_redeemed"],
        )
        return str(order.id)

    @handle(FailCheckout)
    def fail_checkout(self, command):
        repo = current_domain.repository_for(CheckoutAttempt)
        attempt = repo.get(command.checkout_id)
        if CheckoutStatus(attempt.status) == CheckoutStatus.FAILED:
            return
        attempt.fail(command.reason)
        repo.add(attempt)
        logger.warning("checkout_failed", checkout_id=command.checkout_id, reason=command.reason)

    @handle(AbandonCheckout)
    def abandon_checkout(self, command):
        repo = current_domain.repository_for(CheckoutAttempt)
        attempt = repo.get(command.checkout_id)
        attempt.abandon()
        repo.add(attempt)
        logger.info("checkout_abandoned", checkout_id=command.checkout_id)
