"""Checkout review — builds a CheckoutState from the live ledger (Cart → Reviewing).

Nothing here writes. Every entry into review re-reads the cart, current
product prices and stock, and the wallet; requested wallet and points amounts
are the only client input and are clamped by the rewards resolver.
"""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.cart.cart import cart_for
from ordering.catalog.product import Product
from ordering.checkout.errors import InsufficientStock
from ordering.checkout.state import CheckoutLine, CheckoutState
from ordering.config import get_settings
from ordering.wallet.wallet import wallet_for


def checkout_lines(cart, products=None):
    """Join cart lines with live product rows.

    ``products`` may carry already-loaded products keyed by id; missing ones
    are read from the repository.
    """
    products = products if products is not None else {}
    repo = current_domain.repository_for(Product)
    lines = []
    for item in cart.items:
        product_id = str(item.product_id)
        product = products.get(product_id)
        if product is None:
            product = repo.get(product_id)
            products[product_id] = product
        lines.append(
            CheckoutLine(
                product_id=product_id,
                product_name=product.name,
                unit_price=product.unit_price,
                quantity=item.quantity,
                available=product.stock,
            )
        )
    return lines


def ensure_in_stock(lines):
    for line in lines:
        if not line.in_stock:
            raise InsufficientStock(
                line.product_id,
                requested=line.quantity,
                available=line.available,
                name=line.product_name,
            )


def review_checkout(customer_id, wallet_amount=None, points=None):
    cart = cart_for(customer_id)
    if not cart.items:
        raise ValidationError({"cart": ["Cart is empty"]})

    lines = checkout_lines(cart)
    ensure_in_stock(lines)

    wallet = wallet_for(customer_id)
    return CheckoutState.build(
        customer_id=customer_id,
        lines=lines,
        wallet_balance=wallet.balance,
        points_balance=wallet.points,
        requested_wallet=wallet_amount,
        requested_points=points,
        tax_rate=get_settings().tax_rate,
    )
