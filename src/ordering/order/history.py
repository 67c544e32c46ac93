"""Order history and invoice reads."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.checkout.pricing import price_cart
from ordering.config import get_settings
from ordering.order.order import Order
from ordering.shared.money import from_cents


def orders_for(customer_id):
    """A customer's orders, newest first."""
    repo = current_domain.repository_for(Order)
    orders = repo._dao.query.filter(customer_id=str(customer_id)).all().items
    return sorted(orders, key=lambda o: o.placed_at, reverse=True)


def all_orders():
    """Every customer's orders, newest first. Used by store staff."""
    orders = current_domain.repository_for(Order)._dao.query.all().items
    return sorted(orders, key=lambda o: o.placed_at, reverse=True)


def order_lines(order):
    """The captured line items of an order as plain values."""
    return [
        {
            "product_id": str(line.product_id),
            "product_name": line.product_name,
            "quantity": line.quantity,
            "unit_price": from_cents(line.unit_price_cents),
            "line_total": from_cents(line.line_total_cents),
        }
        for line in order.lines
    ]


def invoice_for(order_id, customer_id=None):
    """Invoice figures recomputed from the prices captured on the order lines.

    When ``customer_id`` is given the order must belong to that customer.
    """
    order = current_domain.repository_for(Order).get(order_id)
    if customer_id is not None and str(order.customer_id) != str(customer_id):
        raise ObjectNotFoundError(f"Order {order_id} not found")

    totals = price_cart(
        [(from_cents(line.unit_price_cents), line.quantity) for line in order.lines],
        tax_rate=get_settings().tax_rate,
    )
    return {
        "order_id": str(order.id),
        "customer_id": str(order.customer_id),
        "status": order.status,
        "placed_at": order.placed_at,
        "lines": order_lines(order),
        "subtotal": totals.subtotal,
        "tax": totals.tax,
        "total": totals.total,
        "wallet_applied": from_cents(order.wallet_applied_cents),
        "points_redeemed": order.points_redeemed,
        "points_discount": from_cents(order.points_discount_cents),
        "amount_paid": order.total,
        "payment_method": order.payment_method,
    }
