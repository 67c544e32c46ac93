"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A checkout settled and its order was recorded."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    checkout_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of {product_id, product_name, quantity, unit_price_cents}
    subtotal_cents = Integer(required=True)
    tax_cents = Integer(required=True)
    wallet_applied_cents = Integer(required=True)
    points_redeemed = Integer(required=True)
    points_discount_cents = Integer(required=True)
    total_cents = Integer(required=True)
    payment_method = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)
