"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Product")
class ProductAdded:
    """A product was added to the storefront with an opening stock count."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    unit_price_cents = Integer(required=True)
    stock = Integer(required=True)
    category = String()


@ordering.event(part_of="Product")
class ProductRestocked:
    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_stock = Integer(required=True)


@ordering.event(part_of="Product")
class ProductRepriced:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_price_cents = Integer(required=True)
    new_price_cents = Integer(required=True)


@ordering.event(part_of="Product")
class StockDecremented:
    """Stock was taken by a settled checkout."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    decremented_at = DateTime(required=True)
