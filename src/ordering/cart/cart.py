"""Shopping Cart aggregate — the customer's mutable list of cart lines.

There is one cart per customer and its identity is the customer id. Lines
are unique per product. Quantities are checked against the product's stock
when they are written; that check is best-effort (no lock is held) and is
repeated authoritatively when a checkout settles.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from ordering.checkout.errors import InsufficientStock
from ordering.domain import ordering


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(
            id=str(customer_id),
            customer_id=str(customer_id),
            created_at=now,
            updated_at=now,
        )

    def item_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, available_stock, product_name=None):
        """Add a product to the cart, or increase its quantity if already present."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = self.item_for(product_id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if new_quantity > available_stock:
            raise InsufficientStock(product_id, requested=new_quantity, available=available_stock, name=product_name)

        now = datetime.now(UTC)
        if existing:
            existing.quantity = new_quantity
            item_id = str(existing.id)
        else:
            item = CartItem(product_id=product_id, quantity=quantity, added_at=now)
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                product_id=str(product_id),
                quantity=quantity,
                new_quantity=new_quantity,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity, available_stock, product_name=None):
        if new_quantity < 1:
            raise ValidationError({"new_quantity": ["Quantity must be at least 1"]})

        item = self._find_item(item_id)
        if new_quantity > available_stock:
            raise InsufficientStock(
                item.product_id, requested=new_quantity, available=available_stock, name=product_name
            )

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._find_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
            )
        )

    def clear(self, checkout_id=None):
        """Remove every line. A settled checkout passes its id for the audit trail."""
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                items_removed=len(removed),
                checkout_id=checkout_id,
                cleared_at=now,
            )
        )


def cart_for(customer_id):
    """Load the customer's cart, or start an empty (not yet persisted) one."""
    try:
        return current_domain.repository_for(ShoppingCart).get(str(customer_id))
    except ObjectNotFoundError:
        return ShoppingCart.create(customer_id)
