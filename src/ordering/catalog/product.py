"""Product aggregate — sellable item with a unit price and a live stock count.

Stock is the shared resource contended by concurrent checkouts. It only goes
down through ``decrement_stock``, which re-validates against the current
count and refuses to go negative.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Integer, String

from ordering.catalog.events import (
    ProductAdded,
    ProductRepriced,
    ProductRestocked,
    StockDecremented,
)
from ordering.checkout.errors import InsufficientStock
from ordering.domain import ordering
from ordering.shared.money import from_cents


@ordering.aggregate
class Product:
    name = String(required=True, max_length=255)
    unit_price_cents = Integer(required=True, min_value=0)
    stock = Integer(required=True, min_value=0, default=0)
    category = String(max_length=100)
    image = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, unit_price_cents, stock=0, category=None, image=None):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            unit_price_cents=unit_price_cents,
            stock=stock,
            category=category,
            image=image,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=name,
                unit_price_cents=unit_price_cents,
                stock=stock,
                category=category,
            )
        )
        return product

    @property
    def unit_price(self):
        return from_cents(self.unit_price_cents)

    def ensure_available(self, quantity):
        """Raise ``InsufficientStock`` when ``quantity`` exceeds the current stock."""
        if quantity > self.stock:
            raise InsufficientStock(self.id, requested=quantity, available=self.stock, name=self.name)

    def decrement_stock(self, quantity):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self.ensure_available(quantity)

        previous = self.stock
        self.stock = previous - quantity
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            StockDecremented(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                decremented_at=now,
            )
        )

    def restock(self, quantity):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self.stock += quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductRestocked(
                product_id=str(self.id),
                quantity=quantity,
                new_stock=self.stock,
            )
        )

    def reprice(self, unit_price_cents):
        if unit_price_cents < 0:
            raise ValidationError({"unit_price": ["Unit price cannot be negative"]})

        previous = self.unit_price_cents
        self.unit_price_cents = unit_price_cents
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductRepriced(
                product_id=str(self.id),
                previous_price_cents=previous,
                new_price_cents=unit_price_cents,
            )
        )
