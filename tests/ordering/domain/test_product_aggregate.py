"""Tests for the Product aggregate."""

from decimal import Decimal

import pytest
from ordering.catalog.events import ProductAdded, ProductRepriced, ProductRestocked, StockDecremented
from ordering.catalog.product import Product
from ordering.checkout.errors import InsufficientStock
from protean.exceptions import ValidationError


def _make_product(stock=3):
    return Product.create(name="Apples", unit_price_cents=1000, stock=stock, category="Fruit")


class TestCreateProduct:
    def test_create(self):
        product = _make_product()
        assert product.unit_price == Decimal("10.00")
        assert product.stock == 3

    def test_create_raises_event(self):
        product = _make_product()
        event = product._events[0]
        assert isinstance(event, ProductAdded)
        assert event.unit_price_cents == 1000


class TestDecrementStock:
    def test_decrement(self):
        product = _make_product()
        product.decrement_stock(2)
        assert product.stock == 1
        event = product._events[-1]
        assert isinstance(event, StockDecremented)
        assert event.previous_stock == 3
        assert event.new_stock == 1

    def test_decrement_to_zero(self):
        product = _make_product()
        product.decrement_stock(3)
        assert product.stock == 0

    def test_cannot_go_negative(self):
        product = _make_product()
        with pytest.raises(InsufficientStock) as exc:
            product.decrement_stock(4)
        assert exc.value.available == 3
        assert exc.value.requested == 4
        assert product.stock == 3

    def test_insufficient_stock_message_names_available_quantity(self):
        product = _make_product(stock=1)
        with pytest.raises(InsufficientStock) as exc:
            product.ensure_available(2)
        assert exc.value.message == "Only 1 of Apples left in stock"

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _make_product().decrement_stock(0)


class TestRestockAndReprice:
    def test_restock(self):
        product = _make_product()
        product.restock(5)
        assert product.stock == 8
        assert isinstance(product._events[-1], ProductRestocked)

    def test_reprice(self):
        product = _make_product()
        product.reprice(950)
        assert product.unit_price == Decimal("9.50")
        event = product._events[-1]
        assert isinstance(event, ProductRepriced)
        assert event.previous_price_cents == 1000

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            _make_product().reprice(-1)
