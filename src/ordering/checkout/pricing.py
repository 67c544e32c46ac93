"""Pricing calculator — cart lines to subtotal, tax and total.

Pure and deterministic. Line amounts are summed exactly; rounding to currency
precision happens once, on the total, and tax is derived from the rounded
total so that ``total == subtotal + tax`` always holds.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError

from ordering.shared.money import quantize, to_decimal

TAX_RATE = Decimal("0.08")


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def price_cart(lines: Iterable[tuple], tax_rate: Decimal = TAX_RATE) -> CartTotals:
    """Price an ordered sequence of ``(unit_price, quantity)`` pairs.

    Negative prices, quantities or tax rates, and unit prices finer than one
    cent, are a caller contract violation and raise ``ValidationError``
    rather than being clamped or rounded.
    """
    tax_rate = to_decimal(tax_rate)
    if tax_rate < 0:
        raise ValidationError({"tax_rate": ["Tax rate cannot be negative"]})

    subtotal = Decimal("0")
    for unit_price, quantity in lines:
        unit_price = to_decimal(unit_price)
        if unit_price < 0:
            raise ValidationError({"unit_price": [f"Unit price cannot be negative: {unit_price}"]})
        if unit_price != quantize(unit_price):
            raise ValidationError({"unit_price": [f"Unit price must be a whole number of cents: {unit_price}"]})
        if quantity < 0:
            raise ValidationError({"quantity": [f"Quantity cannot be negative: {quantity}"]})
        subtotal += unit_price * quantity

    # Whole-cent prices times whole quantities, so this only fixes the exponent
    subtotal = quantize(subtotal)
    total = quantize(subtotal + subtotal * tax_rate)
    return CartTotals(subtotal=subtotal, tax=total - subtotal, total=total)
