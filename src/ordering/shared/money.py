"""Fixed-point money helpers.

Amounts are persisted as integer cents and handled in code as ``Decimal``
values quantized to two places. Floats never enter the calculation.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Coerce ints, strings and Decimals into a Decimal without going through float."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be floats")
    return Decimal(str(value))


def quantize(amount) -> Decimal:
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount) -> int:
    return int(quantize(amount) * 100)


def from_cents(cents: int | None) -> Decimal:
    return (Decimal(cents or 0) / 100).quantize(CENT)
