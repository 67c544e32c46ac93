"""Checkout failure taxonomy.

Malformed or stale input is reported with protean's ``ValidationError``;
the classes below cover the settlement failures that need their own
handling (status code, retry hint, reconciliation).
"""

from shared.errors import StorefrontError


class CheckoutError(StorefrontError):
    code = "checkout_error"


class InsufficientStock(CheckoutError):
    code = "insufficient_stock"
    status_code = 409

    def __init__(self, product_id, requested: int, available: int, name: str | None = None) -> None:
        label = name or str(product_id)
        super().__init__(
            f"Only {available} of {label} left in stock",
            product_id=str(product_id),
            requested=requested,
            available=available,
        )
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available


class InsufficientFunds(CheckoutError):
    code = "insufficient_funds"
    status_code = 402


class InsufficientPoints(CheckoutError):
    code = "insufficient_points"
    status_code = 402


class CaptureMismatch(CheckoutError):
    """The gateway reported a capture that does not match the local payable total."""

    code = "capture_mismatch"
    status_code = 409


class CommitError(CheckoutError):
    """A ledger write failed inside the settlement unit of work."""

    code = "commit_error"
    status_code = 500
