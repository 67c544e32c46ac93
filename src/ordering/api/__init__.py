"""Storefront API package."""

from ordering.api.routes import (
    cart_router,
    checkout_router,
    order_router,
    product_router,
    reconciliation_router,
    wallet_router,
)

__all__ = [
    "cart_router",
    "checkout_router",
    "order_router",
    "product_router",
    "reconciliation_router",
    "wallet_router",
]
