"""Ordering bounded context — storefront cart, checkout settlement and order history.

Owns every row the checkout commit touches (product stock, cart lines, orders,
wallet balances and points, wallet transactions) so that a settlement can be
applied inside a single unit of work.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
