"""Order aggregate — the durable record of a settled checkout.

An Order is only ever created by checkout settlement, already paid. Its lines
capture each product's unit price at order time so later price changes never
alter the order. After placement only the status moves.

State Machine:
    PENDING → COMPLETED | FAILED | CANCELLED
    COMPLETED → CANCELLED (admin)
    FAILED, CANCELLED are terminal
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.shared.money import from_cents


class OrderStatus(Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.COMPLETED, OrderStatus.FAILED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: {OrderStatus.CANCELLED},
    OrderStatus.FAILED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


@ordering.entity(part_of="Order")
class OrderLine:
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)

    @property
    def line_total_cents(self):
        return self.quantity * self.unit_price_cents


@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    checkout_id = Identifier(required=True)
    lines = HasMany(OrderLine)
    subtotal_cents = Integer(required=True, min_value=0)
    tax_cents = Integer(required=True, min_value=0)
    wallet_applied_cents = Integer(default=0, min_value=0)
    points_redeemed = Integer(default=0, min_value=0)
    points_discount_cents = Integer(default=0, min_value=0)
    total_cents = Integer(required=True, min_value=0)  # Payable amount collected by the gateway
    payment_method = String(max_length=50)
    gateway_reference = String(max_length=255)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    placed_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        checkout_id,
        lines_data,
        pricing,
        payment_method=None,
        gateway_reference=None,
    ):
        """Record a settled checkout as a completed order.

        Args:
            lines_data: List of dicts with product_id, product_name, quantity
                and unit_price_cents.
            pricing: Dict with subtotal_cents, tax_cents, wallet_applied_cents,
                points_redeemed, points_discount_cents and total_cents.
        """
        if not lines_data:
            raise ValidationError({"lines": ["An order needs at least one line"]})

        lines_total = sum(line["quantity"] * line["unit_price_cents"] for line in lines_data)
        if lines_total != pricing["subtotal_cents"]:
            raise ValidationError({"subtotal": [f"Lines add up to {lines_total}, not {pricing['subtotal_cents']}"]})

        collected = pricing["total_cents"] + pricing["wallet_applied_cents"] + pricing["points_discount_cents"]
        if collected != pricing["subtotal_cents"] + pricing["tax_cents"]:
            raise ValidationError({"total": ["Payments do not balance against the order total"]})

        now = datetime.now(UTC)
        order = cls(
            customer_id=str(customer_id),
            checkout_id=str(checkout_id),
            subtotal_cents=pricing["subtotal_cents"],
            tax_cents=pricing["tax_cents"],
            wallet_applied_cents=pricing["wallet_applied_cents"],
            points_redeemed=pricing["points_redeemed"],
            points_discount_cents=pricing["points_discount_cents"],
            total_cents=pricing["total_cents"],
            payment_method=payment_method,
            gateway_reference=gateway_reference,
            status=OrderStatus.PENDING.value,
            placed_at=now,
            updated_at=now,
        )
        for line in lines_data:
            order.add_lines(
                OrderLine(
                    product_id=line["product_id"],
                    product_name=line.get("product_name"),
                    quantity=line["quantity"],
                    unit_price_cents=line["unit_price_cents"],
                )
            )
        order.status = OrderStatus.COMPLETED.value

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                checkout_id=str(checkout_id),
                lines=json.dumps(lines_data),
                subtotal_cents=pricing["subtotal_cents"],
                tax_cents=pricing["tax_cents"],
                wallet_applied_cents=pricing["wallet_applied_cents"],
                points_redeemed=pricing["points_redeemed"],
                points_discount_cents=pricing["points_discount_cents"],
                total_cents=pricing["total_cents"],
                payment_method=payment_method,
                placed_at=now,
            )
        )
        return order

    @property
    def total(self):
        return from_cents(self.total_cents)

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def change_status(self, new_status, changed_by=None):
        current = OrderStatus(self.status)
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from None

        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

        self.status = target.value
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_by=changed_by,
                changed_at=now,
            )
        )
