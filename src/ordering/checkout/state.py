"""CheckoutState — the explicit snapshot a checkout attempt is settled against.

Built from durable state every time a customer enters review (never from
client-sent totals) and embedded in the CheckoutAttempt it starts. Settlement
reprices the live cart and requires the same lines, prices and totals before
it writes anything.
"""

import json
from dataclasses import dataclass
from decimal import Decimal

from ordering.checkout.pricing import TAX_RATE, CartTotals, price_cart
from ordering.checkout.rewards import RewardsResolution, resolve_rewards
from ordering.shared.money import ZERO, to_cents


@dataclass(frozen=True)
class CheckoutLine:
    product_id: str
    product_name: str
    unit_price: Decimal
    quantity: int
    available: int

    @property
    def in_stock(self) -> bool:
        return self.quantity <= self.available

    def to_order_line(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": to_cents(self.unit_price),
        }


@dataclass(frozen=True)
class CheckoutState:
    customer_id: str
    lines: tuple[CheckoutLine, ...]
    totals: CartTotals
    rewards: RewardsResolution
    requested_wallet: Decimal
    requested_points: int

    @property
    def payable_total(self) -> Decimal:
        return self.rewards.payable_total

    @classmethod
    def build(
        cls,
        customer_id,
        lines,
        wallet_balance,
        points_balance,
        requested_wallet=None,
        requested_points=None,
        tax_rate=TAX_RATE,
    ):
        lines = tuple(lines)
        totals = price_cart([(line.unit_price, line.quantity) for line in lines], tax_rate=tax_rate)
        rewards = resolve_rewards(
            order_total=totals.total,
            wallet_balance=wallet_balance,
            points_balance=points_balance,
            requested_wallet=requested_wallet,
            requested_points=requested_points,
        )
        return cls(
            customer_id=str(customer_id),
            lines=lines,
            totals=totals,
            rewards=rewards,
            requested_wallet=requested_wallet if requested_wallet is not None else ZERO,
            requested_points=requested_points or 0,
        )

    def pricing_terms(self) -> dict:
        """What settlement must reproduce from the live cart: lines, unit prices and totals."""
        return {
            "lines": sorted((line.product_id, line.quantity, to_cents(line.unit_price)) for line in self.lines),
            "subtotal_cents": to_cents(self.totals.subtotal),
            "tax_cents": to_cents(self.totals.tax),
        }

    def order_pricing(self) -> dict:
        return {
            "subtotal_cents": to_cents(self.totals.subtotal),
            "tax_cents": to_cents(self.totals.tax),
            "wallet_applied_cents": to_cents(self.rewards.wallet_applied),
            "points_redeemed": self.rewards.points_debited,
            "points_discount_cents": to_cents(self.rewards.points_discount),
            "total_cents": to_cents(self.rewards.payable_total),
        }

    # -------------------------------------------------------------------
    # Serialization (stored as JSON text on the CheckoutAttempt)
    # -------------------------------------------------------------------
    def to_json(self) -> str:
        return json.dumps(
            {
                "customer_id": self.customer_id,
                "lines": [
                    {
                        "product_id": line.product_id,
                        "product_name": line.product_name,
                        "unit_price": str(line.unit_price),
                        "quantity": line.quantity,
                        "available": line.available,
                    }
                    for line in self.lines
                ],
                "totals": {
                    "subtotal": str(self.totals.subtotal),
                    "tax": str(self.totals.tax),
                    "total": str(self.totals.total),
                },
                "rewards": {
                    "wallet_applied": str(self.rewards.wallet_applied),
                    "remaining": str(self.rewards.remaining),
                    "points_to_redeem": self.rewards.points_to_redeem,
                    "points_value": str(self.rewards.points_value),
                    "points_discount": str(self.rewards.points_discount),
                    "points_debited": self.rewards.points_debited,
                    "payable_total": str(self.rewards.payable_total),
                    "max_points_redeemable": self.rewards.max_points_redeemable,
                },
                "requested_wallet": str(self.requested_wallet),
                "requested_points": self.requested_points,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "CheckoutState":
        data = json.loads(raw)
        totals = data["totals"]
        rewards = data["rewards"]
        return cls(
            customer_id=data["customer_id"],
            lines=tuple(
                CheckoutLine(
                    product_id=line["product_id"],
                    product_name=line["product_name"],
                    unit_price=Decimal(line["unit_price"]),
                    quantity=line["quantity"],
                    available=line["available"],
                )
                for line in data["lines"]
            ),
            totals=CartTotals(
                subtotal=Decimal(totals["subtotal"]),
                tax=Decimal(totals["tax"]),
                total=Decimal(totals["total"]),
            ),
            rewards=RewardsResolution(
                wallet_applied=Decimal(rewards["wallet_applied"]),
                remaining=Decimal(rewards["remaining"]),
                points_to_redeem=rewards["points_to_redeem"],
                points_value=Decimal(rewards["points_value"]),
                points_discount=Decimal(rewards["points_discount"]),
                points_debited=rewards["points_debited"],
                payable_total=Decimal(rewards["payable_total"]),
                max_points_redeemable=rewards["max_points_redeemable"],
            ),
            requested_wallet=Decimal(data["requested_wallet"]),
            requested_points=data["requested_points"],
        )
