"""Rewards resolver — applies stored-value wallet and loyalty points to an order total.

Wallet credit is applied first; points are redeemed only in whole units of
``REDEEM_UNIT`` and only against what the wallet left unpaid. The result
always satisfies ``wallet_applied + points_discount + payable_total ==
order_total``.

Requests are clamped (a negative or oversized request simply applies less);
negative balances or totals are a caller contract violation.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal

from protean.exceptions import ValidationError

from ordering.shared.money import ZERO, quantize

REDEEM_UNIT = 10
POINT_VALUE = Decimal("0.10")
UNIT_VALUE = POINT_VALUE * REDEEM_UNIT


@dataclass(frozen=True)
class RewardsResolution:
    wallet_applied: Decimal
    remaining: Decimal
    points_to_redeem: int
    points_value: Decimal
    points_discount: Decimal
    points_debited: int
    payable_total: Decimal
    max_points_redeemable: int


def _clamp(value, low, high):
    return max(low, min(value, high))


def _floor_to_unit(points: int) -> int:
    return (points // REDEEM_UNIT) * REDEEM_UNIT


def resolve_rewards(
    order_total,
    wallet_balance,
    points_balance: int,
    requested_wallet=None,
    requested_points: int | None = None,
) -> RewardsResolution:
    order_total = quantize(order_total)
    wallet_balance = quantize(wallet_balance)
    if order_total < 0:
        raise ValidationError({"order_total": ["Order total cannot be negative"]})
    if wallet_balance < 0:
        raise ValidationError({"wallet_balance": ["Wallet balance cannot be negative"]})
    if points_balance < 0:
        raise ValidationError({"points_balance": ["Points balance cannot be negative"]})

    requested_wallet = quantize(requested_wallet) if requested_wallet is not None else ZERO
    requested_points = requested_points or 0

    wallet_applied = _clamp(requested_wallet, ZERO, min(wallet_balance, order_total))
    remaining = order_total - wallet_applied

    points_to_redeem = _floor_to_unit(_clamp(requested_points, 0, points_balance))
    points_value = quantize(points_to_redeem * POINT_VALUE)
    points_discount = min(points_value, remaining)
    payable_total = max(ZERO, remaining - points_discount)

    # Only the whole units needed to cover the discount are taken from the balance
    units_needed = math.ceil(points_discount / UNIT_VALUE)
    points_debited = min(points_to_redeem, units_needed * REDEEM_UNIT)

    affordable_units = int((remaining / UNIT_VALUE).to_integral_value(rounding=ROUND_FLOOR))
    max_points_redeemable = min(affordable_units * REDEEM_UNIT, _floor_to_unit(points_balance))

    return RewardsResolution(
        wallet_applied=wallet_applied,
        remaining=remaining,
        points_to_redeem=points_to_redeem,
        points_value=points_value,
        points_discount=points_discount,
        points_debited=points_debited,
        payable_total=payable_total,
        max_points_redeemable=max_points_redeemable,
    )
