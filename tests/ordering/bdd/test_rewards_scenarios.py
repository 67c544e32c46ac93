"""BDD tests for applying wallet credit and loyalty points."""

from decimal import Decimal

import pytest
from ordering.checkout.rewards import resolve_rewards
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/rewards.feature")


@pytest.fixture()
def order():
    return {}


@given(parsers.cfparse("an order total of {total}"))
def order_total(order, total):
    order["total"] = Decimal(total)


@given(parsers.cfparse("a wallet of {balance} and {points:d} points"))
def wallet(order, balance, points):
    order["balance"] = Decimal(balance)
    order["points"] = points


@when(parsers.cfparse("the customer asks for {wallet} of the wallet and {redeem:d} points"))
def resolve(order, wallet, redeem):
    order["resolution"] = resolve_rewards(
        order["total"],
        order["balance"],
        order["points"],
        requested_wallet=Decimal(wallet),
        requested_points=redeem,
    )


@then(parsers.cfparse("{applied} is paid from the wallet"))
def wallet_applied(order, applied):
    assert order["resolution"].wallet_applied == Decimal(applied)


@then(parsers.cfparse("the points discount is {discount} using {debited:d} points"))
def points_discount(order, discount, debited):
    assert order["resolution"].points_discount == Decimal(discount)
    assert order["resolution"].points_debited == debited


@then(parsers.cfparse("{payable} remains payable"))
def payable(order, payable):
    resolution = order["resolution"]
    assert resolution.payable_total == Decimal(payable)
    assert resolution.wallet_applied + resolution.points_discount + resolution.payable_total == order["total"]


@then(parsers.cfparse("at most {limit:d} points can be redeemed"))
def max_redeemable(order, limit):
    assert order["resolution"].max_points_redeemable == limit
