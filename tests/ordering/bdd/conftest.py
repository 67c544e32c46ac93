"""Shared BDD fixtures and step definitions for checkout settlement."""

from decimal import Decimal

import pytest
from ordering.catalog.product import Product
from ordering.wallet.wallet import wallet_for
from payments.gateway import get_gateway
from protean import current_domain
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def products():
    """Product ids by name, filled in by Given steps."""
    return {}


@pytest.fixture()
def checkout():
    """The current attempt and whatever the last step raised."""
    return {"result": None, "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced at {price} with {stock:d} in stock'))
def product_in_catalog(add_product, products, name, price, stock):
    products[name] = add_product(name=name, price_cents=int(Decimal(price) * 100), stock=stock)


@given(parsers.cfparse('the customer has {quantity:d} "{name}" in the cart'))
def cart_line(add_to_cart, customer_id, products, quantity, name):
    add_to_cart(customer_id, products[name], quantity)


@given(parsers.cfparse("the customer has a wallet balance of {balance} and {points:d} points"))
def funded_wallet(fund_wallet, customer_id, balance, points):
    fund_wallet(customer_id, balance_cents=int(Decimal(balance) * 100), points=points)


@given(parsers.cfparse('the "{kind}" gateway will decline with "{reason}"'))
def gateway_declines(kind, reason):
    get_gateway(kind).configure(outcome="failed", failure_reason=reason)


@given(parsers.cfparse('the "{kind}" gateway will capture {amount}'))
def gateway_captures(kind, amount):
    get_gateway(kind).configure(outcome="settled", captured_amount=Decimal(amount))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the checkout is {status}"))
def checkout_status(checkout, status):
    assert checkout["result"].status == status


@then(parsers.cfparse("the wallet balance is {balance} with {points:d} points left"))
def wallet_balance(customer_id, balance, points):
    wallet = wallet_for(customer_id)
    assert wallet.balance_cents == int(Decimal(balance) * 100)
    assert wallet.points == points


@then(parsers.cfparse('"{name}" has {stock:d} left in stock'))
def stock_left(products, name, stock):
    assert current_domain.repository_for(Product).get(products[name]).stock == stock
