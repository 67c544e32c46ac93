import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Ledger seeding helpers
# ---------------------------------------------------------------------------
@pytest.fixture
def add_product():
    from ordering.catalog.management import AddProduct

    def _add(name="Apples", price_cents=1000, stock=10, category="Fruit"):
        return current_domain.process(
            AddProduct(name=name, unit_price_cents=price_cents, stock=stock, category=category),
            asynchronous=False,
        )

    return _add


@pytest.fixture
def add_to_cart():
    from ordering.cart.items import AddToCart

    def _add(customer_id, product_id, quantity=1):
        return current_domain.process(
            AddToCart(customer_id=customer_id, product_id=product_id, quantity=quantity),
            asynchronous=False,
        )

    return _add


@pytest.fixture
def fund_wallet():
    from ordering.wallet.management import AwardPoints, TopUpWallet

    def _fund(customer_id, balance_cents=0, points=0):
        if balance_cents:
            current_domain.process(
                TopUpWallet(customer_id=customer_id, amount_cents=balance_cents),
                asynchronous=False,
            )
        if points:
            current_domain.process(AwardPoints(customer_id=customer_id, points=points), asynchronous=False)

    return _fund
