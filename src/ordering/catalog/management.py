"""Product stock management — commands and handler.

Product CRUD lives outside the checkout engine; these commands only seed
products and adjust the price and stock that checkout depends on.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.catalog.product import Product
from ordering.domain import ordering


@ordering.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=255)
    unit_price_cents = Integer(required=True, min_value=0)
    stock = Integer(default=0, min_value=0)
    category = String(max_length=100)
    image = String(max_length=500)


@ordering.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Product")
class RepriceProduct:
    product_id = Identifier(required=True)
    unit_price_cents = Integer(required=True, min_value=0)


@ordering.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.create(
            name=command.name,
            unit_price_cents=command.unit_price_cents,
            stock=command.stock or 0,
            category=command.category,
            image=command.image,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restock(command.quantity)
        repo.add(product)

    @handle(RepriceProduct)
    def reprice_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.reprice(command.unit_price_cents)
        repo.add(product)
