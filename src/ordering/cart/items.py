"""Cart item management — commands and handler.

Every write re-reads the product's live stock and rejects quantities above
it. This is the early, best-effort check; settlement repeats it.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart, cart_for
from ordering.catalog.product import Product
from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    customer_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        cart = cart_for(command.customer_id)
        item_id = cart.add_item(
            product_id=command.product_id,
            quantity=command.quantity,
            available_stock=product.stock,
            product_name=product.name,
        )
        current_domain.repository_for(ShoppingCart).add(cart)
        return item_id

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.customer_id)
        item = next((i for i in cart.items if str(i.id) == str(command.item_id)), None)
        product = current_domain.repository_for(Product).get(item.product_id) if item else None
        cart.update_item_quantity(
            item_id=command.item_id,
            new_quantity=command.new_quantity,
            available_stock=product.stock if product else 0,
            product_name=product.name if product else None,
        )
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.customer_id)
        cart.remove_item(item_id=command.item_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.customer_id)
        cart.clear()
        repo.add(cart)
