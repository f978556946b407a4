"""Cart management — commands and handler.

Saving replaces the whole basket, adding upserts a single line, clearing empties
it. A customer's cart is created lazily on the first write.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from retail.cart.cart import Cart
from retail.domain import logger, retail


@retail.command(part_of="Cart")
class SaveCart:
    """Replace the customer's cart with the supplied line items."""

    customer_id = Identifier(required=True)
    store_code = String(required=True, max_length=50)
    project_code = String(max_length=50)
    items = Text(required=True)  # JSON: list of line item dicts


@retail.command(part_of="Cart")
class AddCartItem:
    customer_id = Identifier(required=True)
    store_code = String(required=True, max_length=50)
    project_code = String(max_length=50)
    p_code = String(required=True, max_length=50)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    package_size = Float()
    package_unit = String(max_length=20)
    brand_name = String(max_length=255)
    pcode_img = String(max_length=1000)


@retail.command(part_of="Cart")
class ClearCart:
    customer_id = Identifier(required=True)


def _load_or_create(repo, customer_id):
    try:
        return repo.get(customer_id)
    except ObjectNotFoundError:
        return Cart.create(customer_id=customer_id)


@retail.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(SaveCart)
    def save_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _load_or_create(repo, command.customer_id)

        items = json.loads(command.items) if isinstance(command.items, str) else command.items
        cart.save_items(command.store_code, command.project_code, items)
        repo.add(cart)

        logger.info("Cart saved", customer_id=str(cart.customer_id), total_items=cart.total_items)
        return str(cart.customer_id)

    @handle(AddCartItem)
    def add_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _load_or_create(repo, command.customer_id)

        cart.upsert_item(
            command.store_code,
            command.project_code,
            {
                "p_code": command.p_code,
                "product_name": command.product_name,
                "quantity": command.quantity,
                "unit_price": command.unit_price,
                "package_size": command.package_size,
                "package_unit": command.package_unit,
                "brand_name": command.brand_name,
                "pcode_img": command.pcode_img,
            },
        )
        repo.add(cart)
        return str(cart.customer_id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        try:
            cart = repo.get(command.customer_id)
        except ObjectNotFoundError:
            return None

        cart.clear()
        repo.add(cart)
        logger.info("Cart cleared", customer_id=str(cart.customer_id))
        return str(cart.customer_id)
