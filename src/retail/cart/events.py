"""Domain events for the Cart aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from retail.domain import retail


@retail.event(part_of="Cart")
class CartSaved:
    """The cart's line items were replaced wholesale."""

    __version__ = 1

    customer_id = Identifier(required=True)
    store_code = String(required=True)
    total_items = Integer(required=True)
    total_quantity = Integer(required=True)
    subtotal = Float(required=True)


@retail.event(part_of="Cart")
class CartItemUpserted:
    """A single line item was added, or an existing line for the product replaced."""

    __version__ = 1

    customer_id = Identifier(required=True)
    p_code = String(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    is_new = Boolean(default=False)


@retail.event(part_of="Cart")
class CartCleared:
    """All items were removed, after checkout or on request."""

    __version__ = 1

    customer_id = Identifier(required=True)
    items_removed = Integer(required=True)
    cleared_at = DateTime(required=True)
