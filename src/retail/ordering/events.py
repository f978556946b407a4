"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from retail.domain import retail


@retail.event(part_of="Order")
class OrderPlaced:
    """A validated cart was converted into an order."""

    __version__ = 1

    order_number = Identifier(required=True)
    customer_id = Identifier(required=True)
    store_code = String(required=True)
    delivery_slot_id = Integer()
    payment_mode_id = Integer()
    total_items = Integer(required=True)
    total_quantity = Integer(required=True)
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@retail.event(part_of="Order")
class OrderStatusChanged:
    """The order moved to a different fulfilment status."""

    __version__ = 1

    order_number = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@retail.event(part_of="Order")
class PaymentStatusUpdated:
    __version__ = 1

    order_number = Identifier(required=True)
    previous_status = String(required=True)
    payment_status = String(required=True)
    transaction_id = String()
    updated_at = DateTime(required=True)
