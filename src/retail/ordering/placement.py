"""Order placement — turn a customer's validated cart into an order.

The ``PlaceOrder`` handler checks its preconditions in a fixed order and stops
at the first failure, so nothing is written for a rejected request:

1. required fields (blank store and project codes count as missing), and the
   cart must have been validated by the client
2. the cart must have items
3. the delivery slot must be active for the store
4. the payment mode must be enabled
5. the address must exist and belong to the customer
6. the delivery date must not be before today

Only then is an order number issued and the order saved. A number that turns
out to be taken when the order is saved is reported as a retryable conflict.
Emptying the cart is a separate ``ClearCart`` command issued by ``place_order``
after the order has been stored; if placement fails the cart is left as it was.
"""

from datetime import UTC, date, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from retail.cart.cart import Cart
from retail.cart.management import ClearCart
from retail.domain import logger, retail
from retail.errors import (
    AddressNotFoundError,
    AddressOwnershipError,
    CartNotValidatedError,
    DeliveryDateInPastError,
    EmptyCartError,
    InvalidDeliveryDateError,
    InvalidDeliverySlotError,
    InvalidPaymentModeError,
    OrderNumberConflictError,
    require_present,
)
from retail.ordering.order import (
    DeliveryAddress,
    DeliveryInfo,
    Order,
    OrderSummary,
    PaymentInfo,
    split_payment_details,
)
from retail.ordering.pricing import PricingPolicy
from retail.ordering.sequence import OrderSequencer
from retail.registry.address_book import AddressBookEntry
from retail.registry.delivery_slot import DeliverySlot
from retail.registry.payment_mode import PaymentMode


@retail.command(part_of="Order")
class PlaceOrder:
    """Place an order from the customer's current cart."""

    customer_id = Identifier(required=True)
    customer_name = String(max_length=255)
    customer_email = String(max_length=255)
    store_code = String(required=True, max_length=50)
    project_code = String(required=True, max_length=50)
    delivery_slot_id = Integer(required=True)
    delivery_date = String(required=True, max_length=30)
    address_id = Identifier(required=True)
    payment_mode_id = Integer(required=True)
    cart_validated = Boolean(default=False)
    order_notes = String(max_length=1000)
    payment_details = Text()  # JSON object from the payment gateway


def parse_delivery_date(value: str) -> date:
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise InvalidDeliveryDateError(str(value))


@retail.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        scope = require_present(store_code=command.store_code, project_code=command.project_code)
        store_code, project_code = scope["store_code"], scope["project_code"]

        if not command.cart_validated:
            raise CartNotValidatedError()

        cart = self._load_cart(command.customer_id)
        if cart is None or not cart.items:
            raise EmptyCartError()

        slot = current_domain.repository_for(DeliverySlot).find_active(command.delivery_slot_id, store_code)
        if slot is None:
            raise InvalidDeliverySlotError(command.delivery_slot_id, store_code)

        payment_mode = current_domain.repository_for(PaymentMode).find_enabled(command.payment_mode_id)
        if payment_mode is None:
            raise InvalidPaymentModeError(command.payment_mode_id)

        address = current_domain.repository_for(AddressBookEntry).find(command.address_id)
        if address is None:
            raise AddressNotFoundError(str(command.address_id))
        if not address.belongs_to(command.customer_id):
            logger.warning(
                "Order placement with foreign address refused",
                customer_id=str(command.customer_id),
                address_id=str(command.address_id),
            )
            raise AddressOwnershipError(str(command.address_id))

        delivery_date = parse_delivery_date(command.delivery_date)
        if delivery_date < datetime.now(UTC).date():
            raise DeliveryDateInPastError(command.delivery_date)

        payment_details = split_payment_details(command.payment_details)
        order_number = OrderSequencer().next_order_number()
        summary = PricingPolicy.from_config().summarize(cart.subtotal, cart.total_items, cart.total_quantity)

        order = Order.place(
            order_number=order_number,
            customer_id=command.customer_id,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            store_code=store_code,
            project_code=project_code,
            items=[
                {
                    "p_code": item.p_code,
                    "product_name": item.product_name,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.quantity * item.unit_price,
                    "package_size": item.package_size,
                    "package_unit": item.package_unit,
                    "brand_name": item.brand_name,
                    "pcode_img": item.pcode_img,
                }
                for item in cart.items
            ],
            delivery_info=DeliveryInfo(
                delivery_date=delivery_date,
                slot_id=slot.slot_id,
                slot_from=slot.delivery_slot_from,
                slot_to=slot.delivery_slot_to,
            ),
            delivery_address=DeliveryAddress(**address.as_delivery_address()),
            payment_info=PaymentInfo(
                payment_mode_id=payment_mode.payment_mode_id,
                payment_mode_name=payment_mode.payment_mode_name,
                **payment_details,
            ),
            summary=OrderSummary(**summary),
            notes=command.order_notes or "",
        )
        try:
            current_domain.repository_for(Order).add(order)
        except ValidationError as exc:
            if "order_number" not in exc.messages:
                raise
            logger.warning("Order number taken at save", order_number=order_number)
            raise OrderNumberConflictError(order_number)

        logger.info(
            "Order placed",
            order_number=order_number,
            customer_id=str(command.customer_id),
            total_amount=summary["total_amount"],
            total_items=summary["total_items"],
        )
        return order_number

    @staticmethod
    def _load_cart(customer_id):
        try:
            return current_domain.repository_for(Cart).get(customer_id)
        except ObjectNotFoundError:
            return None


def place_order(**fields) -> Order:
    """Place an order and then empty the customer's cart.

    Accepts the ``PlaceOrder`` fields as keyword arguments and returns the
    stored order.
    """
    command = PlaceOrder(**fields)
    order_number = current_domain.process(command, asynchronous=False)
    current_domain.process(ClearCart(customer_id=command.customer_id), asynchronous=False)
    return current_domain.repository_for(Order).get(order_number)
