"""Order aggregate (CQRS) — an immutable snapshot of a checked-out cart.

Line items, delivery slot, delivery address and payment mode are copied by
value at placement and never re-derived from their sources afterwards. Only
the fulfilment status and the payment status move after placement.

State Machine:
    placed → confirmed → processing → packed → shipped → delivered
    cancelled (from placed, confirmed, processing, packed)
    refunded (from cancelled, delivered)
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from retail.domain import retail
from retail.errors import (
    InvalidOrderStatusError,
    InvalidPaymentStatusError,
    OrderNotDeletableError,
    OrderStatusTransitionError,
)
from retail.ordering.events import OrderPlaced, OrderStatusChanged, PaymentStatusUpdated


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PLACED = "placed"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PLACED: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.PACKED, OrderStatus.CANCELLED},
    OrderStatus.PACKED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),  # Terminal
}

_DELETABLE_STATES = {OrderStatus.PLACED, OrderStatus.CANCELLED}

# Typed gateway reference fields lifted out of free-form payment details
_GATEWAY_FIELDS = ("transaction_id", "gateway", "card_last4")
_MAX_PAYLOAD_KEYS = 20
_MAX_PAYLOAD_VALUE_LENGTH = 500

# Orders fetched per query when reading every match
_PAGE_SIZE = 100


def order_status_values() -> list[str]:
    return [status.value for status in OrderStatus]


def payment_status_values() -> list[str]:
    return [status.value for status in PaymentStatus]


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@retail.value_object(part_of="Order")
class DeliveryAddress:
    """Where the order is delivered, copied from the customer's address book.

    Later edits to the address book entry never reach a placed order.
    """

    full_name = String(required=True, max_length=255)
    mobile_number = String(required=True, max_length=20)
    email_id = String(required=True, max_length=255)
    line_1 = String(required=True, max_length=255)
    line_2 = String(max_length=255)
    city = String(required=True, max_length=100)
    pincode = String(required=True, max_length=10)
    latitude = String(max_length=30)
    longitude = String(max_length=30)
    area_id = String(max_length=50)


@retail.value_object(part_of="Order")
class DeliveryInfo:
    delivery_date = Date(required=True)
    slot_id = Integer(required=True)
    slot_from = String(required=True, max_length=20)
    slot_to = String(required=True, max_length=20)


@retail.value_object(part_of="Order")
class PaymentInfo:
    """Payment mode chosen at checkout plus what the gateway reported back.

    ``gateway_payload`` holds the remaining gateway details as a JSON object of
    scalar values, bounded in size.
    """

    payment_mode_id = Integer(required=True)
    payment_mode_name = String(required=True, max_length=100)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_id = String(max_length=255)
    gateway = String(max_length=50)
    card_last4 = String(max_length=4)
    gateway_payload = Text()


@retail.value_object(part_of="Order")
class OrderSummary:
    """Amounts locked at placement; they never change afterwards."""

    subtotal = Float(required=True, min_value=0.0)
    delivery_charges = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(required=True, min_value=0.0)
    total_items = Integer(required=True, min_value=0)
    total_quantity = Integer(required=True, min_value=0)


def split_payment_details(details) -> dict:
    """Split raw gateway details into typed fields and a bounded scalar payload.

    Accepts a dict, a JSON object string or None. Nested values and oversized
    payloads are rejected with a ``ValidationError``.
    """
    if details in (None, ""):
        return {}
    if isinstance(details, str):
        try:
            details = json.loads(details)
        except ValueError:
            raise ValidationError({"payment_details": ["Payment details must be a JSON object"]})
    if not isinstance(details, dict):
        raise ValidationError({"payment_details": ["Payment details must be a JSON object"]})

    typed = {key: str(details[key]) for key in _GATEWAY_FIELDS if details.get(key) not in (None, "")}
    rest = {key: value for key, value in details.items() if key not in _GATEWAY_FIELDS}

    if len(rest) > _MAX_PAYLOAD_KEYS:
        raise ValidationError({"payment_details": [f"At most {_MAX_PAYLOAD_KEYS} extra fields are allowed"]})
    for key, value in rest.items():
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise ValidationError({"payment_details": [f"Field '{key}' must be a scalar value"]})
        if isinstance(value, str) and len(value) > _MAX_PAYLOAD_VALUE_LENGTH:
            raise ValidationError({"payment_details": [f"Field '{key}' is too long"]})

    if rest:
        typed["gateway_payload"] = json.dumps(rest, sort_keys=True)
    return typed


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@retail.entity(part_of="Order")
class OrderItem:
    p_code = String(required=True, max_length=50)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    package_size = Float()
    package_unit = String(max_length=20)
    brand_name = String(max_length=255)
    pcode_img = String(max_length=1000)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@retail.aggregate
class Order:
    order_number = String(identifier=True, max_length=20)
    customer_id = Identifier(required=True)
    customer_name = String(max_length=255)
    customer_email = String(max_length=255)
    store_code = String(required=True, max_length=50)
    project_code = String(max_length=50)
    status = String(choices=OrderStatus, default=OrderStatus.PLACED.value)
    items = HasMany(OrderItem)
    delivery_info = ValueObject(DeliveryInfo)
    delivery_address = ValueObject(DeliveryAddress)
    payment_info = ValueObject(PaymentInfo)
    summary = ValueObject(OrderSummary)
    notes = String(max_length=1000)
    estimated_delivery_date = Date()
    actual_delivery_date = Date()
    placed_at = DateTime()
    confirmed_at = DateTime()
    completed_at = DateTime()
    last_updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        customer_id,
        store_code,
        project_code,
        items,
        delivery_info,
        delivery_address,
        payment_info,
        summary,
        customer_name=None,
        customer_email=None,
        notes=None,
    ):
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_email=customer_email,
            store_code=store_code,
            project_code=project_code,
            status=OrderStatus.PLACED.value,
            items=[OrderItem(**item) for item in items],
            delivery_info=delivery_info,
            delivery_address=delivery_address,
            payment_info=payment_info,
            summary=summary,
            notes=notes,
            estimated_delivery_date=delivery_info.delivery_date,
            placed_at=now,
            last_updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_number=order_number,
                customer_id=str(customer_id),
                store_code=store_code,
                delivery_slot_id=delivery_info.slot_id,
                payment_mode_id=payment_info.payment_mode_id,
                total_items=summary.total_items,
                total_quantity=summary.total_quantity,
                total_amount=summary.total_amount,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status machine
    # -------------------------------------------------------------------
    def transition_to(self, new_status) -> bool:
        """Move to ``new_status``. Returns False when the order is already there."""
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise InvalidOrderStatusError(str(new_status), order_status_values())

        current = OrderStatus(self.status)
        now = datetime.now(UTC)

        if target == current:
            self.last_updated_at = now
            return False

        if target not in _VALID_TRANSITIONS[current]:
            raise OrderStatusTransitionError(current.value, target.value)

        self.status = target.value
        self.last_updated_at = now

        if target == OrderStatus.CONFIRMED and self.confirmed_at is None:
            self.confirmed_at = now
        elif target == OrderStatus.DELIVERED:
            if self.completed_at is None:
                self.completed_at = now
            if self.actual_delivery_date is None:
                self.actual_delivery_date = now.date()

        self.raise_(
            OrderStatusChanged(
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        return True

    def update_payment_status(self, payment_status, transaction_id=None):
        if payment_status not in payment_status_values():
            raise InvalidPaymentStatusError(str(payment_status), payment_status_values())

        previous = self.payment_info.payment_status
        values = self.payment_info.to_dict()
        values["payment_status"] = payment_status
        if transaction_id:
            values["transaction_id"] = transaction_id

        now = datetime.now(UTC)
        self.payment_info = PaymentInfo(**values)
        self.last_updated_at = now

        self.raise_(
            PaymentStatusUpdated(
                order_number=self.order_number,
                previous_status=previous,
                payment_status=payment_status,
                transaction_id=self.payment_info.transaction_id,
                updated_at=now,
            )
        )

    def ensure_deletable(self):
        if OrderStatus(self.status) not in _DELETABLE_STATES:
            raise OrderNotDeletableError(self.order_number, self.status)


@retail.repository(part_of=Order)
class OrderRepository:
    def history(self, customer_id, limit: int = 20) -> list[Order]:
        """A customer's orders, newest first."""
        return self._newest_first(self._matching(customer_id=customer_id))[:limit]

    def search(self, status: str | None = None, payment_status: str | None = None) -> list[Order]:
        """Orders in ``status`` and with ``payment_status`` (either may be None for any), newest first."""
        results = self._matching(status=status) if status else self._matching()
        if payment_status:
            results = [order for order in results if order.payment_info.payment_status == payment_status]
        return self._newest_first(results)

    def numbers_starting_with(self, prefix: str) -> list[str]:
        results = self._matching(order_number__contains=prefix)
        return [order.order_number for order in results if order.order_number.startswith(prefix)]

    def _matching(self, **criteria) -> list[Order]:
        query = self._dao.query.filter(**criteria) if criteria else self._dao.query
        query = query.order_by("order_number")
        results, offset = [], 0
        while True:
            items = query.offset(offset).limit(_PAGE_SIZE).all().items
            results.extend(items)
            if len(items) < _PAGE_SIZE:
                return results
            offset += _PAGE_SIZE

    @staticmethod
    def _newest_first(orders) -> list[Order]:
        return sorted(orders, key=lambda order: (order.placed_at, order.order_number), reverse=True)
