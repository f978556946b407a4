"""Order administration — status moves, payment status and deletion.

Bulk status updates run the single-order ``UpdateOrderStatus`` command once per
order, so every order goes through the same transition rules. One order
failing does not stop the rest.
"""

from dataclasses import dataclass, field

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from retail.domain import logger, retail
from retail.errors import InvalidOrderStatusError, OrderNotFoundError, RetailError
from retail.ordering.order import Order, order_status_values


@retail.command(part_of="Order")
class UpdateOrderStatus:
    order_number = Identifier(required=True)
    status = String(required=True, max_length=20)


@retail.command(part_of="Order")
class UpdatePaymentStatus:
    order_number = Identifier(required=True)
    payment_status = String(required=True, max_length=20)
    transaction_id = String(max_length=255)


@retail.command(part_of="Order")
class DeleteOrder:
    """Remove an order that never started fulfilment."""

    order_number = Identifier(required=True)


def load_order(order_number) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_number)
    except ObjectNotFoundError:
        raise OrderNotFoundError(str(order_number))


@retail.command_handler(part_of=Order)
class OrderAdministrationHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = load_order(command.order_number)
        previous = order.status
        changed = order.transition_to(command.status)
        current_domain.repository_for(Order).add(order)

        if changed:
            logger.info(
                "Order status changed",
                order_number=order.order_number,
                previous_status=previous,
                new_status=order.status,
            )
        return order.status

    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        order = load_order(command.order_number)
        order.update_payment_status(command.payment_status, command.transaction_id)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Payment status updated",
            order_number=order.order_number,
            payment_status=command.payment_status,
        )
        return order.payment_info.payment_status

    @handle(DeleteOrder)
    def delete_order(self, command):
        order = load_order(command.order_number)
        order.ensure_deletable()

        current_domain.repository_for(Order)._dao.delete(order)
        logger.info("Order deleted", order_number=order.order_number, status=order.status)
        return order.order_number


@dataclass
class BulkStatusOutcome:
    status: str
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)


def bulk_update_status(order_numbers, status) -> BulkStatusOutcome:
    """Move each order to ``status``, collecting per-order failures instead of stopping."""
    numbers = [str(number).strip() for number in order_numbers or [] if str(number).strip()]
    if not numbers:
        raise ValidationError({"order_numbers": ["At least one order number is required"]})
    if status not in order_status_values():
        raise InvalidOrderStatusError(str(status), order_status_values())

    outcome = BulkStatusOutcome(status=status)
    for order_number in dict.fromkeys(numbers):
        try:
            previous = load_order(order_number).status
            current_domain.process(UpdateOrderStatus(order_number=order_number, status=status), asynchronous=False)
        except RetailError as exc:
            outcome.failed.append({"order_number": order_number, **exc.to_dict()})
            continue

        if previous == status:
            outcome.unchanged.append(order_number)
        else:
            outcome.updated.append(order_number)

    logger.info(
        "Bulk order status update",
        status=status,
        updated=len(outcome.updated),
        unchanged=len(outcome.unchanged),
        failed=len(outcome.failed),
    )
    return outcome
