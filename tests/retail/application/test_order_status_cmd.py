"""Application tests for order administration commands."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from retail.errors import (
    InvalidOrderStatusError,
    OrderNotDeletableError,
    OrderNotFoundError,
    OrderStatusTransitionError,
)
from retail.ordering.order import Order
from retail.ordering.placement import place_order
from retail.ordering import order as order_module
from retail.ordering.status import DeleteOrder, UpdateOrderStatus, UpdatePaymentStatus, bulk_update_status


@pytest.fixture()
def order_number(checkout):
    return place_order(**checkout).order_number


def _set_status(order_number, status):
    return current_domain.process(UpdateOrderStatus(order_number=order_number, status=status), asynchronous=False)


class TestUpdateOrderStatus:
    def test_confirm_persists(self, order_number):
        assert _set_status(order_number, "confirmed") == "confirmed"

        order = current_domain.repository_for(Order).get(order_number)
        assert order.status == "confirmed"
        assert order.confirmed_at is not None

    def test_full_lifecycle(self, order_number):
        for status in ("confirmed", "processing", "packed", "shipped", "delivered"):
            _set_status(order_number, status)

        order = current_domain.repository_for(Order).get(order_number)
        assert order.status == "delivered"
        assert order.completed_at is not None
        assert order.actual_delivery_date is not None

    def test_unknown_status(self, order_number):
        with pytest.raises(InvalidOrderStatusError):
            _set_status(order_number, "lost")

    def test_disallowed_move_is_not_saved(self, order_number):
        with pytest.raises(OrderStatusTransitionError):
            _set_status(order_number, "delivered")
        assert current_domain.repository_for(Order).get(order_number).status == "placed"

    def test_unknown_order(self):
        with pytest.raises(OrderNotFoundError):
            _set_status("ORD0000000000", "confirmed")


class TestUpdatePaymentStatus:
    def test_payment_status_persists(self, order_number):
        current_domain.process(
            UpdatePaymentStatus(order_number=order_number, payment_status="completed", transaction_id="txn-9"),
            asynchronous=False,
        )

        order = current_domain.repository_for(Order).get(order_number)
        assert order.payment_info.payment_status == "completed"
        assert order.payment_info.transaction_id == "txn-9"


class TestDeleteOrder:
    def test_placed_order_can_be_deleted(self, order_number):
        current_domain.process(DeleteOrder(order_number=order_number), asynchronous=False)

        with pytest.raises(OrderNotFoundError):
            _set_status(order_number, "confirmed")

    def test_cancelled_order_can_be_deleted(self, order_number):
        _set_status(order_number, "cancelled")
        current_domain.process(DeleteOrder(order_number=order_number), asynchronous=False)
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_order_in_progress_cannot_be_deleted(self, order_number):
        _set_status(order_number, "confirmed")
        with pytest.raises(OrderNotDeletableError):
            current_domain.process(DeleteOrder(order_number=order_number), asynchronous=False)
        assert current_domain.repository_for(Order).get(order_number).status == "confirmed"


class TestOrderHistory:
    def test_history_is_newest_first(self, checkout, cart_factory):
        first = place_order(**checkout).order_number
        cart_factory()
        second = place_order(**checkout).order_number

        history = current_domain.repository_for(Order).history("9876543210")
        assert [order.order_number for order in history] == [second, first]

    def test_history_is_limited(self, checkout, cart_factory):
        for _ in range(3):
            cart_factory()
            place_order(**checkout)

        assert len(current_domain.repository_for(Order).history("9876543210", limit=2)) == 2

    def test_history_is_per_customer(self, checkout):
        place_order(**checkout)
        assert current_domain.repository_for(Order).history("9123456780") == []

    def test_history_reads_past_one_page(self, checkout, cart_factory, monkeypatch):
        monkeypatch.setattr(order_module, "_PAGE_SIZE", 2)
        for _ in range(5):
            cart_factory()
            place_order(**checkout)

        assert len(current_domain.repository_for(Order).history("9876543210")) == 5


@pytest.fixture()
def three_orders(checkout, cart_factory):
    numbers = []
    for _ in range(3):
        cart_factory()
        numbers.append(place_order(**checkout).order_number)
    return numbers


class TestOrderSearch:
    def test_all_orders_newest_first(self, three_orders):
        results = current_domain.repository_for(Order).search()
        assert [order.order_number for order in results] == list(reversed(three_orders))

    def test_filter_by_status(self, three_orders):
        _set_status(three_orders[0], "confirmed")

        results = current_domain.repository_for(Order).search(status="confirmed")
        assert [order.order_number for order in results] == [three_orders[0]]

    def test_filter_by_payment_status(self, three_orders):
        current_domain.process(
            UpdatePaymentStatus(order_number=three_orders[1], payment_status="completed"), asynchronous=False
        )

        repo = current_domain.repository_for(Order)
        assert [order.order_number for order in repo.search(payment_status="completed")] == [three_orders[1]]
        assert len(repo.search(status="placed", payment_status="pending")) == 2


class TestBulkUpdateStatus:
    def test_moves_every_order(self, three_orders):
        outcome = bulk_update_status(three_orders, "confirmed")

        assert outcome.updated == three_orders
        assert outcome.failed == []
        repo = current_domain.repository_for(Order)
        assert all(repo.get(number).status == "confirmed" for number in three_orders)

    def test_disallowed_move_fails_only_that_order(self, three_orders):
        for status in ("confirmed", "processing", "packed", "shipped"):
            _set_status(three_orders[0], status)

        outcome = bulk_update_status(three_orders, "cancelled")

        assert outcome.updated == three_orders[1:]
        assert [failure["order_number"] for failure in outcome.failed] == [three_orders[0]]
        assert outcome.failed[0]["reason"] == "invalid_status_transition"
        assert current_domain.repository_for(Order).get(three_orders[0]).status == "shipped"

    def test_unknown_order_is_reported(self, three_orders):
        outcome = bulk_update_status([three_orders[0], "ORD0000000000"], "confirmed")

        assert outcome.updated == [three_orders[0]]
        assert outcome.failed[0]["reason"] == "order_not_found"

    def test_order_already_in_status_is_unchanged(self, three_orders):
        _set_status(three_orders[0], "confirmed")

        outcome = bulk_update_status(three_orders[:2], "confirmed")

        assert outcome.unchanged == [three_orders[0]]
        assert outcome.updated == [three_orders[1]]

    def test_duplicates_are_applied_once(self, three_orders):
        outcome = bulk_update_status([three_orders[0], three_orders[0]], "confirmed")
        assert outcome.updated == [three_orders[0]]
        assert outcome.unchanged == []

    def test_unknown_status_changes_nothing(self, three_orders):
        with pytest.raises(InvalidOrderStatusError):
            bulk_update_status(three_orders, "vanished")
        assert all(order.status == "placed" for order in current_domain.repository_for(Order).search())

    def test_empty_list_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            bulk_update_status([], "confirmed")
        assert "order_numbers" in exc.value.messages
