"""Shared BDD fixtures and step definitions for the retail domain."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from retail.cart.cart import Cart
from retail.cart.management import SaveCart
from retail.errors import RetailError
from retail.ordering.order import Order
from retail.ordering.placement import place_order
from retail.registry.delivery_slot import DeliverySlot
from retail.registry.payment_mode import PaymentMode


@pytest.fixture()
def customer_id():
    return "9876543210"


@pytest.fixture()
def error():
    """Container for a captured domain error."""
    return {"exc": None}


@pytest.fixture()
def context():
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse(
        'the catalog lists product "{p_code}" at price {price:g} with stock {stock:d} and max {max_allowed:d}'
    )
)
def catalog_lists_product(catalog_factory, p_code, price, stock, max_allowed):
    catalog_factory(p_code=p_code, price=float(price), stock_quantity=stock, max_quantity_allowed=max_allowed)


@given(
    parsers.cfparse('store "{store_code}" offers active delivery slot {slot_id:d} from "{slot_from}" to "{slot_to}"')
)
def store_offers_slot(store_code, slot_id, slot_from, slot_to):
    current_domain.repository_for(DeliverySlot).add(
        DeliverySlot(
            slot_id=slot_id,
            store_code=store_code,
            delivery_slot_from=slot_from,
            delivery_slot_to=slot_to,
            is_active=True,
        )
    )


@given(parsers.cfparse('payment mode {mode_id:d} "{name}" is enabled'))
def payment_mode_enabled(mode_id, name):
    current_domain.repository_for(PaymentMode).add(
        PaymentMode(payment_mode_id=mode_id, payment_mode_name=name, is_enabled=True)
    )


@given("the customer has a saved address")
def customer_has_address(context, address_factory):
    context["address_id"] = address_factory()


@given(parsers.cfparse("the customer's cart holds {quantity:d} of product \"{p_code}\" at {price:g}"))
def customer_cart_holds(customer_id, quantity, p_code, price):
    current_domain.process(
        SaveCart(
            customer_id=customer_id,
            store_code="AVB",
            project_code="PRJ01",
            items=json.dumps(
                [{"p_code": p_code, "product_name": "Toor Dal 1kg", "quantity": quantity, "unit_price": price}]
            ),
        ),
        asynchronous=False,
    )


@given("a placed order", target_fixture="order_number")
def a_placed_order(checkout):
    return place_order(**checkout).order_number


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('placement fails with reason "{reason}"'))
def placement_fails(error, reason):
    assert isinstance(error["exc"], RetailError)
    assert error["exc"].reason == reason


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order_number, status):
    assert current_domain.repository_for(Order).get(order_number).status == status


@then("the customer's cart is empty")
def cart_is_empty(customer_id):
    assert current_domain.repository_for(Cart).get(customer_id).total_items == 0


@then(parsers.cfparse("the customer's cart still holds {count:d} item"))
def cart_still_holds(customer_id, count):
    assert current_domain.repository_for(Cart).get(customer_id).total_items == count
