"""BDD tests for cart validation and checkout."""

from protean import current_domain
from pytest_bdd import parsers, scenarios, then, when
from retail.cart.cart import Cart
from retail.cart.validation import CartValidator
from retail.errors import RetailError
from retail.ordering.placement import place_order

scenarios("features/checkout.feature")


def _place(customer_id, context, delivery_date, cart_validated, error):
    try:
        context["order"] = place_order(
            customer_id=customer_id,
            store_code="AVB",
            project_code="PRJ01",
            cart_validated=cart_validated,
            delivery_slot_id=1,
            delivery_date=delivery_date,
            address_id=context["address_id"],
            payment_mode_id=1,
        )
    except RetailError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the cart is validated")
def validate_cart(customer_id, context):
    cart = current_domain.repository_for(Cart).get(customer_id)
    context["verdict"] = CartValidator().validate(cart)


@when("the customer places the order for tomorrow")
def place_for_tomorrow(customer_id, context, tomorrow, error):
    _place(customer_id, context, tomorrow, context.get("verdict") is not None and context["verdict"].valid, error)


@when("the customer places the order for tomorrow without validating")
def place_without_validating(customer_id, context, tomorrow, error):
    _place(customer_id, context, tomorrow, False, error)


@when("the customer places the order for yesterday")
def place_for_yesterday(customer_id, context, yesterday, error):
    _place(customer_id, context, yesterday, True, error)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the verdict is valid with {count:d} valid item"))
def verdict_is_valid(context, count):
    assert context["verdict"].valid is True
    assert context["verdict"].valid_items == count


@then(parsers.cfparse('the verdict status is "{status}"'))
def verdict_status(context, status):
    assert context["verdict"].status == status


@then(parsers.cfparse('the verdict is invalid because of "{reason}"'))
def verdict_invalid(context, reason):
    assert context["verdict"].valid is False
    assert [item.reason for item in context["verdict"].invalid_items] == [reason]


@then(parsers.cfparse("the order is placed with subtotal {subtotal:g} and total {total:g}"))
def order_is_placed(context, error, subtotal, total):
    assert error["exc"] is None
    order = context["order"]
    assert order.status == "placed"
    assert order.summary.subtotal == subtotal
    assert order.summary.total_amount == total
