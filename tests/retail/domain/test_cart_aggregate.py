"""Tests for the Cart aggregate: item replacement, upserts, clearing and totals."""

import pytest
from protean.exceptions import ValidationError
from retail.cart.cart import Cart
from retail.cart.events import CartCleared, CartItemUpserted, CartSaved


def _item(p_code="2390", quantity=2, unit_price=18.0, **extra):
    return {
        "p_code": p_code,
        "product_name": f"Product {p_code}",
        "quantity": quantity,
        "unit_price": unit_price,
        **extra,
    }


class TestCartCreation:
    def test_customer_identity_is_the_cart_identity(self):
        cart = Cart.create(customer_id="9876543210")
        assert str(cart.customer_id) == "9876543210"

    def test_starts_empty(self):
        cart = Cart.create(customer_id="9876543210")
        assert len(cart.items) == 0
        assert cart.subtotal == 0.0
        assert cart.total_items == 0
        assert cart.total_quantity == 0
        assert cart.last_updated is not None


class TestSaveItems:
    def test_totals_are_derived_from_items(self):
        cart = Cart.create(customer_id="9876543210")
        cart.save_items("AVB", "PRJ01", [_item(), _item("1001", quantity=3, unit_price=10.0)])

        assert cart.total_items == 2
        assert cart.total_quantity == 5
        assert cart.subtotal == 66.0

    def test_line_total_ignores_caller_value(self):
        cart = Cart.create(customer_id="9876543210")
        cart.save_items("AVB", "PRJ01", [_item(total_price=999.0)])
        assert cart.items[0].total_price == 36.0

    def test_replaces_existing_items(self):
        cart = Cart.create(customer_id="9876543210")
        cart.save_items("AVB", "PRJ01", [_item("1001"), _item("1002")])
        cart.save_items("AVB", "PRJ01", [_item("2390")])

        assert [item.p_code for item in cart.items] == ["2390"]
        assert cart.total_items == 1

    def test_line_store_defaults_to_cart_store(self):
        cart = Cart.create(customer_id="9876543210")
        cart.save_items("AVB", "PRJ01", [_item()])
        assert cart.items[0].store_code == "AVB"
        assert cart.store_code == "AVB"
        assert cart.project_code == "PRJ01"

    def test_zero_quantity_is_rejected(self):
        cart = Cart.create(customer_id="9876543210")
        with pytest.raises(ValidationError):
            cart.save_items("AVB", "PRJ01", [_item(quantity=0)])

    def test_raises_cart_saved(self):
        cart = Cart.create(customer_id="9876543210")
        cart.save_items("AVB", "PRJ01", [_item()])

        event = cart._events[-1]
        assert isinstance(event, CartSaved)
        assert event.subtotal == 36.0
        assert event.total_items == 1


class TestUpsertItem:
    def test_adds_new_line(self):
        cart = Cart.create(customer_id="9876543210")
        cart.upsert_item("AVB", "PRJ01", _item())

        assert len(cart.items) == 1
        assert cart.subtotal == 36.0
        assert cart._events[-1].is_new is True

    def test_same_product_replaces_line(self):
        cart = Cart.create(customer_id="9876543210")
        cart.upsert_item("AVB", "PRJ01", _item(quantity=2, unit_price=18.0))
        cart.upsert_item("AVB", "PRJ01", _item(quantity=5, unit_price=17.0))

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5
        assert cart.total_quantity == 5
        assert cart.subtotal == 85.0

        event = cart._events[-1]
        assert isinstance(event, CartItemUpserted)
        assert event.is_new is False

    def test_other_products_are_kept(self):
        cart = Cart.create(customer_id="9876543210")
        cart.upsert_item("AVB", "PRJ01", _item("1001"))
        cart.upsert_item("AVB", "PRJ01", _item("1002"))

        assert {item.p_code for item in cart.items} == {"1001", "1002"}
        assert cart.total_items == 2


class TestClear:
    def test_clear_zeroes_items_and_totals(self):
        cart = Cart.create(customer_id="9876543210")
        cart.save_items("AVB", "PRJ01", [_item(), _item("1001")])
        cart.clear()

        assert len(cart.items) == 0
        assert cart.subtotal == 0.0
        assert cart.total_items == 0
        assert cart.total_quantity == 0

    def test_clear_raises_event_with_removed_count(self):
        cart = Cart.create(customer_id="9876543210")
        cart.save_items("AVB", "PRJ01", [_item(), _item("1001")])
        cart.clear()

        event = cart._events[-1]
        assert isinstance(event, CartCleared)
        assert event.items_removed == 2

    def test_clearing_empty_cart_is_harmless(self):
        cart = Cart.create(customer_id="9876543210")
        cart.clear()
        assert cart.total_items == 0


class TestTotalsInvariant:
    def test_tampered_subtotal_is_rejected(self):
        cart = Cart.create(customer_id="9876543210")
        cart.save_items("AVB", "PRJ01", [_item()])

        with pytest.raises(ValidationError) as exc:
            cart.subtotal = 1.0
        assert "subtotal" in exc.value.messages
