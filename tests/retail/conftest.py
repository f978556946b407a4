"""Shared fixtures for the retail domain: reference data, a saved cart and checkout input."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from retail.cart.management import SaveCart
from retail.catalog.product import CatalogEntry
from retail.registry.address_book import AddAddress
from retail.registry.delivery_slot import DeliverySlot
from retail.registry.payment_mode import PaymentMode

CUSTOMER_ID = "9876543210"
OTHER_CUSTOMER_ID = "9123456780"
STORE_CODE = "AVB"
PROJECT_CODE = "PRJ01"


def _tomorrow() -> str:
    return (datetime.now(UTC).date() + timedelta(days=1)).isoformat()


def _yesterday() -> str:
    return (datetime.now(UTC).date() - timedelta(days=1)).isoformat()


def _add_catalog_entry(**overrides) -> CatalogEntry:
    values = {
        "p_code": "2390",
        "store_code": STORE_CODE,
        "product_name": "Toor Dal 1kg",
        "brand_name": "Tata Sampann",
        "package_size": 1.0,
        "package_unit": "kg",
        "mrp": 20.0,
        "price": 18.0,
        "stock_quantity": 100,
        "max_quantity_allowed": 10,
        "is_active": True,
    }
    values.update(overrides)
    entry = CatalogEntry(**values)
    current_domain.repository_for(CatalogEntry).add(entry)
    return entry


def _add_address(customer_id=CUSTOMER_ID, **overrides) -> str:
    values = {
        "customer_id": customer_id,
        "full_name": "Asha Rao",
        "mobile_number": customer_id,
        "email_id": "Asha.Rao@example.com",
        "line_1": "12 MG Road",
        "line_2": "Near Metro",
        "city": "Bengaluru",
        "pincode": "560001",
        "is_default": True,
    }
    values.update(overrides)
    return current_domain.process(AddAddress(**values), asynchronous=False)


def _save_cart(customer_id=CUSTOMER_ID, items=None, store_code=STORE_CODE):
    if items is None:
        items = [{"p_code": "2390", "product_name": "Toor Dal 1kg", "quantity": 2, "unit_price": 18}]
    return current_domain.process(
        SaveCart(
            customer_id=customer_id,
            store_code=store_code,
            project_code=PROJECT_CODE,
            items=json.dumps(items),
        ),
        asynchronous=False,
    )


@pytest.fixture()
def catalog_entry():
    return _add_catalog_entry()


@pytest.fixture()
def delivery_slot():
    slot = DeliverySlot(
        slot_id=1,
        store_code=STORE_CODE,
        delivery_slot_from="07:00 AM",
        delivery_slot_to="09:00 AM",
        is_active=True,
    )
    current_domain.repository_for(DeliverySlot).add(slot)
    return slot


@pytest.fixture()
def payment_mode():
    mode = PaymentMode(payment_mode_id=1, payment_mode_name="Cash on Delivery", is_enabled=True)
    current_domain.repository_for(PaymentMode).add(mode)
    return mode


@pytest.fixture()
def address_id():
    return _add_address()


@pytest.fixture()
def saved_cart(catalog_entry):
    _save_cart()
    return CUSTOMER_ID


@pytest.fixture()
def checkout(delivery_slot, payment_mode, address_id, saved_cart):
    """Keyword arguments for a PlaceOrder that passes every precondition."""
    return {
        "customer_id": CUSTOMER_ID,
        "customer_name": "Asha Rao",
        "customer_email": "asha.rao@example.com",
        "store_code": STORE_CODE,
        "project_code": PROJECT_CODE,
        "cart_validated": True,
        "delivery_slot_id": 1,
        "delivery_date": _tomorrow(),
        "address_id": address_id,
        "payment_mode_id": 1,
        "order_notes": "Ring the bell",
    }


@pytest.fixture()
def catalog_factory():
    return _add_catalog_entry


@pytest.fixture()
def address_factory():
    return _add_address


@pytest.fixture()
def cart_factory():
    return _save_cart


@pytest.fixture()
def tomorrow():
    return _tomorrow()


@pytest.fixture()
def yesterday():
    return _yesterday()
