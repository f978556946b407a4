import pytest
from fastapi.testclient import TestClient
from retail.api.app import create_app
from retail.auth import reset_authenticator, set_authenticator
from retail.auth.port import ADMIN_ROLE, Principal
from retail.auth.static_adapter import StaticTokenAuthenticator

CUSTOMER_TOKEN = "customer-token"
OTHER_TOKEN = "other-customer-token"
ADMIN_TOKEN = "admin-token"


@pytest.fixture()
def authenticator():
    authenticator = StaticTokenAuthenticator(
        {
            CUSTOMER_TOKEN: Principal(customer_id="9876543210", name="Asha Rao", email="asha.rao@example.com"),
            OTHER_TOKEN: Principal(customer_id="9123456780", name="Ravi Kumar"),
            ADMIN_TOKEN: Principal(customer_id="9000000001", name="Store Admin", role=ADMIN_ROLE),
        }
    )
    set_authenticator(authenticator)
    yield authenticator
    reset_authenticator()


@pytest.fixture()
def client(authenticator):
    return TestClient(create_app())


@pytest.fixture()
def customer_headers():
    return {"Authorization": f"Bearer {CUSTOMER_TOKEN}"}


@pytest.fixture()
def other_headers():
    return {"Authorization": f"Bearer {OTHER_TOKEN}"}


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
