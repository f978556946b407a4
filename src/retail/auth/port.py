"""Authenticator port.

Resolves a bearer token into the ``Principal`` making the request. Token
issuance and signature verification live outside this service; adapters only
map a presented token onto a customer identity and role.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

CUSTOMER_ROLE = "customer"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller. ``customer_id`` is the customer's mobile number."""

    customer_id: str
    name: str | None = None
    email: str | None = None
    role: str = CUSTOMER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class Authenticator(ABC):
    @abstractmethod
    def authenticate(self, token: str) -> Principal | None:
        """Return the principal for ``token``, or None if it is not recognised."""
        ...
