"""Retail bounded context — catalog lookup, carts, checkout and orders.

Carts are reconciled against the live catalog before checkout; a validated
cart is converted into an immutable order snapshot that consumes a delivery
slot, a payment mode and an address from the reference registries.
"""

from protean.domain import Domain

from retail.utils.logging import configure_logging, get_logger

configure_logging(log_file_prefix="retail")

logger = get_logger(__name__)

retail = Domain(name="retail")
