"""Cart validation — reconcile a saved cart against the live catalog.

Each line item is looked up by (p_code, store_code) among active catalog
entries and checked in a fixed order: existence, stock, per-order quantity cap,
then price. Problems are collected into a ``ValidationVerdict`` rather than
raised, and a failure while checking one item never stops the others from
being checked. The verdict is recomputed on every call and never stored.
"""

import math
from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from retail.catalog.product import CatalogEntry
from retail.domain import logger

PRODUCT_NOT_FOUND = "product_not_found"
INSUFFICIENT_STOCK = "insufficient_stock"
MAX_QUANTITY_EXCEEDED = "max_quantity_exceeded"
VALIDATION_ERROR = "validation_error"


@dataclass(frozen=True)
class InvalidItem:
    """A line item that cannot be checked out as it stands."""

    index: int
    p_code: str
    product_name: str | None
    reason: str
    message: str
    requested_quantity: int | None = None
    available_quantity: int | None = None
    max_allowed: int | None = None
    current_price: float | None = None


@dataclass(frozen=True)
class PriceChange:
    """A line item whose catalog price moved since it was added to the cart."""

    index: int
    p_code: str
    old_price: float
    new_price: float
    difference: float
    percentage_change: float | None
    new_total_price: float
    message: str


@dataclass
class ValidationVerdict:
    valid: bool = True
    total_items: int = 0
    valid_items: int = 0
    invalid_items: list[InvalidItem] = field(default_factory=list)
    updated_items: list[PriceChange] = field(default_factory=list)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid_items)

    @property
    def status(self) -> str:
        if not self.valid:
            return "invalid"
        if self.updated_items:
            return "price_updated"
        return "valid"

    @property
    def message(self) -> str:
        if self.total_items == 0:
            return "Cart is empty"
        if not self.valid:
            short = [item for item in self.invalid_items if item.reason == INSUFFICIENT_STOCK]
            out_of_stock = sum(1 for item in short if item.available_quantity == 0)
            short_stock = len(short)
            if out_of_stock:
                return f"{out_of_stock} product(s) out of stock"
            if short_stock:
                return f"{short_stock} product(s) have insufficient stock"
            return f"{self.invalid_count} product(s) need attention"
        if self.updated_items:
            return f"{len(self.updated_items)} product(s) have price changes"
        return "Cart validation successful"

    @property
    def summary(self) -> dict:
        return {
            "has_price_changes": bool(self.updated_items),
            "has_stock_issues": bool(self.invalid_items),
            "has_out_of_stock": any(
                item.reason == INSUFFICIENT_STOCK and item.available_quantity == 0 for item in self.invalid_items
            ),
            "requires_action": not self.valid or bool(self.updated_items),
        }


class CartValidator:
    """Validates carts against catalog entries.

    ``catalog`` is anything with a ``find_active(p_code, store_code)`` method;
    it defaults to the domain's ``CatalogEntry`` repository.
    """

    def __init__(self, catalog=None):
        self._catalog = catalog

    @property
    def catalog(self):
        if self._catalog is None:
            self._catalog = current_domain.repository_for(CatalogEntry)
        return self._catalog

    def validate(self, cart) -> ValidationVerdict:
        items = list(cart.items) if cart is not None else []
        verdict = ValidationVerdict(total_items=len(items))
        if not items:
            return verdict

        for index, item in enumerate(items):
            try:
                self._check_item(verdict, index, item, item.store_code or cart.store_code)
            except Exception as exc:
                logger.warning(
                    "Cart item could not be validated",
                    p_code=item.p_code,
                    index=index,
                    error=str(exc),
                )
                verdict.valid = False
                verdict.invalid_items.append(
                    InvalidItem(
                        index=index,
                        p_code=item.p_code,
                        product_name=item.product_name,
                        reason=VALIDATION_ERROR,
                        message=f"Validation error: {exc}",
                        requested_quantity=item.quantity,
                    )
                )

        logger.info(
            "Cart validated",
            status=verdict.status,
            total_items=verdict.total_items,
            valid_items=verdict.valid_items,
            invalid_items=verdict.invalid_count,
            price_changes=len(verdict.updated_items),
        )
        return verdict

    def _check_item(self, verdict, index, item, store_code):
        entry = self.catalog.find_active(item.p_code, store_code)
        requested = item.quantity

        if entry is None:
            self._reject(
                verdict,
                InvalidItem(
                    index=index,
                    p_code=item.p_code,
                    product_name=item.product_name,
                    reason=PRODUCT_NOT_FOUND,
                    message="Product not found or inactive",
                    requested_quantity=requested,
                    available_quantity=0,
                ),
            )
            return

        stock = entry.stock_quantity or 0
        max_allowed = entry.max_quantity_allowed or None
        current_price = float(entry.price or 0.0)

        if stock < requested:
            message = (
                "Product is out of stock"
                if stock == 0
                else f"Only {stock} item(s) available. You requested {requested}."
            )
            self._reject(
                verdict,
                InvalidItem(
                    index=index,
                    p_code=item.p_code,
                    product_name=item.product_name,
                    reason=INSUFFICIENT_STOCK,
                    message=message,
                    requested_quantity=requested,
                    available_quantity=stock,
                    current_price=current_price,
                ),
            )
            return

        if max_allowed and requested > max_allowed:
            self._reject(
                verdict,
                InvalidItem(
                    index=index,
                    p_code=item.p_code,
                    product_name=item.product_name,
                    reason=MAX_QUANTITY_EXCEEDED,
                    message=f"Maximum {max_allowed} item(s) allowed per order. You requested {requested}.",
                    requested_quantity=requested,
                    available_quantity=stock,
                    max_allowed=max_allowed,
                    current_price=current_price,
                ),
            )
            return

        old_price = float(item.unit_price)
        if not math.isclose(old_price, current_price, abs_tol=1e-9):
            difference = current_price - old_price
            verdict.updated_items.append(
                PriceChange(
                    index=index,
                    p_code=item.p_code,
                    old_price=old_price,
                    new_price=current_price,
                    difference=round(difference, 2),
                    percentage_change=round(difference / old_price * 100, 2) if old_price else None,
                    new_total_price=current_price * requested,
                    message=f"Price updated from {old_price:g} to {current_price:g}",
                )
            )

        verdict.valid_items += 1

    @staticmethod
    def _reject(verdict, invalid_item):
        verdict.valid = False
        verdict.invalid_items.append(invalid_item)
        logger.info(
            "Cart item rejected",
            p_code=invalid_item.p_code,
            reason=invalid_item.reason,
        )
