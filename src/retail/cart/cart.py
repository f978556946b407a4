"""Cart aggregate (CQRS) — one working basket per customer, fed into checkout.

The cart is keyed by the customer's identity, so a customer only ever has a
single cart. Totals are derived from the line items on every change and are
guarded by a post-invariant; checkout reads the items and clears the cart once
the order is placed.
"""

import math
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from retail.cart.events import CartCleared, CartItemUpserted, CartSaved
from retail.domain import retail


@retail.entity(part_of="Cart")
class CartLineItem:
    p_code = String(required=True, max_length=50)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(default=0.0)
    package_size = Float()
    package_unit = String(max_length=20)
    brand_name = String(max_length=255)
    pcode_img = String(max_length=1000)
    store_code = String(max_length=50)


@retail.aggregate
class Cart:
    customer_id = Identifier(identifier=True)
    store_code = String(max_length=50)
    project_code = String(max_length=50)
    items = HasMany(CartLineItem)
    subtotal = Float(default=0.0)
    total_items = Integer(default=0)
    total_quantity = Integer(default=0)
    last_updated = DateTime()

    @invariant.post
    def totals_must_match_line_items(self):
        expected_subtotal = sum(item.quantity * item.unit_price for item in self.items)
        if not math.isclose(self.subtotal or 0.0, expected_subtotal, abs_tol=1e-6):
            raise ValidationError({"subtotal": ["Subtotal does not match line items"]})
        if (self.total_items or 0) != len(self.items):
            raise ValidationError({"total_items": ["Item count does not match line items"]})
        if (self.total_quantity or 0) != sum(item.quantity for item in self.items):
            raise ValidationError({"total_quantity": ["Quantity does not match line items"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id, store_code=None, project_code=None):
        return cls(
            customer_id=customer_id,
            store_code=store_code,
            project_code=project_code,
            last_updated=datetime.now(UTC),
        )

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def save_items(self, store_code, project_code, items):
        """Replace every line item with ``items`` (a list of dicts)."""
        with atomic_change(self):
            self.store_code = store_code
            self.project_code = project_code
            self._drop_all_items()
            for data in items:
                self.add_items(self._build_line(data, store_code))
            self._recompute()

        self.raise_(
            CartSaved(
                customer_id=str(self.customer_id),
                store_code=store_code,
                total_items=self.total_items,
                total_quantity=self.total_quantity,
                subtotal=self.subtotal,
            )
        )

    def upsert_item(self, store_code, project_code, item):
        """Add a line, replacing any existing line for the same product."""
        existing = next((i for i in self.items if i.p_code == item["p_code"]), None)

        with atomic_change(self):
            self.store_code = store_code
            self.project_code = project_code
            if existing is not None:
                self.remove_items(existing)
            line = self._build_line(item, store_code)
            self.add_items(line)
            self._recompute()

        self.raise_(
            CartItemUpserted(
                customer_id=str(self.customer_id),
                p_code=line.p_code,
                quantity=line.quantity,
                unit_price=line.unit_price,
                is_new=existing is None,
            )
        )

    def clear(self):
        """Remove all items. Clearing an empty cart is harmless."""
        removed = len(self.items)

        with atomic_change(self):
            self._drop_all_items()
            self._recompute()

        self.raise_(
            CartCleared(
                customer_id=str(self.customer_id),
                items_removed=removed,
                cleared_at=self.last_updated,
            )
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _drop_all_items(self):
        for item in list(self.items):
            self.remove_items(item)

    @staticmethod
    def _build_line(data, store_code):
        quantity = int(data["quantity"])
        unit_price = float(data["unit_price"])
        return CartLineItem(
            p_code=str(data["p_code"]),
            product_name=data.get("product_name") or str(data["p_code"]),
            quantity=quantity,
            unit_price=unit_price,
            total_price=quantity * unit_price,
            package_size=data.get("package_size"),
            package_unit=data.get("package_unit"),
            brand_name=data.get("brand_name"),
            pcode_img=data.get("pcode_img"),
            store_code=data.get("store_code") or store_code,
        )

    def _recompute(self):
        self.subtotal = sum(item.quantity * item.unit_price for item in self.items)
        self.total_items = len(self.items)
        self.total_quantity = sum(item.quantity for item in self.items)
        self.last_updated = datetime.now(UTC)
