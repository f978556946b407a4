"""Catalog entries — the live, per-store product record carts are validated against.

The checkout core only ever reads catalog entries; prices, stock and quantity
limits are maintained by the merchandising back office.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Float, Integer, String

from retail.domain import retail


@retail.aggregate
class CatalogEntry:
    p_code = String(required=True, max_length=50)
    store_code = String(required=True, max_length=50)
    product_name = String(required=True, max_length=255)
    product_description = String(max_length=1000)
    brand_name = String(max_length=255)
    package_size = Float()
    package_unit = String(max_length=20)
    mrp = Float(min_value=0.0)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0)
    max_quantity_allowed = Integer(default=10)
    is_active = Boolean(default=True)
    image_url = String(max_length=1000)
    barcode = String(max_length=100)
    updated_at = DateTime(default=lambda: datetime.now(UTC))


@retail.repository(part_of=CatalogEntry)
class CatalogEntryRepository:
    def find_active(self, p_code: str, store_code: str) -> CatalogEntry | None:
        """Return the active entry for a product in a store, or None."""
        results = self._dao.query.filter(p_code=p_code, store_code=store_code, is_active=True).all().items
        return results[0] if results else None

