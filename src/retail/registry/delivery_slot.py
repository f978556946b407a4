"""Delivery slots — per-store time windows a customer picks at checkout."""

from protean.fields import Boolean, Integer, String

from retail.domain import retail


@retail.aggregate
class DeliverySlot:
    slot_id = Integer(required=True, min_value=1)
    store_code = String(required=True, max_length=50)
    delivery_slot_from = String(required=True, max_length=20)
    delivery_slot_to = String(required=True, max_length=20)
    is_active = Boolean(default=True)

    @property
    def label(self) -> str:
        return f"{self.delivery_slot_from} - {self.delivery_slot_to}"


@retail.repository(part_of=DeliverySlot)
class DeliverySlotRepository:
    def find_active(self, slot_id: int, store_code: str) -> DeliverySlot | None:
        """Return the slot only if it belongs to the store and is currently offered."""
        results = self._dao.query.filter(slot_id=slot_id, store_code=store_code, is_active=True).all().items
        return results[0] if results else None

    def list_sorted(self, store_code: str | None = None, active_only: bool = False) -> list[DeliverySlot]:
        criteria = {}
        if store_code:
            criteria["store_code"] = store_code
        if active_only:
            criteria["is_active"] = True

        query = self._dao.query.filter(**criteria) if criteria else self._dao.query
        return sorted(query.all().items, key=lambda slot: slot.slot_id)
