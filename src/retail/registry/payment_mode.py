"""Payment modes offered at checkout (cash on delivery, UPI, cards...)."""

from protean.fields import Boolean, Integer, String

from retail.domain import retail


@retail.aggregate
class PaymentMode:
    payment_mode_id = Integer(required=True, min_value=1)
    payment_mode_name = String(required=True, max_length=100)
    is_enabled = Boolean(default=False)


@retail.repository(part_of=PaymentMode)
class PaymentModeRepository:
    def find_enabled(self, payment_mode_id: int) -> PaymentMode | None:
        results = self._dao.query.filter(payment_mode_id=payment_mode_id, is_enabled=True).all().items
        return results[0] if results else None

    def list_sorted(self, enabled_only: bool = False) -> list[PaymentMode]:
        query = self._dao.query.filter(is_enabled=True) if enabled_only else self._dao.query
        return sorted(query.all().items, key=lambda mode: mode.payment_mode_id)
