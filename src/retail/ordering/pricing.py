"""Order summary pricing.

Tax, delivery charge and discount come from the ``[custom]`` table of the
domain configuration, so they can differ per deployment. Tax is rounded to
whole currency units, half up.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from protean.utils.globals import current_domain

DEFAULT_TAX_RATE = 0.18


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: float = DEFAULT_TAX_RATE
    delivery_charge: float = 0.0
    discount_amount: float = 0.0

    @classmethod
    def from_config(cls) -> "PricingPolicy":
        custom = current_domain.config.get("custom", {}) or {}
        return cls(
            tax_rate=float(custom.get("TAX_RATE", DEFAULT_TAX_RATE)),
            delivery_charge=float(custom.get("DELIVERY_CHARGE", 0)),
            discount_amount=float(custom.get("DISCOUNT_AMOUNT", 0)),
        )

    def tax_for(self, subtotal: float) -> float:
        amount = Decimal(str(subtotal)) * Decimal(str(self.tax_rate))
        return float(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def summarize(self, subtotal: float, total_items: int, total_quantity: int) -> dict:
        """Return the order summary fields for a cart with the given totals."""
        tax = self.tax_for(subtotal)
        total = max(subtotal + self.delivery_charge + tax - self.discount_amount, 0.0)
        return {
            "subtotal": subtotal,
            "delivery_charges": self.delivery_charge,
            "tax_amount": tax,
            "discount_amount": self.discount_amount,
            "total_amount": total,
            "total_items": total_items,
            "total_quantity": total_quantity,
        }
