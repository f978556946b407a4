"""Domain failures for carts, checkout and order administration.

Every failure carries a stable ``reason`` code for clients to branch on, a
human readable message and the HTTP status the API renders it with. Field-level
input problems are left to ``protean.exceptions.ValidationError``.
"""

from typing import Any

from protean.exceptions import ValidationError


def require_present(**values: Any) -> dict[str, Any]:
    """Strip string values and raise ``ValidationError`` naming each one that is missing or blank."""
    stripped = {name: value.strip() if isinstance(value, str) else value for name, value in values.items()}
    missing = {name: ["is required"] for name, value in stripped.items() if value in (None, "")}
    if missing:
        raise ValidationError(missing)
    return stripped


class RetailError(Exception):
    status_code = 500
    reason = "internal_error"
    retryable = False

    def __init__(self, message: str, **details: Any) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        payload = {"reason": self.reason, "message": self.message, **self.details}
        if self.retryable:
            payload["retryable"] = True
        return payload


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------
class InputError(RetailError):
    """Malformed input; the client must fix the request."""

    status_code = 400
    reason = "invalid_input"


class UnusableReferenceError(RetailError):
    """A referenced slot, payment mode or similar record is missing or disabled."""

    status_code = 400
    reason = "invalid_reference"


class OwnershipError(RetailError):
    status_code = 403
    reason = "forbidden"


class StateError(RetailError):
    """The request is well-formed but the current state does not allow it."""

    status_code = 400
    reason = "invalid_state"


class ConflictError(RetailError):
    """Transient conflict; repeating the request is safe."""

    status_code = 409
    reason = "conflict"
    retryable = True


class NotFoundError(RetailError):
    status_code = 404
    reason = "not_found"


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CartNotValidatedError(StateError):
    reason = "cart_not_validated"

    def __init__(self) -> None:
        super().__init__("Cart must be validated before placing order. Please call the validate-cart API first.")


class EmptyCartError(StateError):
    reason = "empty_cart"

    def __init__(self) -> None:
        super().__init__("Cart is empty. Please add items to cart before placing order.")


class InvalidDeliverySlotError(UnusableReferenceError):
    reason = "invalid_delivery_slot"

    def __init__(self, slot_id: int, store_code: str) -> None:
        super().__init__(
            "Invalid delivery slot or slot not available for this store",
            delivery_slot_id=slot_id,
            store_code=store_code,
        )


class InvalidPaymentModeError(UnusableReferenceError):
    reason = "invalid_payment_mode"

    def __init__(self, payment_mode_id: int) -> None:
        super().__init__(
            "Invalid payment mode or payment mode not available",
            payment_mode_id=payment_mode_id,
        )


class AddressNotFoundError(NotFoundError):
    reason = "address_not_found"

    def __init__(self, address_id: str) -> None:
        super().__init__("Delivery address not found", address_id=address_id)


class AddressOwnershipError(OwnershipError):
    reason = "address_forbidden"

    def __init__(self, address_id: str, message: str = "You can only use your own addresses for delivery") -> None:
        super().__init__(message, address_id=address_id)


class InvalidDeliveryDateError(InputError):
    reason = "invalid_delivery_date"

    def __init__(self, value: str) -> None:
        super().__init__("delivery_date must be an ISO date (YYYY-MM-DD)", delivery_date=value)


class DeliveryDateInPastError(StateError):
    reason = "delivery_date_in_past"

    def __init__(self, value: str) -> None:
        super().__init__("Delivery date cannot be in the past", delivery_date=value)


class OrderNumberConflictError(ConflictError):
    reason = "order_number_conflict"

    def __init__(self, order_number: str) -> None:
        super().__init__("Order number generation conflict. Please try again.", order_number=order_number)


# ---------------------------------------------------------------------------
# Order administration
# ---------------------------------------------------------------------------
class OrderNotFoundError(NotFoundError):
    reason = "order_not_found"

    def __init__(self, order_number: str) -> None:
        super().__init__("Order not found", order_number=order_number)


class InvalidOrderStatusError(InputError):
    reason = "invalid_status"

    def __init__(self, status: str, allowed: list[str]) -> None:
        super().__init__(
            f"Invalid status. Must be one of: {', '.join(allowed)}",
            status=status,
            allowed=allowed,
        )


class OrderStatusTransitionError(StateError):
    reason = "invalid_status_transition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move order from {current} to {target}",
            current_status=current,
            requested_status=target,
        )


class InvalidPaymentStatusError(InputError):
    reason = "invalid_payment_status"

    def __init__(self, status: str, allowed: list[str]) -> None:
        super().__init__(
            f"Invalid payment status. Must be one of: {', '.join(allowed)}",
            payment_status=status,
            allowed=allowed,
        )


class OrderNotDeletableError(StateError):
    reason = "order_not_deletable"

    def __init__(self, order_number: str, status: str) -> None:
        super().__init__(
            "Cannot delete order that is being processed or completed",
            order_number=order_number,
            order_status=status,
        )
