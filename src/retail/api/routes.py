"""FastAPI routes for the Retail domain — carts, checkout, orders and reference data."""

import json
import math
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from retail.api.dependencies import current_principal, require_admin
from retail.api.schemas import (
    AddAddressRequest,
    AddCartItemRequest,
    AddressBookEntrySchema,
    AdminOrderListResponse,
    BulkUpdateStatusRequest,
    BulkUpdateStatusResponse,
    CartResponse,
    CartScopeRequest,
    CartValidationResponse,
    DeliverySlotSchema,
    OrderDetailResponse,
    OrderListResponse,
    OrderPlacedResponse,
    OrderStatusResponse,
    PaymentModeSchema,
    PaymentStatusResponse,
    PlaceOrderRequest,
    SaveCartRequest,
    StatusResponse,
    UpdateAddressRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
)
from retail.auth.port import Principal
from retail.cart.cart import Cart
from retail.cart.management import AddCartItem, ClearCart, SaveCart
from retail.cart.validation import CartValidator
from retail.errors import InvalidOrderStatusError, InvalidPaymentStatusError, OrderNotFoundError, require_present
from retail.ordering.order import Order, order_status_values, payment_status_values
from retail.ordering.placement import place_order
from retail.ordering.status import DeleteOrder, UpdateOrderStatus, UpdatePaymentStatus, bulk_update_status, load_order
from retail.registry.address_book import AddAddress, AddressBookEntry, DeleteAddress, UpdateAddress
from retail.registry.delivery_slot import DeliverySlot
from retail.registry.payment_mode import PaymentMode

DEFAULT_HISTORY_LIMIT = 20


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------
def _load_cart(customer_id) -> Cart | None:
    try:
        return current_domain.repository_for(Cart).get(customer_id)
    except ObjectNotFoundError:
        return None


def _cart_response(cart: Cart | None, principal: Principal, scope=None) -> CartResponse:
    if cart is None:
        return CartResponse(
            customer_id=principal.customer_id,
            store_code=getattr(scope, "store_code", None),
            project_code=getattr(scope, "project_code", None),
        )
    return CartResponse(
        customer_id=str(cart.customer_id),
        store_code=cart.store_code,
        project_code=cart.project_code,
        items=[
            {
                "p_code": item.p_code,
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
                "package_size": item.package_size,
                "package_unit": item.package_unit,
                "brand_name": item.brand_name,
                "pcode_img": item.pcode_img,
                "store_code": item.store_code,
            }
            for item in cart.items
        ],
        subtotal=cart.subtotal,
        total_items=cart.total_items,
        total_quantity=cart.total_quantity,
        last_updated=cart.last_updated,
    )


def _slot_label(order: Order) -> str:
    return f"{order.delivery_info.slot_from} - {order.delivery_info.slot_to}"


def _summary(order: Order) -> dict:
    return order.summary.to_dict()


def _address(order: Order) -> dict:
    return order.delivery_address.to_dict()


def _list_entry(order: Order) -> dict:
    return {
        "order_number": order.order_number,
        "order_status": order.status,
        "order_placed_at": order.placed_at,
        "estimated_delivery_date": order.estimated_delivery_date,
        "actual_delivery_date": order.actual_delivery_date,
        "delivery_slot": _slot_label(order),
        "payment_mode": order.payment_info.payment_mode_name,
        "payment_status": order.payment_info.payment_status,
        "order_summary": _summary(order),
        "items_count": order.summary.total_items,
    }


def _order_detail(order: Order) -> OrderDetailResponse:
    payment = order.payment_info
    return OrderDetailResponse(
        order_number=order.order_number,
        customer_id=str(order.customer_id),
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        store_code=order.store_code,
        project_code=order.project_code,
        order_status=order.status,
        order_items=[
            {
                "p_code": item.p_code,
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
                "package_size": item.package_size,
                "package_unit": item.package_unit,
                "brand_name": item.brand_name,
                "pcode_img": item.pcode_img,
            }
            for item in order.items
        ],
        delivery_info={
            "delivery_date": order.delivery_info.delivery_date,
            "delivery_slot_id": order.delivery_info.slot_id,
            "delivery_slot_from": order.delivery_info.slot_from,
            "delivery_slot_to": order.delivery_info.slot_to,
            "delivery_address": _address(order),
        },
        payment_info={
            "payment_mode_id": payment.payment_mode_id,
            "payment_mode_name": payment.payment_mode_name,
            "payment_status": payment.payment_status,
            "transaction_id": payment.transaction_id,
            "gateway": payment.gateway,
            "card_last4": payment.card_last4,
            "gateway_payload": json.loads(payment.gateway_payload) if payment.gateway_payload else None,
        },
        order_summary=_summary(order),
        order_notes=order.notes,
        estimated_delivery_date=order.estimated_delivery_date,
        actual_delivery_date=order.actual_delivery_date,
        order_placed_at=order.placed_at,
        order_confirmed_at=order.confirmed_at,
        order_completed_at=order.completed_at,
        last_updated_at=order.last_updated_at,
    )


def _customer_order(order_number: str, principal: Principal) -> Order:
    """Load an order, hiding other customers' orders as not found."""
    order = load_order(order_number)
    if str(order.customer_id) != principal.customer_id:
        raise OrderNotFoundError(order_number)
    return order


def _scope(body) -> dict:
    """Store and project codes from a request body, stripped; blanks are rejected as missing."""
    return require_present(store_code=body.store_code, project_code=body.project_code)


def _history_limit() -> int:
    custom = current_domain.config.get("custom", {}) or {}
    return int(custom.get("ORDER_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.post("/save-cart", response_model=CartResponse)
async def save_cart(body: SaveCartRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    scope = _scope(body)
    command = SaveCart(
        customer_id=principal.customer_id,
        store_code=scope["store_code"],
        project_code=scope["project_code"],
        items=json.dumps([item.model_dump() for item in body.items]),
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(_load_cart(principal.customer_id), principal)


@cart_router.post("/add-item", response_model=CartResponse)
async def add_cart_item(body: AddCartItemRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    command = AddCartItem(
        customer_id=principal.customer_id,
        store_code=body.store_code,
        project_code=body.project_code,
        p_code=body.p_code,
        product_name=body.product_name,
        quantity=body.quantity,
        unit_price=body.unit_price,
        package_size=body.package_size,
        package_unit=body.package_unit,
        brand_name=body.brand_name,
        pcode_img=body.pcode_img,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(_load_cart(principal.customer_id), principal)


@cart_router.post("/get-cart", response_model=CartResponse)
async def get_cart(body: CartScopeRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    _scope(body)
    return _cart_response(_load_cart(principal.customer_id), principal, scope=body)


@cart_router.post("/clear-cart", response_model=CartResponse)
async def clear_cart(body: CartScopeRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    _scope(body)
    current_domain.process(ClearCart(customer_id=principal.customer_id), asynchronous=False)
    return _cart_response(_load_cart(principal.customer_id), principal, scope=body)


@cart_router.post("/validate", response_model=CartValidationResponse)
async def validate_cart(
    body: CartScopeRequest, principal: Principal = Depends(current_principal)
) -> CartValidationResponse:
    _scope(body)
    verdict = CartValidator().validate(_load_cart(principal.customer_id))
    return CartValidationResponse(
        valid=verdict.valid,
        total_items=verdict.total_items,
        valid_items=verdict.valid_items,
        invalid_items=[asdict(item) for item in verdict.invalid_items],
        updated_items=[asdict(item) for item in verdict.updated_items],
        status=verdict.status,
        message=verdict.message,
        summary=verdict.summary,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/place", status_code=201, response_model=OrderPlacedResponse)
async def place(body: PlaceOrderRequest, principal: Principal = Depends(current_principal)) -> OrderPlacedResponse:
    order = place_order(
        customer_id=principal.customer_id,
        customer_name=principal.name,
        customer_email=principal.email,
        store_code=body.store_code,
        project_code=body.project_code,
        cart_validated=body.cart_validated,
        delivery_slot_id=body.delivery_slot_id,
        delivery_date=body.delivery_date,
        address_id=body.address_id,
        payment_mode_id=body.payment_mode_id,
        order_notes=body.order_notes,
        payment_details=json.dumps(body.payment_details) if body.payment_details is not None else None,
    )
    return OrderPlacedResponse(
        order_number=order.order_number,
        order_status=order.status,
        order_placed_at=order.placed_at,
        estimated_delivery_date=order.estimated_delivery_date,
        delivery_slot=_slot_label(order),
        delivery_address=_address(order),
        payment_mode=order.payment_info.payment_mode_name,
        order_summary=_summary(order),
        items_count=order.summary.total_items,
    )


@order_router.get("", response_model=OrderListResponse)
async def my_orders(
    limit: int | None = Query(default=None, ge=1, le=100),
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    orders = current_domain.repository_for(Order).history(principal.customer_id, limit or _history_limit())
    return OrderListResponse(count=len(orders), orders=[_list_entry(order) for order in orders])


@order_router.get("/{order_number}", response_model=OrderDetailResponse)
async def get_order(order_number: str, principal: Principal = Depends(current_principal)) -> OrderDetailResponse:
    return _order_detail(_customer_order(order_number, principal))


# ---------------------------------------------------------------------------
# Admin Order Router
# ---------------------------------------------------------------------------
admin_order_router = APIRouter(
    prefix="/admin/orders",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@admin_order_router.get("", response_model=AdminOrderListResponse)
async def list_orders(
    status: str | None = None,
    payment_status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_HISTORY_LIMIT, ge=1, le=100),
) -> AdminOrderListResponse:
    if status and status not in order_status_values():
        raise InvalidOrderStatusError(status, order_status_values())
    if payment_status and payment_status not in payment_status_values():
        raise InvalidPaymentStatusError(payment_status, payment_status_values())

    orders = current_domain.repository_for(Order).search(status=status, payment_status=payment_status)
    start = (page - 1) * limit
    return AdminOrderListResponse(
        orders=[
            {
                **_list_entry(order),
                "customer_id": str(order.customer_id),
                "customer_name": order.customer_name,
                "store_code": order.store_code,
            }
            for order in orders[start : start + limit]
        ],
        pagination={"page": page, "limit": limit, "total": len(orders), "pages": math.ceil(len(orders) / limit)},
    )


@admin_order_router.post("/bulk-update-status", response_model=BulkUpdateStatusResponse)
async def bulk_update_order_status(body: BulkUpdateStatusRequest) -> BulkUpdateStatusResponse:
    outcome = bulk_update_status(body.order_numbers, body.status)
    return BulkUpdateStatusResponse(
        status=outcome.status,
        requested=len(outcome.updated) + len(outcome.unchanged) + len(outcome.failed),
        updated=outcome.updated,
        unchanged=outcome.unchanged,
        failed=outcome.failed,
    )


@admin_order_router.get("/{order_number}", response_model=OrderDetailResponse)
async def admin_get_order(order_number: str) -> OrderDetailResponse:
    return _order_detail(load_order(order_number))


@admin_order_router.patch("/{order_number}/status", response_model=OrderStatusResponse)
async def update_order_status(order_number: str, body: UpdateOrderStatusRequest) -> OrderStatusResponse:
    current_domain.process(UpdateOrderStatus(order_number=order_number, status=body.status), asynchronous=False)
    order = load_order(order_number)
    return OrderStatusResponse(
        order_number=order.order_number,
        order_status=order.status,
        last_updated_at=order.last_updated_at,
    )


@admin_order_router.patch("/{order_number}/payment-status", response_model=PaymentStatusResponse)
async def update_payment_status(order_number: str, body: UpdatePaymentStatusRequest) -> PaymentStatusResponse:
    command = UpdatePaymentStatus(
        order_number=order_number,
        payment_status=body.payment_status,
        transaction_id=body.transaction_id,
    )
    current_domain.process(command, asynchronous=False)
    order = load_order(order_number)
    return PaymentStatusResponse(
        order_number=order.order_number,
        payment_status=order.payment_info.payment_status,
        transaction_id=order.payment_info.transaction_id,
    )


@admin_order_router.delete("/{order_number}", response_model=StatusResponse)
async def delete_order(order_number: str) -> StatusResponse:
    current_domain.process(DeleteOrder(order_number=order_number), asynchronous=False)
    return StatusResponse(status="deleted")


# ---------------------------------------------------------------------------
# Reference Router
# ---------------------------------------------------------------------------
reference_router = APIRouter(tags=["reference"])


@reference_router.get("/delivery-slots", response_model=list[DeliverySlotSchema])
async def list_delivery_slots(store_code: str | None = None) -> list[DeliverySlotSchema]:
    slots = current_domain.repository_for(DeliverySlot).list_sorted(store_code=store_code, active_only=True)
    return [
        DeliverySlotSchema(
            slot_id=slot.slot_id,
            store_code=slot.store_code,
            delivery_slot_from=slot.delivery_slot_from,
            delivery_slot_to=slot.delivery_slot_to,
            label=slot.label,
            is_active=slot.is_active,
        )
        for slot in slots
    ]


@reference_router.get("/payment-modes", response_model=list[PaymentModeSchema])
async def list_payment_modes(enabled_only: bool = True) -> list[PaymentModeSchema]:
    modes = current_domain.repository_for(PaymentMode).list_sorted(enabled_only=enabled_only)
    return [
        PaymentModeSchema(
            payment_mode_id=mode.payment_mode_id,
            payment_mode_name=mode.payment_mode_name,
            is_enabled=mode.is_enabled,
        )
        for mode in modes
    ]


@reference_router.get("/addresses", response_model=list[AddressBookEntrySchema])
async def list_addresses(principal: Principal = Depends(current_principal)) -> list[AddressBookEntrySchema]:
    entries = current_domain.repository_for(AddressBookEntry).list_sorted(principal.customer_id)
    return [_address_entry(entry) for entry in entries]


def _address_entry(entry: AddressBookEntry) -> AddressBookEntrySchema:
    return AddressBookEntrySchema(id=str(entry.id), is_default=entry.is_default, **entry.as_delivery_address())


@reference_router.post("/addresses", status_code=201, response_model=AddressBookEntrySchema)
async def add_address(
    body: AddAddressRequest, principal: Principal = Depends(current_principal)
) -> AddressBookEntrySchema:
    _scope(body)
    command = AddAddress(
        customer_id=principal.customer_id,
        mobile_number=principal.customer_id,
        **body.model_dump(exclude={"store_code", "project_code"}),
    )
    address_id = current_domain.process(command, asynchronous=False)
    return _address_entry(current_domain.repository_for(AddressBookEntry).get(address_id))


@reference_router.put("/addresses/{address_id}", response_model=AddressBookEntrySchema)
async def update_address(
    address_id: str, body: UpdateAddressRequest, principal: Principal = Depends(current_principal)
) -> AddressBookEntrySchema:
    _scope(body)
    command = UpdateAddress(
        address_id=address_id,
        customer_id=principal.customer_id,
        **body.model_dump(exclude={"store_code", "project_code"}),
    )
    current_domain.process(command, asynchronous=False)
    return _address_entry(current_domain.repository_for(AddressBookEntry).get(address_id))


@reference_router.delete("/addresses/{address_id}", response_model=StatusResponse)
async def delete_address(address_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    current_domain.process(DeleteAddress(address_id=address_id, customer_id=principal.customer_id), asynchronous=False)
    return StatusResponse(status="deleted")
