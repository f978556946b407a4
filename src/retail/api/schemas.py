"""Pydantic request/response schemas for the Retail API.

These are external contracts, kept separate from the internal Protean commands.
Request fields the commands require are optional here so that a missing field
is reported by the command as a 400 naming the field.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    p_code: str
    product_name: str | None = None
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    package_size: float | None = None
    package_unit: str | None = None
    brand_name: str | None = None
    pcode_img: str | None = None
    store_code: str | None = None


class CartLineResponse(CartItemSchema):
    total_price: float


class DeliveryAddressSchema(BaseModel):
    full_name: str
    mobile_number: str
    email_id: str
    line_1: str
    line_2: str | None = None
    city: str
    pincode: str
    latitude: str | None = None
    longitude: str | None = None
    area_id: str | None = None


class OrderSummarySchema(BaseModel):
    subtotal: float
    delivery_charges: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    total_items: int
    total_quantity: int


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CartScopeRequest(BaseModel):
    """Both codes are required by the cart routes; blank values count as missing."""

    store_code: str | None = None
    project_code: str | None = None


class SaveCartRequest(BaseModel):
    store_code: str | None = None
    project_code: str | None = None
    items: list[CartItemSchema] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "store_code": "AVB",
                    "project_code": "PRJ01",
                    "items": [{"p_code": "2390", "product_name": "Toor Dal 1kg", "quantity": 2, "unit_price": 18}],
                }
            ]
        }
    }


class AddCartItemRequest(CartItemSchema):
    project_code: str | None = None


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class CartResponse(BaseModel):
    customer_id: str
    store_code: str | None = None
    project_code: str | None = None
    items: list[CartLineResponse] = Field(default_factory=list)
    subtotal: float = 0.0
    total_items: int = 0
    total_quantity: int = 0
    last_updated: datetime | None = None


class InvalidItemSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: int
    p_code: str
    product_name: str | None = None
    reason: str
    message: str
    requested_quantity: int | None = Field(default=None, alias="requestedQuantity")
    available_quantity: int | None = Field(default=None, alias="availableQuantity")
    max_allowed: int | None = Field(default=None, alias="maxAllowed")
    current_price: float | None = Field(default=None, alias="currentPrice")


class PriceChangeSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: int
    p_code: str
    old_price: float = Field(alias="oldPrice")
    new_price: float = Field(alias="newPrice")
    difference: float
    percentage_change: float | None = Field(default=None, alias="percentageChange")
    new_total_price: float = Field(alias="newTotalPrice")
    message: str


class ValidationSummarySchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_price_changes: bool = Field(alias="hasPriceChanges")
    has_stock_issues: bool = Field(alias="hasStockIssues")
    has_out_of_stock: bool = Field(alias="hasOutOfStock")
    requires_action: bool = Field(alias="requiresAction")


class CartValidationResponse(BaseModel):
    """Verdict for a cart; field names follow the storefront's camelCase contract."""

    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    total_items: int = Field(alias="totalItems")
    valid_items: int = Field(alias="validItems")
    invalid_items: list[InvalidItemSchema] = Field(alias="invalidItems")
    updated_items: list[PriceChangeSchema] = Field(alias="updatedItems")
    status: str
    message: str
    summary: ValidationSummarySchema


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    store_code: str | None = None
    project_code: str | None = None
    cart_validated: bool = False
    delivery_slot_id: int | None = None
    delivery_date: str | None = None
    address_id: str | None = None
    payment_mode_id: int | None = None
    order_notes: str | None = None
    payment_details: dict[str, Any] | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "store_code": "AVB",
                    "project_code": "PRJ01",
                    "cart_validated": True,
                    "delivery_slot_id": 1,
                    "delivery_date": "2026-10-20",
                    "address_id": "addr-001",
                    "payment_mode_id": 1,
                    "order_notes": "Leave at the door",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str
    transaction_id: str | None = None


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderPlacedResponse(BaseModel):
    order_number: str
    order_status: str
    order_placed_at: datetime
    estimated_delivery_date: date | None = None
    delivery_slot: str
    delivery_address: DeliveryAddressSchema
    payment_mode: str
    order_summary: OrderSummarySchema
    items_count: int


class OrderListEntry(BaseModel):
    order_number: str
    order_status: str
    order_placed_at: datetime
    estimated_delivery_date: date | None = None
    actual_delivery_date: date | None = None
    delivery_slot: str
    payment_mode: str
    payment_status: str
    order_summary: OrderSummarySchema
    items_count: int


class OrderListResponse(BaseModel):
    count: int
    orders: list[OrderListEntry]


class OrderItemResponse(BaseModel):
    p_code: str
    product_name: str
    quantity: int
    unit_price: float
    total_price: float
    package_size: float | None = None
    package_unit: str | None = None
    brand_name: str | None = None
    pcode_img: str | None = None


class DeliveryInfoSchema(BaseModel):
    delivery_date: date
    delivery_slot_id: int
    delivery_slot_from: str
    delivery_slot_to: str
    delivery_address: DeliveryAddressSchema


class PaymentInfoSchema(BaseModel):
    payment_mode_id: int
    payment_mode_name: str
    payment_status: str
    transaction_id: str | None = None
    gateway: str | None = None
    card_last4: str | None = None
    gateway_payload: dict[str, Any] | None = None


class OrderDetailResponse(BaseModel):
    order_number: str
    customer_id: str
    customer_name: str | None = None
    customer_email: str | None = None
    store_code: str
    project_code: str | None = None
    order_status: str
    order_items: list[OrderItemResponse]
    delivery_info: DeliveryInfoSchema
    payment_info: PaymentInfoSchema
    order_summary: OrderSummarySchema
    order_notes: str | None = None
    estimated_delivery_date: date | None = None
    actual_delivery_date: date | None = None
    order_placed_at: datetime
    order_confirmed_at: datetime | None = None
    order_completed_at: datetime | None = None
    last_updated_at: datetime | None = None


class OrderStatusResponse(BaseModel):
    order_number: str
    order_status: str
    last_updated_at: datetime | None = None


class PaymentStatusResponse(BaseModel):
    order_number: str
    payment_status: str
    transaction_id: str | None = None


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Admin Order Schemas
# ---------------------------------------------------------------------------
class AdminOrderListEntry(OrderListEntry):
    customer_id: str
    customer_name: str | None = None
    store_code: str


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class AdminOrderListResponse(BaseModel):
    orders: list[AdminOrderListEntry]
    pagination: PaginationSchema


class BulkUpdateStatusRequest(BaseModel):
    order_numbers: list[str] = Field(default_factory=list)
    status: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [{"order_numbers": ["ORD2610190001", "ORD2610190002"], "status": "confirmed"}]
        }
    }


class BulkStatusFailure(BaseModel):
    order_number: str
    reason: str
    message: str


class BulkUpdateStatusResponse(BaseModel):
    status: str
    requested: int
    updated: list[str]
    unchanged: list[str]
    failed: list[BulkStatusFailure]


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------
class DeliverySlotSchema(BaseModel):
    slot_id: int
    store_code: str
    delivery_slot_from: str
    delivery_slot_to: str
    label: str
    is_active: bool


class PaymentModeSchema(BaseModel):
    payment_mode_id: int
    payment_mode_name: str
    is_enabled: bool


class AddressBookEntrySchema(DeliveryAddressSchema):
    id: str
    is_default: bool = False


class AddAddressRequest(BaseModel):
    store_code: str | None = None
    project_code: str | None = None
    full_name: str | None = None
    email_id: str | None = None
    line_1: str | None = None
    line_2: str | None = None
    city: str | None = None
    pincode: str | None = None
    latitude: str | None = None
    longitude: str | None = None
    area_id: str | None = None
    is_default: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "store_code": "AVB",
                    "project_code": "PRJ01",
                    "full_name": "Asha Rao",
                    "email_id": "asha.rao@example.com",
                    "line_1": "12 MG Road",
                    "city": "Bengaluru",
                    "pincode": "560001",
                    "is_default": True,
                }
            ]
        }
    }


class UpdateAddressRequest(AddAddressRequest):
    """Fields left out keep their stored value."""

    is_default: bool | None = None
