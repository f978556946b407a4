"""Retail domain API package."""

from retail.api.routes import admin_order_router, cart_router, order_router, reference_router

__all__ = ["cart_router", "order_router", "admin_order_router", "reference_router"]
