"""Procurement API package."""

from procurement.api.routes import catalog_router, delivery_router, order_router

__all__ = ["order_router", "delivery_router", "catalog_router"]
