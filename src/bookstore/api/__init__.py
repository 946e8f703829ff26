from bookstore.api.routes import inventory_router, order_router

__all__ = ["order_router", "inventory_router"]
