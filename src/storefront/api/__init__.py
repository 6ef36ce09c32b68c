from storefront.api.errors import register_error_handlers
from storefront.api.routes import admin_router, basket_router, order_router, product_router

routers = [product_router, basket_router, order_router, admin_router]

__all__ = ["admin_router", "basket_router", "order_router", "product_router", "register_error_handlers", "routers"]
