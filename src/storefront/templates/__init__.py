from storefront.templates.order_confirmation import OrderConfirmationTemplate

__all__ = ["OrderConfirmationTemplate"]
