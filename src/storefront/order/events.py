"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """The order left NOT_ORDERED and is now known to the shop."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_method = String(required=True)
    status = String(required=True)
    customer_email = String()
    total_price = Integer(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    swish_id = String()
    amount = Integer()
    date_paid = String()


@storefront.event(part_of="Order")
class OrderPaymentStatusChanged:
    """Swish reported a payment outcome other than PAID."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    swish_id = String()
    error_code = String()
    error_message = String()


@storefront.event(part_of="Order")
class OrderStatusOverridden:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)


@storefront.event(part_of="Order")
class RefundRequested:
    __version__ = 1

    order_id = Identifier(required=True)
    refund_id = String(required=True)
    amount = Integer(required=True)


@storefront.event(part_of="Order")
class RefundUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    refund_id = String(required=True)
    status = String(required=True)
