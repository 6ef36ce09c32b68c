"""Domain events for the Basket aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Basket")
class BasketCreated:
    __version__ = 1

    basket_id = Identifier(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="Basket")
class BasketItemChanged:
    """A basket line was set to a new quantity (0 when it was removed)."""

    __version__ = 1

    basket_id = Identifier(required=True)
    product_slug = String(required=True)
    delivery_type = String(required=True)
    delivery_date = String()
    quantity = Integer(required=True)


@storefront.event(part_of="Basket")
class BasketDeliveryUpdated:
    __version__ = 1

    basket_id = Identifier(required=True)
    zone = Integer(required=True)
    address = String()
