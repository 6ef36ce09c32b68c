"""Basket aggregate: the customer's raw selection before pricing.

A basket stores only what the customer chose (product, quantity, how and
when it should arrive) plus the delivery zone and address. Prices are never
stored here; see ``storefront.basket.valuation``.
"""

from datetime import UTC, datetime, timedelta

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Integer, String

from storefront.basket.events import BasketCreated, BasketDeliveryUpdated, BasketItemChanged
from storefront.catalogue.product import DeliveryType
from storefront.domain import storefront
from storefront.exceptions import PersistenceError
from storefront.shared.pricing import parse_delivery_date_code

STALE_AFTER = timedelta(days=7)

# Zone of a basket that has not chosen a delivery destination yet
NO_ZONE = -1


@storefront.entity(part_of="Basket")
class BasketItem:
    product_slug = String(required=True, max_length=200)
    quantity = Integer(required=True, min_value=1)
    delivery_type = String(required=True, choices=DeliveryType)
    delivery_date = String(max_length=50, default="")

    def matches(self, product_slug, delivery_type, delivery_date) -> bool:
        return (
            self.product_slug == product_slug
            and self.delivery_type == delivery_type
            and (self.delivery_date or "") == (delivery_date or "")
        )


@storefront.aggregate
class Basket:
    items = HasMany(BasketItem)
    zone = Integer(default=NO_ZONE, min_value=NO_ZONE)
    address = String(max_length=500, default="")
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, basket_id=None):
        now = datetime.now(UTC)
        identity = {"id": basket_id} if basket_id else {}
        basket = cls(zone=NO_ZONE, address="", created_at=now, updated_at=now, **identity)
        basket.raise_(BasketCreated(basket_id=str(basket.id), created_at=now))
        return basket

    def set_item(self, product_slug, quantity, delivery_type, delivery_date=""):
        """Put ``quantity`` of a product in the basket, replacing any earlier line.

        Lines are keyed by product, delivery type and delivery date, so the
        same product can be ordered for two different days. A quantity of 0
        removes the line.
        """
        if delivery_type not in {member.value for member in DeliveryType}:
            raise ValidationError({"delivery_type": [f"Unknown delivery type: {delivery_type}"]})
        if quantity < 0:
            raise ValidationError({"quantity": ["Quantity cannot be negative"]})

        delivery_date = delivery_date or ""
        if delivery_type == DeliveryType.DELIVERY.value and not delivery_date:
            raise ValidationError({"delivery_date": ["Delivery items need a delivery date"]})
        if delivery_date:
            parse_delivery_date_code(delivery_date)

        self._drop_line(product_slug, delivery_type, delivery_date)
        if quantity > 0:
            self.add_items(
                BasketItem(
                    product_slug=product_slug,
                    quantity=quantity,
                    delivery_type=delivery_type,
                    delivery_date=delivery_date,
                )
            )

        self.updated_at = datetime.now(UTC)
        self.raise_(
            BasketItemChanged(
                basket_id=str(self.id),
                product_slug=product_slug,
                delivery_type=delivery_type,
                delivery_date=delivery_date,
                quantity=quantity,
            )
        )

    def remove_item(self, product_slug, delivery_type, delivery_date=""):
        """Drop a line. Removing a line that is not there is a no-op."""
        if not self._drop_line(product_slug, delivery_type, delivery_date or ""):
            return

        self.updated_at = datetime.now(UTC)
        self.raise_(
            BasketItemChanged(
                basket_id=str(self.id),
                product_slug=product_slug,
                delivery_type=delivery_type,
                delivery_date=delivery_date or "",
                quantity=0,
            )
        )

    def update_delivery(self, zone, address=""):
        if zone < NO_ZONE:
            raise ValidationError({"zone": ["Zone must be -1 (unset) or a delivery zone"]})

        self.zone = zone
        self.address = address or ""
        self.updated_at = datetime.now(UTC)
        self.raise_(BasketDeliveryUpdated(basket_id=str(self.id), zone=zone, address=self.address))

    def is_stale(self, now=None) -> bool:
        now = now or datetime.now(UTC)
        return self.created_at is not None and now - self.created_at > STALE_AFTER

    def _drop_line(self, product_slug, delivery_type, delivery_date) -> bool:
        existing = [item for item in self.items if item.matches(product_slug, delivery_type, delivery_date)]
        for item in existing:
            self.remove_items(item)
        return bool(existing)


@storefront.repository(part_of=Basket)
class BasketRepository:
    def fetch(self, basket_id) -> Basket:
        """Load a basket, keeping "missing" distinct from storage failures."""
        try:
            return self.get(basket_id)
        except (ObjectNotFoundError, ValidationError):
            raise
        except Exception as exc:
            raise PersistenceError(f"Basket {basket_id} could not be loaded") from exc

    def created_before(self, cutoff: datetime) -> list[Basket]:
        return self._dao.query.filter(created_at__lt=cutoff).all().items
