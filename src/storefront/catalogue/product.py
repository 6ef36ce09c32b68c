"""Product aggregate: the catalogue facts a basket is priced from."""

import json
from datetime import datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from storefront.domain import storefront
from storefront.exceptions import PersistenceError


class DeliveryType(Enum):
    DELIVERY = "delivery"
    COLLECTION = "collection"
    EMAIL = "email"


@storefront.aggregate
class Product:
    """A sellable product.

    ``gross_price`` is tax-inclusive and in öre. ``delivery_costs`` is a JSON
    object mapping a zone number to the öre cost of delivering there;
    ``max_zone`` is the furthest zone the product can be delivered to.
    """

    slug: String(required=True, max_length=200, unique=True)
    name: String(required=True, max_length=255)
    brand: String(max_length=100)
    category: String(max_length=100)
    description: Text()
    gross_price: Integer(required=True, min_value=0)
    tax_rate: Integer(required=True, min_value=0, max_value=100)
    available: Boolean(default=True)
    delivery_methods: Text(default="[]")
    delivery_costs: Text(default="{}")
    max_zone: Integer(default=0, min_value=0)
    created_at: DateTime(default=datetime.now)

    @invariant.post
    def delivery_methods_must_be_known(self):
        known = {member.value for member in DeliveryType}
        unknown = [method for method in self.methods if method not in known]
        if unknown:
            raise ValidationError({"delivery_methods": [f"Unknown delivery methods: {', '.join(unknown)}"]})

    @invariant.post
    def delivery_costs_must_be_zone_prices(self):
        try:
            costs = json.loads(self.delivery_costs or "{}")
        except (json.JSONDecodeError, TypeError):
            raise ValidationError({"delivery_costs": ["Delivery costs must be valid JSON"]}) from None

        if not isinstance(costs, dict):
            raise ValidationError({"delivery_costs": ["Delivery costs must map zones to prices"]})

        for zone, price in costs.items():
            if not str(zone).isdigit() or not isinstance(price, int) or price < 0:
                raise ValidationError({"delivery_costs": [f"Invalid delivery cost for zone {zone!r}"]})

    @property
    def methods(self) -> list[str]:
        return json.loads(self.delivery_methods or "[]")

    def delivery_cost_for(self, zone: int) -> int:
        """Cost of delivering to ``zone``, 0 when the product has no price for it."""
        return json.loads(self.delivery_costs or "{}").get(str(zone), 0)

    def reaches(self, zone: int) -> bool:
        return (self.max_zone or 0) >= zone

    @classmethod
    def create(
        cls,
        slug,
        name,
        gross_price,
        tax_rate,
        delivery_methods=None,
        delivery_costs=None,
        max_zone=0,
        brand=None,
        category=None,
        description=None,
        available=True,
    ):
        from storefront.catalogue.events import ProductAdded

        product = cls(
            slug=slug,
            name=name,
            brand=brand,
            category=category,
            description=description,
            gross_price=gross_price,
            tax_rate=tax_rate,
            available=available,
            delivery_methods=json.dumps(list(delivery_methods or [])),
            delivery_costs=json.dumps({str(zone): price for zone, price in (delivery_costs or {}).items()}),
            max_zone=max_zone,
        )
        product.raise_(
            ProductAdded(
                product_id=product.id,
                slug=slug,
                name=name,
                gross_price=gross_price,
                tax_rate=tax_rate,
            )
        )
        return product


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_by_slug(self, slug: str) -> Product | None:
        try:
            return self._dao.query.filter(slug=slug).all().first
        except (ObjectNotFoundError, ValidationError):
            raise
        except Exception as exc:
            raise PersistenceError(f"Product lookup failed for {slug!r}") from exc

    def list_available(self) -> list[Product]:
        products = self._dao.query.filter(available=True).all().items
        return sorted(products, key=lambda product: product.name)
