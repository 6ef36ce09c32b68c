"""Basket valuation: turn a raw basket into a priced view.

Every read re-prices the basket from the live catalogue. Delivery items are
grouped by their delivery date; each date is one delivery slot and costs
as much as the cheapest item in it for the basket's zone.
"""

from dataclasses import dataclass, field

import structlog
from protean.utils.globals import current_domain

from storefront.basket.basket import Basket
from storefront.catalogue.product import DeliveryType, Product
from storefront.exceptions import EnrichmentFailure, PersistenceError
from storefront.shared.pricing import compute_tax, parse_delivery_date_code

logger = structlog.get_logger(__name__)

DELIVERY_TAX_RATE = 25


@dataclass(frozen=True)
class PricedItem:
    product_slug: str
    name: str
    quantity: int
    gross_price: int
    tax_rate: int
    line_price: int
    delivery_type: str
    delivery_date: str = ""

    @property
    def tax(self) -> int:
        return compute_tax(self.line_price, self.tax_rate)


@dataclass(frozen=True)
class DeliveryLine:
    slug: str
    quantity: int
    delivery_cost: int


@dataclass(frozen=True)
class DeliveryGroup:
    code: str
    label: str
    products: tuple[DeliveryLine, ...]
    max_zone: int
    deliverable: bool
    total: int
    tax_rate: int = DELIVERY_TAX_RATE


@dataclass(frozen=True)
class DeliverySummary:
    zone: int
    address: str
    delivery_required: bool
    deliverable: bool
    delivery_total: int
    tax_rate: int = DELIVERY_TAX_RATE
    groups: dict[str, DeliveryGroup] = field(default_factory=dict)


@dataclass(frozen=True)
class BottomLine:
    total_delivery: int
    total_moms: int
    total_price: int


@dataclass(frozen=True)
class Statement:
    bottom_line: BottomLine


@dataclass(frozen=True)
class PricedBasket:
    basket_id: str
    items: tuple[PricedItem, ...]
    delivery: DeliverySummary
    statement: Statement

    @property
    def is_empty(self) -> bool:
        return not self.items


def price_basket(basket_id) -> PricedBasket:
    """Load a basket and price it against the current catalogue.

    Raises ``ObjectNotFoundError`` when the basket does not exist and
    ``EnrichmentFailure`` when any of its products has left the catalogue.
    """
    basket = current_domain.repository_for(Basket).fetch(basket_id)
    products = resolve_products(item.product_slug for item in basket.items)
    return value_basket(basket, products)


def resolve_products(slugs) -> dict[str, Product]:
    """Look up every slug before deciding, so one failure reports them all."""
    repo = current_domain.repository_for(Product)

    found, missing, failures = {}, [], []
    for slug in sorted(set(slugs)):
        try:
            product = repo.find_by_slug(slug)
        except PersistenceError as exc:
            logger.warning("Product lookup failed", slug=slug, error=str(exc))
            failures.append(exc)
            continue

        if product is None:
            missing.append(slug)
        else:
            found[slug] = product

    if failures:
        raise failures[0]
    if missing:
        logger.warning("Basket references products missing from the catalogue", slugs=missing)
        raise EnrichmentFailure(missing)

    return found


def value_basket(basket, products) -> PricedBasket:
    """Price ``basket`` using the ``products`` mapping (slug to product)."""
    items = tuple(_price_item(item, products[item.product_slug]) for item in basket.items)
    delivery = _summarise_delivery(basket, items, products)

    items_total = sum(item.line_price for item in items)
    items_tax = sum(item.tax for item in items)
    delivery_tax = compute_tax(delivery.delivery_total, DELIVERY_TAX_RATE)

    bottom_line = BottomLine(
        total_delivery=delivery.delivery_total,
        total_moms=items_tax + delivery_tax,
        total_price=items_total + delivery.delivery_total,
    )
    return PricedBasket(
        basket_id=str(basket.id),
        items=items,
        delivery=delivery,
        statement=Statement(bottom_line=bottom_line),
    )


def _price_item(item, product) -> PricedItem:
    return PricedItem(
        product_slug=item.product_slug,
        name=product.name,
        quantity=item.quantity,
        gross_price=product.gross_price,
        tax_rate=product.tax_rate,
        line_price=item.quantity * product.gross_price,
        delivery_type=item.delivery_type,
        delivery_date=item.delivery_date or "",
    )


def _summarise_delivery(basket, items, products) -> DeliverySummary:
    zone = basket.zone

    by_date = {}
    for item in items:
        if item.delivery_type != DeliveryType.DELIVERY.value:
            continue
        date = parse_delivery_date_code(item.delivery_date)
        by_date.setdefault((date.year, date.month, date.day), (date, []))[1].append(item)

    groups = {}
    for key in sorted(by_date):
        date, grouped = by_date[key]
        lines = tuple(
            DeliveryLine(
                slug=item.product_slug,
                quantity=item.quantity,
                delivery_cost=products[item.product_slug].delivery_cost_for(zone),
            )
            for item in grouped
        )
        group_products = [products[item.product_slug] for item in grouped]
        groups[date.code] = DeliveryGroup(
            code=date.code,
            label=date.label,
            products=lines,
            max_zone=max(product.max_zone or 0 for product in group_products),
            deliverable=all(product.reaches(zone) for product in group_products),
            total=_cheapest_slot(lines),
        )

    return DeliverySummary(
        zone=zone,
        address=basket.address or "",
        delivery_required=bool(groups),
        deliverable=bool(groups) and all(group.deliverable for group in groups.values()),
        delivery_total=sum(group.total for group in groups.values()),
        groups=groups,
    )


def _cheapest_slot(lines) -> int:
    """Lowest delivery cost in a slot; a zero cost only counts when it comes first."""
    cost = lines[0].delivery_cost
    for line in lines:
        if line.delivery_cost and line.delivery_cost < cost:
            cost = line.delivery_cost
    return cost
