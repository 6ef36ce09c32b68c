"""Turn a priced basket and a checkout form into an order.

Pure: no catalogue lookups, no persistence. Every price on the order is
copied from the basket valuation it was given.
"""

import json
from dataclasses import dataclass

from protean.exceptions import ValidationError

from storefront.basket.basket import NO_ZONE
from storefront.basket.valuation import PricedBasket
from storefront.order.order import CustomerDetails, Order, OrderDelivery, OrderItem, OrderTotals
from storefront.order.payment import PaymentMethod


@dataclass(frozen=True)
class CheckoutForm:
    name: str
    email: str
    payment_method: str
    telephone: str = ""
    address: str = ""
    notes: str = ""


def assemble_order(form: CheckoutForm, basket: PricedBasket) -> Order:
    _check(form, basket)

    bottom_line = basket.statement.bottom_line
    return Order.create(
        details=CustomerDetails(
            name=form.name,
            email=form.email,
            telephone=form.telephone or None,
            address=form.address or basket.delivery.address or None,
            notes=form.notes or None,
        ),
        items=[
            OrderItem(
                product_slug=item.product_slug,
                name=item.name,
                quantity=item.quantity,
                gross_price=item.gross_price,
                tax_rate=item.tax_rate,
                line_price=item.line_price,
                delivery_type=item.delivery_type,
                delivery_date=item.delivery_date or None,
            )
            for item in basket.items
        ],
        deliveries=[
            OrderDelivery(
                date_code=group.code,
                label=group.label,
                max_zone=group.max_zone,
                deliverable=group.deliverable,
                total=group.total,
                tax_rate=group.tax_rate,
                products=json.dumps(
                    [
                        {"slug": line.slug, "quantity": line.quantity, "delivery_cost": line.delivery_cost}
                        for line in group.products
                    ]
                ),
            )
            for group in basket.delivery.groups.values()
        ],
        totals=OrderTotals(
            total_delivery=bottom_line.total_delivery,
            total_moms=bottom_line.total_moms,
            total_price=bottom_line.total_price,
        ),
        payment_method=form.payment_method,
        delivery_zone=basket.delivery.zone,
        basket_id=basket.basket_id,
    )


def _check(form: CheckoutForm, basket: PricedBasket) -> None:
    errors = {}

    if form.payment_method not in {method.value for method in PaymentMethod}:
        errors["payment_method"] = [f"Unknown payment method: {form.payment_method}"]
    elif form.payment_method == PaymentMethod.SWISH.value and not form.telephone:
        errors["telephone"] = ["Swish payments need a telephone number"]

    if not form.name:
        errors["name"] = ["Name is required"]
    if not form.email:
        errors["email"] = ["Email is required"]

    if basket.is_empty:
        errors["basket"] = ["Cannot check out an empty basket"]
    elif basket.delivery.delivery_required:
        if basket.delivery.zone == NO_ZONE:
            errors["zone"] = ["Choose a delivery zone before checking out"]
        elif not basket.delivery.deliverable:
            undeliverable = [code for code, group in basket.delivery.groups.items() if not group.deliverable]
            errors["delivery"] = [f"Cannot deliver to zone {basket.delivery.zone} on {', '.join(undeliverable)}"]

    if errors:
        raise ValidationError(errors)
