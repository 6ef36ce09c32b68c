"""Adding, changing and removing basket lines."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.basket.basket import Basket
from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Basket")
class UpdateBasketItem:
    basket_id = Identifier(required=True)
    product_slug = String(required=True, max_length=200)
    quantity = Integer(required=True, min_value=0)
    delivery_type = String(required=True, max_length=20)
    delivery_date = String(max_length=50)


@storefront.command(part_of="Basket")
class RemoveBasketItem:
    basket_id = Identifier(required=True)
    product_slug = String(required=True, max_length=200)
    delivery_type = String(required=True, max_length=20)
    delivery_date = String(max_length=50)


@storefront.command_handler(part_of=Basket)
class BasketItemsHandler:
    @handle(UpdateBasketItem)
    def update_item(self, command):
        if command.quantity > 0:
            product = current_domain.repository_for(Product).find_by_slug(command.product_slug)
            if product is None or not product.available:
                raise ValidationError({"product_slug": [f"Product '{command.product_slug}' is not available"]})
            if command.delivery_type not in product.methods:
                raise ValidationError(
                    {"delivery_type": [f"'{command.product_slug}' cannot be sent by {command.delivery_type}"]}
                )

        repo = current_domain.repository_for(Basket)
        basket = repo.get(command.basket_id)
        basket.set_item(
            command.product_slug,
            command.quantity,
            command.delivery_type,
            command.delivery_date,
        )
        repo.add(basket)

    @handle(RemoveBasketItem)
    def remove_item(self, command):
        repo = current_domain.repository_for(Basket)
        basket = repo.get(command.basket_id)
        basket.remove_item(command.product_slug, command.delivery_type, command.delivery_date)
        repo.add(basket)
