"""Catalogue administration: adding products."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Product")
class AddProduct:
    slug: String(required=True, max_length=200)
    name: String(required=True, max_length=255)
    brand: String(max_length=100)
    category: String(max_length=100)
    description: Text()
    gross_price: Integer(required=True, min_value=0)
    tax_rate: Integer(required=True, min_value=0, max_value=100)
    available: Boolean(default=True)
    delivery_methods: Text()
    delivery_costs: Text()
    max_zone: Integer(default=0)


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(AddProduct)
    def add_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.find_by_slug(command.slug) is not None:
            raise ValidationError({"slug": [f"A product with slug '{command.slug}' already exists"]})

        product = Product.create(
            slug=command.slug,
            name=command.name,
            brand=command.brand,
            category=command.category,
            description=command.description,
            gross_price=command.gross_price,
            tax_rate=command.tax_rate,
            available=command.available,
            delivery_methods=json.loads(command.delivery_methods) if command.delivery_methods else [],
            delivery_costs=json.loads(command.delivery_costs) if command.delivery_costs else {},
            max_zone=command.max_zone or 0,
        )
        repo.add(product)
        return str(product.id)
