from protean.fields import Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductAdded:
    __version__ = 1

    product_id: Identifier(required=True)
    slug: String(required=True)
    name: String(required=True)
    gross_price: Integer(required=True)
    tax_rate: Integer(required=True)
