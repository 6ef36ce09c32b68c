"""Storefront bounded context: products, baskets, orders and payments.

A single domain backs the shop. Baskets are valued on read, orders carry
a snapshot of that valuation, and payment state is driven by Swish
webhooks and explicit gateway polling.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
