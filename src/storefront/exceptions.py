"""Storefront errors that are not domain validation failures.

Missing records surface as ``protean.exceptions.ObjectNotFoundError`` and
bad input as ``protean.exceptions.ValidationError``. The errors below cover
infrastructure and data-integrity failures.
"""


class StorefrontError(Exception):
    """Base class for storefront infrastructure errors."""


class PersistenceError(StorefrontError):
    """The backing store failed for a reason other than a missing record."""


class EnrichmentFailure(StorefrontError):
    """Basket items reference products that no longer exist."""

    def __init__(self, missing_slugs):
        self.missing_slugs = sorted(set(missing_slugs))
        super().__init__(f"Unknown products in basket: {', '.join(self.missing_slugs)}")


class GatewayError(StorefrontError):
    """The payment gateway rejected a request.

    ``errors`` holds the gateway's error objects, each with at least an
    ``errorCode`` and ``errorMessage``.
    """

    def __init__(self, errors, status_code=None):
        self.errors = list(errors) or [{"errorCode": "UNKNOWN", "errorMessage": "Gateway request failed"}]
        self.status_code = status_code
        super().__init__(self.first.get("errorMessage") or self.first.get("errorCode"))

    @property
    def first(self) -> dict:
        return self.errors[0]
