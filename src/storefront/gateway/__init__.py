"""Swish gateway adapters.

``build_gateway`` picks the adapter once at startup: the real Swish client
when merchant credentials are configured, otherwise the in-process fake.
The result is handed explicitly to the services that need it.
"""

from storefront.gateway.fake_adapter import FakeSwishGateway
from storefront.gateway.port import PaymentRequestResult, RefundRequestResult, SwishGateway


def build_gateway(settings) -> SwishGateway:
    if settings.swish_configured:
        from storefront.gateway.swish_adapter import SwishHttpGateway

        return SwishHttpGateway.from_settings(settings)
    return FakeSwishGateway(payee_alias=settings.swish_alias or "1231181189")


__all__ = [
    "FakeSwishGateway",
    "PaymentRequestResult",
    "RefundRequestResult",
    "SwishGateway",
    "build_gateway",
]
