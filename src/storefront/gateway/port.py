"""Swish gateway port.

Adapters talk to Swish (or pretend to). Callers only see the request ids
Swish hands back and the plain payloads it reports; rejected requests
raise ``storefront.exceptions.GatewayError``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentRequestResult:
    id: str
    location: str | None = None


@dataclass(frozen=True)
class RefundRequestResult:
    id: str
    location: str | None = None


class SwishGateway(ABC):
    payee_alias: str | None = None

    @abstractmethod
    def create_payment_request(self, phone: str, amount: int, reference: str, message: str = "") -> PaymentRequestResult:
        """Ask the payer's Swish app to pay ``amount`` öre against ``reference``."""
        ...

    @abstractmethod
    def create_refund_request(
        self,
        original_reference: str,
        amount: int,
        payer_reference: str,
        message: str = "",
    ) -> RefundRequestResult:
        """Return ``amount`` öre of the payment identified by ``original_reference``."""
        ...

    @abstractmethod
    def retrieve_refund_request(self, refund_id: str) -> dict:
        """Fetch Swish's current description of a refund (camelCase keys)."""
        ...
