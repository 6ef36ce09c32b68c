"""Payment variants of an order.

An order is paid either through a payment link sent by the shop or through
Swish. Code that depends on the method matches on these classes instead of
comparing method strings.
"""

from dataclasses import dataclass, field
from enum import Enum


class PaymentMethod(Enum):
    SWISH = "swish"
    PAYMENT_LINK = "paymentLink"


@dataclass(frozen=True)
class PaymentLinkPayment:
    status: str
    confirmation_email_sent: bool = False

    method = PaymentMethod.PAYMENT_LINK.value


@dataclass(frozen=True)
class SwishPayment:
    status: str
    confirmation_email_sent: bool = False
    swish: object = None
    refunds: tuple = field(default_factory=tuple)

    method = PaymentMethod.SWISH.value

    @property
    def refunded(self) -> int:
        """Öre refunded or on its way back; failed refunds do not count."""
        return sum(refund.amount or 0 for refund in self.refunds if refund.status != "ERROR")
