"""In-process Swish stand-in for development and tests.

Requests succeed unless the gateway is configured to fail, in which case
they raise ``GatewayError`` with the configured Swish-style error list.
Every call is recorded on ``calls``.
"""

from datetime import UTC, datetime
from uuid import uuid4

from storefront.exceptions import GatewayError
from storefront.gateway.port import PaymentRequestResult, RefundRequestResult, SwishGateway
from storefront.shared.pricing import format_price

DEFAULT_ERRORS = [{"errorCode": "RP06", "errorMessage": "A payment request already exists for that payer"}]


class FakeSwishGateway(SwishGateway):
    def __init__(self, payee_alias: str = "1231181189") -> None:
        self.payee_alias = payee_alias
        self.should_succeed: bool = True
        self.errors: list[dict] = list(DEFAULT_ERRORS)
        self.calls: list[dict] = []
        self.refunds: dict[str, dict] = {}

    def configure(self, should_succeed: bool, errors: list[dict] | None = None) -> None:
        self.should_succeed = should_succeed
        self.errors = list(errors) if errors else list(DEFAULT_ERRORS)

    def reset(self) -> None:
        self.should_succeed = True
        self.errors = list(DEFAULT_ERRORS)
        self.calls = []
        self.refunds = {}

    def create_payment_request(self, phone, amount, reference, message=""):
        self.calls.append(
            {
                "method": "create_payment_request",
                "phone": phone,
                "amount": amount,
                "reference": reference,
                "message": message,
            }
        )
        self._fail_if_configured()

        swish_id = uuid4().hex.upper()
        return PaymentRequestResult(id=swish_id, location=f"fake://paymentrequests/{swish_id}")

    def create_refund_request(self, original_reference, amount, payer_reference, message=""):
        self.calls.append(
            {
                "method": "create_refund_request",
                "original_reference": original_reference,
                "amount": amount,
                "payer_reference": payer_reference,
                "message": message,
            }
        )
        self._fail_if_configured()

        refund_id = uuid4().hex.upper()
        self.refunds[refund_id] = {
            "id": refund_id,
            "payerPaymentReference": payer_reference,
            "originalPaymentReference": original_reference,
            "paymentReference": None,
            "payerAlias": self.payee_alias,
            "amount": format_price(amount, include_minor_units=True, include_symbol=False),
            "currency": "SEK",
            "message": message,
            "status": "CREATED",
            "dateCreated": datetime.now(UTC).isoformat(),
            "datePaid": None,
        }
        return RefundRequestResult(id=refund_id, location=f"fake://refunds/{refund_id}")

    def retrieve_refund_request(self, refund_id):
        self.calls.append({"method": "retrieve_refund_request", "refund_id": refund_id})
        if refund_id not in self.refunds:
            raise GatewayError([{"errorCode": "RF01", "errorMessage": f"Refund {refund_id} not found"}], 404)
        return dict(self.refunds[refund_id])

    def settle_refund(self, refund_id: str, status: str = "PAID") -> dict:
        """Move a recorded refund on, as Swish would after the bank confirms it."""
        refund = self.refunds[refund_id]
        refund["status"] = status
        if status == "PAID":
            refund["paymentReference"] = uuid4().hex.upper()
            refund["datePaid"] = datetime.now(UTC).isoformat()
        return dict(refund)

    def _fail_if_configured(self) -> None:
        if not self.should_succeed:
            raise GatewayError(self.errors, 422)
