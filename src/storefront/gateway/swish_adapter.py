"""Swish merchant API adapter over httpx.

Swish authenticates merchants with a client certificate (mutual TLS), so
the client is built from the certificate, key and CA bundle Swish issued.
Created requests are identified by the last segment of the ``Location``
header Swish returns.
"""

import re
import ssl

import httpx
import structlog

from storefront.exceptions import GatewayError
from storefront.gateway.port import PaymentRequestResult, RefundRequestResult, SwishGateway
from storefront.shared.pricing import format_price

logger = structlog.get_logger(__name__)

PAYMENT_REQUESTS = "/api/v1/paymentrequests"
REFUNDS = "/api/v1/refunds"


def normalise_phone(phone: str) -> str:
    """Swish expects ``46701234567``; customers type ``070-123 45 67``."""
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("00"):
        digits = digits[2:]
    elif digits.startswith("0"):
        digits = "46" + digits[1:]
    return digits


class SwishHttpGateway(SwishGateway):
    def __init__(
        self,
        client: httpx.Client,
        payee_alias: str,
        payment_callback_url: str,
        refund_callback_url: str,
    ) -> None:
        self.client = client
        self.payee_alias = payee_alias
        self.payment_callback_url = payment_callback_url
        self.refund_callback_url = refund_callback_url

    @classmethod
    def from_settings(cls, settings) -> "SwishHttpGateway":
        context = ssl.create_default_context(cafile=settings.swish_ca or None)
        context.load_cert_chain(certfile=settings.swish_cert, keyfile=settings.swish_key)

        client = httpx.Client(base_url=settings.swish_api_url, verify=context, timeout=30.0)
        return cls(
            client=client,
            payee_alias=settings.swish_alias,
            payment_callback_url=settings.payment_callback_url,
            refund_callback_url=settings.refund_callback_url,
        )

    def close(self) -> None:
        self.client.close()

    def create_payment_request(self, phone, amount, reference, message=""):
        response = self._post(
            PAYMENT_REQUESTS,
            {
                "payeePaymentReference": reference,
                "callbackUrl": self.payment_callback_url,
                "payerAlias": normalise_phone(phone),
                "payeeAlias": self.payee_alias,
                "amount": format_price(amount, include_minor_units=True, include_symbol=False),
                "currency": "SEK",
                "message": message or "",
            },
        )
        location = response.headers.get("Location", "")
        return PaymentRequestResult(id=location.rstrip("/").rsplit("/", 1)[-1], location=location)

    def create_refund_request(self, original_reference, amount, payer_reference, message=""):
        response = self._post(
            REFUNDS,
            {
                "originalPaymentReference": original_reference,
                "callbackUrl": self.refund_callback_url,
                "payerPaymentReference": payer_reference,
                "payerAlias": self.payee_alias,
                "amount": format_price(amount, include_minor_units=True, include_symbol=False),
                "currency": "SEK",
                "message": message or "",
            },
        )
        location = response.headers.get("Location", "")
        return RefundRequestResult(id=location.rstrip("/").rsplit("/", 1)[-1], location=location)

    def retrieve_refund_request(self, refund_id):
        response = self._send("GET", f"{REFUNDS}/{refund_id}")
        return response.json()

    def _post(self, path: str, payload: dict) -> httpx.Response:
        response = self._send("POST", path, json=payload)
        if not response.headers.get("Location"):
            raise GatewayError(
                [{"errorCode": "NO_LOCATION", "errorMessage": "Swish did not return a request location"}],
                response.status_code,
            )
        return response

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Swish request failed", method=method, path=path, error=str(exc))
            raise GatewayError([{"errorCode": "NETWORK", "errorMessage": str(exc)}]) from exc

        if response.is_success:
            return response

        errors = _error_list(response)
        logger.warning(
            "Swish rejected request",
            method=method,
            path=path,
            status_code=response.status_code,
            error_code=errors[0].get("errorCode"),
        )
        raise GatewayError(errors, response.status_code)


def _error_list(response: httpx.Response) -> list[dict]:
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, list) and body:
        return body
    if isinstance(body, dict) and "errorCode" in body:
        return [body]
    return [{"errorCode": str(response.status_code), "errorMessage": response.text or response.reason_phrase}]
