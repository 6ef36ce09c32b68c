"""Swish payment callbacks.

Swish retries a callback until it gets a 2xx, so callbacks may arrive more
than once and out of order. They are matched to an order by
``payeePaymentReference`` (the order id) and never create anything.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, SwishRecord
from storefront.shared.pricing import to_minor_units

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class ProcessPaymentCallback:
    swish_id = String(required=True, max_length=64)
    payee_payment_reference = Identifier(required=True)
    payment_reference = String(max_length=64)
    payer_alias = String(max_length=30)
    payee_alias = String(max_length=30)
    amount = Float()
    currency = String(max_length=3)
    message = String(max_length=100)
    status = String(required=True, max_length=20)
    date_created = String(max_length=40)
    date_paid = String(max_length=40)
    error_code = String(max_length=20)
    error_message = String(max_length=300)


@storefront.command_handler(part_of=Order)
class PaymentCallbackHandler:
    @handle(ProcessPaymentCallback)
    def process_payment_callback(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.payee_payment_reference)

        record = SwishRecord(
            swish_id=command.swish_id,
            payee_payment_reference=str(command.payee_payment_reference),
            payment_reference=command.payment_reference,
            payer_alias=command.payer_alias,
            payee_alias=command.payee_alias,
            amount=to_minor_units(command.amount) if command.amount is not None else None,
            currency=command.currency or "SEK",
            message=command.message,
            status=command.status,
            date_created=command.date_created,
            date_paid=command.date_paid,
            error_code=command.error_code,
            error_message=command.error_message,
        )
        changed = order.apply_payment_update(record)
        repo.add(order)

        if not changed:
            logger.info(
                "Payment callback left order status unchanged",
                order_id=str(order.id),
                order_status=order.status,
                swish_status=command.status,
            )
        return changed


def payment_callback_command(payload: dict) -> ProcessPaymentCallback:
    return ProcessPaymentCallback(
        swish_id=payload.get("id"),
        payee_payment_reference=payload.get("payeePaymentReference"),
        payment_reference=payload.get("paymentReference"),
        payer_alias=payload.get("payerAlias"),
        payee_alias=payload.get("payeeAlias"),
        amount=payload.get("amount"),
        currency=payload.get("currency"),
        message=payload.get("message"),
        status=payload.get("status"),
        date_created=payload.get("dateCreated"),
        date_paid=payload.get("datePaid"),
        error_code=payload.get("errorCode"),
        error_message=payload.get("errorMessage"),
    )


def receive_payment_callback(payload: dict) -> bool:
    """Apply a payment callback and report whether the order status moved.

    Never raises: Swish gets its acknowledgement whatever happens here, and
    failures are logged instead.
    """
    if not isinstance(payload, dict):
        logger.warning("Payment callback without a Swish payment object", payload_type=type(payload).__name__)
        return False

    try:
        return current_domain.process(payment_callback_command(payload), asynchronous=False)
    except Exception:
        logger.exception(
            "Payment callback could not be applied",
            swish_id=payload.get("id"),
            order_id=payload.get("payeePaymentReference"),
            swish_status=payload.get("status"),
        )
        return False
