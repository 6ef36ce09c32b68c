"""Swish refunds: requesting them, callbacks and polling.

Only paid Swish orders can be refunded, in one or more parts, never more
than the order total. A refund is recorded only after Swish accepts it.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.shared.pricing import to_minor_units

logger = structlog.get_logger(__name__)

REFUND_MESSAGE = "WHISK Refund"


@storefront.command(part_of="Order")
class RecordRefund:
    order_id = Identifier(required=True)
    refund_id = String(required=True, max_length=64)
    amount = Integer(required=True, min_value=1)
    message = String(max_length=50)


@storefront.command(part_of="Order")
class ProcessRefundCallback:
    refund_id = String(required=True, max_length=64)
    payer_payment_reference = Identifier(required=True)
    payment_reference = String(max_length=64)
    original_payment_reference = String(max_length=64)
    amount = Float()
    currency = String(max_length=3)
    status = String(required=True, max_length=20)
    message = String(max_length=100)
    date_created = String(max_length=40)
    date_paid = String(max_length=40)
    error_code = String(max_length=20)
    error_message = String(max_length=300)
    additional_information = String(max_length=300)


@storefront.command_handler(part_of=Order)
class RefundHandler:
    @handle(RecordRefund)
    def record_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_refund(command.refund_id, command.amount, message=command.message)
        repo.add(order)

    @handle(ProcessRefundCallback)
    def process_refund_callback(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.payer_payment_reference)
        order.apply_refund_update(
            command.refund_id,
            status=command.status,
            payment_reference=command.payment_reference,
            original_payment_reference=command.original_payment_reference,
            amount=to_minor_units(command.amount) if command.amount is not None else None,
            currency=command.currency,
            date_created=command.date_created,
            date_paid=command.date_paid,
            error_code=command.error_code,
            error_message=command.error_message,
            additional_information=command.additional_information,
        )
        repo.add(order)


def refund_callback_command(payload: dict) -> ProcessRefundCallback:
    return ProcessRefundCallback(
        refund_id=payload.get("id"),
        payer_payment_reference=payload.get("payerPaymentReference"),
        payment_reference=payload.get("paymentReference"),
        original_payment_reference=payload.get("originalPaymentReference"),
        amount=payload.get("amount"),
        currency=payload.get("currency"),
        status=payload.get("status"),
        message=payload.get("message"),
        date_created=payload.get("dateCreated"),
        date_paid=payload.get("datePaid"),
        error_code=payload.get("errorCode"),
        error_message=payload.get("errorMessage"),
        additional_information=payload.get("additionalInformation"),
    )


def request_refund(order_id, amount: int, gateway) -> Order:
    """Ask Swish to return ``amount`` öre of a paid order.

    Nothing is sent to Swish when the order is missing (``ObjectNotFoundError``)
    or cannot be refunded (``ValidationError``). A refusal from Swish raises
    ``GatewayError`` and leaves the order untouched.
    """
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    payment = order.ensure_refundable(amount)
    if not payment.swish.payment_reference:
        raise ValidationError({"payment": ["Swish has not confirmed a payment reference for this order yet"]})

    refund = gateway.create_refund_request(
        original_reference=payment.swish.payment_reference,
        amount=amount,
        payer_reference=str(order.id),
        message=REFUND_MESSAGE,
    )
    try:
        current_domain.process(
            RecordRefund(order_id=order.id, refund_id=refund.id, amount=amount, message=REFUND_MESSAGE),
            asynchronous=False,
        )
    except ValidationError:
        # Swish is already paying this one out; it has to be reconciled by hand
        logger.error(
            "Swish accepted a refund the order could not record",
            order_id=str(order.id),
            refund_id=refund.id,
            amount=amount,
        )
        raise
    logger.info("Refund requested", order_id=str(order.id), refund_id=refund.id, amount=amount)
    return repo.get(order.id)


def check_refund(refund_id: str, gateway) -> Order:
    """Poll Swish for a refund and store what it reports."""
    payload = gateway.retrieve_refund_request(refund_id)
    current_domain.process(refund_callback_command(payload), asynchronous=False)
    return current_domain.repository_for(Order).get(payload["payerPaymentReference"])


def receive_refund_callback(payload: dict) -> None:
    """Apply a refund callback. Never raises; failures are logged."""
    if not isinstance(payload, dict):
        logger.warning("Refund callback without a Swish refund object", payload_type=type(payload).__name__)
        return

    try:
        current_domain.process(refund_callback_command(payload), asynchronous=False)
    except Exception:
        logger.exception(
            "Refund callback could not be applied",
            refund_id=payload.get("id"),
            order_id=payload.get("payerPaymentReference"),
            refund_status=payload.get("status"),
        )
