"""Checkout: turn a basket into an order and, for Swish, ask for payment.

The Swish call happens between two commands so no unit of work is held
open while the gateway answers. If Swish refuses the request the
just-created order is discarded again.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.basket.management import DeleteBasket
from storefront.basket.valuation import price_basket
from storefront.domain import storefront
from storefront.exceptions import GatewayError
from storefront.order.assembly import CheckoutForm, assemble_order
from storefront.order.order import Order, OrderStatus
from storefront.order.payment import PaymentLinkPayment, SwishPayment

logger = structlog.get_logger(__name__)

PAYMENT_MESSAGE = "WHISK Order"


@storefront.command(part_of="Order")
class PlaceOrder:
    basket_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    email = String(required=True, max_length=254)
    telephone = String(max_length=30)
    address = String(max_length=500)
    notes = Text()
    payment_method = String(required=True, max_length=20)


@storefront.command(part_of="Order")
class RecordPaymentRequest:
    order_id = Identifier(required=True)
    swish_id = String(required=True, max_length=64)
    amount = Integer(required=True)
    message = String(max_length=50)
    payee_alias = String(max_length=30)


@storefront.command(part_of="Order")
class DiscardOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=300)


@storefront.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        basket = price_basket(command.basket_id)
        form = CheckoutForm(
            name=command.name,
            email=command.email,
            telephone=command.telephone or "",
            address=command.address or "",
            notes=command.notes or "",
            payment_method=command.payment_method,
        )
        order = assemble_order(form, basket)

        match order.payment:
            case PaymentLinkPayment():
                order.place()
            case SwishPayment():
                pass  # stays NOT_ORDERED until Swish accepts the request

        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order assembled from basket",
            order_id=str(order.id),
            basket_id=str(command.basket_id),
            payment_method=order.payment_method,
            total_price=order.totals.total_price,
        )
        return str(order.id)

    @handle(RecordPaymentRequest)
    def record_payment_request(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_request(
            command.swish_id,
            command.amount,
            message=command.message,
            payee_alias=command.payee_alias,
        )
        repo.add(order)

    @handle(DiscardOrder)
    def discard_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.status != OrderStatus.NOT_ORDERED.value:
            raise ValidationError({"status": [f"Only unplaced orders can be discarded, order is {order.status}"]})

        repo._dao.delete(order)
        logger.info("Order discarded", order_id=str(command.order_id), reason=command.reason)


@dataclass(frozen=True)
class CheckoutResult:
    status: str
    payment_method: str
    order_id: str | None = None
    swish_id: str | None = None
    error: dict | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def checkout(basket_id, form: CheckoutForm, gateway) -> CheckoutResult:
    """Place an order for ``basket_id`` and start its payment.

    Validation problems raise ``ValidationError``. A refused Swish request is
    not an exception: the order is removed and the result carries Swish's
    first error with status ``ERROR``.
    """
    order_id = current_domain.process(
        PlaceOrder(
            basket_id=basket_id,
            name=form.name,
            email=form.email,
            telephone=form.telephone or None,
            address=form.address or None,
            notes=form.notes or None,
            payment_method=form.payment_method,
        ),
        asynchronous=False,
    )
    order = current_domain.repository_for(Order).get(order_id)

    match order.payment:
        case SwishPayment():
            try:
                request = gateway.create_payment_request(
                    phone=order.details.telephone,
                    amount=order.totals.total_price,
                    reference=order_id,
                    message=PAYMENT_MESSAGE,
                )
            except GatewayError as exc:
                logger.warning(
                    "Swish refused payment request, discarding order",
                    order_id=order_id,
                    error_code=exc.first.get("errorCode"),
                )
                current_domain.process(
                    DiscardOrder(order_id=order_id, reason=exc.first.get("errorMessage")),
                    asynchronous=False,
                )
                return CheckoutResult(
                    status=OrderStatus.ERROR.value,
                    payment_method=order.payment_method,
                    error=exc.first,
                )

            current_domain.process(
                RecordPaymentRequest(
                    order_id=order_id,
                    swish_id=request.id,
                    amount=order.totals.total_price,
                    message=PAYMENT_MESSAGE,
                    payee_alias=gateway.payee_alias,
                ),
                asynchronous=False,
            )
            result = CheckoutResult(
                status=OrderStatus.CREATED.value,
                payment_method=order.payment_method,
                order_id=order_id,
                swish_id=request.id,
            )
        case PaymentLinkPayment(status=status):
            result = CheckoutResult(status=status, payment_method=order.payment_method, order_id=order_id)

    _discard_basket(basket_id, order_id)
    return result


def _discard_basket(basket_id, order_id) -> None:
    """The order is already placed, so a basket that will not go away is only logged."""
    try:
        current_domain.process(DeleteBasket(basket_id=basket_id), asynchronous=False)
    except ObjectNotFoundError:
        logger.info("Basket already gone after checkout", basket_id=str(basket_id), order_id=order_id)
    except Exception:
        logger.exception("Could not delete basket after checkout", basket_id=str(basket_id), order_id=order_id)


def check_payment_status(swish_id):
    """The order paid (or being paid) by Swish payment ``swish_id``."""
    order = current_domain.repository_for(Order).find_by_swish_id(swish_id)
    if order is None:
        raise ObjectNotFoundError(f"No order has Swish payment {swish_id}")
    return order
