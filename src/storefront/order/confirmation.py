"""Order confirmation emails.

Payment-link orders are confirmed as soon as they are placed, Swish orders
once Swish reports them paid. Callbacks can repeat, so the email is first
claimed on the order (``confirmation_email_sent`` flips from false to true
in a version-checked save) and only the claimant sends it. A failed send
gives the claim back so a later callback can try again.
"""

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.channel import get_mailer
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.order.events import OrderPaid, OrderPlaced
from storefront.order.order import Order
from storefront.order.payment import PaymentMethod
from storefront.templates import OrderConfirmationTemplate

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class ClaimConfirmationEmail:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class ReleaseConfirmationEmail:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class ConfirmationEmailClaimHandler:
    @handle(ClaimConfirmationEmail)
    def claim(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        claimed = order.claim_confirmation_email()
        if claimed:
            repo.add(order)
        return claimed

    @handle(ReleaseConfirmationEmail)
    def release(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.release_confirmation_email()
        repo.add(order)


@storefront.event_handler(part_of=Order)
class ConfirmationEmailHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        if event.payment_method == PaymentMethod.PAYMENT_LINK.value:
            deliver_confirmation(event.order_id)

    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        deliver_confirmation(event.order_id)


def deliver_confirmation(order_id, mailer=None) -> bool:
    """Send the confirmation for ``order_id`` unless someone already has."""
    try:
        claimed = current_domain.process(ClaimConfirmationEmail(order_id=order_id), asynchronous=False)
    except ExpectedVersionError:
        logger.info("Confirmation email claimed concurrently", order_id=str(order_id))
        return False

    if not claimed:
        logger.debug("Confirmation email already sent", order_id=str(order_id))
        return False

    order = current_domain.repository_for(Order).get(order_id)
    if send_confirmation_email(order, mailer):
        return True

    current_domain.process(ReleaseConfirmationEmail(order_id=order_id), asynchronous=False)
    return False


def send_confirmation_email(order: Order, mailer=None) -> bool:
    """True only when the mail server took the message for the customer."""
    mailer = mailer or get_mailer()
    content = OrderConfirmationTemplate.render(confirmation_context(order))
    result = mailer.send(
        to=order.details.email,
        subject=content["subject"],
        body=content["body"],
        html_body=content["html_body"],
    )

    sent = result.get("status") == "sent" and order.details.email in result.get("accepted", [])
    if sent:
        logger.info("Confirmation email sent", order_id=str(order.id), message_id=result.get("message_id"))
    else:
        logger.error(
            "Confirmation email not delivered",
            order_id=str(order.id),
            status=result.get("status"),
            error=result.get("error"),
        )
    return sent


def confirmation_context(order: Order) -> dict:
    return {
        "order_id": str(order.id),
        "name": order.details.name,
        "payment_method": order.payment_method,
        "store_url": get_settings().store_url,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "line_price": item.line_price,
                "delivery_type": item.delivery_type,
                "delivery_date": item.delivery_date,
            }
            for item in order.items
        ],
        "deliveries": [{"date_code": delivery.date_code, "total": delivery.total} for delivery in order.deliveries],
        "totals": {
            "total_delivery": order.totals.total_delivery,
            "total_moms": order.totals.total_moms,
            "total_price": order.totals.total_price,
        },
    }
