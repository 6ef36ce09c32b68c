"""Back-office operations on orders."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class SetOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)


@storefront.command_handler(part_of=Order)
class OrderAdminHandler:
    @handle(SetOrderStatus)
    def set_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        order.override_status(command.status)
        repo.add(order)
        logger.warning(
            "Order status overridden by admin",
            order_id=str(command.order_id),
            previous_status=previous,
            new_status=order.status,
        )


def list_orders() -> list[Order]:
    return current_domain.repository_for(Order).newest_first()


def get_order(order_id) -> Order:
    return current_domain.repository_for(Order).get(order_id)
