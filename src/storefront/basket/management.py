"""Basket lifecycle: create, delete and delivery details."""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.basket.basket import STALE_AFTER, Basket
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Basket")
class CreateBasket:
    basket_id = Identifier()


@storefront.command(part_of="Basket")
class DeleteBasket:
    basket_id = Identifier(required=True)


@storefront.command(part_of="Basket")
class UpdateBasketDelivery:
    basket_id = Identifier(required=True)
    zone = Integer(required=True)
    address = String(max_length=500)


@storefront.command_handler(part_of=Basket)
class BasketManagementHandler:
    @handle(CreateBasket)
    def create_basket(self, command):
        repo = current_domain.repository_for(Basket)

        # Abandoned baskets are swept whenever a new one is opened
        cutoff = datetime.now(UTC) - STALE_AFTER
        stale = repo.created_before(cutoff)
        for basket in stale:
            repo._dao.delete(basket)
        if stale:
            logger.info("Removed stale baskets", count=len(stale), cutoff=cutoff.isoformat())

        basket = Basket.create(basket_id=command.basket_id)
        repo.add(basket)
        return str(basket.id)

    @handle(DeleteBasket)
    def delete_basket(self, command):
        repo = current_domain.repository_for(Basket)
        basket = repo.get(command.basket_id)
        repo._dao.delete(basket)
        logger.info("Basket deleted", basket_id=str(command.basket_id))

    @handle(UpdateBasketDelivery)
    def update_delivery(self, command):
        repo = current_domain.repository_for(Basket)
        basket = repo.get(command.basket_id)
        basket.update_delivery(command.zone, command.address)
        repo.add(basket)
