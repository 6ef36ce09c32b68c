"""FastAPI routes for the storefront: products, baskets, orders and Swish."""

import structlog
from fastapi import APIRouter, Depends, Request
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.api.auth import get_gateway, require_admin_key
from storefront.api.schemas import (
    BasketResponse,
    BasketSchema,
    CheckoutOutcomeSchema,
    CheckoutRequest,
    CheckoutResponse,
    ErrorResponse,
    OrderResponse,
    OrderSchema,
    OrdersResponse,
    ProductResponse,
    ProductSchema,
    ProductsResponse,
    RefundRequest,
    RemoveItemRequest,
    SetStatusRequest,
    StatusResponse,
    SwishSchema,
    SwishStatusResponse,
    SwishStatusSchema,
    UpdateItemRequest,
    UpdateZoneRequest,
)
from storefront.basket.items import RemoveBasketItem, UpdateBasketItem
from storefront.basket.management import CreateBasket, DeleteBasket, UpdateBasketDelivery
from storefront.basket.valuation import price_basket
from storefront.catalogue.product import Product
from storefront.exceptions import GatewayError
from storefront.order.admin import SetOrderStatus, get_order, list_orders
from storefront.order.assembly import CheckoutForm
from storefront.order.checkout import check_payment_status, checkout
from storefront.order.refund import check_refund, receive_refund_callback, request_refund
from storefront.order.webhook import receive_payment_callback

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/api", tags=["products"])


@product_router.get("/products", response_model=ProductsResponse)
async def get_products() -> ProductsResponse:
    products = current_domain.repository_for(Product).list_available()
    return ProductsResponse(products=[ProductSchema.from_product(product) for product in products])


@product_router.get("/product/{slug}", response_model=ProductResponse)
async def get_product(slug: str) -> ProductResponse:
    product = current_domain.repository_for(Product).find_by_slug(slug)
    if product is None:
        raise ObjectNotFoundError(f"Product '{slug}' does not exist")
    return ProductResponse(product=ProductSchema.from_product(product))


# ---------------------------------------------------------------------------
# Basket
# ---------------------------------------------------------------------------
basket_router = APIRouter(prefix="/api/basket", tags=["basket"])


def _basket_response(basket_id) -> BasketResponse:
    """Price the basket, opening a fresh one if it no longer exists."""
    try:
        basket = price_basket(basket_id)
    except ObjectNotFoundError:
        logger.info("Basket not found, starting a new one", basket_id=str(basket_id))
        basket = price_basket(current_domain.process(CreateBasket(), asynchronous=False))
    return BasketResponse(basket=BasketSchema.model_validate(basket))


def _apply_to_basket(command) -> None:
    try:
        current_domain.process(command, asynchronous=False)
    except ObjectNotFoundError:
        logger.info("Basket update skipped, basket not found", basket_id=str(command.basket_id))


@basket_router.post("", response_model=BasketResponse)
async def create_basket() -> BasketResponse:
    basket_id = current_domain.process(CreateBasket(), asynchronous=False)
    return _basket_response(basket_id)


@basket_router.get("/{basket_id}", response_model=BasketResponse)
async def get_basket(basket_id: str) -> BasketResponse:
    return _basket_response(basket_id)


@basket_router.delete("/{basket_id}", response_model=BasketResponse)
async def delete_basket(basket_id: str) -> BasketResponse:
    _apply_to_basket(DeleteBasket(basket_id=basket_id))
    return _basket_response(current_domain.process(CreateBasket(), asynchronous=False))


@basket_router.put("/update/zone/{basket_id}", response_model=BasketResponse)
async def update_zone(basket_id: str, body: UpdateZoneRequest) -> BasketResponse:
    _apply_to_basket(UpdateBasketDelivery(basket_id=basket_id, zone=body.zone, address=body.address))
    return _basket_response(basket_id)


@basket_router.put("/update/quantity/{basket_id}", response_model=BasketResponse)
async def update_quantity(basket_id: str, body: UpdateItemRequest) -> BasketResponse:
    _apply_to_basket(
        UpdateBasketItem(
            basket_id=basket_id,
            product_slug=body.product_slug,
            quantity=body.quantity,
            delivery_type=body.delivery_type,
            delivery_date=body.delivery_date,
        )
    )
    return _basket_response(basket_id)


@basket_router.put("/update/remove/{basket_id}", response_model=BasketResponse)
async def remove_item(basket_id: str, body: RemoveItemRequest) -> BasketResponse:
    _apply_to_basket(
        RemoveBasketItem(
            basket_id=basket_id,
            product_slug=body.product_slug,
            delivery_type=body.delivery_type,
            delivery_date=body.delivery_date,
        )
    )
    return _basket_response(basket_id)


# ---------------------------------------------------------------------------
# Orders and Swish callbacks
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/api/order", tags=["orders"])


async def _callback_payload(request: Request):
    """The callback body, or None when it is not JSON. Swish is acknowledged either way."""
    try:
        return await request.json()
    except ValueError:
        logger.warning("Swish callback body is not JSON", path=request.url.path)
        return None


@order_router.post("/swish/paymentCallback", response_model=StatusResponse)
async def swish_payment_callback(request: Request) -> StatusResponse:
    receive_payment_callback(await _callback_payload(request))
    return StatusResponse()


@order_router.post("/swish/refundCallback", response_model=StatusResponse)
async def swish_refund_callback(request: Request) -> StatusResponse:
    receive_refund_callback(await _callback_payload(request))
    return StatusResponse()


@order_router.get("/swish/{swish_id}", response_model=SwishStatusResponse)
async def get_payment_status(swish_id: str) -> SwishStatusResponse:
    order = check_payment_status(swish_id)
    swish = SwishSchema.from_record(order.swish)
    return SwishStatusResponse(order=SwishStatusSchema(**swish.model_dump(), order_status=order.status))


@order_router.post("/{basket_id}", response_model=CheckoutResponse | ErrorResponse)
async def create_order(basket_id: str, body: CheckoutRequest, gateway=Depends(get_gateway)):
    form = CheckoutForm(
        name=body.name,
        email=body.email,
        telephone=body.telephone,
        address=body.address,
        notes=body.notes,
        payment_method=body.payment_method,
    )
    try:
        result = checkout(basket_id, form, gateway)
    except ValidationError as exc:
        return ErrorResponse(errors=exc.messages)

    error = result.error or {}
    return CheckoutResponse(
        order=CheckoutOutcomeSchema(
            status=result.status,
            payment_method=result.payment_method,
            order_id=result.order_id,
            id=result.swish_id,
            error_code=error.get("errorCode"),
            error_message=error.get("errorMessage"),
            additional_information=error.get("additionalInformation"),
        )
    )


# ---------------------------------------------------------------------------
# Back office
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/api", tags=["admin"], dependencies=[Depends(require_admin_key)])


@admin_router.get("/orders", response_model=OrdersResponse)
async def get_orders() -> OrdersResponse:
    return OrdersResponse(orders=[OrderSchema.from_order(order) for order in list_orders()])


@admin_router.put("/order/status", response_model=OrderResponse)
async def set_order_status(body: SetStatusRequest) -> OrderResponse:
    current_domain.process(SetOrderStatus(order_id=body.order_id, status=body.status), asynchronous=False)
    return OrderResponse(order=OrderSchema.from_order(get_order(body.order_id)))


@admin_router.put("/order/refund", response_model=OrderResponse | ErrorResponse)
async def refund_order(body: RefundRequest, gateway=Depends(get_gateway)):
    try:
        order = request_refund(body.order_id, body.amount, gateway)
    except ObjectNotFoundError:
        return ErrorResponse(errors={"order_id": [f"Order {body.order_id} does not exist"]})
    except ValidationError as exc:
        return ErrorResponse(errors=exc.messages)
    except GatewayError as exc:
        return ErrorResponse(errors={"gateway": [exc.first]})
    return OrderResponse(order=OrderSchema.from_order(order))


@admin_router.get("/order/refund/{refund_id}", response_model=OrderResponse)
async def get_refund(refund_id: str, gateway=Depends(get_gateway)) -> OrderResponse:
    return OrderResponse(order=OrderSchema.from_order(check_refund(refund_id, gateway)))


@admin_router.get("/order/{order_id}", response_model=OrderResponse)
async def get_order_by_id(order_id: str) -> OrderResponse:
    return OrderResponse(order=OrderSchema.from_order(get_order(order_id)))
