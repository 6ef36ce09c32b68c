"""Pydantic request/response schemas for the storefront API.

The shop front end speaks camelCase; these models translate to and from
the snake_case names used inside the domain.
"""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from storefront.order.payment import PaymentLinkPayment, SwishPayment


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class StatusResponse(CamelModel):
    status: str = "ok"


class ErrorResponse(CamelModel):
    status: str = "error"
    errors: dict | None = None


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class ProductSchema(CamelModel):
    id: str
    slug: str
    name: str
    brand: str | None = None
    category: str | None = None
    description: str | None = None
    gross_price: int
    tax_rate: int
    available: bool
    delivery_methods: list[str]
    delivery_costs: dict[str, int]
    max_zone: int

    @classmethod
    def from_product(cls, product) -> "ProductSchema":
        return cls(
            id=str(product.id),
            slug=product.slug,
            name=product.name,
            brand=product.brand,
            category=product.category,
            description=product.description,
            gross_price=product.gross_price,
            tax_rate=product.tax_rate,
            available=product.available,
            delivery_methods=product.methods,
            delivery_costs=json.loads(product.delivery_costs or "{}"),
            max_zone=product.max_zone or 0,
        )


class ProductsResponse(CamelModel):
    status: str = "ok"
    products: list[ProductSchema]


class ProductResponse(CamelModel):
    status: str = "ok"
    product: ProductSchema


# ---------------------------------------------------------------------------
# Basket
# ---------------------------------------------------------------------------
class PricedItemSchema(CamelModel):
    product_slug: str
    name: str
    quantity: int
    gross_price: int
    tax_rate: int
    line_price: int
    tax: int
    delivery_type: str
    delivery_date: str = ""


class DeliveryLineSchema(CamelModel):
    slug: str
    quantity: int
    delivery_cost: int


class DeliveryGroupSchema(CamelModel):
    code: str
    label: str
    products: list[DeliveryLineSchema]
    max_zone: int
    deliverable: bool
    total: int
    tax_rate: int


class DeliverySummarySchema(CamelModel):
    zone: int
    address: str
    delivery_required: bool
    deliverable: bool
    delivery_total: int
    tax_rate: int
    groups: dict[str, DeliveryGroupSchema]


class BottomLineSchema(CamelModel):
    total_delivery: int
    total_moms: int
    total_price: int


class StatementSchema(CamelModel):
    bottom_line: BottomLineSchema


class BasketSchema(CamelModel):
    basket_id: str
    items: list[PricedItemSchema]
    delivery: DeliverySummarySchema
    statement: StatementSchema


class BasketResponse(CamelModel):
    status: str = "ok"
    basket: BasketSchema


class UpdateItemRequest(CamelModel):
    product_slug: str
    quantity: int
    delivery_type: str
    delivery_date: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "productSlug": "chocolate-cake",
                    "quantity": 2,
                    "deliveryType": "delivery",
                    "deliveryDate": "2024-6-1-10.00-12.00",
                }
            ]
        }
    )


class RemoveItemRequest(CamelModel):
    product_slug: str
    delivery_type: str
    delivery_date: str = ""


class UpdateZoneRequest(CamelModel):
    zone: int
    address: str = ""


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CheckoutRequest(CamelModel):
    name: str
    email: str
    payment_method: str
    telephone: str = ""
    address: str = ""
    notes: str = ""


class CheckoutOutcomeSchema(CamelModel):
    status: str
    payment_method: str
    order_id: str | None = None
    id: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    additional_information: str | None = None


class CheckoutResponse(CamelModel):
    status: str = "ok"
    order: CheckoutOutcomeSchema


class CustomerDetailsSchema(CamelModel):
    name: str
    email: str
    telephone: str | None = None
    address: str | None = None
    notes: str | None = None


class OrderItemSchema(CamelModel):
    product_slug: str
    name: str
    quantity: int
    gross_price: int
    tax_rate: int
    line_price: int
    delivery_type: str
    delivery_date: str | None = None


class OrderDeliverySchema(CamelModel):
    date: str
    label: str | None = None
    products: list[DeliveryLineSchema]
    total_price: int


class SwishSchema(CamelModel):
    id: str
    payee_payment_reference: str | None = None
    payment_reference: str | None = None
    payer_alias: str | None = None
    payee_alias: str | None = None
    amount: int | None = None
    currency: str | None = None
    message: str | None = None
    status: str
    date_created: str | None = None
    date_paid: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def from_record(cls, record) -> "SwishSchema":
        return cls(
            id=record.swish_id,
            payee_payment_reference=record.payee_payment_reference,
            payment_reference=record.payment_reference,
            payer_alias=record.payer_alias,
            payee_alias=record.payee_alias,
            amount=record.amount,
            currency=record.currency,
            message=record.message,
            status=record.status,
            date_created=record.date_created,
            date_paid=record.date_paid,
            error_code=record.error_code,
            error_message=record.error_message,
        )


class RefundSchema(CamelModel):
    id: str
    payment_reference: str | None = None
    payer_payment_reference: str | None = None
    original_payment_reference: str | None = None
    amount: int
    currency: str | None = None
    status: str
    date_created: str | None = None
    date_paid: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def from_refund(cls, refund) -> "RefundSchema":
        return cls(
            id=refund.refund_id,
            payment_reference=refund.payment_reference,
            payer_payment_reference=refund.payer_payment_reference,
            original_payment_reference=refund.original_payment_reference,
            amount=refund.amount,
            currency=refund.currency,
            status=refund.status,
            date_created=refund.date_created,
            date_paid=refund.date_paid,
            error_code=refund.error_code,
            error_message=refund.error_message,
        )


class PaymentSchema(CamelModel):
    method: str
    status: str
    confirmation_email_sent: bool
    swish: SwishSchema | None = None
    refunds: list[RefundSchema] | None = None


class OrderSchema(CamelModel):
    id: str
    basket_id: str | None = None
    details: CustomerDetailsSchema
    items: list[OrderItemSchema]
    delivery: list[OrderDeliverySchema]
    delivery_zone: int
    bottom_line: BottomLineSchema
    payment: PaymentSchema
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderSchema":
        match order.payment:
            case SwishPayment(swish=swish, refunds=refunds) as payment:
                payment_schema = PaymentSchema(
                    method=payment.method,
                    status=payment.status,
                    confirmation_email_sent=payment.confirmation_email_sent,
                    swish=SwishSchema.from_record(swish) if swish is not None else None,
                    refunds=[RefundSchema.from_refund(refund) for refund in refunds],
                )
            case PaymentLinkPayment() as payment:
                payment_schema = PaymentSchema(
                    method=payment.method,
                    status=payment.status,
                    confirmation_email_sent=payment.confirmation_email_sent,
                )
        return cls(
            id=str(order.id),
            basket_id=str(order.basket_id) if order.basket_id else None,
            details=CustomerDetailsSchema.model_validate(order.details),
            items=[OrderItemSchema.model_validate(item) for item in order.items],
            delivery=[
                OrderDeliverySchema(
                    date=delivery.date_code,
                    label=delivery.label,
                    products=[DeliveryLineSchema(**line) for line in delivery.lines],
                    total_price=delivery.total,
                )
                for delivery in order.deliveries
            ],
            delivery_zone=order.delivery_zone,
            bottom_line=BottomLineSchema.model_validate(order.totals),
            payment=payment_schema,
            created_at=order.created_at,
        )


class OrderResponse(CamelModel):
    status: str = "ok"
    order: OrderSchema


class OrdersResponse(CamelModel):
    status: str = "ok"
    orders: list[OrderSchema]


class SwishStatusSchema(SwishSchema):
    payment_method: str = "swish"
    order_status: str


class SwishStatusResponse(CamelModel):
    status: str = "ok"
    order: SwishStatusSchema


class SetStatusRequest(CamelModel):
    order_id: str
    status: str


class RefundRequest(CamelModel):
    order_id: str
    amount: int
