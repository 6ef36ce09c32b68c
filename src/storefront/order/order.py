"""Order aggregate: a priced basket frozen at checkout plus its payment state.

Everything a customer was charged for is copied into the order when it is
assembled, so later catalogue changes never alter a placed order.

Status machine (non-admin events only move forward):
    NOT_ORDERED → CREATED → PAID → FULFILLED
    CREATED → DECLINED | ERROR | CANCELLED (terminal)
Admins may set any status, including INVOICED.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.order.events import (
    OrderPaid,
    OrderPaymentStatusChanged,
    OrderPlaced,
    OrderStatusOverridden,
    RefundRequested,
    RefundUpdated,
)
from storefront.order.payment import PaymentLinkPayment, PaymentMethod, SwishPayment


class OrderStatus(Enum):
    NOT_ORDERED = "NOT_ORDERED"
    CREATED = "CREATED"
    PAID = "PAID"
    FULFILLED = "FULFILLED"
    DECLINED = "DECLINED"
    ERROR = "ERROR"
    CANCELLED = "CANCELLED"
    INVOICED = "INVOICED"


class SwishStatus(Enum):
    CREATED = "CREATED"
    PAID = "PAID"
    DECLINED = "DECLINED"
    CANCELLED = "CANCELLED"
    ERROR = "ERROR"


class RefundStatus(Enum):
    CREATED = "CREATED"
    DEBITED = "DEBITED"
    PAID = "PAID"
    ERROR = "ERROR"


_VALID_TRANSITIONS = {
    OrderStatus.NOT_ORDERED: {OrderStatus.CREATED},
    OrderStatus.CREATED: {OrderStatus.PAID, OrderStatus.DECLINED, OrderStatus.ERROR, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.FULFILLED},
}


@storefront.value_object(part_of="Order")
class CustomerDetails:
    name = String(required=True, max_length=200)
    email = String(required=True, max_length=254)
    telephone = String(max_length=30)
    address = String(max_length=500)
    notes = Text()


@storefront.value_object(part_of="Order")
class OrderTotals:
    total_delivery = Integer(required=True)
    total_moms = Integer(required=True)
    total_price = Integer(required=True)


@storefront.value_object(part_of="Order")
class SwishRecord:
    """The Swish payment request as Swish last described it."""

    swish_id = String(required=True, max_length=64)
    payee_payment_reference = String(max_length=64)
    payment_reference = String(max_length=64)
    payer_alias = String(max_length=30)
    payee_alias = String(max_length=30)
    amount = Integer()
    currency = String(max_length=3, default="SEK")
    message = String(max_length=100)
    status = String(choices=SwishStatus, default=SwishStatus.CREATED.value)
    date_created = String(max_length=40)
    date_paid = String(max_length=40)
    error_code = String(max_length=20)
    error_message = String(max_length=300)


@storefront.entity(part_of="Order")
class OrderItem:
    product_slug = String(required=True, max_length=200)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    gross_price = Integer(required=True)
    tax_rate = Integer(required=True)
    line_price = Integer(required=True)
    delivery_type = String(required=True, max_length=20)
    delivery_date = String(max_length=50)


@storefront.entity(part_of="Order")
class OrderDelivery:
    """One delivery slot copied from the basket valuation."""

    date_code = String(required=True, max_length=20)
    label = String(max_length=100)
    max_zone = Integer(default=0)
    deliverable = Boolean(default=False)
    total = Integer(default=0)
    tax_rate = Integer(default=25)
    products = Text()  # JSON list of {slug, quantity, delivery_cost}

    @property
    def lines(self) -> list[dict]:
        return json.loads(self.products or "[]")


@storefront.entity(part_of="Order")
class SwishRefund:
    refund_id = String(required=True, max_length=64)
    payment_reference = String(max_length=64)
    payer_payment_reference = String(max_length=64)
    original_payment_reference = String(max_length=64)
    amount = Integer(required=True)
    currency = String(max_length=3, default="SEK")
    status = String(choices=RefundStatus, default=RefundStatus.CREATED.value)
    message = String(max_length=100)
    date_created = String(max_length=40)
    date_paid = String(max_length=40)
    error_code = String(max_length=20)
    error_message = String(max_length=300)
    additional_information = String(max_length=300)


@storefront.aggregate
class Order:
    details = ValueObject(CustomerDetails, required=True)
    items = HasMany(OrderItem)
    deliveries = HasMany(OrderDelivery)
    delivery_zone = Integer(default=-1)
    totals = ValueObject(OrderTotals, required=True)
    payment_method = String(required=True, choices=PaymentMethod)
    status = String(choices=OrderStatus, default=OrderStatus.NOT_ORDERED.value)
    confirmation_email_sent = Boolean(default=False)
    swish_id = String(max_length=64)
    swish = ValueObject(SwishRecord)
    refunds = HasMany(SwishRefund)
    basket_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def only_swish_orders_carry_swish_data(self):
        if self.payment_method != PaymentMethod.SWISH.value and (self.swish or self.refunds):
            raise ValidationError({"payment": ["Only Swish orders carry Swish payments and refunds"]})

    @invariant.post
    def refunds_cannot_exceed_total(self):
        refunded = sum(refund.amount for refund in self.refunds if refund.status != RefundStatus.ERROR.value)
        if self.totals and refunded > self.totals.total_price:
            raise ValidationError({"refunds": ["Refunds cannot exceed the order total"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, details, items, deliveries, totals, payment_method, delivery_zone=-1, basket_id=None):
        now = datetime.now(UTC)
        return cls(
            details=details,
            items=items,
            deliveries=deliveries,
            totals=totals,
            delivery_zone=delivery_zone,
            payment_method=payment_method,
            status=OrderStatus.NOT_ORDERED.value,
            confirmation_email_sent=False,
            basket_id=basket_id,
            created_at=now,
            updated_at=now,
        )

    @property
    def payment(self) -> PaymentLinkPayment | SwishPayment:
        if self.payment_method == PaymentMethod.SWISH.value:
            return SwishPayment(
                status=self.status,
                confirmation_email_sent=self.confirmation_email_sent,
                swish=self.swish,
                refunds=tuple(self.refunds),
            )
        return PaymentLinkPayment(status=self.status, confirmation_email_sent=self.confirmation_email_sent)

    # -------------------------------------------------------------------
    # Placing the order
    # -------------------------------------------------------------------
    def place(self):
        """Accept a payment-link order; the link itself is sent by the shop."""
        match self.payment:
            case PaymentLinkPayment():
                self._move_to(OrderStatus.CREATED)
            case SwishPayment():
                raise ValidationError({"payment": ["Swish orders are placed by a payment request"]})
        self._raise_placed()

    def record_payment_request(self, swish_id, amount, message=None, payee_alias=None):
        """Swish accepted the payment request for this order."""
        match self.payment:
            case SwishPayment():
                self._move_to(OrderStatus.CREATED)
            case PaymentLinkPayment():
                raise ValidationError({"payment": ["Only Swish orders have payment requests"]})

        self.swish_id = swish_id
        self.swish = SwishRecord(
            swish_id=swish_id,
            payee_payment_reference=str(self.id),
            payee_alias=payee_alias,
            amount=amount,
            message=message,
            status=SwishStatus.CREATED.value,
        )
        self._raise_placed()

    def _raise_placed(self):
        self.raise_(
            OrderPlaced(
                order_id=str(self.id),
                payment_method=self.payment_method,
                status=self.status,
                customer_email=self.details.email,
                total_price=self.totals.total_price,
                placed_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Swish callbacks
    # -------------------------------------------------------------------
    def apply_payment_update(self, record: SwishRecord) -> bool:
        """Store Swish's latest view of the payment and follow its status.

        The record is always kept. The order status only follows when the
        move is forward; a repeated or stale callback leaves it alone.
        A repeated PAID raises ``OrderPaid`` again while the confirmation
        email is still unsent. Returns whether the order status changed.
        """
        match self.payment:
            case SwishPayment(swish=swish) if swish is not None and swish.swish_id == record.swish_id:
                pass
            case SwishPayment():
                raise ValidationError({"swish_id": [f"Payment {record.swish_id} does not belong to order {self.id}"]})
            case PaymentLinkPayment():
                raise ValidationError({"payment": ["Payment-link orders do not receive Swish callbacks"]})

        self.swish = record
        self.updated_at = datetime.now(UTC)

        target = OrderStatus(record.status)
        previous = self.status
        if not self.can_move_to(target):
            if target == OrderStatus.PAID and self.status == OrderStatus.PAID.value and not self.confirmation_email_sent:
                # The confirmation has not gone out yet; a repeated PAID gets another try
                self._raise_paid(record)
            return False

        self._move_to(target)
        if target == OrderStatus.PAID:
            self._raise_paid(record)
        else:
            self.raise_(
                OrderPaymentStatusChanged(
                    order_id=str(self.id),
                    previous_status=previous,
                    new_status=target.value,
                    swish_id=record.swish_id,
                    error_code=record.error_code,
                    error_message=record.error_message,
                )
            )
        return True

    def _raise_paid(self, record):
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                swish_id=record.swish_id,
                amount=record.amount,
                date_paid=record.date_paid,
            )
        )

    # -------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------
    def override_status(self, status):
        """Set any status. Admin escape hatch; transitions are not checked."""
        try:
            target = OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {status}"]}) from None

        previous = self.status
        self.status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(OrderStatusOverridden(order_id=str(self.id), previous_status=previous, new_status=target.value))

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    def ensure_refundable(self, amount) -> SwishPayment:
        match self.payment:
            case PaymentLinkPayment():
                raise ValidationError({"payment": ["Only Swish orders can be refunded"]})
            case SwishPayment(status=status) if status != OrderStatus.PAID.value:
                raise ValidationError({"status": [f"Only paid orders can be refunded, order is {status}"]})
            case SwishPayment(swish=None):
                raise ValidationError({"payment": ["Order has no Swish payment to refund"]})
            case SwishPayment() as payment:
                pass

        if amount is None or amount <= 0:
            raise ValidationError({"amount": ["Refund amount must be positive"]})
        if payment.refunded + amount > self.totals.total_price:
            remaining = self.totals.total_price - payment.refunded
            raise ValidationError({"amount": [f"Refund exceeds the refundable amount of {remaining}"]})
        return payment

    def record_refund(self, refund_id, amount, message=None):
        payment = self.ensure_refundable(amount)
        self.add_refunds(
            SwishRefund(
                refund_id=refund_id,
                payer_payment_reference=str(self.id),
                original_payment_reference=payment.swish.payment_reference,
                amount=amount,
                message=message,
                status=RefundStatus.CREATED.value,
            )
        )
        self.updated_at = datetime.now(UTC)
        self.raise_(RefundRequested(order_id=str(self.id), refund_id=refund_id, amount=amount))

    def apply_refund_update(self, refund_id, **changes):
        """Overwrite a refund with Swish's latest description of it."""
        refund = self.find_refund(refund_id)
        if refund is None:
            raise ObjectNotFoundError(f"Refund {refund_id} does not belong to order {self.id}")

        for name, value in changes.items():
            if value is not None:
                setattr(refund, name, value)
        self.add_refunds(refund)
        self.updated_at = datetime.now(UTC)
        self.raise_(RefundUpdated(order_id=str(self.id), refund_id=refund_id, status=refund.status))
        return refund

    def find_refund(self, refund_id):
        return next((refund for refund in self.refunds if refund.refund_id == refund_id), None)

    # -------------------------------------------------------------------
    # Confirmation email
    # -------------------------------------------------------------------
    def claim_confirmation_email(self) -> bool:
        """Mark the confirmation email as taken. False when already claimed."""
        if self.confirmation_email_sent:
            return False
        self.confirmation_email_sent = True
        return True

    def release_confirmation_email(self):
        self.confirmation_email_sent = False

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def can_move_to(self, target) -> bool:
        return target in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    def _move_to(self, target):
        if not self.can_move_to(target):
            raise ValidationError({"status": [f"Cannot transition from {self.status} to {target.value}"]})
        self.status = target.value
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_swish_id(self, swish_id) -> Order | None:
        return self._dao.query.filter(swish_id=swish_id).all().first

    def newest_first(self) -> list[Order]:
        orders = self._dao.query.all().items
        return sorted(orders, key=lambda order: order.created_at, reverse=True)
