"""Shared BDD step definitions for ordering and paying."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from storefront.order.checkout import checkout
from storefront.order.order import Order
from storefront.order.refund import request_refund
from storefront.order.webhook import receive_payment_callback


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a basket with buns for collection and a cake delivered to zone 0", target_fixture="basket_id")
def _basket(reference_basket):
    return reference_basket


@given(parsers.cfparse('Swish refuses payment requests with "{error_code}"'))
def _swish_refuses(gateway, error_code):
    gateway.configure(should_succeed=False, errors=[{"errorCode": error_code, "errorMessage": "Refused"}])


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer checks out with "{payment_method}"'), target_fixture="result")
def _checkout(basket_id, checkout_form, gateway, payment_method):
    return checkout(basket_id, checkout_form(payment_method), gateway)


@when(parsers.cfparse('Swish reports the payment as "{status}"'))
def _swish_reports(result, callback_payload, status):
    receive_payment_callback(callback_payload(result.order_id, result.swish_id, status=status))


@when(parsers.cfparse("the shop refunds {amount:d} öre"))
def _refund(result, gateway, amount):
    request_refund(result.order_id, amount, gateway)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _order_status(result, status):
    assert current_domain.repository_for(Order).get(result.order_id).status == status


@then(parsers.cfparse("{count:d} confirmation email is sent"))
def _emails_sent(mailer, count):
    assert len(mailer.sent_emails) == count


@then(parsers.cfparse('the checkout status is "{status}"'))
def _checkout_status(result, status):
    assert result.status == status


@then(parsers.cfparse('the checkout error code is "{error_code}"'))
def _checkout_error(result, error_code):
    assert result.error["errorCode"] == error_code


@then("no order exists")
def _no_order():
    assert current_domain.repository_for(Order)._dao.query.all().items == []


@then(parsers.cfparse("the order has {count:d} refunds"))
def _refund_count(result, count):
    assert len(current_domain.repository_for(Order).get(result.order_id).refunds) == count


@then(parsers.cfparse("refunding {amount:d} öre is rejected"))
def _refund_rejected(result, gateway, amount):
    with pytest.raises(ValidationError):
        request_refund(result.order_id, amount, gateway)
