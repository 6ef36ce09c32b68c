import json
import os

import pytest

from storefront.channel import FakeEmailAdapter, configure_mailer, reset_mailer
from storefront.gateway import FakeSwishGateway


@pytest.fixture(scope="session")
def _storefront_domain(request):
    """Initialize the storefront domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture(autouse=True)
def mailer():
    fake = FakeEmailAdapter()
    configure_mailer(fake)
    yield fake
    reset_mailer()


@pytest.fixture()
def gateway():
    return FakeSwishGateway()


# ---------------------------------------------------------------------------
# Catalogue and basket builders
# ---------------------------------------------------------------------------
DELIVERY_DATE = "2024-6-1"


@pytest.fixture()
def add_product():
    from protean import current_domain

    from storefront.catalogue.management import AddProduct

    def _add(
        slug,
        gross_price=1000,
        tax_rate=25,
        delivery_methods=("delivery", "collection"),
        delivery_costs=None,
        max_zone=2,
        available=True,
        name=None,
    ):
        costs = delivery_costs if delivery_costs is not None else {"0": 150, "1": 250, "2": 350}
        return current_domain.process(
            AddProduct(
                slug=slug,
                name=name or slug.replace("-", " ").title(),
                gross_price=gross_price,
                tax_rate=tax_rate,
                available=available,
                delivery_methods=json.dumps(list(delivery_methods)),
                delivery_costs=json.dumps({str(zone): price for zone, price in costs.items()}),
                max_zone=max_zone,
            ),
            asynchronous=False,
        )

    return _add


@pytest.fixture()
def catalogue(add_product):
    """A small bakery: one collect-only bun, two deliverable cakes and a gift card."""
    add_product("cinnamon-bun", gross_price=500, delivery_methods=("collection",), delivery_costs={})
    add_product("chocolate-cake", gross_price=1000, delivery_costs={"0": 150, "1": 250}, max_zone=1)
    add_product("apple-pie", gross_price=800, delivery_methods=("delivery",), delivery_costs={"0": 90, "1": 120})
    add_product("gift-card", gross_price=20000, tax_rate=0, delivery_methods=("email",), delivery_costs={})


@pytest.fixture()
def make_basket(catalogue):
    """Build a basket through commands: ``make_basket([(slug, qty, type, date)], zone=0)``."""
    from protean import current_domain

    from storefront.basket.basket import NO_ZONE
    from storefront.basket.items import UpdateBasketItem
    from storefront.basket.management import CreateBasket, UpdateBasketDelivery

    def _make(lines=(), zone=NO_ZONE, address=""):
        basket_id = current_domain.process(CreateBasket(), asynchronous=False)
        for slug, quantity, delivery_type, delivery_date in lines:
            current_domain.process(
                UpdateBasketItem(
                    basket_id=basket_id,
                    product_slug=slug,
                    quantity=quantity,
                    delivery_type=delivery_type,
                    delivery_date=delivery_date,
                ),
                asynchronous=False,
            )
        if zone != NO_ZONE or address:
            current_domain.process(
                UpdateBasketDelivery(basket_id=basket_id, zone=zone, address=address),
                asynchronous=False,
            )
        return basket_id

    return _make


@pytest.fixture()
def reference_basket(make_basket):
    """Two buns for collection and a cake delivered to zone 0: 2150 öre in total."""
    return make_basket(
        [
            ("cinnamon-bun", 2, "collection", ""),
            ("chocolate-cake", 1, "delivery", DELIVERY_DATE),
        ],
        zone=0,
        address="Storgatan 1, Stockholm",
    )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@pytest.fixture()
def checkout_form():
    from storefront.order.assembly import CheckoutForm

    def _form(payment_method="swish", **overrides):
        values = {
            "name": "Astrid Lindgren",
            "email": "astrid@example.se",
            "telephone": "070-123 45 67",
            "address": "Storgatan 1, Stockholm",
            "notes": "",
        }
        values.update(overrides)
        return CheckoutForm(payment_method=payment_method, **values)

    return _form


@pytest.fixture()
def swish_order(reference_basket, checkout_form, gateway):
    """A Swish order whose payment request Swish has accepted."""
    from storefront.order.checkout import checkout

    return checkout(reference_basket, checkout_form("swish"), gateway)


def _payment_callback(order_id, swish_id, status="PAID", amount="21.50", **overrides):
    payload = {
        "id": swish_id,
        "payeePaymentReference": order_id,
        "paymentReference": "PAYREF0001",
        "callbackUrl": "https://shop.example.se/api/order/swish/paymentCallback",
        "payerAlias": "46701234567",
        "payeeAlias": "1231181189",
        "amount": amount,
        "currency": "SEK",
        "message": "WHISK Order",
        "status": status,
        "dateCreated": "2024-05-30T10:00:00.000Z",
        "datePaid": "2024-05-30T10:00:05.000Z" if status == "PAID" else None,
        "errorCode": None,
        "errorMessage": None,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def paid_swish_order(swish_order):
    """The Swish order after Swish reported it PAID."""
    from storefront.order.webhook import receive_payment_callback

    receive_payment_callback(_payment_callback(swish_order.order_id, swish_order.swish_id))
    return swish_order


@pytest.fixture()
def callback_payload():
    """Builder for Swish payment callback bodies."""
    return _payment_callback
