"""Integration tests for the storefront HTTP API."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain

from storefront.api import register_error_handlers, routers
from storefront.basket.basket import Basket
from storefront.config import StoreSettings, get_settings

ADMIN = {"X-Admin-Key": "letmein"}


@pytest.fixture()
def client(gateway):
    app = FastAPI()
    for router in routers:
        app.include_router(router)
    register_error_handlers(app)
    app.state.gateway = gateway
    app.dependency_overrides[get_settings] = lambda: StoreSettings(admin_key="letmein")
    return TestClient(app)


def _checkout(client, basket_id, payment_method="swish", **overrides):
    body = {
        "name": "Astrid Lindgren",
        "email": "astrid@example.se",
        "telephone": "070-123 45 67",
        "paymentMethod": payment_method,
    }
    body.update(overrides)
    return client.post(f"/api/order/{basket_id}", json=body)


def _pay(client, order_id, swish_id, status="PAID"):
    return client.post(
        "/api/order/swish/paymentCallback",
        json={
            "id": swish_id,
            "payeePaymentReference": order_id,
            "paymentReference": "PAYREF0001",
            "amount": "21.50",
            "currency": "SEK",
            "status": status,
            "datePaid": "2024-05-30T10:00:05.000Z",
        },
    )


class TestProducts:
    def test_list(self, client, catalogue):
        response = client.get("/api/products")
        assert response.status_code == 200
        slugs = [product["slug"] for product in response.json()["products"]]
        assert slugs == ["apple-pie", "chocolate-cake", "cinnamon-bun", "gift-card"]

    def test_single_product_in_camel_case(self, client, catalogue):
        product = client.get("/api/product/chocolate-cake").json()["product"]
        assert product["grossPrice"] == 1000
        assert product["deliveryCosts"] == {"0": 150, "1": 250}
        assert product["maxZone"] == 1

    def test_unknown_product(self, client, catalogue):
        assert client.get("/api/product/wedding-cake").status_code == 404


class TestBasketApi:
    def test_create_basket(self, client):
        response = client.post("/api/basket")
        assert response.status_code == 200
        basket = response.json()["basket"]
        assert basket["basketId"]
        assert basket["items"] == []
        assert basket["statement"]["bottomLine"]["totalPrice"] == 0

    def test_priced_basket(self, client, reference_basket):
        basket = client.get(f"/api/basket/{reference_basket}").json()["basket"]

        assert basket["statement"]["bottomLine"] == {"totalDelivery": 150, "totalMoms": 430, "totalPrice": 2150}
        group = basket["delivery"]["groups"]["2024-6-1"]
        assert group["total"] == 150
        assert group["label"] == "Saturday, 01 June"
        assert basket["delivery"]["deliverable"] is True

    def test_missing_basket_starts_a_new_one(self, client):
        basket = client.get("/api/basket/no-such-basket").json()["basket"]
        assert basket["basketId"] != "no-such-basket"
        assert basket["items"] == []

    def test_update_quantity(self, client, catalogue):
        basket_id = client.post("/api/basket").json()["basket"]["basketId"]

        response = client.put(
            f"/api/basket/update/quantity/{basket_id}",
            json={"productSlug": "cinnamon-bun", "quantity": 3, "deliveryType": "collection"},
        )

        basket = response.json()["basket"]
        assert basket["items"][0]["quantity"] == 3
        assert basket["statement"]["bottomLine"]["totalPrice"] == 1500

    def test_update_with_unknown_product(self, client, catalogue):
        basket_id = client.post("/api/basket").json()["basket"]["basketId"]

        response = client.put(
            f"/api/basket/update/quantity/{basket_id}",
            json={"productSlug": "wedding-cake", "quantity": 1, "deliveryType": "collection"},
        )

        assert response.status_code == 400
        assert response.json()["status"] == "error"

    def test_remove_item(self, client, reference_basket):
        response = client.put(
            f"/api/basket/update/remove/{reference_basket}",
            json={"productSlug": "chocolate-cake", "deliveryType": "delivery", "deliveryDate": "2024-6-1"},
        )
        basket = response.json()["basket"]
        assert [item["productSlug"] for item in basket["items"]] == ["cinnamon-bun"]
        assert basket["delivery"]["deliveryRequired"] is False

    def test_update_zone(self, client, reference_basket):
        response = client.put(f"/api/basket/update/zone/{reference_basket}", json={"zone": 1, "address": "Vasagatan 2"})
        delivery = response.json()["basket"]["delivery"]
        assert delivery["zone"] == 1
        assert delivery["address"] == "Vasagatan 2"
        assert delivery["deliveryTotal"] == 250

    def test_delete_returns_fresh_basket(self, client, reference_basket):
        basket = client.delete(f"/api/basket/{reference_basket}").json()["basket"]
        assert basket["basketId"] != reference_basket
        assert basket["items"] == []

    def test_missing_products_are_reported(self, client, catalogue):
        basket = Basket.create()
        basket.set_item("lost-loaf", 1, "collection")
        current_domain.repository_for(Basket).add(basket)

        response = client.get(f"/api/basket/{basket.id}")

        assert response.status_code == 422
        assert response.json()["error"] == {"missing": ["lost-loaf"]}


class TestCheckoutApi:
    def test_swish_checkout(self, client, reference_basket):
        order = _checkout(client, reference_basket).json()["order"]
        assert order["status"] == "CREATED"
        assert order["paymentMethod"] == "swish"
        assert order["id"]
        assert order["orderId"]

    def test_swish_rejection(self, client, reference_basket, gateway):
        gateway.configure(should_succeed=False, errors=[{"errorCode": "RP03", "errorMessage": "Callback URL is missing"}])

        response = _checkout(client, reference_basket)

        order = response.json()["order"]
        assert order["status"] == "ERROR"
        assert order["errorCode"] == "RP03"
        assert order["errorMessage"] == "Callback URL is missing"
        assert order["orderId"] is None

    def test_payment_link_checkout(self, client, reference_basket, gateway, mailer):
        order = _checkout(client, reference_basket, payment_method="paymentLink").json()["order"]
        assert order["status"] == "CREATED"
        assert order["id"] is None
        assert len(mailer.sent_emails) == 1

    def test_invalid_form(self, client, reference_basket):
        body = _checkout(client, reference_basket, telephone="").json()
        assert body["status"] == "error"
        assert "telephone" in body["errors"]


class TestSwishCallbacksApi:
    def test_paid_callback(self, client, reference_basket, mailer):
        order = _checkout(client, reference_basket).json()["order"]

        response = _pay(client, order["orderId"], order["id"])

        assert response.json() == {"status": "ok"}
        status = client.get(f"/api/order/swish/{order['id']}").json()["order"]
        assert status["orderStatus"] == "PAID"
        assert status["status"] == "PAID"
        assert status["amount"] == 2150
        assert len(mailer.sent_emails) == 1

    def test_repeated_callback(self, client, reference_basket, mailer):
        order = _checkout(client, reference_basket).json()["order"]
        _pay(client, order["orderId"], order["id"])
        _pay(client, order["orderId"], order["id"])
        assert len(mailer.sent_emails) == 1

    def test_unmatched_callback_is_acknowledged(self, client):
        response = _pay(client, "no-such-order", "SWISH-404")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_unknown_payment_status(self, client):
        assert client.get("/api/order/swish/SWISH-404").status_code == 404

    def test_refund_callback_is_acknowledged(self, client):
        response = client.post("/api/order/swish/refundCallback", json={"id": "R1", "status": "PAID"})
        assert response.json() == {"status": "ok"}

    @pytest.mark.parametrize("path", ["/api/order/swish/paymentCallback", "/api/order/swish/refundCallback"])
    def test_body_that_is_not_json_is_acknowledged(self, client, path):
        response = client.post(path, content=b"not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.parametrize("path", ["/api/order/swish/paymentCallback", "/api/order/swish/refundCallback"])
    def test_json_that_is_not_an_object_is_acknowledged(self, client, path):
        response = client.post(path, json=["x"])
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_order_untouched_by_junk_callbacks(self, client, reference_basket, mailer):
        order = _checkout(client, reference_basket).json()["order"]

        client.post("/api/order/swish/paymentCallback", content=b"{", headers={"Content-Type": "application/json"})
        client.post("/api/order/swish/paymentCallback", json=[order["orderId"], "PAID"])

        status = client.get(f"/api/order/swish/{order['id']}").json()["order"]
        assert status["orderStatus"] == "CREATED"
        assert mailer.sent_emails == []


class TestAdminApi:
    def test_key_required(self, client):
        assert client.get("/api/orders").status_code == 401
        assert client.get("/api/orders", headers={"X-Admin-Key": "wrong"}).status_code == 401

    def test_list_orders(self, client, reference_basket):
        order = _checkout(client, reference_basket).json()["order"]

        orders = client.get("/api/orders", headers=ADMIN).json()["orders"]

        assert [listed["id"] for listed in orders] == [order["orderId"]]
        assert orders[0]["payment"]["method"] == "swish"
        assert orders[0]["bottomLine"]["totalPrice"] == 2150
        assert orders[0]["delivery"][0]["date"] == "2024-6-1"

    def test_get_order(self, client, reference_basket):
        order_id = _checkout(client, reference_basket).json()["order"]["orderId"]
        order = client.get(f"/api/order/{order_id}", headers=ADMIN).json()["order"]
        assert order["details"]["email"] == "astrid@example.se"
        assert order["payment"]["swish"]["status"] == "CREATED"
        assert order["payment"]["refunds"] == []

    def test_payment_link_order_has_no_swish_fields(self, client, reference_basket):
        order_id = _checkout(client, reference_basket, payment_method="paymentLink").json()["order"]["orderId"]

        payment = client.get(f"/api/order/{order_id}", headers=ADMIN).json()["order"]["payment"]

        assert payment["method"] == "paymentLink"
        assert payment["status"] == "CREATED"
        assert payment["confirmationEmailSent"] is True
        assert payment["swish"] is None
        assert payment["refunds"] is None

    def test_get_missing_order(self, client):
        assert client.get("/api/order/no-such-order", headers=ADMIN).status_code == 404

    def test_set_status(self, client, reference_basket):
        order_id = _checkout(client, reference_basket).json()["order"]["orderId"]

        response = client.put("/api/order/status", json={"orderId": order_id, "status": "INVOICED"}, headers=ADMIN)

        assert response.json()["order"]["payment"]["status"] == "INVOICED"

    def test_refund_and_poll(self, client, reference_basket, gateway):
        order = _checkout(client, reference_basket).json()["order"]
        _pay(client, order["orderId"], order["id"])

        refunded = client.put("/api/order/refund", json={"orderId": order["orderId"], "amount": 1000}, headers=ADMIN)
        refund = refunded.json()["order"]["payment"]["refunds"][0]
        assert refund["amount"] == 1000
        assert refund["status"] == "CREATED"

        gateway.settle_refund(refund["id"])
        polled = client.get(f"/api/order/refund/{refund['id']}", headers=ADMIN).json()["order"]
        assert polled["payment"]["refunds"][0]["status"] == "PAID"

    def test_refund_of_payment_link_order(self, client, reference_basket):
        order_id = _checkout(client, reference_basket, payment_method="paymentLink").json()["order"]["orderId"]

        body = client.put("/api/order/refund", json={"orderId": order_id, "amount": 100}, headers=ADMIN).json()

        assert body["status"] == "error"
        assert "payment" in body["errors"]

    def test_refund_of_missing_order(self, client):
        body = client.put("/api/order/refund", json={"orderId": "nope", "amount": 100}, headers=ADMIN).json()
        assert body["status"] == "error"
        assert "order_id" in body["errors"]
