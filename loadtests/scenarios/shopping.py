"""Storefront load test scenarios.

Two stateful SequentialTaskSet journeys: a browsing customer who fills and
empties a basket, and a customer who checks out with Swish and is paid
through a simulated Swish callback.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import basket_line, checkout_data, payment_callback, zone_data
from loadtests.helpers.response import extract_error_detail, is_error
from loadtests.helpers.state import BasketState, OrderState


class _BasketTasks(SequentialTaskSet):
    def on_start(self):
        self.basket = BasketState()
        self.products = []

    def _load_products(self):
        with self.client.get("/api/products", catch_response=True, name="GET /api/products") as resp:
            if resp.status_code == 200:
                self.products = resp.json()["products"]
            else:
                resp.failure(f"List products failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()
            if not self.products:
                resp.failure("Catalogue is empty, load products first")
                self.interrupt()

    def _create_basket(self):
        with self.client.post("/api/basket", catch_response=True, name="POST /api/basket") as resp:
            if resp.status_code == 200:
                self.basket.basket_id = resp.json()["basket"]["basketId"]
            else:
                resp.failure(f"Create basket failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    def _add_line(self):
        line = basket_line(random.choice(self.products))
        with self.client.put(
            f"/api/basket/update/quantity/{self.basket.basket_id}",
            json=line,
            catch_response=True,
            name="PUT /api/basket/update/quantity/{id}",
        ) as resp:
            if is_error(resp):
                resp.failure(f"Add line failed: {resp.status_code} {extract_error_detail(resp)}")
                return
            self.basket.lines.append(line)
            self.basket.total_price = resp.json()["basket"]["statement"]["bottomLine"]["totalPrice"]

    def _choose_zone(self):
        max_zone = min((product["maxZone"] for product in self.products), default=0)
        with self.client.put(
            f"/api/basket/update/zone/{self.basket.basket_id}",
            json=zone_data(max_zone),
            catch_response=True,
            name="PUT /api/basket/update/zone/{id}",
        ) as resp:
            if is_error(resp):
                resp.failure(f"Set zone failed: {resp.status_code} {extract_error_detail(resp)}")
                return
            self.basket.total_price = resp.json()["basket"]["statement"]["bottomLine"]["totalPrice"]


class BrowsingJourney(_BasketTasks):
    """List products -> Create basket -> Add lines -> Choose zone -> Remove a line -> Abandon."""

    @task
    def list_products(self):
        self._load_products()

    @task
    def view_product(self):
        slug = random.choice(self.products)["slug"]
        self.client.get(f"/api/product/{slug}", name="GET /api/product/{slug}")

    @task
    def create_basket(self):
        self._create_basket()

    @task
    def add_lines(self):
        for _ in range(random.randint(1, 4)):
            self._add_line()

    @task
    def choose_zone(self):
        self._choose_zone()

    @task
    def remove_line(self):
        if not self.basket.lines:
            return
        line = self.basket.lines.pop()
        with self.client.put(
            f"/api/basket/update/remove/{self.basket.basket_id}",
            json={key: line[key] for key in ("productSlug", "deliveryType", "deliveryDate")},
            catch_response=True,
            name="PUT /api/basket/update/remove/{id}",
        ) as resp:
            if is_error(resp):
                resp.failure(f"Remove line failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def view_basket(self):
        self.client.get(f"/api/basket/{self.basket.basket_id}", name="GET /api/basket/{id}")

    @task
    def done(self):
        self.interrupt()


class SwishCheckoutJourney(_BasketTasks):
    """Create basket -> Add lines -> Choose zone -> Checkout with Swish -> Callback PAID -> Poll status."""

    def on_start(self):
        super().on_start()
        self.order = OrderState()

    @task
    def prepare_basket(self):
        self._load_products()
        self._create_basket()
        for _ in range(random.randint(1, 3)):
            self._add_line()
        self._choose_zone()

    @task
    def checkout(self):
        with self.client.post(
            f"/api/order/{self.basket.basket_id}",
            json=checkout_data("swish"),
            catch_response=True,
            name="POST /api/order/{basket_id}",
        ) as resp:
            if is_error(resp):
                resp.failure(f"Checkout failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()
                return

            order = resp.json()["order"]
            if order["status"] != "CREATED":
                resp.failure(f"Swish refused payment: {order.get('errorCode')} {order.get('errorMessage')}")
                self.interrupt()
                return
            self.order.order_id = order["orderId"]
            self.order.swish_id = order["id"]
            self.order.status = order["status"]

    @task
    def swish_pays(self):
        self.client.post(
            "/api/order/swish/paymentCallback",
            json=payment_callback(self.order.order_id, self.order.swish_id, self.basket.total_price),
            name="POST /api/order/swish/paymentCallback",
        )

    @task
    def poll_status(self):
        with self.client.get(
            f"/api/order/swish/{self.order.swish_id}",
            catch_response=True,
            name="GET /api/order/swish/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Status lookup failed: {resp.status_code} {extract_error_detail(resp)}")
            elif resp.json()["order"]["orderStatus"] != "PAID":
                resp.failure(f"Order not paid: {resp.json()['order']['orderStatus']}")
            else:
                self.order.status = "PAID"

    @task
    def done(self):
        self.interrupt()


class BrowsingUser(HttpUser):
    """Customers who look around and leave."""

    wait_time = between(0.5, 2.0)
    tasks = [BrowsingJourney]


class ShopperUser(HttpUser):
    """Locust user mixing browsing and buying.

    Weighted distribution:
    - 70% Browsing and abandoning a basket
    - 30% Swish checkout through payment
    """

    wait_time = between(0.5, 2.0)
    tasks = {BrowsingJourney: 7, SwishCheckoutJourney: 3}
