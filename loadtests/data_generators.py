"""Faker-based data generators for Locust load test scenarios.

Payloads match the camelCase request schemas of the storefront API and
pass checkout validation (Swish needs a Swedish mobile number).
"""

import random
from datetime import date, timedelta

from faker import Faker

fake = Faker("sv_SE")

WINDOWS = ("08.00-10.00", "10.00-12.00", "13.00-15.00")


def delivery_date_code(days_ahead: int | None = None) -> str:
    """A delivery date code like ``2024-6-1-10.00-12.00`` in the coming fortnight."""
    day = date.today() + timedelta(days=days_ahead if days_ahead is not None else random.randint(1, 14))
    return f"{day.year}-{day.month}-{day.day}-{random.choice(WINDOWS)}"


def swedish_mobile() -> str:
    return f"07{random.choice('0236')}-{random.randint(100, 999)} {random.randint(10, 99)} {random.randint(10, 99)}"


def basket_line(product: dict) -> dict:
    """An UpdateItemRequest for one of the product's delivery methods."""
    delivery_type = random.choice(product["deliveryMethods"])
    return {
        "productSlug": product["slug"],
        "quantity": random.randint(1, 3),
        "deliveryType": delivery_type,
        "deliveryDate": delivery_date_code() if delivery_type == "delivery" else "",
    }


def zone_data(max_zone: int = 0) -> dict:
    return {"zone": random.randint(0, max(max_zone, 0)), "address": fake.address().replace("\n", ", ")[:500]}


def checkout_data(payment_method: str = "swish") -> dict:
    return {
        "name": fake.name()[:200],
        "email": fake.email(),
        "telephone": swedish_mobile(),
        "paymentMethod": payment_method,
        "notes": fake.sentence() if random.random() < 0.2 else "",
    }


def payment_callback(order_id: str, swish_id: str, amount: int, status: str = "PAID") -> dict:
    """A Swish payment callback as Swish would post it."""
    return {
        "id": swish_id,
        "payeePaymentReference": order_id,
        "paymentReference": fake.bothify("################").upper(),
        "payerAlias": "46701234567",
        "amount": f"{amount / 100:.2f}",
        "currency": "SEK",
        "status": status,
        "datePaid": fake.iso8601() if status == "PAID" else None,
    }
