"""Order confirmation email, sent once an order is placed or paid."""

from html import escape

from storefront.shared.pricing import capitalise_first, format_price, parse_delivery_date_code

SUBJECT = "WHISK Order"

_PAYMENT_LABELS = {
    "swish": "Paid with Swish",
    "paymentLink": "A payment link will be sent to you shortly",
}


def _when(item: dict) -> str:
    if not item.get("delivery_date"):
        return capitalise_first(item["delivery_type"])
    date = parse_delivery_date_code(item["delivery_date"])
    return f"{capitalise_first(item['delivery_type'])}, {date.range_label}"


class OrderConfirmationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        name = context.get("name") or "there"
        items = context.get("items", [])
        deliveries = context.get("deliveries", [])
        totals = context.get("totals", {})
        payment = _PAYMENT_LABELS.get(context.get("payment_method"), "")
        store_url = context.get("store_url", "")

        item_lines = [
            f"{item['quantity']} x {item['name']} ({_when(item)}): {format_price(item['line_price'])}" for item in items
        ]
        delivery_lines = [
            f"Delivery {parse_delivery_date_code(delivery['date_code']).label}: {format_price(delivery['total'])}"
            for delivery in deliveries
        ]
        total_lines = [
            f"Delivery: {format_price(totals.get('total_delivery', 0))}",
            f"Moms: {format_price(totals.get('total_moms', 0))}",
            f"Total: {format_price(totals.get('total_price', 0))}",
        ]

        body = "\n".join(
            [
                f"Hi {name},",
                "",
                f"Thank you for your order ({order_id}).",
                "",
                *item_lines,
                *([""] + delivery_lines if delivery_lines else []),
                "",
                *total_lines,
                "",
                payment,
                "",
                f"{store_url}",
            ]
        ).rstrip()

        rows = "".join(
            f"<tr><td>{item['quantity']} x {escape(item['name'])}</td>"
            f"<td>{escape(_when(item))}</td>"
            f"<td>{format_price(item['line_price'])}</td></tr>"
            for item in items
        )
        html_body = (
            f"<p>Hi {escape(name)},</p>"
            f"<p>Thank you for your order ({escape(str(order_id))}).</p>"
            f"<table>{rows}</table>"
            + "".join(f"<p>{escape(line)}</p>" for line in delivery_lines)
            + "".join(f"<p>{escape(line)}</p>" for line in total_lines)
            + (f"<p>{escape(payment)}</p>" if payment else "")
            + (f'<p><a href="{escape(store_url)}">{escape(store_url)}</a></p>' if store_url else "")
        )

        return {"subject": SUBJECT, "body": body, "html_body": html_body}
