"""Tax, price and delivery-date helpers.

All amounts are integers in öre (1/100 SEK). Functions here are pure and
independent of the process locale.
"""

import math
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

CURRENCY_SYMBOL = "SEK"

_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def compute_tax(gross: int, rate: float) -> int:
    """Back-calculate the tax contained in a tax-inclusive gross amount.

    Rounds half up to the nearest öre, so negative amounts used for
    reversals mirror their positive counterparts only up to the half point.
    """
    net = gross / (1 + rate / 100)
    return math.floor(gross - net + 0.5)


def format_price(amount, include_minor_units: bool = False, include_symbol: bool = True) -> str:
    """Render an öre amount as kronor, e.g. ``1000 -> "10 SEK"``.

    No grouping separators. Rounding is half away from zero.
    """
    if amount is None or (isinstance(amount, float) and math.isnan(amount)):
        amount = 0

    kronor = Decimal(str(amount)) / 100
    quantum = Decimal("0.01") if include_minor_units else Decimal("1")
    text = str(kronor.quantize(quantum, rounding=ROUND_HALF_UP))
    if text in ("-0", "-0.00"):
        text = text[1:]

    return f"{text} {CURRENCY_SYMBOL}" if include_symbol else text


def to_minor_units(kronor) -> int:
    """Convert a kronor amount as the gateway reports it (``"21.50"``) to öre."""
    return int((Decimal(str(kronor)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class DeliveryDate:
    year: int
    month: int
    day: int
    label: str
    start: str | None = None
    end: str | None = None

    @property
    def code(self) -> str:
        return f"{self.year}-{self.month}-{self.day}"

    @property
    def range_label(self) -> str:
        if self.start is None and self.end is None:
            return self.label
        return f"{self.label} ({self.start} - {self.end})"


def parse_delivery_date_code(code: str) -> DeliveryDate:
    """Parse ``YEAR-MONTH-DAY[-START-END]`` into a :class:`DeliveryDate`.

    ``2023-06-16-10.00-12.00`` and ``2023-6-16`` both group under the
    canonical code ``2023-6-16``.
    """
    parts = (code or "").split("-")
    try:
        year, month, day = (int(part) for part in parts[:3])
        calendar_date = date(year, month, day)
    except (TypeError, ValueError) as exc:
        raise ValidationError({"delivery_date": [f"Invalid delivery date code: {code!r}"]}) from exc

    label = f"{_WEEKDAYS[calendar_date.weekday()]}, {calendar_date.day:02d} {_MONTHS[calendar_date.month - 1]}"
    start = parts[3] if len(parts) > 3 else None
    end = parts[4] if len(parts) > 4 else None

    return DeliveryDate(year=year, month=month, day=day, label=label, start=start, end=end)


def capitalise_first(word: str) -> str:
    return word[:1].upper() + word[1:].lower()
