"""Tests for tax, price formatting and delivery-date parsing."""

import pytest
from protean.exceptions import ValidationError

from storefront.shared.pricing import (
    capitalise_first,
    compute_tax,
    format_price,
    parse_delivery_date_code,
    to_minor_units,
)


class TestComputeTax:
    @pytest.mark.parametrize(
        "gross, rate, expected",
        [
            (1000, 25, 200),
            (150, 25, 30),
            (1000, 12, 107),
            (1000, 6, 57),
            (99, 25, 20),
            (0, 25, 0),
        ],
    )
    def test_back_calculates_tax_from_gross(self, gross, rate, expected):
        assert compute_tax(gross, rate) == expected

    def test_zero_rate_has_no_tax(self):
        assert compute_tax(12345, 0) == 0

    def test_negative_gross_for_reversals(self):
        assert compute_tax(-1000, 25) == -200
        assert compute_tax(-150, 25) == -30


class TestFormatPrice:
    def test_whole_kronor_with_symbol(self):
        assert format_price(1000) == "10 SEK"

    def test_rounds_to_whole_kronor_half_up(self):
        assert format_price(2150) == "22 SEK"
        assert format_price(2149) == "21 SEK"

    def test_minor_units(self):
        assert format_price(2150, include_minor_units=True) == "21.50 SEK"

    def test_without_symbol(self):
        assert format_price(2150, include_minor_units=True, include_symbol=False) == "21.50"

    def test_no_grouping_separators(self):
        assert format_price(123456789) == "1234568 SEK"

    def test_missing_amount_is_zero(self):
        assert format_price(None) == "0 SEK"
        assert format_price(float("nan")) == "0 SEK"

    def test_tiny_negative_amount_has_no_sign(self):
        assert format_price(-40) == "0 SEK"


class TestToMinorUnits:
    def test_string_amount(self):
        assert to_minor_units("21.50") == 2150

    def test_float_amount(self):
        assert to_minor_units(21.5) == 2150
        assert to_minor_units(0.01) == 1

    def test_whole_kronor(self):
        assert to_minor_units(100) == 10000


class TestParseDeliveryDateCode:
    def test_plain_date(self):
        date = parse_delivery_date_code("2024-6-1")
        assert (date.year, date.month, date.day) == (2024, 6, 1)
        assert date.code == "2024-6-1"
        assert date.label == "Saturday, 01 June"
        assert date.start is None and date.end is None

    def test_padded_date_groups_under_canonical_code(self):
        assert parse_delivery_date_code("2023-06-16").code == "2023-6-16"

    def test_time_window(self):
        date = parse_delivery_date_code("2023-06-16-10.00-12.00")
        assert date.code == "2023-6-16"
        assert date.start == "10.00"
        assert date.end == "12.00"
        assert date.range_label == "Friday, 16 June (10.00 - 12.00)"

    def test_range_label_without_window(self):
        assert parse_delivery_date_code("2024-6-1").range_label == "Saturday, 01 June"

    def test_same_input_same_output(self):
        assert parse_delivery_date_code("2024-12-24") == parse_delivery_date_code("2024-12-24")

    @pytest.mark.parametrize("code", ["", "garbage", "2024", "2024-2-30", "2024-13-1"])
    def test_invalid_codes_rejected(self, code):
        with pytest.raises(ValidationError) as exc:
            parse_delivery_date_code(code)
        assert "delivery_date" in exc.value.messages


def test_capitalise_first():
    assert capitalise_first("delivery") == "Delivery"
    assert capitalise_first("COLLECTION") == "Collection"
    assert capitalise_first("") == ""
