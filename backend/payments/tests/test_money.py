"""
Money helper tests: quantization and minor unit conversion.
"""
import pytest
from decimal import Decimal

from payments.money import currency_exponent, from_minor, quantize, to_minor


class TestQuantize:
    @pytest.mark.parametrize(
        "amount, expected",
        [
            ("3.3584", Decimal("3.36")),
            ("10.125", Decimal("10.13")),
            ("0.845", Decimal("0.85")),
            ("-2.505", Decimal("-2.51")),
            (7, Decimal("7.00")),
        ],
    )
    def test_rounds_half_up(self, amount, expected):
        assert quantize(amount) == expected

    def test_float_input_has_no_binary_artifacts(self):
        assert quantize(0.1 + 0.2) == Decimal("0.30")
        assert quantize(1.005) == Decimal("1.01"), "1.005 must not become 1.00"

    def test_zero_decimal_currency(self):
        assert currency_exponent("jpy") == 0
        assert quantize("1234.5", "JPY") == Decimal("1235")


class TestMinorUnits:
    def test_to_minor(self):
        assert to_minor("49.33") == 4933
        assert to_minor(Decimal("10.125")) == 1013, "Quantize before converting"
        assert to_minor("1234", "JPY") == 1234

    def test_from_minor(self):
        assert from_minor(4933) == Decimal("49.33")
        assert from_minor(5) == Decimal("0.05")
        assert from_minor(500, "JPY") == Decimal("500")

    def test_unknown_currency_defaults_to_two_places(self):
        assert to_minor("1.50", "CHF") == 150
