"""
Monetary precision helpers.

All money in the cart, order and payment code is Decimal and is quantized
to the currency's minor unit at the point of storage. Stripe amounts are
integers in minor units (cents).

Key Principles:
1. NEVER use float for money
2. Quantize Decimals BEFORE converting to minor units
3. Round half away from zero (ROUND_HALF_UP), matching receipt arithmetic
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, str, int, float]

ZERO = Decimal("0.00")

# Currency minor unit exponents (how many decimal places)
CURRENCY_EXPONENT = {
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "CAD": 2,
    "AUD": 2,
    # Zero-decimal currencies
    "JPY": 0,
    "KRW": 0,
}


def currency_exponent(currency: str) -> int:
    """
    Get the number of decimal places for a currency.

    Examples:
        >>> currency_exponent("usd")
        2
        >>> currency_exponent("JPY")
        0
    """
    return CURRENCY_EXPONENT.get(currency.upper(), 2)


def to_decimal(amount: Number) -> Decimal:
    if isinstance(amount, float):
        # Convert float to string first to avoid binary precision artifacts
        amount = str(amount)
    return Decimal(amount)


def quantize(amount: Number, currency: str = "USD") -> Decimal:
    """
    Round to the currency's decimals.

    Examples:
        >>> quantize("3.3584")
        Decimal('3.36')
        >>> quantize("10.125")
        Decimal('10.13')
        >>> quantize("1234.5", "JPY")
        Decimal('1235')
    """
    step = Decimal(10) ** -currency_exponent(currency)
    return to_decimal(amount).quantize(step, rounding=ROUND_HALF_UP)


def to_minor(amount: Number, currency: str = "USD") -> int:
    """
    Convert to minor units (e.g., cents) after quantization.

    Examples:
        >>> to_minor("49.33")
        4933
        >>> to_minor("10.125")
        1013
    """
    exponent = currency_exponent(currency)
    return int((quantize(amount, currency) * (10 ** exponent)).to_integral_value())


def from_minor(minor: int, currency: str = "USD") -> Decimal:
    """
    Convert from minor units to Decimal.

    Examples:
        >>> from_minor(4933)
        Decimal('49.33')
    """
    exponent = currency_exponent(currency)
    return quantize(Decimal(minor) / (10 ** exponent), currency)
