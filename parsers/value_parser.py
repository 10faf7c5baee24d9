"""
Value parsing for pasted stock lists.

Turns raw quantity and price cells into numbers and detects the currency
used by a list. Parsing is permissive on purpose: a bad quantity becomes 1
and a bad price becomes 0, never an error.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

# Single-character symbols checked first, then three-letter codes
CURRENCY_SYMBOLS = ("£", "€", "$", "¥")
CURRENCY_CODES = ("GBP", "EUR", "USD", "AUD", "CAD", "JPY")

TWO_PLACES = Decimal("0.01")

_LEADING_INT_RE = re.compile(r"^[+-]?[0-9]+")
_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]+")
_LEADING_DECIMAL_RE = re.compile(r"^-?(?:[0-9]+\.?[0-9]*|\.[0-9]+)")

Number = Union[Decimal, int, float]


def parse_quantity(raw: Optional[str]) -> int:
    """
    Parse an expected quantity.

    Takes the leading integer of the trimmed cell ("12 boxes" -> 12,
    "3.9" -> 3). Anything unparseable, zero or negative becomes 1: an
    expected item always has at least one unit.
    """
    if not raw:
        return 1

    match = _LEADING_INT_RE.match(raw.strip())
    if not match:
        return 1

    quantity = int(match.group())
    return quantity if quantity >= 1 else 1


def parse_price(raw: Optional[str]) -> Decimal:
    """
    Parse a unit price.

    Every character other than digits, "." and "-" is dropped, then the
    longest leading decimal is read ("£1,200.00" -> 1200.00). Returns 0
    when nothing numeric is left.
    """
    if not raw:
        return Decimal("0")

    cleaned = _NON_NUMERIC_RE.sub("", raw)
    match = _LEADING_DECIMAL_RE.match(cleaned)
    if not match:
        return Decimal("0")

    try:
        return Decimal(match.group())
    except InvalidOperation:
        return Decimal("0")


def detect_currency_symbol(raw: Optional[str]) -> str:
    """
    Detect the currency of a raw price cell.

    Order: known symbol prefix, known code prefix (case-insensitive), then
    any single leading character that is not a digit, "." or "-".

    Returns:
        Symbol or code (e.g. "£", "EUR"), or "" when nothing matches
    """
    if not raw:
        return ""

    value = raw.strip()

    for symbol in CURRENCY_SYMBOLS:
        if value.startswith(symbol):
            return symbol

    upper = value.upper()
    for code in CURRENCY_CODES:
        if upper.startswith(code):
            return code

    if value and value[0] not in "0123456789.-":
        return value[0]

    return ""


def to_money(amount: Number) -> Decimal:
    """Round to two decimal places, half away from zero."""
    rounded = Decimal(str(amount)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    # No "-0.00"
    return abs(rounded) if rounded == 0 else rounded


@dataclass(frozen=True)
class CurrencyContext:
    """
    Currency applied to every monetary value of one load.

    Frozen from the first priced row of the list; an empty symbol means
    amounts are shown as bare numbers.
    """
    symbol: str = ""

    @classmethod
    def from_raw_price(cls, raw: Optional[str]) -> "CurrencyContext":
        return cls(symbol=detect_currency_symbol(raw))

    def format(self, amount: Number, as_currency: bool = False) -> str:
        """
        Format an amount with two decimals.

        The symbol is prefixed only for currency values when one was
        detected: format(6, True) -> "£6.00", format(-6, True) -> "£-6.00".
        """
        formatted = f"{to_money(amount):.2f}"
        if as_currency and self.symbol:
            return f"{self.symbol}{formatted}"
        return formatted


def format_value(amount: Number, as_currency: bool = False, currency_symbol: str = "") -> str:
    """Format an amount without holding a CurrencyContext."""
    return CurrencyContext(symbol=currency_symbol).format(amount, as_currency)
