"""Amount parsing and money helpers."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

CENT = Decimal("0.01")
CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥"}


def to_money(value) -> Decimal:
    """Convert a number to a Decimal rounded half-up to cents.

    Floats go through ``str`` first so that 0.1 becomes Decimal("0.10")
    rather than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles "123.45", "$123.45", "-$123.45", "1,234.56" and the accounting
    form "(123.45)" for negatives.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    is_negative = text.startswith("(") and text.endswith(")")
    if is_negative:
        text = text[1:-1]

    text = re.sub(r"[$€£¥,\s]", "", text)
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def format_money(amount: Decimal, currency: str = "USD") -> str:
    """Format an amount for display, e.g. ``-$1,234.50``."""
    symbol = CURRENCY_SYMBOLS.get(currency, "")
    sign = "-" if amount < 0 else ""
    text = f"{symbol}{abs(amount):,.2f}"
    return f"{sign}{text}" if symbol else f"{sign}{text} {currency}"
