"""Tests for amount parsing and money formatting."""

from decimal import Decimal

import pytest

from pennywise.utils.amount_parser import format_money, parse_amount, to_money


@pytest.mark.parametrize(
    "text, expected",
    [
        ("123.45", Decimal("123.45")),
        ("-15.99", Decimal("-15.99")),
        ("$1,234.56", Decimal("1234.56")),
        ("-$20", Decimal("-20")),
        ("(42.10)", Decimal("-42.10")),
        (" 7 ", Decimal("7")),
        ("€9.99", Decimal("9.99")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "12.3.4", "NaN", "Infinity"])
def test_parse_amount_rejects(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_to_money_rounds_half_up():
    assert to_money(Decimal("2.345")) == Decimal("2.35")
    assert to_money(Decimal("-2.345")) == Decimal("-2.35")
    assert to_money(0.1) == Decimal("0.10")
    assert to_money(5) == Decimal("5.00")


def test_format_money():
    assert format_money(Decimal("1234.5")) == "$1,234.50"
    assert format_money(Decimal("-15.99")) == "-$15.99"
    assert format_money(Decimal("0")) == "$0.00"
    assert format_money(Decimal("10"), currency="EUR") == "€10.00"
    assert format_money(Decimal("-10"), currency="CHF") == "-10.00 CHF"
