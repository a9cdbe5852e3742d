"""Utility functions for pennywise."""

from pennywise.utils.date_parser import parse_date, utcnow
from pennywise.utils.amount_parser import parse_amount, to_money, format_money

__all__ = ["parse_date", "utcnow", "parse_amount", "to_money", "format_money"]
