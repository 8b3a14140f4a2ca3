"""Utility functions for ledgerline."""

from ledgerline.utils.date_parser import parse_date, parse_date_with_format
from ledgerline.utils.amount_parser import parse_amount, parse_amount_cents
from ledgerline.utils.text import sanitize_text

__all__ = [
    "parse_date",
    "parse_date_with_format",
    "parse_amount",
    "parse_amount_cents",
    "sanitize_text",
]
