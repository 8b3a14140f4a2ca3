"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

from ledgerline.money import to_cents


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "123.45-" (trailing minus)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    original = amount_str
    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    if amount_str.endswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[:-1]

    # Remove currency symbols
    amount_str = re.sub(r"[$€£¥]", "", amount_str)

    # Remove thousands separators and inner whitespace
    amount_str = amount_str.replace(",", "").replace(" ", "")

    # Remove whitespace again
    amount_str = amount_str.strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{original.strip()}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{original.strip()}'")
    if is_negative:
        amount = -amount
    return amount


def parse_amount_cents(amount_str: str) -> int:
    """Parse an amount string into integer cents, rounding to the nearest cent.

    Raises:
        ValueError: If amount string cannot be parsed
    """
    return to_cents(parse_amount(amount_str))
