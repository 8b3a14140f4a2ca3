"""Fixed-point money helpers.

Amounts are integer cents everywhere in ledgerline. Decimal is only used at
the edges, when text is turned into cents or cents are rendered for export.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable

CENTS_PER_UNIT = 100
_CENT = Decimal("0.01")


def to_cents(value: Decimal | int | str) -> int:
    """Convert a decimal amount to integer cents, rounding half up.

    Raises:
        ValueError: If value is not a finite decimal number
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value * CENTS_PER_UNIT
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Could not convert '{value}' to cents") from e
    if not amount.is_finite():
        raise ValueError(f"Could not convert '{value}' to cents")
    return int((amount * CENTS_PER_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a two-place Decimal."""
    return (Decimal(cents) / CENTS_PER_UNIT).quantize(_CENT)


def format_cents(cents: int) -> str:
    """Render cents as a plain decimal string (e.g. -2500 -> '-25.00')."""
    return str(from_cents(cents))


def sum_cents(amounts: Iterable[int]) -> int:
    """Sum cent amounts, refusing anything that is not an integer."""
    total = 0
    for amount in amounts:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise TypeError(f"Money amounts must be integer cents, got {amount!r}")
        total += amount
    return total
