"""Validation of split lines against a transaction total."""

from dataclasses import dataclass
from typing import Sequence

from ledgerline.domain.entities import SplitLine
from ledgerline.money import format_cents
from ledgerline.utils.text import MAX_MEMO_LENGTH


@dataclass(frozen=True)
class SplitValidation:
    """Result of validating split lines.

    remainder is total minus the sum of line amounts; zero when balanced.
    """

    is_valid: bool
    errors: tuple[str, ...]
    remainder: int


def calculate_remainder(total: int, lines: Sequence[SplitLine]) -> int:
    """Amount of the total not yet allocated to a line."""
    return total - sum(line.amount for line in lines)


def validate_split(total: int, lines: Sequence[SplitLine]) -> SplitValidation:
    """Check that split lines form a valid allocation of total.

    A split needs at least two lines. Every line needs a category and a
    non-zero amount, and the lines must sum exactly to the total. Errors name
    the 1-based line number.
    """
    errors: list[str] = []

    if sum(1 for line in lines if line.amount != 0) < 2:
        errors.append("A split needs at least two lines with non-zero amounts")

    for number, line in enumerate(lines, start=1):
        if line.category_id is None:
            errors.append(f"Line {number}: category is required")
        if line.amount == 0:
            errors.append(f"Line {number}: amount must not be zero")
        if line.memo is not None and len(line.memo) > MAX_MEMO_LENGTH:
            errors.append(f"Line {number}: memo too long (max {MAX_MEMO_LENGTH} characters)")

    remainder = calculate_remainder(total, lines)
    if lines and remainder != 0:
        errors.append(
            f"Split lines must sum to the transaction total: "
            f"{format_cents(remainder)} remaining"
        )

    return SplitValidation(is_valid=not errors, errors=tuple(errors), remainder=remainder)


def single_line(total: int, category_id) -> tuple[SplitLine, ...]:
    """Collapse a transaction to one line for the full amount."""
    return (SplitLine(category_id=category_id, amount=total),)
