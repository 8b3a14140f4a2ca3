"""Shared domain error messages and error types."""

from datetime import date
from typing import Iterable, Optional

from ledgerline.money import format_cents


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class RowValidationError(ValidationError):
    """A single CSV row failed to parse.

    Staging records these per row instead of raising them, so a whole file
    can be previewed even when some rows fail.
    """

    def __init__(self, row_index: int, message: str):
        self.row_index = row_index
        super().__init__(message)


class MappingError(ValidationError):
    """Required column mapping is missing, unknown or ambiguous."""


class SplitImbalanceError(ValidationError):
    """Split lines do not balance against the transaction total."""

    def __init__(self, errors: list[str], remainder: int):
        self.errors = list(errors)
        self.remainder = remainder
        super().__init__("; ".join(self.errors) or "Invalid split")


class ReconciliationImbalanceError(ValidationError):
    """Reconciliation cannot be finalized with a non-zero difference."""

    def __init__(self, difference: int):
        self.difference = difference
        super().__init__(reconciliation_unbalanced(difference))


class LockViolationError(ConflictError):
    """Mutation attempted on a transaction dated in a locked tax year."""

    def __init__(self, locked_dates: Iterable[date], max_locked_year: Optional[int] = None):
        self.locked_dates = sorted(set(locked_dates))
        self.max_locked_year = max_locked_year
        super().__init__(locked_dates_message(self.locked_dates, max_locked_year))


class UndoConflict(ConflictError):
    """Undo requested on a batch that contains reconciled transactions."""

    def __init__(self, batch_id: int, reconciled_ids: Iterable[int]):
        self.batch_id = batch_id
        self.reconciled_ids = sorted(reconciled_ids)
        super().__init__(
            f"Cannot undo import batch {batch_id}: "
            f"{len(self.reconciled_ids)} transaction"
            f"{'s' if len(self.reconciled_ids) != 1 else ''} already reconciled "
            f"({', '.join(str(i) for i in self.reconciled_ids)})"
        )


class CommitFailure(DomainError):
    """An atomic write (commit, undo, finalize) failed and was rolled back.

    Nothing was persisted; the caller may retry the whole operation.
    """


class DuplicateAmbiguityWarning(UserWarning):
    """A staged row fuzzily matches existing transactions.

    Not an error: the row needs a human decision and is never auto-resolved.
    """


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def category_path_not_found(path: str) -> str:
    """Return message for missing category by path."""
    return f"Category '{path}' not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def batch_not_found(batch_id: int) -> str:
    """Return message for missing import batch."""
    return f"Import batch {batch_id} not found"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing rule."""
    return f"Rule {rule_id} not found"


def transaction_reconciled(transaction_id: int) -> str:
    """Return message for an edit blocked by reconciliation."""
    return f"Transaction {transaction_id} is reconciled and cannot be modified"


def transaction_archived(transaction_id: int) -> str:
    """Return message for an edit on an archived transaction."""
    return f"Transaction {transaction_id} is archived"


def reconciliation_unbalanced(difference: int) -> str:
    """Return message for finalize attempted with a difference."""
    return (
        f"Cannot finalize reconciliation: difference is {format_cents(difference)} "
        "(statement balance must equal calculated ending balance)"
    )


def locked_dates_message(locked_dates: list[date], max_locked_year: Optional[int]) -> str:
    """Return message listing dates that fall in locked tax years."""
    shown = ", ".join(d.isoformat() for d in locked_dates[:5])
    if len(locked_dates) > 5:
        shown += f" and {len(locked_dates) - 5} more"
    year_part = f" (tax years through {max_locked_year} are locked)" if max_locked_year else ""
    return f"Dates fall in a locked tax year{year_part}: {shown}"
