"""Duplicate detection for staged CSV rows against the existing ledger.

Classification is a pure function of the staged rows and the existing
transactions, so running it twice on an unchanged ledger gives identical
results.
"""

import hashlib
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Sequence

from ledgerline.domain.entities import Transaction
from ledgerline.domain.staging import StagedTransaction
from ledgerline.utils.text import normalize_whitespace

logger = logging.getLogger(__name__)

DEFAULT_FUZZY_WINDOW_DAYS = 3


class DuplicateClassification(str, Enum):
    """Outcome of comparing a staged row with the ledger."""

    NEW = "new"
    EXACT = "exact"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class ClassifiedTransaction:
    """A staged row plus its duplicate classification.

    classification is None for invalid rows, which are only ever counted as
    errors.
    """

    staged: StagedTransaction
    classification: Optional[DuplicateClassification]
    matched_ids: tuple[int, ...] = ()

    @property
    def row_index(self) -> int:
        return self.staged.row_index

    @property
    def is_error(self) -> bool:
        return self.classification is None


@dataclass(frozen=True)
class DetectionStats:
    total: int = 0
    new: int = 0
    exact_duplicates: int = 0
    fuzzy_duplicates: int = 0
    errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "new": self.new,
            "exact_duplicates": self.exact_duplicates,
            "fuzzy_duplicates": self.fuzzy_duplicates,
            "errors": self.errors,
        }


@dataclass(frozen=True)
class DetectionResult:
    account_id: int
    rows: tuple[ClassifiedTransaction, ...]
    stats: DetectionStats
    fuzzy_window_days: int = DEFAULT_FUZZY_WINDOW_DAYS

    def with_classification(self, classification: DuplicateClassification) -> list[ClassifiedTransaction]:
        return [row for row in self.rows if row.classification == classification]

    @property
    def errors(self) -> list[ClassifiedTransaction]:
        return [row for row in self.rows if row.is_error]


@dataclass
class _LedgerIndex:
    """Existing transactions of one account bucketed by amount."""

    by_amount: dict[int, list[Transaction]] = field(default_factory=lambda: defaultdict(list))

    def candidates(self, amount: int) -> list[Transaction]:
        return self.by_amount.get(amount, [])


def normalize_description(description: str) -> str:
    """Normalize a description for duplicate comparison."""
    return normalize_whitespace(description).lower()


def fingerprint(txn_date: date, amount: int, description: str) -> str:
    """SHA-256 of "YYYY-MM-DD|cents|normalized description"."""
    payload = f"{txn_date.isoformat()}|{amount}|{normalize_description(description)}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def build_index(existing: Iterable[Transaction], account_id: int) -> _LedgerIndex:
    """Index live transactions of an account by (account_id, amount)."""
    index = _LedgerIndex()
    for txn in existing:
        if txn.account_id != account_id or txn.is_archived:
            continue
        index.by_amount[txn.amount].append(txn)
    for bucket in index.by_amount.values():
        bucket.sort(key=lambda t: t.id)
    return index


def classify(
    staged: StagedTransaction,
    index: _LedgerIndex,
    fuzzy_window_days: int = DEFAULT_FUZZY_WINDOW_DAYS,
) -> ClassifiedTransaction:
    """Classify one staged row against an indexed ledger.

    Exact: same date, amount and normalized description. Fuzzy: same amount
    with the date within the tolerance window. Exact wins over fuzzy.
    """
    if not staged.is_valid:
        return ClassifiedTransaction(staged=staged, classification=None)

    description = normalize_description(staged.description or "")
    exact: list[int] = []
    fuzzy: list[int] = []
    for txn in index.candidates(staged.amount):
        if txn.date == staged.date and normalize_description(txn.original_description) == description:
            exact.append(txn.id)
        elif abs((txn.date - staged.date).days) <= fuzzy_window_days:
            fuzzy.append(txn.id)

    if exact:
        return ClassifiedTransaction(staged, DuplicateClassification.EXACT, tuple(exact))
    if fuzzy:
        return ClassifiedTransaction(staged, DuplicateClassification.FUZZY, tuple(fuzzy))
    return ClassifiedTransaction(staged, DuplicateClassification.NEW)


def detect_duplicates(
    staged: Sequence[StagedTransaction],
    existing: Iterable[Transaction],
    account_id: int,
    fuzzy_window_days: int = DEFAULT_FUZZY_WINDOW_DAYS,
) -> DetectionResult:
    """Classify every staged row as new, exact or fuzzy duplicate.

    Args:
        staged: Staged rows, valid and invalid, in file order
        existing: Existing transactions (other accounts and archived rows are
            ignored)
        account_id: Target account
        fuzzy_window_days: Date tolerance for fuzzy matches, in days

    Returns:
        DetectionResult whose stats always satisfy
        new + exact_duplicates + fuzzy_duplicates + errors == total
    """
    if fuzzy_window_days < 0:
        raise ValueError("fuzzy_window_days must not be negative")

    index = build_index(existing, account_id)
    rows = tuple(classify(txn, index, fuzzy_window_days) for txn in staged)

    counts = defaultdict(int)
    for row in rows:
        counts[row.classification] += 1
    stats = DetectionStats(
        total=len(rows),
        new=counts[DuplicateClassification.NEW],
        exact_duplicates=counts[DuplicateClassification.EXACT],
        fuzzy_duplicates=counts[DuplicateClassification.FUZZY],
        errors=counts[None],
    )
    logger.info(
        "Duplicate detection for account %d: %s",
        account_id,
        stats.as_dict(),
    )
    return DetectionResult(
        account_id=account_id,
        rows=rows,
        stats=stats,
        fuzzy_window_days=fuzzy_window_days,
    )
