"""Domain model entities for ledgerline.

These are pure data classes representing business concepts, independent of
database schema. Amounts are integer cents throughout.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from typing import Optional

from ledgerline.domain.csv_mapping import CSVMapping


@dataclass(frozen=True)
class Account:
    """Bank account domain entity.

    last_reconciled_balance/last_reconciled_date form the reconciliation
    checkpoint written by a finalized reconciliation.
    """

    id: int
    name: str
    bank_name: str
    opening_balance: int
    opening_balance_date: Optional[date]
    created_at: datetime
    updated_at: Optional[datetime] = None
    last_reconciled_balance: Optional[int] = None
    last_reconciled_date: Optional[date] = None
    csv_mapping: Optional[CSVMapping] = None
    is_archived: bool = False


@dataclass(frozen=True)
class Category:
    """Category domain entity with hierarchical structure."""

    id: int
    name: str
    parent_id: Optional[int]
    created_at: datetime
    is_archived: bool = False


@dataclass(frozen=True)
class SplitLine:
    """One category allocation of a transaction amount."""

    category_id: Optional[int]
    amount: int
    memo: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    A simple (non-split) transaction carries exactly one line for the full
    amount. A split transaction's lines sum exactly to amount.
    """

    id: int
    account_id: int
    date: date
    amount: int
    payee: Optional[str]
    original_description: str
    lines: tuple[SplitLine, ...] = ()
    is_split: bool = False
    is_reviewed: bool = False
    reconciled: bool = False
    reconciled_at: Optional[datetime] = None
    is_archived: bool = False
    source_batch_id: Optional[int] = None
    fingerprint: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None

    @property
    def category_id(self) -> Optional[int]:
        """Category of a simple transaction (None for splits or uncategorized)."""
        if self.is_split or not self.lines:
            return None
        return self.lines[0].category_id


@dataclass(frozen=True)
class NewTransaction:
    """A transaction that has not been written yet (commit payload)."""

    account_id: int
    date: date
    amount: int
    original_description: str
    payee: Optional[str] = None
    category_id: Optional[int] = None
    fingerprint: Optional[str] = None


@dataclass(frozen=True)
class ImportBatch:
    """One committed CSV import, undoable as a unit."""

    id: int
    account_id: int
    file_name: str
    imported_at: datetime
    total_rows: int
    imported_count: int
    duplicate_count: int
    error_count: int
    is_undone: bool = False
    undone_at: Optional[datetime] = None
    imported_by: Optional[str] = None
    undone_by: Optional[str] = None
    mapping_snapshot: Optional[dict] = None


class MatchType(str, Enum):
    """How a rule keyword is compared with a description."""

    CONTAINS = "contains"
    EXACT = "exact"
    STARTS_WITH = "starts_with"
    REGEX = "regex"


@dataclass(frozen=True)
class Rule:
    """Keyword categorization rule. Lower priority values are evaluated first."""

    id: int
    keyword: str
    match_type: MatchType
    target_category_id: int
    priority: int = 100
    case_sensitive: bool = False
    suggested_payee: Optional[str] = None
    is_enabled: bool = True
    use_count: int = 0
    last_used_at: Optional[datetime] = None
    amount_min: Optional[int] = None
    amount_max: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class CSVFormat:
    """Saved, named CSV mapping bound to an account."""

    id: int
    name: str
    account_id: int
    mapping: CSVMapping
    created_at: datetime


@dataclass(frozen=True)
class Reconciliation:
    """Persisted record of one finalized reconciliation (a checkpoint)."""

    id: int
    account_id: int
    statement_date: date
    statement_balance: int
    opening_balance: int
    calculated_balance: int
    difference: int
    finalized_at: datetime
    transaction_ids: tuple[int, ...] = field(default_factory=tuple)
    finalized_by: Optional[str] = None


@dataclass(frozen=True)
class TaxYearLock:
    """Tax-year lock watermark: every year <= max_locked_year is locked."""

    max_locked_year: Optional[int]
    locked_at: Optional[datetime] = None
    locked_by: Optional[str] = None
