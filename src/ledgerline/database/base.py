"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date, datetime

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerline.domain.csv_mapping import CSVMapping
from ledgerline.domain.entities import (
    Account,
    Category,
    CSVFormat,
    ImportBatch,
    MatchType,
    NewTransaction,
    Reconciliation,
    Rule,
    SplitLine,
    TaxYearLock,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for ledgerline.

    Methods documented as atomic either apply every change or none of them,
    and re-check reconciled/archived flags and the tax-year lock inside the
    same transaction as the write.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        bank_name: str,
        opening_balance: int = 0,
        opening_balance_date: Optional[date] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, include_archived: bool = False) -> list[Account]:
        """List accounts ordered by name."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        bank_name: Optional[str] = None,
        opening_balance: Optional[int] = None,
        opening_balance_date: Optional[date] = None,
    ) -> None:
        """Update account fields that are not None."""
        pass

    @abstractmethod
    def set_account_archived(self, account_id: int, is_archived: bool) -> None:
        """Archive or restore an account."""
        pass

    @abstractmethod
    def save_account_mapping(self, account_id: int, mapping: Optional[CSVMapping]) -> None:
        """Remember the CSV mapping last used for an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Get count of live transactions associated with an account."""
        pass

    # CSV Format operations
    @abstractmethod
    def create_csv_format(self, name: str, account_id: int, mapping: CSVMapping) -> int:
        """Create a saved CSV format. Returns format ID."""
        pass

    @abstractmethod
    def get_csv_format(self, format_id: int) -> Optional[CSVFormat]:
        """Get CSV format by ID."""
        pass

    @abstractmethod
    def get_csv_format_by_name(self, name: str) -> Optional[CSVFormat]:
        """Get CSV format by name."""
        pass

    @abstractmethod
    def list_csv_formats(self, account_id: Optional[int] = None) -> list[CSVFormat]:
        """List CSV formats, optionally filtered by account."""
        pass

    @abstractmethod
    def update_csv_format(
        self,
        format_id: int,
        name: Optional[str] = None,
        account_id: Optional[int] = None,
        mapping: Optional[CSVMapping] = None,
    ) -> None:
        """Update CSV format fields."""
        pass

    @abstractmethod
    def delete_csv_format(self, format_id: int) -> None:
        """Delete a CSV format."""
        pass

    # Category operations
    @abstractmethod
    def create_category(self, name: str, parent_id: Optional[int] = None) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_path(self, path: str) -> Optional[Category]:
        """Get category by path (e.g., 'Food & Dining > Groceries')."""
        pass

    @abstractmethod
    def list_categories(self, parent_id: Optional[int] = None, include_archived: bool = False) -> list[Category]:
        """List categories under a parent (roots when parent_id is None)."""
        pass

    @abstractmethod
    def list_all_categories(self, include_archived: bool = True) -> list[Category]:
        """List every category regardless of parent."""
        pass

    @abstractmethod
    def set_category_archived(self, category_id: int, is_archived: bool) -> None:
        """Archive or restore a category."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(self, transaction: NewTransaction, actor: Optional[str] = None) -> int:
        """Create a single manual transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[int] = None,
        account_id: Optional[int] = None,
        uncategorized: bool = False,
        include_archived: bool = False,
        reconciled: Optional[bool] = None,
        source_batch_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        date: Optional[date] = None,
        amount: Optional[int] = None,
        payee: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> None:
        """Update scalar transaction fields that are not None."""
        pass

    @abstractmethod
    def categorize_transaction(
        self,
        transaction_id: int,
        lines: Sequence[SplitLine],
        payee: Optional[str] = None,
        is_reviewed: Optional[bool] = None,
        actor: Optional[str] = None,
    ) -> None:
        """Replace a transaction's lines (one line makes it simple again).

        Refuses reconciled, archived or tax-year-locked transactions.
        """
        pass

    @abstractmethod
    def bulk_categorize(
        self, transaction_ids: Sequence[int], category_id: Optional[int], actor: Optional[str] = None
    ) -> int:
        """Atomically set a single-line category on many transactions. Returns count."""
        pass

    @abstractmethod
    def set_transactions_reviewed(
        self, transaction_ids: Sequence[int], is_reviewed: bool, actor: Optional[str] = None
    ) -> int:
        """Set the reviewed flag on many transactions. Returns count."""
        pass

    @abstractmethod
    def archive_transaction(self, transaction_id: int, actor: Optional[str] = None) -> None:
        """Archive (soft-delete) a transaction."""
        pass

    # Import batch operations
    @abstractmethod
    def commit_import_batch(
        self,
        account_id: int,
        file_name: str,
        transactions: Sequence[NewTransaction],
        total_rows: int,
        duplicate_count: int,
        error_count: int,
        mapping_snapshot: Optional[dict] = None,
        actor: Optional[str] = None,
    ) -> tuple[int, list[int]]:
        """Atomically write a batch record and its transactions.

        Returns:
            Tuple of (batch ID, created transaction IDs)
        """
        pass

    @abstractmethod
    def get_import_batch(self, batch_id: int) -> Optional[ImportBatch]:
        """Get import batch by ID."""
        pass

    @abstractmethod
    def list_import_batches(self, account_id: Optional[int] = None) -> list[ImportBatch]:
        """List import batches, newest first."""
        pass

    @abstractmethod
    def undo_import_batch(self, batch_id: int, actor: Optional[str] = None) -> Optional[list[int]]:
        """Atomically archive a batch's transactions and mark it undone.

        Returns:
            Archived transaction IDs, or None when the batch was already undone
        """
        pass

    # Rule operations
    @abstractmethod
    def create_rule(
        self,
        keyword: str,
        match_type: MatchType,
        target_category_id: int,
        priority: int = 100,
        case_sensitive: bool = False,
        suggested_payee: Optional[str] = None,
        is_enabled: bool = True,
        amount_min: Optional[int] = None,
        amount_max: Optional[int] = None,
    ) -> int:
        """Create a categorization rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: int) -> Optional[Rule]:
        """Get rule by ID."""
        pass

    @abstractmethod
    def list_rules(self) -> list[Rule]:
        """List all rules."""
        pass

    @abstractmethod
    def update_rule(self, rule_id: int, **changes) -> None:
        """Update rule fields."""
        pass

    @abstractmethod
    def delete_rule(self, rule_id: int) -> None:
        """Delete a rule."""
        pass

    @abstractmethod
    def record_rule_usage(self, rule_id: int, count: int, used_at: datetime) -> None:
        """Add count to a rule's use_count and set last_used_at."""
        pass

    # Reconciliation operations
    @abstractmethod
    def finalize_reconciliation(
        self,
        account_id: int,
        statement_date: date,
        statement_balance: int,
        opening_balance: int,
        calculated_balance: int,
        transaction_ids: Sequence[int],
        actor: Optional[str] = None,
    ) -> int:
        """Atomically mark transactions reconciled and record the checkpoint.

        Returns:
            Reconciliation ID
        """
        pass

    @abstractmethod
    def list_reconciliations(self, account_id: int) -> list[Reconciliation]:
        """List finalized reconciliations for an account, newest first."""
        pass

    # Tax-year lock operations
    @abstractmethod
    def get_tax_year_lock(self) -> TaxYearLock:
        """Get the tax-year lock watermark (max_locked_year None when unlocked)."""
        pass

    @abstractmethod
    def set_tax_year_lock(self, max_locked_year: Optional[int], actor: Optional[str] = None) -> None:
        """Set the tax-year lock watermark."""
        pass
