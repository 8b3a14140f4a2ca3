"""Transaction domain service."""

import logging
from typing import Optional, Sequence
from datetime import date

from ledgerline.database.base import Database
from ledgerline.domain.duplicates import fingerprint
from ledgerline.domain.entities import NewTransaction, SplitLine, Transaction as TransactionEntity
from ledgerline.domain.errors import (
    ConflictError,
    NotFoundError,
    SplitImbalanceError,
    ValidationError,
    account_not_found,
    category_not_found,
    transaction_archived,
    transaction_not_found,
    transaction_reconciled,
)
from ledgerline.domain.splits import validate_split
from ledgerline.domain.tax_year_lock import TaxYearLockService
from ledgerline.utils.text import MAX_DESCRIPTION_LENGTH, MAX_MEMO_LENGTH, MAX_PAYEE_LENGTH, sanitize_text

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db
        self.lock_service = TaxYearLockService(db)

    def _get_editable(self, transaction_id: int) -> TransactionEntity:
        """Fetch a transaction that plain edits may change."""
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if txn.is_archived:
            raise ConflictError(transaction_archived(transaction_id))
        if txn.reconciled:
            raise ConflictError(transaction_reconciled(transaction_id))
        self.lock_service.ensure_unlocked([txn.date])
        return txn

    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is None:
            return
        category = self.db.get_category(category_id)
        if category is None or category.is_archived:
            raise NotFoundError(category_not_found(category_id))

    def create_transaction(
        self,
        account_id: int,
        date: date,
        amount: int,
        description: str,
        payee: Optional[str] = None,
        category_id: Optional[int] = None,
        actor: Optional[str] = None,
    ) -> int:
        """Create a manual transaction.

        Args:
            account_id: Account ID
            date: Transaction date
            amount: Amount in cents (negative for money out)
            description: Description as it would appear on a statement
            payee: Optional payee (defaults to the description)
            category_id: Optional category ID
            actor: Acting user

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If account or category doesn't exist
            LockViolationError: If the date is in a locked tax year
        """
        account = self.db.get_account(account_id)
        if account is None or account.is_archived:
            raise NotFoundError(account_not_found(account_id))
        self._check_category(category_id)
        self.lock_service.ensure_unlocked([date])

        description = sanitize_text(description, MAX_DESCRIPTION_LENGTH)
        if not description:
            raise ValidationError("Description is required")
        payee = sanitize_text(payee, MAX_PAYEE_LENGTH) if payee else description[:MAX_PAYEE_LENGTH]

        return self.db.create_transaction(
            NewTransaction(
                account_id=account_id,
                date=date,
                amount=amount,
                original_description=description,
                payee=payee,
                category_id=category_id,
                fingerprint=fingerprint(date, amount, description),
            ),
            actor=actor,
        )

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def update_category(
        self, transaction_id: int, category_path: Optional[str], actor: Optional[str] = None
    ) -> None:
        """Set a single category on a transaction by path.

        A split transaction becomes simple again.

        Raises:
            NotFoundError: If transaction or category doesn't exist
            ConflictError: If the transaction is reconciled or archived
        """
        category_id = None
        if category_path is not None:
            category = self.db.get_category_by_path(category_path)
            if category is None or category.is_archived:
                raise NotFoundError(f"Category '{category_path}' not found")
            category_id = category.id
        self.bulk_update_category([transaction_id], category_id, actor=actor)

    def bulk_update_category(
        self, transaction_ids: Sequence[int], category_id: Optional[int], actor: Optional[str] = None
    ) -> int:
        """Set one category on many transactions.

        Every selected transaction ends up with a single line for its full
        amount; existing split lines are discarded. All or nothing.

        Returns:
            Number of transactions updated
        """
        if not transaction_ids:
            return 0
        self._check_category(category_id)
        txns = [self._get_editable(tid) for tid in transaction_ids]
        split_count = sum(1 for txn in txns if txn.is_split)
        if split_count:
            logger.info("Bulk categorization converts %d split transactions to simple", split_count)
        return self.db.bulk_categorize(list(transaction_ids), category_id, actor=actor)

    def update_splits(
        self, transaction_id: int, lines: Sequence[SplitLine], actor: Optional[str] = None
    ) -> None:
        """Replace the split lines of a transaction.

        Raises:
            SplitImbalanceError: If lines are invalid or do not sum to the amount
            NotFoundError: If the transaction or a line category doesn't exist
            ConflictError: If the transaction is reconciled or archived
        """
        txn = self._get_editable(transaction_id)
        validation = validate_split(txn.amount, lines)
        if not validation.is_valid:
            raise SplitImbalanceError(list(validation.errors), validation.remainder)
        for line in lines:
            self._check_category(line.category_id)

        cleaned = [
            SplitLine(
                category_id=line.category_id,
                amount=line.amount,
                memo=sanitize_text(line.memo, MAX_MEMO_LENGTH) or None,
            )
            for line in lines
        ]
        self.db.categorize_transaction(transaction_id, cleaned, actor=actor)

    def convert_to_simple(
        self, transaction_id: int, category_id: Optional[int] = None, actor: Optional[str] = None
    ) -> None:
        """Collapse a split transaction into one line.

        Without a category the line is uncategorized.
        """
        self.bulk_update_category([transaction_id], category_id, actor=actor)

    def update_payee(self, transaction_id: int, payee: str, actor: Optional[str] = None) -> None:
        """Update transaction payee.

        Raises:
            ValidationError: If the payee is empty after sanitization
        """
        self._get_editable(transaction_id)
        cleaned = sanitize_text(payee, MAX_PAYEE_LENGTH)
        if not cleaned:
            raise ValidationError("Payee is required")
        self.db.update_transaction(transaction_id, payee=cleaned, actor=actor)

    def update_transaction(
        self,
        transaction_id: int,
        date: Optional[date] = None,
        amount: Optional[int] = None,
        payee: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> None:
        """Update transaction fields.

        Args:
            transaction_id: Transaction ID to update
            date: Optional new date (must not be in a locked year either)
            amount: Optional new amount in cents (simple transactions only)
            payee: Optional new payee
            actor: Acting user

        Raises:
            NotFoundError: If transaction doesn't exist
            ConflictError: If the transaction is reconciled or archived
            LockViolationError: If the old or new date is in a locked year
        """
        self._get_editable(transaction_id)
        if date is not None:
            self.lock_service.ensure_unlocked([date])
        if payee is not None:
            payee = sanitize_text(payee, MAX_PAYEE_LENGTH) or None

        self.db.update_transaction(
            transaction_id=transaction_id,
            date=date,
            amount=amount,
            payee=payee,
            actor=actor,
        )

    def mark_reviewed(
        self, transaction_ids: Sequence[int], is_reviewed: bool = True, actor: Optional[str] = None
    ) -> int:
        """Set the reviewed flag on transactions. Returns the number updated."""
        if not transaction_ids:
            return 0
        return self.db.set_transactions_reviewed(list(transaction_ids), is_reviewed, actor=actor)

    def archive_transaction(self, transaction_id: int, actor: Optional[str] = None) -> None:
        """Archive a transaction. Transactions are never hard-deleted.

        Raises:
            NotFoundError: If transaction doesn't exist
            ConflictError: If the transaction is reconciled or already archived
        """
        self._get_editable(transaction_id)
        self.db.archive_transaction(transaction_id, actor=actor)

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_path: Optional[str] = None,
        account_id: Optional[int] = None,
        include_archived: bool = False,
        reconciled: Optional[bool] = None,
    ) -> list[TransactionEntity]:
        """List transactions with filters.

        Args:
            start_date: Optional start date filter
            end_date: Optional end date filter
            category_path: Optional category path filter (empty string for uncategorized)
            account_id: Optional account ID filter
            include_archived: Include archived transactions
            reconciled: Only reconciled (True) or unreconciled (False) rows

        Returns:
            List of transaction entities
        """
        category_id = None
        uncategorized = False
        if category_path is not None:
            if category_path == "":
                # Empty string means uncategorized
                uncategorized = True
            else:
                category = self.db.get_category_by_path(category_path)
                if category is None:
                    # Category doesn't exist, return empty list
                    return []
                category_id = category.id

        return self.db.list_transactions(
            start_date=start_date,
            end_date=end_date,
            category_id=category_id,
            account_id=account_id,
            uncategorized=uncategorized,
            include_archived=include_archived,
            reconciled=reconciled,
        )
