"""Atomic commit and undo of CSV import batches."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ledgerline.database.base import Database
from ledgerline.domain.csv_mapping import CSVMapping
from ledgerline.domain.duplicates import (
    ClassifiedTransaction,
    DetectionResult,
    DuplicateClassification,
    fingerprint,
)
from ledgerline.domain.entities import ImportBatch, NewTransaction, Rule
from ledgerline.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    batch_not_found,
)
from ledgerline.domain.rules import RuleService, evaluate_rules
from ledgerline.domain.tax_year_lock import TaxYearLockService
from ledgerline.utils.text import MAX_PAYEE_LENGTH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    batch_id: int
    transaction_ids: tuple[int, ...]
    imported_count: int
    duplicate_count: int
    error_count: int
    rule_matches: int = 0
    rule_errors: int = 0


@dataclass(frozen=True)
class UndoResult:
    """Outcome of an undo request.

    already_undone is True when the batch had been undone before; nothing was
    changed in that case.
    """

    batch_id: int
    undone: bool
    already_undone: bool
    archived_count: int = 0


def select_rows_for_commit(
    detection: DetectionResult,
    keep_fuzzy: Iterable[int] = (),
    exclude_rows: Iterable[int] = (),
) -> list[ClassifiedTransaction]:
    """Pick the rows a commit will write.

    New rows are included unless excluded. Fuzzy duplicates are included only
    when their row index is listed in keep_fuzzy. Exact duplicates and invalid
    rows are never included.

    Raises:
        ValidationError: If keep_fuzzy names a row that is not a fuzzy duplicate
    """
    keep = set(keep_fuzzy)
    exclude = set(exclude_rows)
    fuzzy_indexes = {row.row_index for row in detection.with_classification(DuplicateClassification.FUZZY)}
    unknown = sorted(keep - fuzzy_indexes)
    if unknown:
        raise ValidationError(
            f"Rows {', '.join(str(i + 1) for i in unknown)} are not fuzzy duplicates and cannot be kept"
        )

    selected = []
    for row in detection.rows:
        if row.row_index in exclude:
            continue
        if row.classification == DuplicateClassification.NEW:
            selected.append(row)
        elif row.classification == DuplicateClassification.FUZZY and row.row_index in keep:
            selected.append(row)
    return selected


def build_new_transaction(
    row: ClassifiedTransaction, account_id: int, rule: Optional[Rule] = None
) -> NewTransaction:
    """Turn an accepted staged row into a commit payload."""
    staged = row.staged
    description = staged.description or ""
    payee = (rule.suggested_payee if rule is not None and rule.suggested_payee else description)
    return NewTransaction(
        account_id=account_id,
        date=staged.date,
        amount=staged.amount,
        original_description=description,
        payee=payee[:MAX_PAYEE_LENGTH],
        category_id=rule.target_category_id if rule is not None else None,
        fingerprint=fingerprint(staged.date, staged.amount, description),
    )


class ImportBatchService:
    """Service for committing and undoing import batches."""

    def __init__(self, db: Database):
        """Initialize import batch service.

        Args:
            db: Database instance
        """
        self.db = db
        self.lock_service = TaxYearLockService(db)
        self.rule_service = RuleService(db)

    def commit(
        self,
        account_id: int,
        file_name: str,
        detection: DetectionResult,
        keep_fuzzy: Iterable[int] = (),
        exclude_rows: Iterable[int] = (),
        apply_rules: bool = True,
        mapping: Optional[CSVMapping] = None,
        actor: Optional[str] = None,
    ) -> CommitResult:
        """Write accepted rows as one import batch, all or nothing.

        Args:
            account_id: Target account (must match the detection)
            file_name: Name of the imported file
            detection: Duplicate detection result for the staged rows
            keep_fuzzy: Row indexes of fuzzy duplicates to import anyway
            exclude_rows: Row indexes the reviewer deselected
            apply_rules: Suggest category and payee from rules
            mapping: Mapping used, snapshotted on the batch and remembered on
                the account
            actor: Acting user

        Returns:
            CommitResult

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If the detection belongs to another account or
                nothing would be imported
            LockViolationError: If any accepted row is in a locked tax year
            CommitFailure: If the write failed; nothing was persisted
        """
        account = self.db.get_account(account_id)
        if account is None or account.is_archived:
            raise NotFoundError(account_not_found(account_id))
        if detection.account_id != account_id:
            raise ValidationError("Duplicate detection was run for a different account")

        rows = select_rows_for_commit(detection, keep_fuzzy, exclude_rows)
        if not rows:
            raise ValidationError("No transactions selected for import")

        self.lock_service.ensure_unlocked(row.staged.date for row in rows)

        rules = self.db.list_rules() if apply_rules else []
        usage: dict[int, int] = {}
        failed_rules: set[int] = set()
        payload = []
        for row in rows:
            rule = None
            if rules:
                evaluation = evaluate_rules(rules, row.staged.description or "", row.staged.amount)
                failed_rules.update(evaluation.failed_rule_ids)
                rule = evaluation.rule
                if rule is not None:
                    usage[rule.id] = usage.get(rule.id, 0) + 1
            payload.append(build_new_transaction(row, account_id, rule))

        duplicate_count = detection.stats.exact_duplicates + detection.stats.fuzzy_duplicates - sum(
            1 for row in rows if row.classification == DuplicateClassification.FUZZY
        )
        batch_id, transaction_ids = self.db.commit_import_batch(
            account_id=account_id,
            file_name=file_name,
            transactions=payload,
            total_rows=detection.stats.total,
            duplicate_count=duplicate_count,
            error_count=detection.stats.errors,
            mapping_snapshot=mapping.to_dict() if mapping is not None else None,
            actor=actor,
        )

        # Side effects after the batch is durable; none of them may fail the import
        self.rule_service.record_usage(usage)
        if mapping is not None:
            try:
                self.db.save_account_mapping(account_id, mapping)
            except Exception:
                logger.warning("Failed to save CSV mapping for account %d", account_id, exc_info=True)

        return CommitResult(
            batch_id=batch_id,
            transaction_ids=tuple(transaction_ids),
            imported_count=len(transaction_ids),
            duplicate_count=duplicate_count,
            error_count=detection.stats.errors,
            rule_matches=sum(usage.values()),
            rule_errors=len(failed_rules),
        )

    def undo(self, batch_id: int, actor: Optional[str] = None) -> UndoResult:
        """Archive every transaction of a batch and mark it undone.

        Undoing an already undone batch is a no-op.

        Raises:
            NotFoundError: If the batch doesn't exist
            UndoConflict: If any transaction of the batch is reconciled
            LockViolationError: If any transaction is in a locked tax year
            CommitFailure: If the write failed; nothing was changed
        """
        batch = self.db.get_import_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))
        if batch.is_undone:
            logger.info("Import batch %d was already undone", batch_id)
            return UndoResult(batch_id=batch_id, undone=False, already_undone=True)

        # The database re-checks reconciled flags and locks in the same transaction
        archived = self.db.undo_import_batch(batch_id, actor=actor)
        if archived is None:
            return UndoResult(batch_id=batch_id, undone=False, already_undone=True)
        return UndoResult(batch_id=batch_id, undone=True, already_undone=False, archived_count=len(archived))

    def get_batch(self, batch_id: int) -> Optional[ImportBatch]:
        return self.db.get_import_batch(batch_id)

    def list_batches(self, account_id: Optional[int] = None) -> list[ImportBatch]:
        """List import batches, newest first."""
        return self.db.list_import_batches(account_id=account_id)
