"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from ledgerline.domain import entities as domain
from ledgerline.domain.csv_mapping import CSVMapping
from ledgerline.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    TransactionLine as ORMTransactionLine,
    CSVFormat as ORMCSVFormat,
    ImportBatch as ORMImportBatch,
    Rule as ORMRule,
    Reconciliation as ORMReconciliation,
    TaxYearLock as ORMTaxYearLock,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        opening_balance=orm_account.opening_balance,
        opening_balance_date=orm_account.opening_balance_date,
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
        last_reconciled_balance=orm_account.last_reconciled_balance,
        last_reconciled_date=orm_account.last_reconciled_date,
        csv_mapping=CSVMapping.from_dict(orm_account.csv_mapping) if orm_account.csv_mapping else None,
        is_archived=orm_account.is_archived,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        parent_id=orm_category.parent_id,
        created_at=orm_category.created_at,
        is_archived=orm_category.is_archived,
    )


def line_to_domain(orm_line: ORMTransactionLine) -> domain.SplitLine:
    return domain.SplitLine(category_id=orm_line.category_id, amount=orm_line.amount, memo=orm_line.memo)


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=orm_transaction.amount,
        payee=orm_transaction.payee,
        original_description=orm_transaction.original_description,
        lines=tuple(line_to_domain(line) for line in orm_transaction.lines),
        is_split=orm_transaction.is_split,
        is_reviewed=orm_transaction.is_reviewed,
        reconciled=orm_transaction.reconciled,
        reconciled_at=orm_transaction.reconciled_at,
        is_archived=orm_transaction.is_archived,
        source_batch_id=orm_transaction.source_batch_id,
        fingerprint=orm_transaction.fingerprint,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
        last_modified_by=orm_transaction.last_modified_by,
    )


def csv_format_to_domain(orm_format: ORMCSVFormat) -> domain.CSVFormat:
    """Convert SQLAlchemy CSVFormat model to domain CSVFormat entity."""
    return domain.CSVFormat(
        id=orm_format.id,
        name=orm_format.name,
        account_id=orm_format.account_id,
        mapping=CSVMapping.from_dict(orm_format.mapping),
        created_at=orm_format.created_at,
    )


def import_batch_to_domain(orm_batch: ORMImportBatch) -> domain.ImportBatch:
    return domain.ImportBatch(
        id=orm_batch.id,
        account_id=orm_batch.account_id,
        file_name=orm_batch.file_name,
        imported_at=orm_batch.imported_at,
        total_rows=orm_batch.total_rows,
        imported_count=orm_batch.imported_count,
        duplicate_count=orm_batch.duplicate_count,
        error_count=orm_batch.error_count,
        is_undone=orm_batch.is_undone,
        undone_at=orm_batch.undone_at,
        imported_by=orm_batch.imported_by,
        undone_by=orm_batch.undone_by,
        mapping_snapshot=orm_batch.mapping_snapshot,
    )


def rule_to_domain(orm_rule: ORMRule) -> domain.Rule:
    return domain.Rule(
        id=orm_rule.id,
        keyword=orm_rule.keyword,
        match_type=domain.MatchType(orm_rule.match_type),
        target_category_id=orm_rule.target_category_id,
        priority=orm_rule.priority,
        case_sensitive=orm_rule.case_sensitive,
        suggested_payee=orm_rule.suggested_payee,
        is_enabled=orm_rule.is_enabled,
        use_count=orm_rule.use_count,
        last_used_at=orm_rule.last_used_at,
        amount_min=orm_rule.amount_min,
        amount_max=orm_rule.amount_max,
        created_at=orm_rule.created_at,
        updated_at=orm_rule.updated_at,
    )


def reconciliation_to_domain(orm_reconciliation: ORMReconciliation) -> domain.Reconciliation:
    return domain.Reconciliation(
        id=orm_reconciliation.id,
        account_id=orm_reconciliation.account_id,
        statement_date=orm_reconciliation.statement_date,
        statement_balance=orm_reconciliation.statement_balance,
        opening_balance=orm_reconciliation.opening_balance,
        calculated_balance=orm_reconciliation.calculated_balance,
        difference=orm_reconciliation.difference,
        finalized_at=orm_reconciliation.finalized_at,
        transaction_ids=tuple(orm_reconciliation.transaction_ids or ()),
        finalized_by=orm_reconciliation.finalized_by,
    )


def tax_year_lock_to_domain(orm_lock: ORMTaxYearLock | None) -> domain.TaxYearLock:
    """Convert the lock row; a missing row means nothing is locked."""
    if orm_lock is None:
        return domain.TaxYearLock(max_locked_year=None)
    return domain.TaxYearLock(
        max_locked_year=orm_lock.max_locked_year,
        locked_at=orm_lock.locked_at,
        locked_by=orm_lock.locked_by,
    )
