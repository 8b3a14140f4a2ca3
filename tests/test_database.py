"""Tests for the SQLAlchemy database layer and mappers."""

import pytest
from datetime import date, datetime

from ledgerline.database.mappers import tax_year_lock_to_domain, transaction_to_domain
from ledgerline.database.models import Account, Transaction, TransactionLine
from ledgerline.domain.entities import NewTransaction, SplitLine
from ledgerline.domain.errors import CommitFailure, LockViolationError, NotFoundError


def test_transaction_mapper():
    """Test converting an ORM transaction with lines to a domain entity."""
    orm_txn = Transaction(
        id=7,
        account_id=1,
        date=date(2024, 1, 15),
        amount=-10000,
        payee="Costco",
        original_description="COSTCO WHOLESALE",
        is_split=True,
        is_reviewed=False,
        reconciled=False,
        is_archived=False,
        created_at=datetime(2024, 1, 16),
    )
    orm_txn.lines = [
        TransactionLine(position=0, category_id=3, amount=-6000, memo="food"),
        TransactionLine(position=1, category_id=4, amount=-4000),
    ]

    txn = transaction_to_domain(orm_txn)

    assert txn.id == 7
    assert txn.lines == (SplitLine(3, -6000, "food"), SplitLine(4, -4000))
    assert txn.is_split
    assert txn.category_id is None


def test_tax_year_lock_mapper_without_row():
    assert tax_year_lock_to_domain(None).max_locked_year is None


def test_atomic_rolls_back_storage_errors(temp_db, sample_account):
    with pytest.raises(CommitFailure, match="Test write failed and was rolled back"):
        with temp_db._atomic("Test write") as session:
            session.add(Account(name="Test Account", bank_name="Duplicate"))

    # The session is usable again after the rollback
    assert [a.name for a in temp_db.list_accounts()] == ["Test Account"]


def test_atomic_propagates_domain_errors(temp_db, sample_account):
    temp_db.set_tax_year_lock(2023)
    with pytest.raises(LockViolationError):
        temp_db.create_transaction(
            NewTransaction(account_id=sample_account.id, date=date(2023, 5, 5), amount=-100, original_description="X")
        )
    assert temp_db.list_transactions() == []


def test_commit_import_batch_is_all_or_nothing(temp_db, sample_account):
    temp_db.set_tax_year_lock(2023)
    rows = [
        NewTransaction(account_id=sample_account.id, date=date(2024, 1, 2), amount=-100, original_description="A"),
        NewTransaction(account_id=sample_account.id, date=date(2023, 12, 30), amount=-200, original_description="B"),
    ]
    with pytest.raises(LockViolationError):
        temp_db.commit_import_batch(sample_account.id, "x.csv", rows, total_rows=2, duplicate_count=0, error_count=0)

    assert temp_db.list_import_batches() == []
    assert temp_db.list_transactions() == []


def test_commit_import_batch_unknown_account(temp_db):
    with pytest.raises(NotFoundError):
        temp_db.commit_import_batch(999, "x.csv", [], total_rows=0, duplicate_count=0, error_count=0)


def test_transaction_lines_round_trip(temp_db, sample_account, sample_categories):
    txn_id = temp_db.create_transaction(
        NewTransaction(
            account_id=sample_account.id,
            date=date(2024, 2, 2),
            amount=-500,
            original_description="TEA",
            category_id=sample_categories["Food & Dining > Coffee"],
        )
    )
    temp_db.categorize_transaction(
        txn_id,
        [
            SplitLine(category_id=sample_categories["Shopping"], amount=-200, memo="mug"),
            SplitLine(category_id=sample_categories["Food & Dining > Coffee"], amount=-300),
        ],
    )

    txn = temp_db.get_transaction(txn_id)
    assert txn.is_split
    assert [line.memo for line in txn.lines] == ["mug", None]


def test_list_transactions_filters(temp_db, sample_account, sample_categories):
    coffee = sample_categories["Food & Dining > Coffee"]
    categorized = temp_db.create_transaction(
        NewTransaction(sample_account.id, date(2024, 1, 1), -100, "COFFEE", category_id=coffee)
    )
    uncategorized = temp_db.create_transaction(NewTransaction(sample_account.id, date(2024, 1, 2), -100, "MISC"))
    archived = temp_db.create_transaction(NewTransaction(sample_account.id, date(2024, 1, 3), -100, "OLD"))
    temp_db.archive_transaction(archived)

    assert [t.id for t in temp_db.list_transactions(category_id=coffee)] == [categorized]
    assert [t.id for t in temp_db.list_transactions(uncategorized=True)] == [uncategorized]
    assert [t.id for t in temp_db.list_transactions()] == [uncategorized, categorized]
    assert len(temp_db.list_transactions(include_archived=True)) == 3
    assert temp_db.get_account_transaction_count(sample_account.id) == 2


def test_get_category_by_path(temp_db, sample_categories):
    category = temp_db.get_category_by_path("Food & Dining > Groceries")
    assert category.id == sample_categories["Food & Dining > Groceries"]
    assert temp_db.get_category_by_path("Groceries") is None
    assert temp_db.get_category_by_path("Food & Dining > Nope") is None
