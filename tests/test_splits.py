"""Tests for split validation and split editing."""

import pytest
from datetime import date

from ledgerline.domain.entities import SplitLine
from ledgerline.domain.errors import ConflictError, NotFoundError, SplitImbalanceError, ValidationError
from ledgerline.domain.splits import calculate_remainder, single_line, validate_split


def test_validate_split_balanced():
    lines = [SplitLine(category_id=1, amount=-6000), SplitLine(category_id=2, amount=-4000)]
    validation = validate_split(-10000, lines)
    assert validation.is_valid
    assert validation.errors == ()
    assert validation.remainder == 0


def test_validate_split_reports_remainder():
    lines = [SplitLine(category_id=1, amount=-6000), SplitLine(category_id=2, amount=-3000)]
    validation = validate_split(-10000, lines)
    assert not validation.is_valid
    assert validation.remainder == -1000
    assert "-10.00 remaining" in validation.errors[-1]


def test_validate_split_line_errors_are_numbered():
    lines = [SplitLine(category_id=None, amount=-5000), SplitLine(category_id=2, amount=0)]
    validation = validate_split(-5000, lines)
    assert "Line 1: category is required" in validation.errors
    assert "Line 2: amount must not be zero" in validation.errors


def test_validate_split_requires_two_lines():
    assert validate_split(-100, []).errors == ("A split needs at least two lines with non-zero amounts",)

    validation = validate_split(-100, [SplitLine(category_id=1, amount=-100)])
    assert not validation.is_valid
    assert validation.remainder == 0


def test_calculate_remainder_and_single_line():
    assert calculate_remainder(500, [SplitLine(1, 200)]) == 300
    assert single_line(-100, 4) == (SplitLine(category_id=4, amount=-100),)


@pytest.fixture
def grocery_run(transaction_service, sample_account):
    """A -100.00 transaction to split between groceries and household."""
    return transaction_service.create_transaction(
        sample_account.id, date(2024, 5, 4), -10000, "COSTCO WHOLESALE"
    )


def test_update_splits(transaction_service, sample_categories, grocery_run):
    groceries = sample_categories["Food & Dining > Groceries"]
    household = sample_categories["Household"]
    transaction_service.update_splits(
        grocery_run,
        [
            SplitLine(category_id=groceries, amount=-6000, memo="food"),
            SplitLine(category_id=household, amount=-4000),
        ],
        actor="bob",
    )

    txn = transaction_service.get_transaction(grocery_run)
    assert txn.is_split
    assert txn.category_id is None
    assert [(line.category_id, line.amount, line.memo) for line in txn.lines] == [
        (groceries, -6000, "food"),
        (household, -4000, None),
    ]
    assert sum(line.amount for line in txn.lines) == txn.amount
    assert txn.last_modified_by == "bob"


def test_update_splits_imbalance_leaves_transaction_unchanged(
    transaction_service, sample_categories, grocery_run
):
    with pytest.raises(SplitImbalanceError) as exc_info:
        transaction_service.update_splits(
            grocery_run,
            [
                SplitLine(category_id=sample_categories["Household"], amount=-6000),
                SplitLine(category_id=sample_categories["Shopping"], amount=-3000),
            ],
        )
    assert exc_info.value.remainder == -1000

    txn = transaction_service.get_transaction(grocery_run)
    assert not txn.is_split
    assert len(txn.lines) == 1


def test_update_splits_unknown_category(transaction_service, grocery_run):
    with pytest.raises(NotFoundError):
        transaction_service.update_splits(
            grocery_run, [SplitLine(category_id=999, amount=-5000), SplitLine(category_id=998, amount=-5000)]
        )


def test_convert_to_simple(transaction_service, sample_categories, grocery_run):
    transaction_service.update_splits(
        grocery_run,
        [
            SplitLine(category_id=sample_categories["Household"], amount=-5000),
            SplitLine(category_id=sample_categories["Shopping"], amount=-5000),
        ],
    )
    transaction_service.convert_to_simple(grocery_run, sample_categories["Shopping"])

    txn = transaction_service.get_transaction(grocery_run)
    assert not txn.is_split
    assert txn.category_id == sample_categories["Shopping"]
    assert txn.lines[0].amount == -10000


def test_amount_change_refused_on_split(transaction_service, sample_categories, grocery_run):
    transaction_service.update_splits(
        grocery_run,
        [
            SplitLine(category_id=sample_categories["Household"], amount=-5000),
            SplitLine(category_id=sample_categories["Shopping"], amount=-5000),
        ],
    )
    with pytest.raises(ValidationError, match="is split"):
        transaction_service.update_transaction(grocery_run, amount=-12000)


def test_amount_change_moves_simple_line(transaction_service, sample_categories, grocery_run):
    transaction_service.bulk_update_category([grocery_run], sample_categories["Household"])
    transaction_service.update_transaction(grocery_run, amount=-12000, payee="Costco")

    txn = transaction_service.get_transaction(grocery_run)
    assert txn.amount == -12000
    assert txn.payee == "Costco"
    assert len(txn.lines) == 1
    assert txn.lines[0].amount == -12000
    assert txn.category_id == sample_categories["Household"]


def test_archived_transaction_cannot_be_split(transaction_service, sample_categories, grocery_run):
    transaction_service.archive_transaction(grocery_run)
    with pytest.raises(ConflictError):
        transaction_service.update_splits(
            grocery_run, [SplitLine(category_id=sample_categories["Household"], amount=-10000)]
        )
