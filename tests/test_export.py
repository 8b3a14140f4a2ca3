"""Tests for CSV export."""

import csv
import io
from datetime import date

from ledgerline.domain.entities import SplitLine
from ledgerline.domain.export import (
    ACCOUNT_HEADERS,
    BOM,
    RULE_HEADERS,
    TRANSACTION_HEADERS,
    ExportService,
)


def read_export(text):
    assert text.startswith(BOM)
    return list(csv.reader(io.StringIO(text[len(BOM):])))


def test_export_transactions(temp_db, transaction_service, sample_account, sample_categories):
    coffee = sample_categories["Food & Dining > Coffee"]
    transaction_service.create_transaction(
        sample_account.id, date(2024, 2, 2), -450, "STARBUCKS", payee="Starbucks", category_id=coffee
    )
    transaction_service.create_transaction(sample_account.id, date(2024, 2, 1), 250000, "PAYROLL")

    rows = read_export(ExportService(temp_db).export_transactions())

    assert rows[0] == TRANSACTION_HEADERS
    assert rows[1] == [
        "2024-02-01", "Test Account", "PAYROLL", "PAYROLL", "Uncategorized", "2500.00", "No", "No", "",
    ]
    assert rows[2][4] == "Food & Dining > Coffee"
    assert rows[2][5] == "-4.50"


def test_export_split_details(temp_db, transaction_service, sample_account, sample_categories):
    txn_id = transaction_service.create_transaction(sample_account.id, date(2024, 3, 1), -10000, "COSTCO")
    transaction_service.update_splits(
        txn_id,
        [
            SplitLine(category_id=sample_categories["Food & Dining > Groceries"], amount=-6000, memo="food"),
            SplitLine(category_id=sample_categories["Household"], amount=-4000),
        ],
    )

    rows = read_export(ExportService(temp_db).export_transactions())

    assert rows[1][4] == "Split Transaction"
    assert rows[1][8] == "Food & Dining > Groceries: $-60.00 (food) | Household: $-40.00"


def test_export_transactions_date_filter(temp_db, transaction_service, sample_account):
    transaction_service.create_transaction(sample_account.id, date(2024, 1, 1), -100, "JANUARY")
    transaction_service.create_transaction(sample_account.id, date(2024, 2, 1), -100, "FEBRUARY")

    rows = read_export(ExportService(temp_db).export_transactions(start_date=date(2024, 2, 1)))

    assert [row[3] for row in rows[1:]] == ["FEBRUARY"]


def test_export_accounts(temp_db, account_service, sample_account):
    archived = account_service.create_account("Old Card", "Other Bank", opening_balance=1234)
    account_service.archive_account(archived)

    rows = read_export(ExportService(temp_db).export_accounts())

    assert rows[0] == ACCOUNT_HEADERS
    by_name = {row[0]: row for row in rows[1:]}
    assert by_name["Test Account"][-1] == "Active"
    assert by_name["Old Card"][2] == "12.34"
    assert by_name["Old Card"][-1] == "Archived"


def test_export_rules(temp_db, rule_service, sample_categories):
    rule_service.create_rule("starbucks", sample_categories["Food & Dining > Coffee"], priority=5)

    rows = read_export(ExportService(temp_db).export_rules())

    assert rows[0] == RULE_HEADERS
    assert rows[1] == ["5", "starbucks", "contains", "Food & Dining > Coffee", "-", "Yes", "0", "-"]


def test_write_keeps_bom_and_newlines(tmp_path):
    path = tmp_path / "out.csv"
    ExportService.write(BOM + "a,b\n1,2\n", str(path))
    assert path.read_bytes() == b"\xef\xbb\xbfa,b\n1,2\n"
