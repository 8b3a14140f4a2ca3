"""Tests for reconcile, lock and export commands."""

from datetime import date

import pytest

from ledgerline.cli.main import cli
from ledgerline.domain.export import BOM


def run(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--user", "carol", *args])


@pytest.fixture
def january(transaction_service, sample_account):
    deposit = transaction_service.create_transaction(sample_account.id, date(2024, 1, 3), 1000, "DEPOSIT")
    fee = transaction_service.create_transaction(sample_account.id, date(2024, 1, 9), -300, "BANK FEE")
    late = transaction_service.create_transaction(sample_account.id, date(2024, 2, 2), -50, "FEBRUARY")
    return deposit, fee, late


def test_reconcile_preview(cli_runner, temp_db, sample_account, january):
    deposit, fee, late = january
    result = run(
        cli_runner, temp_db,
        "reconcile", "run", "Test Account", "--statement-date", "2024-01-31", "--balance", "7.00",
        "--select", str(deposit),
    )

    assert result.exit_code == 0
    assert f"[x] {deposit}" in result.output
    assert f"[ ] {fee}" in result.output
    assert "FEBRUARY" not in result.output
    assert f"Difference:         {'-3.00':>12}" in result.output
    assert "saved" not in result.output


def test_reconcile_finalize_and_history(cli_runner, temp_db, sample_account, january):
    result = run(
        cli_runner, temp_db,
        "reconcile", "run", "Test Account", "--statement-date", "2024-01-31", "--balance", "7.00",
        "--all", "--finalize",
    )
    assert result.exit_code == 0
    assert "Reconciliation 1 saved: 2 transaction(s) reconciled" in result.output

    result = run(cli_runner, temp_db, "reconcile", "history", "Test Account")
    assert "Statement: 2024-01-31 | Balance: 7.00 | 2 transaction(s)" in result.output
    assert "by carol" in result.output

    result = run(cli_runner, temp_db, "transaction", "update", str(january[0]), "--payee", "Changed")
    assert result.exit_code == 1
    assert "is reconciled and cannot be modified" in result.output


def test_reconcile_finalize_unbalanced(cli_runner, temp_db, sample_account, january):
    result = run(
        cli_runner, temp_db,
        "reconcile", "run", "Test Account", "--statement-date", "2024-01-31", "--balance", "100",
        "--all", "--finalize",
    )
    assert result.exit_code == 1
    assert "Cannot finalize reconciliation: difference is 93.00" in result.output


def test_reconcile_unknown_selection(cli_runner, temp_db, sample_account, january):
    result = run(
        cli_runner, temp_db,
        "reconcile", "run", "Test Account", "--statement-date", "2024-01-31", "--balance", "0", "--select", "99",
    )
    assert result.exit_code == 1
    assert "not a candidate" in result.output


def test_reconcile_history_empty(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "reconcile", "history", "Test Account")
    assert "No reconciliations found." in result.output


def test_lock_lifecycle(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "lock", "status")
    assert "No tax years are locked." in result.output

    result = run(cli_runner, temp_db, "lock", "lock", "2023")
    assert result.exit_code == 0
    assert "Tax years through 2023 are locked." in result.output

    result = run(cli_runner, temp_db, "lock", "status")
    assert "Tax years through 2023 are locked by carol" in result.output

    result = run(cli_runner, temp_db, "lock", "unlock", "2022")
    assert result.exit_code == 1
    assert "unlock 2023 first" in result.output

    result = run(cli_runner, temp_db, "lock", "unlock", "2023")
    assert result.exit_code == 0
    assert "Unlocked 2023. Tax years through 2022 remain locked." in result.output


def test_lock_rejects_out_of_range_year(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "lock", "lock", "1800")
    assert result.exit_code == 1
    assert "Year must be between 1900 and 2100" in result.output


def test_export_transactions_to_stdout(cli_runner, temp_db, sample_account, january):
    result = run(cli_runner, temp_db, "export", "transactions", "--end-date", "2024-01-31")

    assert result.exit_code == 0
    assert result.output.startswith(BOM + "Date,Account,Payee")
    assert "DEPOSIT" in result.output
    assert "FEBRUARY" not in result.output


def test_export_rules_to_file(cli_runner, temp_db, rule_service, sample_categories, tmp_path):
    rule_service.create_rule("AMZN", sample_categories["Shopping"])
    output = tmp_path / "rules.csv"

    result = run(cli_runner, temp_db, "export", "rules", "-o", str(output))

    assert result.exit_code == 0
    assert f"Exported to {output}" in result.output
    content = output.read_text(encoding="utf-8")
    assert content.startswith(BOM + "Priority,Keyword,Match Type")
    assert "AMZN" in content


def test_export_accounts(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "export", "accounts")
    assert result.exit_code == 0
    assert "Test Account,Test Bank" in result.output
