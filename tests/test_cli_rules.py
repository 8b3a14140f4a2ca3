"""Tests for rule commands."""

from datetime import date

from ledgerline.cli.main import cli


def run(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_rule_list_empty(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "rule", "list")
    assert result.exit_code == 0
    assert "No rules found." in result.output


def test_rule_add_and_list(cli_runner, temp_db, sample_categories):
    result = run(
        cli_runner, temp_db,
        "rule", "add", "STARBUCKS", "Food & Dining > Coffee", "--payee", "Starbucks", "--min-amount", "2",
    )
    assert result.exit_code == 0
    assert "Created rule 1: 'STARBUCKS' -> Food & Dining > Coffee" in result.output

    result = run(cli_runner, temp_db, "rule", "list")
    assert "'STARBUCKS' -> Food & Dining > Coffee (payee=Starbucks, min=2.00)" in result.output
    assert "Used 0x" in result.output


def test_rule_add_unknown_category(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "rule", "add", "RENT", "Housing")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_rule_add_bad_regex(cli_runner, temp_db, sample_categories):
    result = run(cli_runner, temp_db, "rule", "add", "(a+)+", "Shopping", "--match", "regex")
    assert result.exit_code == 1
    assert "nested quantifiers" in result.output


def test_rule_add_invalid_amount(cli_runner, temp_db, sample_categories):
    result = run(cli_runner, temp_db, "rule", "add", "RENT", "Shopping", "--max-amount", "lots")
    assert result.exit_code == 1
    assert "Invalid maximum amount" in result.output


def test_rule_update_disable_and_delete(cli_runner, temp_db, rule_service, sample_categories):
    rule_id = rule_service.create_rule("AMZN", sample_categories["Shopping"])

    result = run(cli_runner, temp_db, "rule", "update", str(rule_id), "--disable", "--priority", "5")
    assert result.exit_code == 0
    assert f"Updated rule {rule_id}" in result.output

    result = run(cli_runner, temp_db, "rule", "list")
    assert "[disabled]" in result.output

    result = run(cli_runner, temp_db, "rule", "delete", str(rule_id))
    assert result.exit_code == 0
    assert f"Deleted rule {rule_id}" in result.output

    result = run(cli_runner, temp_db, "rule", "delete", str(rule_id))
    assert result.exit_code == 1
    assert f"Rule {rule_id} not found" in result.output


def test_rule_update_needs_a_field(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "rule", "update", "1")
    assert result.exit_code == 1
    assert "At least one field must be provided" in result.output


def test_rule_test(cli_runner, temp_db, rule_service, sample_categories):
    rule_service.create_rule("whole foods", sample_categories["Food & Dining > Groceries"])

    result = run(cli_runner, temp_db, "rule", "test", "WHOLE FOODS MARKET #10")
    assert "Rule 1 matches: Food & Dining > Groceries" in result.output

    result = run(cli_runner, temp_db, "rule", "test", "SHELL OIL")
    assert "No matching rule." in result.output


def test_rule_apply(cli_runner, temp_db, rule_service, transaction_service, sample_account, sample_categories):
    rule_service.create_rule("starbucks", sample_categories["Food & Dining > Coffee"])
    transaction_service.create_transaction(sample_account.id, date(2024, 1, 15), -575, "STARBUCKS #123")
    transaction_service.create_transaction(sample_account.id, date(2024, 1, 16), -1200, "PARKING")

    result = run(cli_runner, temp_db, "rule", "apply", "--account", "Test Account")

    assert result.exit_code == 0
    assert "Categorized 1 of 2 transactions" in result.output
    assert "Skipped: 1" in result.output
