"""Tests for the format, import and batch commands."""

from datetime import date

from ledgerline.cli.main import cli


def run(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--user", "alice", *args])


def test_format_profiles(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "format", "profiles")
    assert result.exit_code == 0
    assert "AMEX" in result.output
    assert "CHASE_CHECKING" in result.output


def test_format_create_from_profile_and_show(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "format", "create", "Chase", "--account", "Test Account", "--profile", "chase_checking")
    assert result.exit_code == 0
    assert "Created CSV format 'Chase'" in result.output

    result = run(cli_runner, temp_db, "format", "show", "Chase")
    assert result.exit_code == 0
    assert "Date: Posting Date (MM/dd/yyyy)" in result.output
    assert "Amount: Amount" in result.output


def test_format_create_with_columns(cli_runner, temp_db, sample_account):
    result = run(
        cli_runner, temp_db,
        "format", "create", "Card", "--account", str(sample_account.id),
        "--date-column", "Date", "--description-column", "Memo",
        "--outflow-column", "Debit", "--inflow-column", "Credit",
        "--date-format", "yyyy-MM-dd",
    )
    assert result.exit_code == 0

    result = run(cli_runner, temp_db, "format", "list")
    assert "Card (ID: 1, Account: 1)" in result.output
    assert "Inflow: Credit" in result.output
    assert "Outflow: Debit" in result.output


def test_format_create_needs_mapping(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "format", "create", "Empty", "--account", "Test Account")
    assert result.exit_code == 1
    assert "Provide --profile or column mapping options" in result.output


def test_format_create_ambiguous_mapping(cli_runner, temp_db, sample_account):
    result = run(
        cli_runner, temp_db,
        "format", "create", "Bad", "--account", "Test Account",
        "--date-column", "Date", "--description-column", "Date", "--amount-column", "Amount",
    )
    assert result.exit_code == 1
    assert "Ambiguous mapping" in result.output


def test_format_update_and_delete(cli_runner, temp_db, sample_account):
    run(cli_runner, temp_db, "format", "create", "Chase", "--account", "Test Account", "--profile", "CHASE_CHECKING")

    result = run(cli_runner, temp_db, "format", "update", "Chase", "--name", "Chase Checking")
    assert result.exit_code == 0
    assert "New name: 'Chase Checking'" in result.output

    result = run(cli_runner, temp_db, "format", "delete", "Chase Checking", "--yes")
    assert result.exit_code == 0
    assert "Deleted format 'Chase Checking'" in result.output

    result = run(cli_runner, temp_db, "format", "show", "Chase Checking")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_import_with_profile(cli_runner, temp_db, sample_account, fixtures_dir):
    result = run(
        cli_runner, temp_db,
        "import", str(fixtures_dir / "chase_checking.csv"), "--account", "Test Account", "--profile", "CHASE_CHECKING",
    )

    assert result.exit_code == 0
    assert "Read 3 rows from chase_checking.csv" in result.output
    assert "New: 3" in result.output
    assert "Import complete:" in result.output
    assert "Imported: 3 transactions" in result.output
    assert "Skipped: 0 duplicates" in result.output


def test_import_again_skips_duplicates_using_saved_mapping(cli_runner, temp_db, sample_account, fixtures_dir):
    path = str(fixtures_dir / "chase_checking.csv")
    run(cli_runner, temp_db, "import", path, "--account", "Test Account", "--profile", "CHASE_CHECKING")

    # No mapping options: the mapping remembered on the account is used
    result = run(cli_runner, temp_db, "import", path, "--account", "Test Account")

    assert result.exit_code == 0
    assert "Duplicates: 3" in result.output
    assert "Nothing new to import." in result.output
    assert "Import complete" not in result.output


def test_import_with_column_options(cli_runner, temp_db, sample_account, write_csv):
    path = write_csv("When;What;Value\n2024-03-01;RENT;-1200.00\n")
    result = run(
        cli_runner, temp_db,
        "import", path, "--account", "Test Account",
        "--date-column", "When", "--description-column", "What", "--amount-column", "Value",
        "--date-format", "yyyy-MM-dd",
    )
    assert result.exit_code == 0
    assert "Imported: 1 transactions" in result.output


def test_import_file_with_only_invalid_rows(cli_runner, temp_db, sample_account, write_csv):
    path = write_csv("Posting Date,Description,Amount\nsoon,COFFEE,-4.50\n01/16/2024,TEA,lots\n")
    result = run(cli_runner, temp_db, "import", path, "--account", "Test Account", "--profile", "CHASE_CHECKING")

    assert result.exit_code == 1
    assert "Read 2 rows from statement.csv" in result.output
    assert "Errors: 2" in result.output
    assert "Row 1:" in result.output
    assert "Row 2:" in result.output
    assert "No valid transactions found in the file" in result.output


def test_import_dry_run_writes_nothing(cli_runner, temp_db, sample_account, fixtures_dir, batch_service):
    result = run(
        cli_runner, temp_db,
        "import", str(fixtures_dir / "amex.csv"), "--account", "Test Account", "--profile", "AMEX", "--dry-run",
    )

    assert result.exit_code == 0
    assert "Errors: 1" in result.output
    assert "[new]" in result.output
    assert "Row    3: error:" in result.output
    assert "Dry run: nothing imported." in result.output
    assert batch_service.list_batches() == []


def test_import_fuzzy_rows_need_confirmation(cli_runner, temp_db, transaction_service, sample_account, write_csv):
    transaction_service.create_transaction(sample_account.id, date(2024, 1, 12), -9999, "ELECTRIC CO")
    path = write_csv(
        "Posting Date,Description,Amount\n"
        "01/14/2024,ELECTRIC COMPANY,-99.99\n"
        "01/20/2024,BOOKSTORE,-12.34\n"
    )
    args = ["import", path, "--account", "Test Account", "--profile", "CHASE_CHECKING"]

    preview = run(cli_runner, temp_db, *args, "--dry-run")
    assert "Possible duplicates: 1" in preview.output
    assert "Warning: 1 row may duplicate existing transactions" in preview.output
    assert "[possible duplicate] (matches 1)" in preview.output

    result = run(cli_runner, temp_db, *args, "--keep-fuzzy", "1")
    assert result.exit_code == 0
    assert "Imported: 2 transactions" in result.output


def test_import_keep_fuzzy_rejects_other_rows(cli_runner, temp_db, sample_account, fixtures_dir):
    result = run(
        cli_runner, temp_db,
        "import", str(fixtures_dir / "chase_checking.csv"), "--account", "Test Account",
        "--profile", "CHASE_CHECKING", "--keep-fuzzy", "2",
    )
    assert result.exit_code == 1
    assert "Rows 2 are not fuzzy duplicates" in result.output


def test_import_applies_rules(cli_runner, temp_db, rule_service, sample_account, sample_categories, fixtures_dir):
    rule_service.create_rule("starbucks", sample_categories["Food & Dining > Coffee"])

    result = run(
        cli_runner, temp_db,
        "import", str(fixtures_dir / "chase_checking.csv"), "--account", "Test Account", "--profile", "CHASE_CHECKING",
    )
    assert "Categorized by rules: 1" in result.output

    with_no_rules = run(
        cli_runner, temp_db,
        "import", str(fixtures_dir / "amex.csv"), "--account", "Test Account", "--profile", "AMEX", "--no-rules",
    )
    assert with_no_rules.exit_code == 0
    assert "Categorized by rules" not in with_no_rules.output


def test_import_into_locked_year(cli_runner, temp_db, lock_service, sample_account, fixtures_dir):
    lock_service.lock_year(2024)
    result = run(
        cli_runner, temp_db,
        "import", str(fixtures_dir / "chase_checking.csv"), "--account", "Test Account", "--profile", "CHASE_CHECKING",
    )
    assert result.exit_code == 1
    assert "locked tax year" in result.output


def test_import_unknown_account(cli_runner, temp_db, fixtures_dir):
    result = run(cli_runner, temp_db, "import", str(fixtures_dir / "amex.csv"), "--account", "Nope", "--profile", "AMEX")
    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output


def test_batch_list_and_undo(cli_runner, temp_db, sample_account, fixtures_dir):
    result = run(cli_runner, temp_db, "batch", "list")
    assert "No imports found." in result.output

    run(
        cli_runner, temp_db,
        "import", str(fixtures_dir / "chase_checking.csv"), "--account", "Test Account", "--profile", "CHASE_CHECKING",
    )
    result = run(cli_runner, temp_db, "batch", "list", "--account", "Test Account")
    assert "chase_checking.csv | 3 imported, 0 duplicates, 0 errors" in result.output

    result = run(cli_runner, temp_db, "batch", "undo", "1")
    assert result.exit_code == 0
    assert "Undid import 1: archived 3 transactions" in result.output

    result = run(cli_runner, temp_db, "batch", "undo", "1")
    assert result.exit_code == 0
    assert "Import 1 was already undone." in result.output

    result = run(cli_runner, temp_db, "batch", "list")
    assert "[undone]" in result.output


def test_batch_undo_unknown(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "batch", "undo", "9")
    assert result.exit_code == 1
    assert "Import batch 9 not found" in result.output
