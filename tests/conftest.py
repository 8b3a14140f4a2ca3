"""Shared pytest fixtures for ledgerline tests."""

import tempfile
import os
from pathlib import Path
import pytest

from ledgerline.database.factories import create_sqlite_database
from ledgerline.domain.account import AccountService
from ledgerline.domain.csv_format import CSVFormatService
from ledgerline.domain.csv_import import CSVImportService
from ledgerline.domain.category import CategoryService
from ledgerline.domain.import_batch import ImportBatchService
from ledgerline.domain.reconciliation import ReconciliationService
from ledgerline.domain.rules import RuleService
from ledgerline.domain.tax_year_lock import TaxYearLockService
from ledgerline.domain.transaction import TransactionService

SAMPLE_CATEGORIES = [
    ("Food & Dining", None),
    ("Groceries", "Food & Dining"),
    ("Coffee", "Food & Dining"),
    ("Shopping", None),
    ("Household", None),
    ("Income", None),
    ("Salary", "Income"),
]


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def csv_format_service(temp_db):
    """Create a CSVFormatService with a temporary database."""
    return CSVFormatService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    return RuleService(temp_db)


@pytest.fixture
def batch_service(temp_db):
    return ImportBatchService(temp_db)


@pytest.fixture
def import_service(temp_db):
    return CSVImportService(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    return ReconciliationService(temp_db)


@pytest.fixture
def lock_service(temp_db):
    return TaxYearLockService(temp_db)


@pytest.fixture
def sample_account(account_service):
    """Create a sample account for testing."""
    account_id = account_service.create_account(name="Test Account", bank_name="Test Bank")
    return account_service.get_account(account_id)


@pytest.fixture
def sample_categories(category_service):
    """Create a small category tree and return IDs keyed by full path."""
    category_ids = {}
    for name, parent in SAMPLE_CATEGORIES:
        category_id = category_service.create_category(name=name, parent_path=parent)
        path = f"{parent} > {name}" if parent else name
        category_ids[path] = category_id
    return category_ids


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a temporary file and return its path as a string."""

    def _write(text: str, name: str = "statement.csv") -> str:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
