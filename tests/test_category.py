"""Tests for category commands and CategoryService."""

import pytest

from ledgerline.cli.main import cli
from ledgerline.domain.errors import ConflictError, NotFoundError


def test_category_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "list"])

    assert result.exit_code == 0
    assert "No categories found" in result.output


def test_category_list(cli_runner, temp_db, sample_categories):
    """Test listing categories."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "list"])

    assert result.exit_code == 0
    assert "Income" in result.output
    assert "Food & Dining" in result.output
    assert "  Groceries" in result.output


def test_category_create_root(cli_runner, temp_db):
    """Test creating a root category."""
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "category", "create", "Test Category"],
    )

    assert result.exit_code == 0
    assert "Created category 'Test Category'" in result.output


def test_category_create_child(cli_runner, temp_db, sample_categories):
    """Test creating a child category."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "category",
            "create",
            "Test Subcategory",
            "--parent",
            "Food & Dining",
        ],
    )

    assert result.exit_code == 0
    assert "Created category 'Test Subcategory'" in result.output
    assert "under 'Food & Dining'" in result.output


def test_category_create_invalid_parent(cli_runner, temp_db):
    """Test creating category with invalid parent."""
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "category", "create", "Orphan", "--parent", "Missing"],
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_category_archive(cli_runner, temp_db, sample_categories):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "category", "archive", "Food & Dining > Coffee"]
    )
    assert result.exit_code == 0
    assert "Archived category 'Food & Dining > Coffee'" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "list"])
    assert "Coffee" not in result.output


class TestCategoryService:
    def test_duplicate_sibling_rejected(self, category_service, sample_categories):
        with pytest.raises(ConflictError):
            category_service.create_category("Groceries", parent_path="Food & Dining")

    def test_same_name_under_different_parents(self, category_service, sample_categories):
        category_service.create_category("Groceries", parent_path="Household")
        assert category_service.get_category_by_path("Household > Groceries") is not None

    def test_resolve_path(self, category_service, sample_categories):
        assert category_service.resolve_path("Income > Salary").id == sample_categories["Income > Salary"]
        with pytest.raises(NotFoundError):
            category_service.resolve_path("Income > Bonus")

    def test_archived_category_not_resolvable(self, category_service, sample_categories):
        category_service.archive_category(sample_categories["Shopping"])
        with pytest.raises(NotFoundError):
            category_service.resolve_path("Shopping")

    def test_category_paths_include_archived(self, category_service, sample_categories):
        category_service.archive_category(sample_categories["Food & Dining > Coffee"])
        paths = category_service.category_paths()
        assert paths[sample_categories["Food & Dining > Coffee"]] == "Food & Dining > Coffee"
        assert category_service.format_category_path(sample_categories["Income > Salary"]) == "Income > Salary"

    def test_category_tree(self, category_service, sample_categories):
        tree = category_service.get_category_tree()
        food = next(node for node in tree if node["name"] == "Food & Dining")
        assert sorted(child["name"] for child in food["children"]) == ["Coffee", "Groceries"]
