"""Category domain service."""

from typing import Any, Optional

from ledgerline.database.base import Database
from ledgerline.domain.entities import Category
from ledgerline.domain.errors import ConflictError, NotFoundError, ValidationError, category_not_found


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(self, name: str, parent_path: Optional[str] = None) -> int:
        """Create a category.

        Args:
            name: Category name
            parent_path: Optional parent category path (e.g., "Food & Dining")

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty or contains '>'
            NotFoundError: If parent category doesn't exist
            ConflictError: If a sibling with the same name exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Category name is required")
        if ">" in name:
            raise ValidationError("Category name cannot contain '>'")

        parent_id = None
        if parent_path is not None:
            parent = self.db.get_category_by_path(parent_path)
            if parent is None:
                raise NotFoundError(f"Parent category '{parent_path}' not found")
            parent_id = parent.id

        for sibling in self.db.list_categories(parent_id=parent_id, include_archived=True):
            if sibling.name == name:
                raise ConflictError(f"Category '{name}' already exists")

        return self.db.create_category(name=name, parent_id=parent_id)

    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID.

        Args:
            category_id: Category ID

        Returns:
            Category entity or None if not found
        """
        return self.db.get_category(category_id)

    def get_category_by_path(self, path: str) -> Optional[Category]:
        """Get category by path.

        Args:
            path: Category path (e.g., "Food & Dining > Groceries")

        Returns:
            Category entity or None if not found
        """
        return self.db.get_category_by_path(path)

    def resolve_path(self, path: str) -> Category:
        """Get an active category by path, raising when it is missing."""
        category = self.db.get_category_by_path(path)
        if category is None or category.is_archived:
            raise NotFoundError(f"Category '{path}' not found")
        return category

    def list_categories(self, parent_id: Optional[int] = None) -> list[Category]:
        """List active categories under a parent (roots by default)."""
        return self.db.list_categories(parent_id=parent_id)

    def get_category_tree(self) -> list[dict[str, Any]]:
        """Get full tree of active categories.

        Returns:
            List of root categories with nested children
        """
        categories = self.db.list_all_categories(include_archived=False)

        def build_tree(parent_id: Optional[int]) -> list[dict[str, Any]]:
            return [
                {
                    "id": cat.id,
                    "name": cat.name,
                    "parent_id": cat.parent_id,
                    "created_at": cat.created_at,
                    "children": build_tree(cat.id),
                }
                for cat in categories
                if cat.parent_id == parent_id
            ]

        return build_tree(None)

    def archive_category(self, category_id: int) -> None:
        """Archive a category. Existing transaction lines keep pointing at it."""
        if self.db.get_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id))
        self.db.set_category_archived(category_id, True)

    def category_paths(self) -> dict[int, str]:
        """Map every category id, archived ones included, to its full path."""
        by_id = {cat.id: cat for cat in self.db.list_all_categories(include_archived=True)}
        paths: dict[int, str] = {}
        for category_id in by_id:
            parts = []
            current = by_id.get(category_id)
            while current is not None:
                parts.append(current.name)
                current = by_id.get(current.parent_id) if current.parent_id is not None else None
            paths[category_id] = " > ".join(reversed(parts))
        return paths

    def format_category_path(self, category_id: int) -> str:
        """Get full path for a category.

        Args:
            category_id: Category ID

        Returns:
            Full category path (e.g., "Food & Dining > Groceries")
        """
        cat = self.get_category(category_id)
        if cat is None:
            return ""

        path_parts = [cat.name]
        current_parent_id = cat.parent_id

        while current_parent_id is not None:
            parent = self.get_category(current_parent_id)
            if parent is None:
                break
            path_parts.append(parent.name)
            current_parent_id = parent.parent_id

        return " > ".join(reversed(path_parts))
