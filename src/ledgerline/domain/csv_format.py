"""CSV format domain service: named, saved column mappings."""

from typing import Optional

from ledgerline.database.base import Database
from ledgerline.domain.csv_mapping import CSVMapping, get_bank_profile, validate_mapping
from ledgerline.domain.entities import CSVFormat as CSVFormatEntity
from ledgerline.domain.errors import ConflictError, NotFoundError, account_not_found


class CSVFormatService:
    """Service for managing CSV formats."""

    def __init__(self, db: Database):
        """Initialize CSV format service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_format(self, name: str, account_id: int, mapping: CSVMapping) -> int:
        """Create a new CSV format.

        Args:
            name: Format name
            account_id: Associated account ID
            mapping: Column mapping to save

        Returns:
            Format ID

        Raises:
            MappingError: If the mapping is incomplete or ambiguous
            NotFoundError: If account doesn't exist
            ConflictError: If format name already exists
        """
        # Verify account exists
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        validate_mapping(mapping)

        # Check if format with same name exists
        existing = self.db.get_csv_format_by_name(name)
        if existing is not None:
            raise ConflictError(f"CSV format with name '{name}' already exists")

        return self.db.create_csv_format(name=name, account_id=account_id, mapping=mapping)

    def create_from_profile(self, name: str, account_id: int, profile: str) -> int:
        """Save a built-in bank profile as a named format."""
        mapping = get_bank_profile(profile)
        if mapping is None:
            raise NotFoundError(f"Bank profile '{profile}' not found")
        return self.create_format(name, account_id, mapping)

    def get_format(self, format_id: int) -> Optional[CSVFormatEntity]:
        """Get CSV format by ID.

        Args:
            format_id: Format ID

        Returns:
            Format entity or None if not found
        """
        return self.db.get_csv_format(format_id)

    def get_format_by_name(self, name: str) -> Optional[CSVFormatEntity]:
        """Get CSV format by name.

        Args:
            name: Format name

        Returns:
            Format entity or None if not found
        """
        return self.db.get_csv_format_by_name(name)

    def list_formats(self, account_id: Optional[int] = None) -> list[CSVFormatEntity]:
        """List CSV formats.

        Args:
            account_id: Optional account ID to filter by

        Returns:
            List of format entities
        """
        return self.db.list_csv_formats(account_id=account_id)

    def update_format(
        self,
        format_id: int,
        name: Optional[str] = None,
        account_id: Optional[int] = None,
        mapping: Optional[CSVMapping] = None,
    ) -> None:
        """Update CSV format fields.

        Args:
            format_id: Format ID to update
            name: Optional new format name
            account_id: Optional new account ID
            mapping: Optional replacement mapping

        Raises:
            NotFoundError: If format or account not found
            ConflictError: If name already exists
            MappingError: If the new mapping is invalid
        """
        # Verify format exists
        fmt = self.db.get_csv_format(format_id)
        if fmt is None:
            raise NotFoundError(f"CSV format {format_id} not found")

        # Check for duplicate name if updating name
        if name is not None:
            existing = self.db.get_csv_format_by_name(name)
            if existing is not None and existing.id != format_id:
                raise ConflictError(f"CSV format with name '{name}' already exists")

        # Verify account if provided
        if account_id is not None:
            account = self.db.get_account(account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))

        if mapping is not None:
            validate_mapping(mapping)

        self.db.update_csv_format(format_id=format_id, name=name, account_id=account_id, mapping=mapping)

    def delete_format(self, format_id: int) -> None:
        """Delete a CSV format.

        Args:
            format_id: Format ID to delete

        Raises:
            NotFoundError: If format doesn't exist
        """
        fmt = self.db.get_csv_format(format_id)
        if fmt is None:
            raise NotFoundError(f"CSV format {format_id} not found")

        self.db.delete_csv_format(format_id)
