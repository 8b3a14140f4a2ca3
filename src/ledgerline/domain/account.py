"""Account domain service."""

from datetime import date
from typing import Optional

from ledgerline.database.base import Database
from ledgerline.domain.csv_mapping import CSVMapping, validate_mapping
from ledgerline.domain.entities import Account as AccountEntity
from ledgerline.domain.errors import ConflictError, NotFoundError, ValidationError, account_not_found


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        name: str,
        bank_name: str,
        opening_balance: int = 0,
        opening_balance_date: Optional[date] = None,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            bank_name: Bank name
            opening_balance: Balance before the first transaction, in cents
            opening_balance_date: Date the opening balance applies to

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If account name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name is required")

        # Check if account with same name exists, archived ones included
        for acc in self.db.list_accounts(include_archived=True):
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        return self.db.create_account(
            name=name,
            bank_name=bank_name,
            opening_balance=opening_balance,
            opening_balance_date=opening_balance_date,
        )

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get an account, raising when it does not exist."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, include_archived: bool = False) -> list[AccountEntity]:
        """List accounts.

        Returns:
            List of account entities
        """
        return self.db.list_accounts(include_archived=include_archived)

    def rename_account(self, account_id: int, name: str, bank_name: Optional[str] = None) -> None:
        """Rename an account.

        Args:
            account_id: Account ID to rename
            name: New account name
            bank_name: Optional new bank name (if None, bank_name is not updated)

        Raises:
            NotFoundError: If account not found
            ConflictError: If name already exists
        """
        self.require_account(account_id)

        # Check for duplicate names (excluding current account)
        for acc in self.db.list_accounts(include_archived=True):
            if acc.id != account_id and acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        self.db.update_account(account_id=account_id, name=name, bank_name=bank_name)

    def set_opening_balance(
        self, account_id: int, opening_balance: int, opening_balance_date: Optional[date] = None
    ) -> None:
        """Change the opening balance.

        Once an account has been reconciled, its checkpoint is the starting
        point of every later reconciliation, so the opening balance is frozen.

        Raises:
            NotFoundError: If account not found
            ConflictError: If the account has a reconciliation checkpoint
        """
        account = self.require_account(account_id)
        if account.last_reconciled_date is not None:
            raise ConflictError(
                f"Account {account_id} has been reconciled; its opening balance can no longer change"
            )
        self.db.update_account(
            account_id=account_id,
            opening_balance=opening_balance,
            opening_balance_date=opening_balance_date,
        )

    def archive_account(self, account_id: int) -> None:
        """Archive an account, hiding it from listings and new imports."""
        self.require_account(account_id)
        self.db.set_account_archived(account_id, True)

    def restore_account(self, account_id: int) -> None:
        self.require_account(account_id)
        self.db.set_account_archived(account_id, False)

    def save_mapping(self, account_id: int, mapping: CSVMapping) -> None:
        """Remember a CSV mapping as the account's default for the next import."""
        self.require_account(account_id)
        validate_mapping(mapping)
        self.db.save_account_mapping(account_id, mapping)

    def get_current_balance(self, account_id: int) -> int:
        """Opening balance plus every live transaction, in cents."""
        account = self.require_account(account_id)
        return account.opening_balance + sum(
            txn.amount for txn in self.db.list_transactions(account_id=account_id)
        )
