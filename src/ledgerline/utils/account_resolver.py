"""Utility for resolving account names to IDs."""

from ledgerline.domain.account import AccountService
from ledgerline.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Args:
        account_service: AccountService instance
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    # Try to parse as integer (handles string IDs like "1")
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    # Try to find by name, archived accounts included
    for acc in account_service.list_accounts(include_archived=True):
        if acc.name == account:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")
