"""Account lookup for --account style command options."""

import click
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.domain.errors import NotFoundError
from ledgerline.utils.account_resolver import resolve_account


def resolve_account_or_exit(ctx: click.Context, account_service: AccountService, account: str | int) -> int:
    """Turn an account name or ID into an account ID.

    An unknown account ends the command through handle_domain_error.
    """
    try:
        return resolve_account(account_service, account)
    except NotFoundError as e:
        handle_domain_error(ctx, e)
