"""Account management commands."""

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit
from ledgerline.cli.date_filters import parse_amount_or_exit, parse_date_or_exit
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.money import format_cents


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.option("--opening-balance", default="0", help="Opening balance (e.g., 1000.00)")
@click.option("--opening-date", help="Date of the opening balance (YYYY-MM-DD)")
@click.pass_context
def create_account(ctx, name: str, bank: str | None, opening_balance: str, opening_date: str | None):
    """Create a new account.

    If --bank is not provided, the bank name will be set to the account name.

    Examples:
        ledgerline account create "Chase"
        ledgerline account create "My Checking" --bank "Chase" --opening-balance 100.00
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    # If bank not provided, use account name as bank name
    bank_name = bank if bank is not None else name
    balance = parse_amount_or_exit(ctx, opening_balance, "opening balance")
    balance_date = parse_date_or_exit(ctx, opening_date, "opening date")

    try:
        account_id = service.create_account(
            name=name, bank_name=bank_name, opening_balance=balance, opening_balance_date=balance_date
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
        if bank is None:
            click.echo(f"Bank name set to '{bank_name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include archived accounts")
@click.pass_context
def list_accounts(ctx, show_all: bool):
    """List accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(include_archived=show_all)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 90)
    for acc in accounts:
        reconciled = (
            f"{acc.last_reconciled_date} ({format_cents(acc.last_reconciled_balance)})"
            if acc.last_reconciled_date
            else "never"
        )
        status = " [archived]" if acc.is_archived else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | Bank: {acc.bank_name:15s} | "
            f"Opening: {format_cents(acc.opening_balance):>10s} | Reconciled: {reconciled}{status}"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str) -> None:
    """Show account details and current balance."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.get_account(account_id)

    click.echo(f"Account: {acc.name} (ID: {acc.id})")
    click.echo(f"  Bank: {acc.bank_name}")
    click.echo(f"  Opening balance: {format_cents(acc.opening_balance)}")
    if acc.opening_balance_date:
        click.echo(f"  Opening date: {acc.opening_balance_date}")
    click.echo(f"  Current balance: {format_cents(service.get_current_balance(account_id))}")
    if acc.last_reconciled_date:
        click.echo(
            f"  Last reconciled: {acc.last_reconciled_date} at {format_cents(acc.last_reconciled_balance)}"
        )
    if acc.csv_mapping:
        click.echo(f"  Saved mapping: date={acc.csv_mapping.date_column}, "
                   f"description={acc.csv_mapping.description_column}")
    if acc.is_archived:
        click.echo("  Archived")


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.option("--bank", help="New bank name (optional)")
@click.pass_context
def rename_account(ctx, account: str, new_name: str, bank: str | None) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID.
    NEW_NAME is the new name for the account.

    Examples:
        ledgerline account rename "Chase" "Chase Checking"
        ledgerline account rename 1 "My Account" --bank "Wells Fargo"
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.rename_account(account_id=account_id, name=new_name, bank_name=bank)
        click.echo(f"Renamed account to '{new_name}'")
        if bank is not None:
            click.echo(f"Bank name updated to '{bank}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("set-opening-balance")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount")
@click.option("--date", "balance_date", help="Date of the opening balance (YYYY-MM-DD)")
@click.pass_context
def set_opening_balance(ctx, account: str, amount: str, balance_date: str | None) -> None:
    """Set the opening balance of an account that was never reconciled."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    balance = parse_amount_or_exit(ctx, amount, "opening balance")
    parsed_date = parse_date_or_exit(ctx, balance_date, "opening date")

    try:
        service.set_opening_balance(account_id, balance, parsed_date)
        click.echo(f"Opening balance set to {format_cents(balance)}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("archive")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def archive_account(ctx, account: str) -> None:
    """Archive an account.

    Archived accounts keep their transactions but are hidden from listings
    and cannot receive imports.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.archive_account(account_id)
        click.echo(f"Archived account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
