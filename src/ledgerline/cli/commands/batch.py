"""Import batch commands."""

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.domain.import_batch import ImportBatchService


@click.group()
def batch_group():
    """Review and undo CSV imports."""
    pass


@batch_group.command("list")
@click.option("--account", help="Filter by account name or ID")
@click.pass_context
def list_batches(ctx, account: str | None):
    """List import batches, newest first."""
    db = ctx.obj["db"]
    service = ImportBatchService(db)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    batches = service.list_batches(account_id=account_id)
    if not batches:
        click.echo("No imports found.")
        return

    click.echo("\nImports:")
    click.echo("-" * 90)
    for batch in batches:
        status = " [undone]" if batch.is_undone else ""
        click.echo(
            f"ID: {batch.id:3d} | {batch.imported_at:%Y-%m-%d %H:%M} | Account: {batch.account_id} | "
            f"{batch.file_name} | {batch.imported_count} imported, {batch.duplicate_count} duplicates, "
            f"{batch.error_count} errors{status}"
        )


@batch_group.command("undo")
@click.argument("batch_id", type=int)
@click.pass_context
def undo_batch(ctx, batch_id: int):
    """Undo an import: archive every transaction it created.

    Fails without changing anything if any of those transactions has been
    reconciled or falls in a locked tax year.
    """
    db = ctx.obj["db"]
    service = ImportBatchService(db)

    try:
        result = service.undo(batch_id, actor=ctx.obj["user"])
    except ValueError as e:
        handle_domain_error(ctx, e)

    if result.already_undone:
        click.echo(f"Import {batch_id} was already undone.")
    else:
        click.echo(f"Undid import {batch_id}: archived {result.archived_count} transactions")


def register_commands(cli):
    """Register batch commands with main CLI."""
    cli.add_command(batch_group, name="batch")
