"""CSV export commands."""

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit
from ledgerline.cli.date_filters import resolve_cli_date_range
from ledgerline.domain.account import AccountService
from ledgerline.domain.export import ExportService


def emit(content: str, output: str | None) -> None:
    """Write export text to a file, or to stdout when no file is given."""
    if output is None:
        click.echo(content, nl=False)
        return
    ExportService.write(content, output)
    click.echo(f"Exported to {output}", err=True)


@click.group()
def export_group():
    """Export data as CSV."""
    pass


@export_group.command("transactions")
@click.option("--account", help="Account name or ID")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (stdout if omitted)")
@click.pass_context
def export_transactions(ctx, account: str | None, start_date: str | None, end_date: str | None, output: str | None):
    """Export live transactions, oldest first."""
    db = ctx.obj["db"]
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None
    emit(ExportService(db).export_transactions(account_id=account_id, start_date=start, end_date=end), output)


@export_group.command("accounts")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (stdout if omitted)")
@click.pass_context
def export_accounts(ctx, output: str | None):
    """Export accounts, archived ones included."""
    emit(ExportService(ctx.obj["db"]).export_accounts(), output)


@export_group.command("rules")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (stdout if omitted)")
@click.pass_context
def export_rules(ctx, output: str | None):
    """Export categorization rules in priority order."""
    emit(ExportService(ctx.obj["db"]).export_rules(), output)


def register_commands(cli):
    """Register export commands with main CLI."""
    cli.add_command(export_group, name="export")
