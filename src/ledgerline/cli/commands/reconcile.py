"""Reconciliation commands."""

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit
from ledgerline.cli.date_filters import parse_amount_or_exit, parse_date_or_exit
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.domain.errors import ReconciliationImbalanceError
from ledgerline.domain.reconciliation import ReconciliationService
from ledgerline.money import format_cents


@click.group()
def reconcile_group():
    """Reconcile accounts against bank statements."""
    pass


@reconcile_group.command("run")
@click.argument("account")
@click.option("--statement-date", required=True, help="Closing date of the statement")
@click.option("--balance", "statement_balance", required=True, help="Ending balance on the statement")
@click.option("--select", "selected", type=int, multiple=True, help="ID of a cleared transaction (repeatable)")
@click.option("--all", "select_all", is_flag=True, help="Treat every candidate as cleared")
@click.option("--finalize", is_flag=True, help="Save the reconciliation if it balances")
@click.pass_context
def run_reconciliation(
    ctx,
    account: str,
    statement_date: str,
    statement_balance: str,
    selected: tuple[int, ...],
    select_all: bool,
    finalize: bool,
):
    """Match cleared transactions against a statement balance.

    Without --finalize this only shows the candidates and the difference.

    Examples:
        ledgerline reconcile run Checking --statement-date 2024-01-31 --balance 75.00 --all
        ledgerline reconcile run Checking --statement-date 2024-01-31 --balance 75.00 \\
            --select 3 --select 4 --finalize
    """
    db = ctx.obj["db"]
    service = ReconciliationService(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    closing_date = parse_date_or_exit(ctx, statement_date, "statement date")
    balance = parse_amount_or_exit(ctx, statement_balance, "statement balance")

    try:
        session = service.start(account_id, closing_date, balance)
        session = session.select_all() if select_all else session.select(selected)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCandidates through {closing_date}:")
    if not session.candidates:
        click.echo("  (none)")
    for txn in session.candidates:
        mark = "x" if txn.id in session.selected_ids else " "
        click.echo(
            f"  [{mark}] {txn.id:<6} {str(txn.date):<12} {format_cents(txn.amount):>12} {(txn.payee or '')[:40]}"
        )

    result = session.result()
    click.echo(f"\nOpening balance:    {format_cents(result.opening_balance):>12}")
    click.echo(f"Cleared deposits:   {format_cents(result.total_deposits):>12}")
    click.echo(f"Cleared withdrawals:{format_cents(result.total_withdrawals):>12}")
    click.echo(f"Calculated balance: {format_cents(result.calculated_ending_balance):>12}")
    click.echo(f"Statement balance:  {format_cents(result.statement_balance):>12}")
    click.echo(f"Difference:         {format_cents(result.difference):>12}")

    if not finalize:
        return

    try:
        session = service.finalize(session, actor=ctx.obj["user"])
    except ReconciliationImbalanceError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"\nReconciliation {session.reconciliation_id} saved: "
        f"{len(result.selected_ids)} transaction(s) reconciled"
    )


@reconcile_group.command("history")
@click.argument("account")
@click.pass_context
def history(ctx, account: str):
    """Show finalized reconciliations, newest first."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        records = service.history(account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not records:
        click.echo("No reconciliations found.")
        return

    click.echo("\nReconciliations:")
    click.echo("-" * 80)
    for record in records:
        by = f" by {record.finalized_by}" if record.finalized_by else ""
        click.echo(
            f"ID: {record.id:3d} | Statement: {record.statement_date} | "
            f"Balance: {format_cents(record.statement_balance)} | "
            f"{len(record.transaction_ids)} transaction(s) | {record.finalized_at:%Y-%m-%d %H:%M}{by}"
        )


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
