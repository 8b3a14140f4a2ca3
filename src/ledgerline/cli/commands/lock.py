"""Tax-year lock commands."""

import click
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.tax_year_lock import TaxYearLockService


@click.group()
def lock_group():
    """Lock finished tax years against edits."""
    pass


@lock_group.command("status")
@click.pass_context
def status(ctx):
    """Show which tax years are locked."""
    service = TaxYearLockService(ctx.obj["db"])
    lock = service.get_lock()
    if lock.max_locked_year is None:
        click.echo("No tax years are locked.")
        return
    by = f" by {lock.locked_by}" if lock.locked_by else ""
    when = f" on {lock.locked_at:%Y-%m-%d}" if lock.locked_at else ""
    click.echo(f"Tax years through {lock.max_locked_year} are locked{by}{when}.")


@lock_group.command("lock")
@click.argument("year", type=int)
@click.pass_context
def lock_year(ctx, year: int):
    """Lock YEAR and every year before it."""
    service = TaxYearLockService(ctx.obj["db"])
    try:
        watermark = service.lock_year(year, actor=ctx.obj["user"])
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Tax years through {watermark} are locked.")


@lock_group.command("unlock")
@click.argument("year", type=int)
@click.pass_context
def unlock_year(ctx, year: int):
    """Unlock YEAR, which must be the most recently locked year."""
    service = TaxYearLockService(ctx.obj["db"])
    try:
        watermark = service.unlock_year(year, actor=ctx.obj["user"])
    except ValueError as e:
        handle_domain_error(ctx, e)
    if watermark is None:
        click.echo("No tax years are locked.")
    else:
        click.echo(f"Unlocked {year}. Tax years through {watermark} remain locked.")


def register_commands(cli):
    """Register tax-year lock commands with main CLI."""
    cli.add_command(lock_group, name="lock")
