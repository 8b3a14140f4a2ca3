"""CLI helpers for date and amount option parsing."""

from datetime import date

import click

from ledgerline.utils.amount_parser import parse_amount_cents
from ledgerline.utils.date_parser import parse_date


def parse_date_or_exit(ctx: click.Context, value: str | None, label: str = "date") -> date | None:
    """Parse a CLI date (absolute or relative like 'yesterday'), or exit."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str | None, label: str = "amount") -> int | None:
    """Parse a CLI money amount into cents, or exit."""
    if value is None:
        return None
    try:
        return parse_amount_cents(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx: click.Context, *, start_date: str | None, end_date: str | None
) -> tuple[date | None, date | None]:
    """Resolve --start-date/--end-date options."""
    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date")
    if start is not None and end is not None and start > end:
        click.echo("Error: Start date is after end date", err=True)
        ctx.exit(1)
    return start, end
