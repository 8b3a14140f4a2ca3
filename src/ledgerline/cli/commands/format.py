"""CSV format management commands."""

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.domain.csv_format import CSVFormatService
from ledgerline.domain.csv_mapping import AmountMode, CSVMapping, list_bank_profiles
from ledgerline.utils.date_parser import DATE_FORMATS


def mapping_options(func):
    """Column mapping options shared by 'format create' and 'import'."""
    options = [
        click.option("--date-column", help="Column holding the transaction date"),
        click.option("--description-column", help="Column holding the description"),
        click.option("--amount-column", help="Column holding the signed amount"),
        click.option("--inflow-column", help="Column holding money in (separate amount columns)"),
        click.option("--outflow-column", help="Column holding money out (separate amount columns)"),
        click.option(
            "--date-format",
            type=click.Choice(DATE_FORMATS),
            default="MM/dd/yyyy",
            show_default=True,
            help="Date format used by the file",
        ),
        click.option("--no-header", is_flag=True, default=False, help="File has no header row; columns are 0, 1, ..."),
        click.option("--delimiter", help="Field delimiter (sniffed from the file when omitted)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_mapping(
    date_column: str | None,
    description_column: str | None,
    amount_column: str | None,
    inflow_column: str | None,
    outflow_column: str | None,
    date_format: str,
    no_header: bool,
    delimiter: str | None,
) -> CSVMapping | None:
    """Build a mapping from CLI options, or None when no column was given."""
    if not any([date_column, description_column, amount_column, inflow_column, outflow_column]):
        return None
    separate = amount_column is None and (inflow_column is not None or outflow_column is not None)
    return CSVMapping(
        date_column=date_column or "",
        description_column=description_column or "",
        amount_column=amount_column,
        date_format=date_format,
        has_header_row=not no_header,
        amount_mode=AmountMode.SEPARATE if separate else AmountMode.SIGNED,
        inflow_column=inflow_column,
        outflow_column=outflow_column,
        delimiter=delimiter,
    )


def describe_mapping(mapping: CSVMapping) -> list[str]:
    lines = [
        f"  Date: {mapping.date_column} ({mapping.date_format})",
        f"  Description: {mapping.description_column}",
    ]
    if mapping.amount_mode == AmountMode.SEPARATE:
        lines.append(f"  Inflow: {mapping.inflow_column or '-'}")
        lines.append(f"  Outflow: {mapping.outflow_column or '-'}")
    else:
        lines.append(f"  Amount: {mapping.amount_column}")
    if not mapping.has_header_row:
        lines.append("  No header row")
    if mapping.delimiter:
        lines.append(f"  Delimiter: {mapping.delimiter!r}")
    return lines


@click.group()
def format_group():
    """Manage CSV formats."""
    pass


@format_group.command("create")
@click.argument("name")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--profile", help="Start from a built-in bank profile (see 'format profiles')")
@mapping_options
@click.pass_context
def create_format(
    ctx,
    name: str,
    account: str,
    profile: str | None,
    date_column: str | None,
    description_column: str | None,
    amount_column: str | None,
    inflow_column: str | None,
    outflow_column: str | None,
    date_format: str,
    no_header: bool,
    delimiter: str | None,
):
    """Create a new CSV format.

    Examples:
        ledgerline format create "Chase" --account Checking --profile CHASE_CHECKING
        ledgerline format create "Credit Union" --account Savings \\
            --date-column Date --description-column Memo --amount-column Amount
    """
    db = ctx.obj["db"]
    service = CSVFormatService(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    mapping = build_mapping(
        date_column, description_column, amount_column, inflow_column, outflow_column,
        date_format, no_header, delimiter,
    )
    if mapping is None and profile is None:
        click.echo("Error: Provide --profile or column mapping options", err=True)
        ctx.exit(1)

    try:
        if mapping is None:
            format_id = service.create_from_profile(name=name, account_id=account_id, profile=profile)
        else:
            format_id = service.create_format(name=name, account_id=account_id, mapping=mapping)
        click.echo(f"Created CSV format '{name}' (ID: {format_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@format_group.command("list")
@click.option("--account", help="Filter by account name or ID")
@click.pass_context
def list_formats(ctx, account):
    """List CSV formats."""
    db = ctx.obj["db"]
    service = CSVFormatService(db)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    formats = service.list_formats(account_id=account_id)
    if not formats:
        click.echo("No CSV formats found.")
        return

    click.echo("\nCSV Formats:")
    click.echo("-" * 60)
    for fmt in formats:
        click.echo(f"{fmt.name} (ID: {fmt.id}, Account: {fmt.account_id})")
        for line in describe_mapping(fmt.mapping):
            click.echo(line)


@format_group.command("show")
@click.argument("format_name")
@click.pass_context
def show_format(ctx, format_name: str):
    """Show details of a CSV format."""
    db = ctx.obj["db"]
    service = CSVFormatService(db)

    fmt = service.get_format_by_name(format_name)
    if fmt is None:
        click.echo(f"Error: CSV format '{format_name}' not found", err=True)
        ctx.exit(1)

    click.echo(f"\nFormat: {fmt.name}")
    click.echo(f"ID: {fmt.id}")
    click.echo(f"Account ID: {fmt.account_id}")
    click.echo("Column Mapping:")
    for line in describe_mapping(fmt.mapping):
        click.echo(line)


@format_group.command("profiles")
def list_profiles():
    """List built-in bank profiles."""
    for name in list_bank_profiles():
        click.echo(name)


@format_group.command("update")
@click.argument("format_name")
@click.option("--name", help="New format name")
@click.option("--account", help="Account name or ID to reassign format to")
@mapping_options
@click.pass_context
def update_format(
    ctx,
    format_name: str,
    name: str | None,
    account: str | None,
    date_column: str | None,
    description_column: str | None,
    amount_column: str | None,
    inflow_column: str | None,
    outflow_column: str | None,
    date_format: str,
    no_header: bool,
    delimiter: str | None,
) -> None:
    """Update a CSV format.

    Updates only the fields that are provided. Column options replace the
    whole mapping.

    Examples:
        ledgerline format update "Chase Format" --name "Chase New Format"
        ledgerline format update "Chase Format" --account "Wells Fargo"
    """
    db = ctx.obj["db"]
    service = CSVFormatService(db)

    fmt = service.get_format_by_name(format_name)
    if fmt is None:
        click.echo(f"Error: CSV format '{format_name}' not found", err=True)
        ctx.exit(1)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    mapping = build_mapping(
        date_column, description_column, amount_column, inflow_column, outflow_column,
        date_format, no_header, delimiter,
    )

    try:
        service.update_format(format_id=fmt.id, name=name, account_id=account_id, mapping=mapping)
        click.echo(f"Updated format '{format_name}'")
        if name is not None:
            click.echo(f"  New name: '{name}'")
        if account is not None:
            click.echo(f"  Reassigned to account: '{account}'")
        if mapping is not None:
            click.echo("  Column mapping replaced")
    except ValueError as e:
        handle_domain_error(ctx, e)


@format_group.command("delete")
@click.argument("format_name")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_format(ctx, format_name: str, yes: bool) -> None:
    """Delete a CSV format.

    Examples:
        ledgerline format delete "Chase Format"
    """
    db = ctx.obj["db"]
    service = CSVFormatService(db)

    fmt = service.get_format_by_name(format_name)
    if fmt is None:
        click.echo(f"Error: CSV format '{format_name}' not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete format '{format_name}' (ID: {fmt.id})?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_format(fmt.id)
        click.echo(f"Deleted format '{format_name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register format commands with main CLI."""
    cli.add_command(format_group, name="format")
