"""CSV import command."""

import warnings

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit
from ledgerline.cli.commands.format import build_mapping, mapping_options
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.domain.csv_import import CSVImportService
from ledgerline.domain.duplicates import DuplicateClassification
from ledgerline.domain.errors import DuplicateAmbiguityWarning
from ledgerline.domain.import_session import ImportStep
from ledgerline.money import format_cents

_LABELS = {
    DuplicateClassification.NEW: "new",
    DuplicateClassification.EXACT: "duplicate",
    DuplicateClassification.FUZZY: "possible duplicate",
}


def print_review(session) -> None:
    """Print one line per staged row with its duplicate status."""
    for row in session.detection.rows:
        staged = row.staged
        if row.is_error:
            click.echo(f"  Row {staged.row_number:4d}: error: {'; '.join(staged.errors)}")
            continue
        label = _LABELS[row.classification]
        matched = f" (matches {', '.join(str(i) for i in row.matched_ids)})" if row.matched_ids else ""
        click.echo(
            f"  Row {staged.row_number:4d}: {staged.date} {format_cents(staged.amount):>10s} "
            f"{staged.description[:40]:40s} [{label}]{matched}"
        )


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--account", required=True, help="Account name or ID to import into")
@click.option("--format", "format_name", help="Saved CSV format name")
@click.option("--profile", help="Built-in bank profile (see 'format profiles')")
@mapping_options
@click.option(
    "--keep-fuzzy",
    "keep_fuzzy",
    type=int,
    multiple=True,
    help="Row number of a possible duplicate to import anyway (repeatable)",
)
@click.option("--no-rules", is_flag=True, help="Do not apply categorization rules")
@click.option("--dry-run", is_flag=True, help="Show what would be imported without importing")
@click.pass_context
def import_csv(
    ctx,
    csv_file: str,
    account: str,
    format_name: str | None,
    profile: str | None,
    date_column: str | None,
    description_column: str | None,
    amount_column: str | None,
    inflow_column: str | None,
    outflow_column: str | None,
    date_format: str,
    no_header: bool,
    delimiter: str | None,
    keep_fuzzy: tuple[int, ...],
    no_rules: bool,
    dry_run: bool,
):
    """Import transactions from a CSV file.

    The column mapping comes from the column options, --format, --profile or
    the mapping last used for the account, in that order. Exact duplicates
    are always skipped; possible duplicates are skipped unless listed with
    --keep-fuzzy. The whole file is imported as one batch that can be undone
    with 'batch undo'.

    Examples:
        ledgerline import statement.csv --account Checking --profile CHASE_CHECKING
        ledgerline import statement.csv --account Checking --dry-run
        ledgerline import statement.csv --account Checking --keep-fuzzy 3 --keep-fuzzy 7
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    service = CSVImportService(db, fuzzy_window_days=settings.fuzzy_window_days)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    mapping = build_mapping(
        date_column, description_column, amount_column, inflow_column, outflow_column,
        date_format, no_header, delimiter,
    )

    try:
        if mapping is None:
            mapping = service.resolve_mapping(account_id, format_name=format_name, bank_profile=profile)
        session = service.start(account_id)
        session = service.upload(session, csv_file)
        session = service.apply_mapping(session, mapping)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", DuplicateAmbiguityWarning)
            session = service.check_duplicates(session)
    except (ValueError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)

    stats = session.detection.stats
    click.echo(f"\nRead {stats.total} rows from {session.file_name}:")
    click.echo(f"  New: {stats.new}")
    click.echo(f"  Duplicates: {stats.exact_duplicates}")
    click.echo(f"  Possible duplicates: {stats.fuzzy_duplicates}")
    click.echo(f"  Errors: {stats.errors}")
    for warning in caught:
        if issubclass(warning.category, DuplicateAmbiguityWarning):
            click.echo(f"Warning: {warning.message}", err=True)

    if dry_run:
        click.echo("\nRows:")
        print_review(session)
        click.echo("\nDry run: nothing imported.")
        return

    if not stats.new and not keep_fuzzy:
        for row in session.invalid_rows:
            click.echo(f"  Row {row.row_number}: {'; '.join(row.errors)}", err=True)
        if stats.errors == stats.total:
            click.echo("Error: No valid transactions found in the file", err=True)
            ctx.exit(1)
        click.echo("\nNothing new to import.")
        if stats.fuzzy_duplicates:
            click.echo("Use --keep-fuzzy ROW to import a possible duplicate.")
        return

    try:
        session = service.commit(
            session,
            keep_fuzzy=[row - 1 for row in keep_fuzzy],
            apply_rules=not no_rules,
            actor=ctx.obj["user"],
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if session.step == ImportStep.ERROR:
        click.echo(f"Error: Import failed, nothing was imported: {session.error}", err=True)
        ctx.exit(1)

    result = session.result
    click.echo("\nImport complete:")
    click.echo(f"  Batch: {result.batch_id}")
    click.echo(f"  Imported: {result.imported_count} transactions")
    click.echo(f"  Skipped: {result.duplicate_count} duplicates")
    if result.error_count:
        click.echo(f"  Errors: {result.error_count}")
        for row in session.invalid_rows:
            click.echo(f"    Row {row.row_number}: {'; '.join(row.errors)}", err=True)
    if result.rule_matches:
        click.echo(f"  Categorized by rules: {result.rule_matches}")
    if result.rule_errors:
        click.echo(f"  Rules skipped as invalid: {result.rule_errors}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
