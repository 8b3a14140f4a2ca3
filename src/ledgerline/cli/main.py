"""Main CLI entry point."""

import click

from ledgerline.config import ConfigValidationError, Settings
from ledgerline.database.factories import create_sqlite_database
from ledgerline.logging_setup import configure_logging

# Import and register all commands at module level
from ledgerline.cli.commands import (
    account,
    batch,
    category,
    export,
    format,
    import_cmd,
    lock,
    reconcile,
    rule,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERLINE_DB_PATH environment variable)",
    envvar="LEDGERLINE_DB_PATH",
)
@click.option(
    "--user",
    help="Acting user recorded on changes (overrides LEDGERLINE_USER environment variable)",
    envvar="LEDGERLINE_USER",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides LEDGERLINE_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, user: str | None, log_level: str | None):
    """Ledgerline - bank statement import and reconciliation.

    Import CSV exports from your bank without double-counting, categorize
    them with rules, and reconcile accounts against statements.
    """
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env()
    except ConfigValidationError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    configure_logging(log_level or settings.log_level)
    ctx.obj["settings"] = settings
    ctx.obj["user"] = user or settings.user

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path or settings.db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
format.register_commands(cli)
import_cmd.register_commands(cli)
batch.register_commands(cli)
rule.register_commands(cli)
transaction.register_commands(cli)
reconcile.register_commands(cli)
lock.register_commands(cli)
export.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
