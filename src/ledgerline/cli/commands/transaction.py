"""Transaction management commands."""

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit
from ledgerline.cli.date_filters import parse_amount_or_exit, parse_date_or_exit, resolve_cli_date_range
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.domain.category import CategoryService
from ledgerline.domain.entities import SplitLine
from ledgerline.domain.errors import SplitImbalanceError
from ledgerline.domain.transaction import TransactionService
from ledgerline.money import format_cents
from ledgerline.utils.amount_parser import parse_amount_cents


def parse_split_line(category_service: CategoryService, value: str) -> SplitLine:
    """Parse 'Category > Path:AMOUNT[:memo]' into a split line.

    Raises:
        ValueError: If the line is malformed or the category doesn't exist
    """
    parts = value.split(":", 2)
    if len(parts) < 2:
        raise ValueError(f"Invalid split line '{value}': expected CATEGORY:AMOUNT[:MEMO]")
    path, amount = parts[0].strip(), parts[1].strip()
    memo = parts[2].strip() if len(parts) == 3 else None
    category = category_service.resolve_path(path)
    return SplitLine(category_id=category.id, amount=parse_amount_cents(amount), memo=memo or None)


def category_label(txn, paths: dict[int, str]) -> str:
    if txn.is_split:
        return "Split"
    if txn.category_id is None:
        return "Uncategorized"
    return paths.get(txn.category_id, "Unknown")


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--date", "txn_date", required=True, help="Transaction date (YYYY-MM-DD or relative like 'today')")
@click.option("--amount", required=True, help="Amount (negative for money out, e.g. -42.50)")
@click.option("--description", required=True, help="Description as it appears on the statement")
@click.option("--payee", help="Payee (defaults to the description)")
@click.option("--category", help="Category path (e.g., 'Food & Dining > Groceries')")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    txn_date: str,
    amount: str,
    description: str,
    payee: str | None,
    category: str | None,
):
    """Add a transaction by hand."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    parsed_date = parse_date_or_exit(ctx, txn_date)
    cents = parse_amount_or_exit(ctx, amount)

    try:
        category_id = CategoryService(db).resolve_path(category).id if category else None
        transaction_id = service.create_transaction(
            account_id=account_id,
            date=parsed_date,
            amount=cents,
            description=description,
            payee=payee,
            category_id=category_id,
            actor=ctx.obj["user"],
        )
        click.echo(f"Created transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show one transaction with its split lines."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    paths = CategoryService(db).category_paths()

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    click.echo(f"\nTransaction ID: {txn.id}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Amount: {format_cents(txn.amount)}")
    click.echo(f"  Account ID: {txn.account_id}")
    click.echo(f"  Payee: {txn.payee or ''}")
    click.echo(f"  Description: {txn.original_description}")
    click.echo(f"  Category: {category_label(txn, paths)}")
    if txn.is_split:
        for line in txn.lines:
            memo = f" ({line.memo})" if line.memo else ""
            click.echo(f"    {paths.get(line.category_id, 'Unknown')}: {format_cents(line.amount)}{memo}")
    click.echo(f"  Reviewed: {'Yes' if txn.is_reviewed else 'No'}")
    click.echo(f"  Reconciled: {'Yes' if txn.reconciled else 'No'}")
    if txn.source_batch_id is not None:
        click.echo(f"  Import batch: {txn.source_batch_id}")
    if txn.is_archived:
        click.echo("  Archived")
    if txn.last_modified_by:
        click.echo(f"  Last modified by: {txn.last_modified_by}")


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')")
@click.option("--category", help="Category path (e.g., 'Food & Dining > Groceries')")
@click.option("--account", help="Account name or ID")
@click.option("--uncategorized", is_flag=True, help="Show only uncategorized transactions")
@click.option("--unreconciled", is_flag=True, help="Show only unreconciled transactions")
@click.option("--archived", "include_archived", is_flag=True, help="Include archived transactions")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    category: str | None,
    account: str | None,
    uncategorized: bool,
    unreconciled: bool,
    include_archived: bool,
):
    """View transactions with optional filters.

    Account can be specified by name or ID.
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    account_service = AccountService(db)

    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, account_service, account)

    # Empty category path means uncategorized
    if uncategorized:
        category = ""

    transactions = service.list_transactions(
        start_date=start,
        end_date=end,
        category_path=category,
        account_id=account_id,
        include_archived=include_archived,
        reconciled=False if unreconciled else None,
    )

    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts(include_archived=True)}
    paths = CategoryService(db).category_paths()

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Amount':>12} {'Account':<16} {'Category':<28} {'Payee':<26} {'Flags':<5}"
    )
    click.echo("-" * 110)

    for txn in transactions:
        flags = ("R" if txn.is_reviewed else "") + ("C" if txn.reconciled else "") + ("A" if txn.is_archived else "")
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {format_cents(txn.amount):>12} "
            f"{accounts.get(txn.account_id, 'Unknown')[:16]:<16} {category_label(txn, paths)[:28]:<28} "
            f"{(txn.payee or '')[:26]:<26} {flags:<5}"
        )

    total_expenses = sum(txn.amount for txn in transactions if txn.amount < 0)
    total_income = sum(txn.amount for txn in transactions if txn.amount > 0)
    click.echo("-" * 110)
    click.echo(
        f"{'TOTAL':<6} Expenses: {format_cents(-total_expenses)} | "
        f"Income: {format_cents(total_income)} | Count: {len(transactions)}"
    )


@transaction_group.command("categorize")
@click.argument("transaction_ids", type=int, nargs=-1, required=True)
@click.option("--category", required=True, help="Category path, or empty string to clear")
@click.pass_context
def categorize(ctx, transaction_ids: tuple[int, ...], category: str):
    """Put one or more transactions in a single category.

    Split transactions become simple again. Either every transaction is
    updated or none is.
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        category_id = CategoryService(db).resolve_path(category).id if category else None
        count = service.bulk_update_category(list(transaction_ids), category_id, actor=ctx.obj["user"])
        click.echo(f"Categorized {count} transaction(s) as {category or 'Uncategorized'}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("split")
@click.argument("transaction_id", type=int)
@click.argument("lines", nargs=-1, required=True)
@click.pass_context
def split(ctx, transaction_id: int, lines: tuple[str, ...]):
    """Split a transaction across categories.

    Each line is CATEGORY:AMOUNT[:MEMO]; the amounts must add up to the
    transaction amount.

    Examples:
        ledgerline transaction split 12 "Groceries:-60.00" "Household:-40.00:soap"
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    category_service = CategoryService(db)

    try:
        split_lines = [parse_split_line(category_service, value) for value in lines]
        service.update_splits(transaction_id, split_lines, actor=ctx.obj["user"])
        click.echo(f"Split transaction {transaction_id} into {len(split_lines)} line(s)")
    except SplitImbalanceError as e:
        for error in e.errors:
            click.echo(f"Error: {error}", err=True)
        if e.remainder:
            click.echo(f"Remaining to allocate: {format_cents(e.remainder)}", err=True)
        ctx.exit(1)
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("unsplit")
@click.argument("transaction_id", type=int)
@click.option("--category", help="Category path for the single line (uncategorized if omitted)")
@click.pass_context
def unsplit(ctx, transaction_id: int, category: str | None):
    """Collapse a split transaction into one line."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        category_id = CategoryService(db).resolve_path(category).id if category else None
        service.convert_to_simple(transaction_id, category_id, actor=ctx.obj["user"])
        click.echo(f"Transaction {transaction_id} is no longer split")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--date", "txn_date", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--amount", help="Transaction amount (e.g., 123.45 or -123.45)")
@click.option("--payee", help="Payee")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    txn_date: str | None,
    amount: str | None,
    payee: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. Reconciled transactions and
    transactions in locked tax years cannot be changed.

    Examples:
        ledgerline transaction update 1 --amount -75.00
        ledgerline transaction update 1 --payee "Corner Store"
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    if txn_date is None and amount is None and payee is None:
        click.echo("Error: At least one field must be provided to update", err=True)
        ctx.exit(1)

    parsed_date = parse_date_or_exit(ctx, txn_date)
    cents = parse_amount_or_exit(ctx, amount)

    try:
        service.update_transaction(
            transaction_id=transaction_id,
            date=parsed_date,
            amount=cents,
            payee=payee,
            actor=ctx.obj["user"],
        )
        click.echo(f"Updated transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("review")
@click.argument("transaction_ids", type=int, nargs=-1, required=True)
@click.option("--undo", is_flag=True, help="Mark as not reviewed")
@click.pass_context
def review(ctx, transaction_ids: tuple[int, ...], undo: bool):
    """Mark transactions as reviewed."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        count = service.mark_reviewed(list(transaction_ids), is_reviewed=not undo, actor=ctx.obj["user"])
        click.echo(f"Marked {count} transaction(s) as {'not reviewed' if undo else 'reviewed'}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("archive")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def archive_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Archive a transaction. Transactions are never deleted.

    Examples:
        ledgerline transaction archive 1
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to archive transaction {transaction_id}?"):
        click.echo("Archive cancelled.")
        return

    try:
        service.archive_transaction(transaction_id, actor=ctx.obj["user"])
        click.echo(f"Archived transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
