"""Categorization rule commands."""

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit
from ledgerline.cli.date_filters import parse_amount_or_exit
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.domain.category import CategoryService
from ledgerline.domain.entities import MatchType
from ledgerline.domain.rules import RuleService
from ledgerline.money import format_cents

MATCH_TYPES = [m.value for m in MatchType]


@click.group()
def rule_group():
    """Manage categorization rules."""
    pass


@rule_group.command("add")
@click.argument("keyword")
@click.argument("category")
@click.option("--match", "match_type", type=click.Choice(MATCH_TYPES), default="contains", show_default=True)
@click.option("--priority", type=int, default=100, show_default=True, help="Lower values are tried first")
@click.option("--case-sensitive", is_flag=True, help="Match case exactly")
@click.option("--payee", help="Payee to set when the rule matches")
@click.option("--min-amount", help="Only match amounts at least this large (absolute value)")
@click.option("--max-amount", help="Only match amounts at most this large (absolute value)")
@click.option("--disabled", is_flag=True, help="Create the rule disabled")
@click.pass_context
def add_rule(
    ctx,
    keyword: str,
    category: str,
    match_type: str,
    priority: int,
    case_sensitive: bool,
    payee: str | None,
    min_amount: str | None,
    max_amount: str | None,
    disabled: bool,
):
    """Add a rule that files matching descriptions under CATEGORY.

    Examples:
        ledgerline rule add "STARBUCKS" "Food & Dining > Coffee"
        ledgerline rule add "^AMZN" "Shopping" --match regex --priority 10
    """
    db = ctx.obj["db"]
    service = RuleService(db)

    amount_min = parse_amount_or_exit(ctx, min_amount, "minimum amount")
    amount_max = parse_amount_or_exit(ctx, max_amount, "maximum amount")

    try:
        target = CategoryService(db).resolve_path(category)
        rule_id = service.create_rule(
            keyword=keyword,
            target_category_id=target.id,
            match_type=MatchType(match_type),
            priority=priority,
            case_sensitive=case_sensitive,
            suggested_payee=payee,
            is_enabled=not disabled,
            amount_min=amount_min,
            amount_max=amount_max,
        )
        click.echo(f"Created rule {rule_id}: '{keyword}' -> {category}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rule_group.command("list")
@click.pass_context
def list_rules(ctx):
    """List rules in the order they are evaluated."""
    db = ctx.obj["db"]
    service = RuleService(db)
    paths = CategoryService(db).category_paths()

    rules = service.list_rules()
    if not rules:
        click.echo("No rules found.")
        return

    click.echo("\nRules:")
    click.echo("-" * 90)
    for rule in rules:
        status = "" if rule.is_enabled else " [disabled]"
        extras = []
        if rule.suggested_payee:
            extras.append(f"payee={rule.suggested_payee}")
        if rule.amount_min is not None:
            extras.append(f"min={format_cents(rule.amount_min)}")
        if rule.amount_max is not None:
            extras.append(f"max={format_cents(rule.amount_max)}")
        extra = f" ({', '.join(extras)})" if extras else ""
        click.echo(
            f"ID: {rule.id:3d} | Priority: {rule.priority:4d} | {rule.match_type.value:11s} | "
            f"'{rule.keyword}' -> {paths.get(rule.target_category_id, '?')}{extra} | "
            f"Used {rule.use_count}x{status}"
        )


@rule_group.command("update")
@click.argument("rule_id", type=int)
@click.option("--keyword", help="New keyword")
@click.option("--category", help="New target category path")
@click.option("--match", "match_type", type=click.Choice(MATCH_TYPES), help="New match type")
@click.option("--priority", type=int, help="New priority")
@click.option("--payee", help="New suggested payee")
@click.option("--enable/--disable", "enabled", default=None, help="Enable or disable the rule")
@click.pass_context
def update_rule(
    ctx,
    rule_id: int,
    keyword: str | None,
    category: str | None,
    match_type: str | None,
    priority: int | None,
    payee: str | None,
    enabled: bool | None,
):
    """Update a rule. Only the given fields change."""
    db = ctx.obj["db"]
    service = RuleService(db)

    changes = {}
    if keyword is not None:
        changes["keyword"] = keyword
    if match_type is not None:
        changes["match_type"] = MatchType(match_type)
    if priority is not None:
        changes["priority"] = priority
    if payee is not None:
        changes["suggested_payee"] = payee
    if enabled is not None:
        changes["is_enabled"] = enabled

    if not changes and category is None:
        click.echo("Error: At least one field must be provided to update", err=True)
        ctx.exit(1)

    try:
        if category is not None:
            changes["target_category_id"] = CategoryService(db).resolve_path(category).id
        service.update_rule(rule_id, **changes)
        click.echo(f"Updated rule {rule_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rule_group.command("delete")
@click.argument("rule_id", type=int)
@click.pass_context
def delete_rule(ctx, rule_id: int):
    """Delete a rule."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        service.delete_rule(rule_id)
        click.echo(f"Deleted rule {rule_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rule_group.command("test")
@click.argument("description")
@click.option("--amount", help="Transaction amount for amount-bounded rules")
@click.pass_context
def suggest_rule(ctx, description: str, amount: str | None):
    """Show which rule would match a description."""
    db = ctx.obj["db"]
    service = RuleService(db)
    cents = parse_amount_or_exit(ctx, amount)

    evaluation = service.suggest(description, cents)
    for rule_id in evaluation.failed_rule_ids:
        click.echo(f"Warning: Rule {rule_id} is invalid and was skipped", err=True)
    if not evaluation.matched:
        click.echo("No matching rule.")
        return
    path = CategoryService(db).format_category_path(evaluation.rule.target_category_id)
    click.echo(f"Rule {evaluation.rule.id} matches: {path}")


@rule_group.command("apply")
@click.option("--account", help="Only transactions of this account (name or ID)")
@click.pass_context
def apply_rules(ctx, account: str | None):
    """Apply rules to uncategorized, unreviewed transactions."""
    db = ctx.obj["db"]
    service = RuleService(db)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    summary = service.apply_to_uncategorized(account_id=account_id, actor=ctx.obj["user"])
    click.echo(f"Categorized {summary.applied} of {summary.total} transactions")
    if summary.skipped:
        click.echo(f"  Skipped: {summary.skipped}")
    if summary.errors:
        click.echo(f"  Failed: {summary.errors}", err=True)
    if summary.failed_rule_ids:
        ids = ", ".join(str(i) for i in sorted(summary.failed_rule_ids))
        click.echo(f"  Invalid rules skipped: {ids}", err=True)


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
