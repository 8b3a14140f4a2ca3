"""Keyword rules that suggest a category and payee for a description.

Matching is pure: evaluate_rules() never touches the store. Recording rule
usage is a separate, best-effort step in RuleService.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Iterable, Optional, Sequence

from ledgerline.database.base import Database
from ledgerline.domain.entities import MatchType, Rule, SplitLine, Transaction
from ledgerline.domain.errors import NotFoundError, ValidationError, category_not_found, rule_not_found
from ledgerline.utils.text import MAX_PAYEE_LENGTH, normalize_whitespace

logger = logging.getLogger(__name__)

MAX_PATTERN_LENGTH = 500
MAX_KEYWORD_LENGTH = 200

# Nested quantifiers such as (a+)+ backtrack catastrophically
_NESTED_QUANTIFIER = re.compile(r"(\(.*[*+{][^)]*\)[*+{])|(\[[^\]]*[*+{][^\]]*\][*+{])")


class RuleEvaluationError(ValueError):
    """A rule could not be evaluated (e.g. malformed keyword)."""

    def __init__(self, rule_id: int, message: str):
        self.rule_id = rule_id
        super().__init__(f"Rule {rule_id}: {message}")


@dataclass(frozen=True)
class RuleEvaluation:
    """Outcome of evaluating an ordered rule set against one description."""

    rule: Optional[Rule]
    failed_rule_ids: tuple[int, ...] = ()

    @property
    def matched(self) -> bool:
        return self.rule is not None


@dataclass(frozen=True)
class RuleApplicationResult:
    transaction_id: int
    applied: bool
    rule_id: Optional[int] = None
    reason: Optional[str] = None
    previous_category_id: Optional[int] = None


@dataclass
class RuleApplicationSummary:
    """Counts for a bulk rule run.

    errors counts transactions whose update failed; rule_errors counts rule
    evaluations that were skipped because the rule itself was malformed.
    """

    total: int = 0
    applied: int = 0
    skipped: int = 0
    errors: int = 0
    rule_errors: int = 0
    failed_rule_ids: set[int] = field(default_factory=set)
    results: list[RuleApplicationResult] = field(default_factory=list)


def check_regex(pattern: str) -> None:
    """Reject regex patterns that are too long, too complex or invalid.

    Raises:
        ValueError: With a description of the problem
    """
    if len(pattern) > MAX_PATTERN_LENGTH:
        raise ValueError(f"Pattern too long (max {MAX_PATTERN_LENGTH} characters)")
    if _NESTED_QUANTIFIER.search(pattern):
        raise ValueError("Pattern contains nested quantifiers which could cause performance issues")
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid regex pattern: {e}") from e


def _normalize(text: str, case_sensitive: bool) -> str:
    normalized = normalize_whitespace(text)
    return normalized if case_sensitive else normalized.lower()


def rule_matches(rule: Rule, description: str, amount: Optional[int] = None) -> bool:
    """Test whether a rule matches a description (and amount bounds).

    Raises:
        RuleEvaluationError: If the rule is malformed
    """
    if not rule.keyword or not rule.keyword.strip():
        raise RuleEvaluationError(rule.id, "keyword is empty")

    if rule.match_type == MatchType.REGEX:
        try:
            check_regex(rule.keyword)
        except ValueError as e:
            raise RuleEvaluationError(rule.id, str(e)) from e
        flags = 0 if rule.case_sensitive else re.IGNORECASE
        matched = re.search(rule.keyword, description, flags) is not None
    else:
        text = _normalize(description, rule.case_sensitive)
        keyword = _normalize(rule.keyword, rule.case_sensitive)
        if rule.match_type == MatchType.CONTAINS:
            matched = keyword in text
        elif rule.match_type == MatchType.EXACT:
            matched = text == keyword
        elif rule.match_type == MatchType.STARTS_WITH:
            matched = text.startswith(keyword)
        else:
            raise RuleEvaluationError(rule.id, f"unknown match type '{rule.match_type}'")

    if not matched:
        return False

    if amount is not None:
        magnitude = abs(amount)
        if rule.amount_min is not None and magnitude < rule.amount_min:
            return False
        if rule.amount_max is not None and magnitude > rule.amount_max:
            return False
    return True


def order_rules(rules: Iterable[Rule]) -> list[Rule]:
    """Enabled rules in evaluation order: ascending priority, then id."""
    return sorted((r for r in rules if r.is_enabled), key=lambda r: (r.priority, r.id))


def evaluate_rules(
    rules: Iterable[Rule], description: str, amount: Optional[int] = None
) -> RuleEvaluation:
    """Find the first matching rule.

    Rules are tried strictly by ascending priority regardless of the order
    passed in; the first match wins and no further rules are tried. Malformed
    rules are skipped and reported in failed_rule_ids.
    """
    failed: list[int] = []
    for rule in order_rules(rules):
        try:
            if rule_matches(rule, description, amount):
                return RuleEvaluation(rule=rule, failed_rule_ids=tuple(failed))
        except RuleEvaluationError as e:
            logger.warning("Skipping rule: %s", e)
            failed.append(rule.id)
    return RuleEvaluation(rule=None, failed_rule_ids=tuple(failed))


def validate_rule(
    keyword: str,
    match_type: MatchType,
    priority: int,
    suggested_payee: Optional[str] = None,
    amount_min: Optional[int] = None,
    amount_max: Optional[int] = None,
) -> list[str]:
    """Return human-readable problems with rule input (empty when valid)."""
    errors = []
    if not keyword or not keyword.strip():
        errors.append("Keyword is required")
    elif len(keyword) > MAX_KEYWORD_LENGTH:
        errors.append(f"Keyword too long (max {MAX_KEYWORD_LENGTH} characters)")
    elif match_type == MatchType.REGEX:
        try:
            check_regex(keyword)
        except ValueError as e:
            errors.append(str(e))
    if priority < 0:
        errors.append("Priority must not be negative")
    if suggested_payee is not None and len(suggested_payee) > MAX_PAYEE_LENGTH:
        errors.append(f"Suggested payee too long (max {MAX_PAYEE_LENGTH} characters)")
    for name, value in (("Minimum amount", amount_min), ("Maximum amount", amount_max)):
        if value is not None and value < 0:
            errors.append(f"{name} must not be negative")
    if amount_min is not None and amount_max is not None and amount_min > amount_max:
        errors.append("Minimum amount is greater than maximum amount")
    return errors


class RuleService:
    """Service for managing and applying categorization rules."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        keyword: str,
        target_category_id: int,
        match_type: MatchType = MatchType.CONTAINS,
        priority: int = 100,
        case_sensitive: bool = False,
        suggested_payee: Optional[str] = None,
        is_enabled: bool = True,
        amount_min: Optional[int] = None,
        amount_max: Optional[int] = None,
    ) -> int:
        """Create a rule.

        Returns:
            Rule ID

        Raises:
            ValidationError: If the rule input is invalid
            NotFoundError: If the target category doesn't exist
        """
        match_type = MatchType(match_type)
        errors = validate_rule(keyword, match_type, priority, suggested_payee, amount_min, amount_max)
        if errors:
            raise ValidationError("; ".join(errors))

        category = self.db.get_category(target_category_id)
        if category is None or category.is_archived:
            raise NotFoundError(category_not_found(target_category_id))

        return self.db.create_rule(
            keyword=keyword.strip(),
            match_type=match_type,
            target_category_id=target_category_id,
            priority=priority,
            case_sensitive=case_sensitive,
            suggested_payee=suggested_payee,
            is_enabled=is_enabled,
            amount_min=amount_min,
            amount_max=amount_max,
        )

    def get_rule(self, rule_id: int) -> Optional[Rule]:
        return self.db.get_rule(rule_id)

    def list_rules(self, enabled_only: bool = False) -> list[Rule]:
        """List rules in evaluation order (disabled rules last)."""
        rules = self.db.list_rules()
        if enabled_only:
            return order_rules(rules)
        return sorted(rules, key=lambda r: (not r.is_enabled, r.priority, r.id))

    def update_rule(self, rule_id: int, **changes) -> None:
        """Update rule fields.

        Raises:
            NotFoundError: If the rule or new target category doesn't exist
            ValidationError: If the resulting rule would be invalid
        """
        rule = self.db.get_rule(rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))

        if "match_type" in changes:
            changes["match_type"] = MatchType(changes["match_type"])
        errors = validate_rule(
            changes.get("keyword", rule.keyword),
            changes.get("match_type", rule.match_type),
            changes.get("priority", rule.priority),
            changes.get("suggested_payee", rule.suggested_payee),
            changes.get("amount_min", rule.amount_min),
            changes.get("amount_max", rule.amount_max),
        )
        if errors:
            raise ValidationError("; ".join(errors))

        if "target_category_id" in changes:
            category = self.db.get_category(changes["target_category_id"])
            if category is None or category.is_archived:
                raise NotFoundError(category_not_found(changes["target_category_id"]))

        self.db.update_rule(rule_id, **changes)

    def delete_rule(self, rule_id: int) -> None:
        if self.db.get_rule(rule_id) is None:
            raise NotFoundError(rule_not_found(rule_id))
        self.db.delete_rule(rule_id)

    def suggest(self, description: str, amount: Optional[int] = None) -> RuleEvaluation:
        """Evaluate all enabled rules against a description."""
        return evaluate_rules(self.db.list_rules(), description, amount)

    def record_usage(self, usage: dict[int, int], used_at: Optional[datetime] = None) -> None:
        """Bump use_count/last_used_at for rules that fired.

        Usage statistics are telemetry: failures are logged and never raised.
        """
        used_at = used_at or datetime.now(UTC)
        for rule_id, count in usage.items():
            if count <= 0:
                continue
            try:
                self.db.record_rule_usage(rule_id, count, used_at)
            except Exception:
                logger.warning("Failed to record usage for rule %d", rule_id, exc_info=True)

    def apply_to_transactions(
        self,
        transactions: Sequence[Transaction],
        override_reviewed: bool = False,
        mark_reviewed: bool = True,
        actor: Optional[str] = None,
    ) -> RuleApplicationSummary:
        """Apply the first matching rule to each transaction.

        Reconciled transactions are never changed. Reviewed transactions are
        skipped unless override_reviewed is set. A transaction whose update
        fails is counted as an error and the run continues.
        """
        rules = self.db.list_rules()
        max_locked_year = self.db.get_tax_year_lock().max_locked_year
        summary = RuleApplicationSummary(total=len(transactions))
        usage: dict[int, int] = {}

        for txn in transactions:
            if txn.reconciled:
                result = RuleApplicationResult(txn.id, False, reason="Transaction is reconciled")
            elif txn.is_archived:
                result = RuleApplicationResult(txn.id, False, reason="Transaction is archived")
            elif txn.is_reviewed and not override_reviewed:
                result = RuleApplicationResult(txn.id, False, reason="Transaction already reviewed")
            elif max_locked_year is not None and txn.date.year <= max_locked_year:
                result = RuleApplicationResult(txn.id, False, reason="Transaction is in a locked tax year")
            else:
                evaluation = evaluate_rules(rules, txn.original_description, txn.amount)
                summary.rule_errors += len(evaluation.failed_rule_ids)
                summary.failed_rule_ids.update(evaluation.failed_rule_ids)
                if evaluation.rule is None:
                    result = RuleApplicationResult(txn.id, False, reason="No matching rules")
                else:
                    result = self._apply(txn, evaluation.rule, mark_reviewed, actor)
                    if result.applied:
                        usage[evaluation.rule.id] = usage.get(evaluation.rule.id, 0) + 1

            summary.results.append(result)
            if result.applied:
                summary.applied += 1
            elif result.reason and result.reason.startswith("Failed"):
                summary.errors += 1
            else:
                summary.skipped += 1

        self.record_usage(usage)
        logger.info(
            "Applied rules to %d of %d transactions (%d skipped, %d errors, %d rule errors)",
            summary.applied,
            summary.total,
            summary.skipped,
            summary.errors,
            summary.rule_errors,
        )
        return summary

    def apply_to_uncategorized(self, account_id: Optional[int] = None, actor: Optional[str] = None) -> RuleApplicationSummary:
        """Run rules over unreviewed, uncategorized, unreconciled transactions."""
        transactions = [
            txn
            for txn in self.db.list_transactions(account_id=account_id, uncategorized=True)
            if not txn.reconciled and not txn.is_split
        ]
        return self.apply_to_transactions(transactions, actor=actor)

    def _apply(
        self, txn: Transaction, rule: Rule, mark_reviewed: bool, actor: Optional[str]
    ) -> RuleApplicationResult:
        # Applying a rule replaces any split with a single categorized line
        try:
            self.db.categorize_transaction(
                txn.id,
                lines=[SplitLine(category_id=rule.target_category_id, amount=txn.amount)],
                payee=rule.suggested_payee or None,
                is_reviewed=True if mark_reviewed else None,
                actor=actor,
            )
        except ValueError as e:
            logger.warning("Failed to apply rule %d to transaction %d: %s", rule.id, txn.id, e)
            return RuleApplicationResult(txn.id, False, rule_id=rule.id, reason=f"Failed: {e}")
        return RuleApplicationResult(
            txn.id,
            True,
            rule_id=rule.id,
            previous_category_id=txn.category_id,
        )
