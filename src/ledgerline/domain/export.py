"""CSV export of ledger tables.

Exports are UTF-8 with a byte-order mark so spreadsheet programs pick the
right encoding; money is written as plain decimal strings.
"""

import csv
import io
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ledgerline.database.base import Database
from ledgerline.domain.category import CategoryService
from ledgerline.domain.entities import Account, Rule, Transaction
from ledgerline.money import format_cents

BOM = "\ufeff"

TRANSACTION_HEADERS = [
    "Date",
    "Account",
    "Payee",
    "Description",
    "Category",
    "Amount",
    "Reviewed",
    "Reconciled",
    "Split Details",
]

ACCOUNT_HEADERS = [
    "Name",
    "Bank",
    "Opening Balance",
    "Opening Date",
    "Last Reconciled Date",
    "Last Reconciled Balance",
    "Status",
]

RULE_HEADERS = [
    "Priority",
    "Keyword",
    "Match Type",
    "Target Category",
    "Suggested Payee",
    "Enabled",
    "Use Count",
    "Last Used Date",
]


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Render rows as BOM-prefixed CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return BOM + buffer.getvalue()


def split_details(txn: Transaction, category_paths: dict[int, str]) -> str:
    """Describe split lines as 'Category: $12.34 (memo) | ...'."""
    parts = []
    for line in txn.lines:
        name = category_paths.get(line.category_id, "Unknown") if line.category_id is not None else "Unknown"
        memo = f" ({line.memo})" if line.memo else ""
        parts.append(f"{name}: ${format_cents(line.amount)}{memo}")
    return " | ".join(parts)


def transaction_rows(
    transactions: Iterable[Transaction],
    account_names: dict[int, str],
    category_paths: dict[int, str],
) -> list[list[str]]:
    rows = []
    for txn in transactions:
        if txn.is_split and txn.lines:
            category = "Split Transaction"
            details = split_details(txn, category_paths)
        else:
            category = category_paths.get(txn.category_id, "Uncategorized") if txn.category_id else "Uncategorized"
            details = ""
        rows.append(
            [
                txn.date.isoformat(),
                account_names.get(txn.account_id, "Unknown Account"),
                txn.payee or "",
                txn.original_description,
                category,
                format_cents(txn.amount),
                _yes_no(txn.is_reviewed),
                _yes_no(txn.reconciled),
                details,
            ]
        )
    return rows


def account_rows(accounts: Iterable[Account]) -> list[list[str]]:
    return [
        [
            account.name,
            account.bank_name,
            format_cents(account.opening_balance),
            account.opening_balance_date.isoformat() if account.opening_balance_date else "-",
            account.last_reconciled_date.isoformat() if account.last_reconciled_date else "-",
            format_cents(account.last_reconciled_balance) if account.last_reconciled_balance is not None else "-",
            "Archived" if account.is_archived else "Active",
        ]
        for account in accounts
    ]


def rule_rows(rules: Iterable[Rule], category_paths: dict[int, str]) -> list[list[str]]:
    return [
        [
            str(rule.priority),
            rule.keyword,
            rule.match_type.value,
            category_paths.get(rule.target_category_id, "-"),
            rule.suggested_payee or "-",
            _yes_no(rule.is_enabled),
            str(rule.use_count),
            rule.last_used_at.date().isoformat() if rule.last_used_at else "-",
        ]
        for rule in rules
    ]


class ExportService:
    """Service for exporting ledger data to CSV."""

    def __init__(self, db: Database):
        """Initialize export service.

        Args:
            db: Database instance
        """
        self.db = db
        self.category_service = CategoryService(db)

    def export_transactions(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> str:
        """Export live transactions, oldest first."""
        transactions = self.db.list_transactions(account_id=account_id, start_date=start_date, end_date=end_date)
        transactions = sorted(transactions, key=lambda t: (t.date, t.id))
        account_names = {a.id: a.name for a in self.db.list_accounts(include_archived=True)}
        rows = transaction_rows(transactions, account_names, self.category_service.category_paths())
        return to_csv(TRANSACTION_HEADERS, rows)

    def export_accounts(self, include_archived: bool = True) -> str:
        return to_csv(ACCOUNT_HEADERS, account_rows(self.db.list_accounts(include_archived=include_archived)))

    def export_rules(self) -> str:
        rules = sorted(self.db.list_rules(), key=lambda r: (r.priority, r.id))
        return to_csv(RULE_HEADERS, rule_rows(rules, self.category_service.category_paths()))

    @staticmethod
    def write(content: str, path: str) -> None:
        """Write export text to a file without newline translation."""
        Path(path).write_text(content, encoding="utf-8", newline="")
