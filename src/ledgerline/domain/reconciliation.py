"""Reconciliation of an account against a bank statement.

The balance math is a pure function of the opening balance and the current
selection; sessions are immutable and only finalize() touches the store.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Sequence

from ledgerline.database.base import Database
from ledgerline.domain.entities import Account, Reconciliation, Transaction
from ledgerline.domain.errors import (
    NotFoundError,
    ReconciliationImbalanceError,
    ValidationError,
    account_not_found,
)
from ledgerline.money import sum_cents

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    account_id: int
    opening_balance: int
    statement_balance: int
    calculated_ending_balance: int
    difference: int
    selected_ids: frozenset[int]
    total_deposits: int = 0
    total_withdrawals: int = 0

    @property
    def is_balanced(self) -> bool:
        return self.difference == 0


def opening_balance_for(account: Account) -> int:
    """Start from the last checkpoint, or the opening balance if never reconciled."""
    if account.last_reconciled_balance is not None:
        return account.last_reconciled_balance
    return account.opening_balance


def calculate_reconciliation(
    account_id: int,
    opening_balance: int,
    transactions: Sequence[Transaction],
    selected_ids: Iterable[int],
    statement_balance: int,
) -> ReconciliationResult:
    """Compute the ending balance and difference for a selection.

    calculated = opening + sum(selected amounts);
    difference = statement - calculated.

    Raises:
        ValidationError: If a selected id is not one of the candidates
    """
    selected = frozenset(selected_ids)
    by_id = {txn.id: txn for txn in transactions}
    unknown = sorted(selected - by_id.keys())
    if unknown:
        raise ValidationError(
            f"Transactions {', '.join(str(i) for i in unknown)} are not candidates for this reconciliation"
        )

    amounts = [by_id[tid].amount for tid in sorted(selected)]
    calculated = opening_balance + sum_cents(amounts)
    return ReconciliationResult(
        account_id=account_id,
        opening_balance=opening_balance,
        statement_balance=statement_balance,
        calculated_ending_balance=calculated,
        difference=statement_balance - calculated,
        selected_ids=selected,
        total_deposits=sum(a for a in amounts if a > 0),
        total_withdrawals=sum(a for a in amounts if a < 0),
    )


class ReconciliationState(str, Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class ReconciliationSession:
    """One reconciliation in progress.

    candidates are the unreconciled, live transactions dated on or before the
    statement date, loaded when the session begins.
    """

    account_id: int
    statement_date: Optional[date] = None
    statement_balance: Optional[int] = None
    opening_balance: int = 0
    candidates: tuple[Transaction, ...] = ()
    selected_ids: frozenset[int] = frozenset()
    state: ReconciliationState = ReconciliationState.SETUP
    reconciliation_id: Optional[int] = None

    def _require(self, action: str, state: ReconciliationState) -> None:
        if self.state != state:
            raise ValidationError(f"Cannot {action} a reconciliation that is {self.state.value}")

    def begin(
        self,
        statement_date: date,
        statement_balance: int,
        opening_balance: int,
        candidates: Sequence[Transaction],
    ) -> "ReconciliationSession":
        self._require("begin", ReconciliationState.SETUP)
        ordered = tuple(sorted(candidates, key=lambda t: (t.date, t.id)))
        return replace(
            self,
            statement_date=statement_date,
            statement_balance=statement_balance,
            opening_balance=opening_balance,
            candidates=ordered,
            selected_ids=frozenset(),
            state=ReconciliationState.IN_PROGRESS,
        )

    def _candidate_ids(self) -> frozenset[int]:
        return frozenset(t.id for t in self.candidates)

    def toggle(self, transaction_id: int) -> "ReconciliationSession":
        """Select or deselect one transaction as cleared."""
        self._require("change", ReconciliationState.IN_PROGRESS)
        if transaction_id not in self._candidate_ids():
            raise ValidationError(f"Transaction {transaction_id} is not a candidate for this reconciliation")
        return replace(self, selected_ids=self.selected_ids ^ {transaction_id})

    def select(self, transaction_ids: Iterable[int]) -> "ReconciliationSession":
        """Replace the selection."""
        self._require("change", ReconciliationState.IN_PROGRESS)
        selected = frozenset(transaction_ids)
        unknown = sorted(selected - self._candidate_ids())
        if unknown:
            raise ValidationError(
                f"Transactions {', '.join(str(i) for i in unknown)} are not candidates for this reconciliation"
            )
        return replace(self, selected_ids=selected)

    def select_all(self) -> "ReconciliationSession":
        self._require("change", ReconciliationState.IN_PROGRESS)
        return replace(self, selected_ids=self._candidate_ids())

    def clear_selection(self) -> "ReconciliationSession":
        self._require("change", ReconciliationState.IN_PROGRESS)
        return replace(self, selected_ids=frozenset())

    def result(self) -> ReconciliationResult:
        """Recompute the balance from scratch for the current selection."""
        if self.state == ReconciliationState.SETUP:
            raise ValidationError("Reconciliation has not begun")
        return calculate_reconciliation(
            self.account_id,
            self.opening_balance,
            self.candidates,
            self.selected_ids,
            self.statement_balance,
        )

    def finalized(self, reconciliation_id: int) -> "ReconciliationSession":
        self._require("finalize", ReconciliationState.IN_PROGRESS)
        return replace(self, state=ReconciliationState.FINALIZED, reconciliation_id=reconciliation_id)


class ReconciliationService:
    """Service for reconciling accounts against statements."""

    def __init__(self, db: Database):
        """Initialize reconciliation service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_account(self, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def start(self, account_id: int, statement_date: date, statement_balance: int) -> ReconciliationSession:
        """Begin reconciling an account up to a statement date.

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If the statement date is not after the last checkpoint
        """
        account = self._require_account(account_id)
        if account.last_reconciled_date is not None and statement_date < account.last_reconciled_date:
            raise ValidationError(
                f"Statement date {statement_date.isoformat()} is before the last reconciliation "
                f"({account.last_reconciled_date.isoformat()})"
            )

        candidates = self.db.list_transactions(
            account_id=account_id,
            end_date=statement_date,
            reconciled=False,
        )
        session = ReconciliationSession(account_id=account_id)
        return session.begin(
            statement_date=statement_date,
            statement_balance=statement_balance,
            opening_balance=opening_balance_for(account),
            candidates=candidates,
        )

    def finalize(self, session: ReconciliationSession, actor: Optional[str] = None) -> ReconciliationSession:
        """Persist a balanced reconciliation.

        Raises:
            ReconciliationImbalanceError: If the difference is not zero
            ConflictError: If selected transactions changed since start()
            LockViolationError: If a selected transaction is in a locked year
            CommitFailure: If the write failed; nothing was changed
        """
        result = session.result()
        if not result.is_balanced:
            raise ReconciliationImbalanceError(result.difference)

        reconciliation_id = self.db.finalize_reconciliation(
            account_id=session.account_id,
            statement_date=session.statement_date,
            statement_balance=result.statement_balance,
            opening_balance=result.opening_balance,
            calculated_balance=result.calculated_ending_balance,
            transaction_ids=sorted(result.selected_ids),
            actor=actor,
        )
        return session.finalized(reconciliation_id)

    def history(self, account_id: int) -> list[Reconciliation]:
        """Finalized reconciliations for an account, newest first."""
        self._require_account(account_id)
        return self.db.list_reconciliations(account_id)
