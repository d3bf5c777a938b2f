"""
Expense Service - record expenses and keep the ledger in step.

Responsibilities:
- Validate payer and participants are group members
- Calculate and validate the split before anything is written
- Store the expense with its splits
- Apply (or, on delete, reverse) the splits on the balance ledger

An expense that was stored but whose ledger update failed is still
reported as created, with ``balances_updated`` set to False, so that
financial history is never silently dropped.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from groupledger.errors import (
    InvalidInputError,
    LedgerError,
    MembershipError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
)
from groupledger.expenses.models import Expense, Split
from groupledger.utils.enums import SplitType
from groupledger.utils.money import to_cents, to_decimal

from .ledger_service import BalanceLedger
from .split_service import SplitCalculator

logger = logging.getLogger(__name__)


@dataclass
class ExpenseResult:
    expense: Expense
    balances_updated: bool

    def to_dict(self):
        return {
            "expense_id": self.expense.id,
            "expense": self.expense.to_dict(),
            "balances_updated": self.balances_updated,
        }


class ExpenseService:
    """Service for expense creation, listing and deletion."""

    def __init__(self, store):
        self.store = store
        self.ledger = BalanceLedger(store)

    def _build_splits(
        self,
        amount: Any,
        participant_ids: Sequence[str],
        split_type: SplitType,
        custom: Optional[Mapping[str, Any]],
    ) -> List[Split]:
        shares = SplitCalculator.calculate_split(amount, participant_ids, split_type, custom)
        return [
            Split(
                user_id=user_id,
                amount_cents=cents,
                percentage=float(to_decimal(custom[user_id], "percentage"))
                if split_type == SplitType.PERCENTAGE else None,
            )
            for user_id, cents in shares.items()
        ]

    def preview_split(
        self,
        amount: Any,
        participant_ids: Sequence[str],
        split_type: Any,
        custom: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[Optional[List[Split]], Optional[LedgerError]]:
        """Calculate a split without writing anything."""
        try:
            split_type = SplitCalculator.parse_split_type(split_type)
            return self._build_splits(amount, participant_ids, split_type, custom), None
        except LedgerError as e:
            return None, e

    def add_expense(
        self,
        group_id: str,
        description: str,
        amount: Any,
        paid_by: str,
        split_type: Any,
        participant_ids: Sequence[str],
        custom_amounts: Optional[Mapping[str, Any]] = None,
        custom_percentages: Optional[Mapping[str, Any]] = None,
        recorded_by: Optional[str] = None,
    ) -> Tuple[Optional[ExpenseResult], Optional[LedgerError]]:
        """
        Add an expense and update balances between payer and participants.

        Args:
            group_id: Group the expense belongs to
            description: What was paid for
            amount: Total amount
            paid_by: User who paid
            split_type: equal | exact | percentage
            participant_ids: Users sharing the expense
            custom_amounts: {user_id: amount} for exact splits
            custom_percentages: {user_id: percentage} for percentage splits
            recorded_by: User submitting the expense; must be a member

        Returns:
            Tuple of (ExpenseResult, error)
        """
        try:
            description = description.strip() if isinstance(description, str) else ""
            if not description:
                raise InvalidInputError("Description is required")

            if recorded_by is not None and not self.store.is_member(group_id, recorded_by):
                raise MembershipError("User is not a member of this group", user_id=recorded_by)
            if not self.store.is_member(group_id, paid_by):
                raise MembershipError("Payer must be a member of the group", user_id=paid_by)
            for participant_id in participant_ids or []:
                if not self.store.is_member(group_id, participant_id):
                    raise MembershipError(
                        f"Participant {participant_id} is not a member of the group",
                        user_id=participant_id,
                    )

            split_type = SplitCalculator.parse_split_type(split_type)
            custom = custom_percentages if split_type == SplitType.PERCENTAGE else custom_amounts
            splits = self._build_splits(amount, participant_ids, split_type, custom)
            total_cents = to_cents(amount)

            expense = self.store.create_expense(
                group_id, description, total_cents, paid_by, split_type, splits
            )
        except LedgerError as e:
            return None, e

        try:
            self.ledger.apply_expense_splits(group_id, paid_by, expense.splits)
        except PersistenceError:
            logger.exception("Expense %s recorded but balances were not updated", expense.id)
            return ExpenseResult(expense=expense, balances_updated=False), None

        logger.info("Expense %s added to group %s by %s", expense.id, group_id, paid_by)
        return ExpenseResult(expense=expense, balances_updated=True), None

    def get_group_expenses(self, group_id: str, user_id: str) -> Tuple[Optional[List[Expense]], Optional[LedgerError]]:
        try:
            if not self.store.is_member(group_id, user_id):
                raise MembershipError("User is not a member of this group")
            return self.store.list_expenses(group_id), None
        except LedgerError as e:
            return None, e

    def delete_expense(self, expense_id: str, user_id: str) -> Tuple[bool, Optional[LedgerError]]:
        """Delete an expense (payer only) and reverse the debts it created."""
        try:
            expense = self.store.get_expense(expense_id)
            if not expense:
                raise NotFoundError("Expense not found")
            if expense.paid_by != user_id:
                raise PermissionDeniedError("Only the payer can delete an expense")
            self.store.delete_expense(expense_id)
        except LedgerError as e:
            return False, e

        try:
            self.ledger.reverse_expense_splits(expense.group_id, expense.paid_by, expense.splits)
        except PersistenceError:
            logger.exception("Expense %s deleted but balances were not reversed", expense_id)
            return False, PersistenceError("Expense deleted but balances were not reversed", record=expense)

        logger.info("Expense %s deleted by %s", expense_id, user_id)
        return True, None

    @staticmethod
    def summarize(expenses: List[Expense]) -> Dict[str, Any]:
        return {"count": len(expenses), "expenses": [e.to_dict() for e in expenses]}
