"""Core ledger engine and the services built on it."""

from .split_service import SplitCalculator, calculate_split, validate_split
from .ledger_service import BalanceLedger
from .simplifier import simplify_debts
from .settlement_service import SettlementProcessor
from .group_service import GroupService
from .expense_service import ExpenseService, ExpenseResult
from .balance_service import BalanceService, UserBalanceSummary

__all__ = [
    "SplitCalculator",
    "calculate_split",
    "validate_split",
    "BalanceLedger",
    "simplify_debts",
    "SettlementProcessor",
    "GroupService",
    "ExpenseService",
    "ExpenseResult",
    "BalanceService",
    "UserBalanceSummary",
]
