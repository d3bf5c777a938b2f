"""
Balance Service - read views over the ledger and settlements.

Responsibilities:
- Summarise a user's position across all groups
- Expose group balances, net balances and suggested transfers
- Record settlements and list settlement history
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from groupledger.balances.models import Balance, NetBalance, Transfer
from groupledger.errors import LedgerError, MembershipError
from groupledger.settlements.models import Settlement
from groupledger.utils.money import from_cents

from .ledger_service import BalanceLedger
from .settlement_service import SettlementProcessor
from .simplifier import simplify_debts


@dataclass
class UserBalanceSummary:
    total_owed_cents: int   # others owe the user
    total_owing_cents: int  # the user owes others

    @property
    def net_cents(self) -> int:
        return self.total_owed_cents - self.total_owing_cents

    def to_dict(self):
        return {
            "total_owed": from_cents(self.total_owed_cents),
            "total_owing": from_cents(self.total_owing_cents),
            "net_balance": from_cents(self.net_cents),
        }


class BalanceService:
    """Service for balance queries and settlements."""

    def __init__(self, store):
        self.store = store
        self.ledger = BalanceLedger(store)
        self.processor = SettlementProcessor(store)

    def _require_member(self, group_id: str, user_id: str) -> None:
        if not self.store.is_member(group_id, user_id):
            raise MembershipError("User is not a member of this group")

    def get_user_balance_summary(self, user_id: str) -> Tuple[Optional[UserBalanceSummary], Optional[LedgerError]]:
        try:
            balances = self.store.list_user_balances(user_id)
        except LedgerError as e:
            return None, e
        return UserBalanceSummary(
            total_owed_cents=sum(b.amount_cents for b in balances if b.creditor_id == user_id),
            total_owing_cents=sum(b.amount_cents for b in balances if b.debtor_id == user_id),
        ), None

    def get_group_balances(self, group_id: str, user_id: str) -> Tuple[Optional[List[Balance]], Optional[LedgerError]]:
        try:
            self._require_member(group_id, user_id)
            return self.ledger.get_balances(group_id), None
        except LedgerError as e:
            return None, e

    def get_net_balances(self, group_id: str, user_id: str) -> Tuple[Optional[List[NetBalance]], Optional[LedgerError]]:
        """Net position of every member, plus anyone who left but still has open balances."""
        try:
            self._require_member(group_id, user_id)
            member_ids = self.store.list_member_ids(group_id)
            for balance in self.ledger.get_balances(group_id):
                for party in (balance.debtor_id, balance.creditor_id):
                    if party not in member_ids:
                        member_ids.append(party)
            return self.ledger.get_net_balances(group_id, member_ids), None
        except LedgerError as e:
            return None, e

    def get_simplified_debts(self, group_id: str, user_id: str) -> Tuple[Optional[List[Transfer]], Optional[LedgerError]]:
        """Minimal-ish set of transfers that would settle the whole group."""
        net_balances, error = self.get_net_balances(group_id, user_id)
        if error:
            return None, error
        return simplify_debts(net_balances), None

    def settle_balance(
        self,
        group_id: str,
        payer_id: str,
        payee_id: str,
        amount: Any,
    ) -> Tuple[Optional[Settlement], Optional[LedgerError]]:
        try:
            return self.processor.settle(group_id, payer_id, payee_id, amount), None
        except LedgerError as e:
            return None, e

    def get_group_settlements(self, group_id: str, user_id: str) -> Tuple[Optional[List[Settlement]], Optional[LedgerError]]:
        try:
            self._require_member(group_id, user_id)
            return self.store.list_settlements(group_id), None
        except LedgerError as e:
            return None, e

    def get_user_settlements(self, user_id: str) -> Tuple[Optional[List[Settlement]], Optional[LedgerError]]:
        try:
            return self.store.list_user_settlements(user_id), None
        except LedgerError as e:
            return None, e
