"""
Balance Ledger - pairwise debts inside a group.

Responsibilities:
- Apply an expense's splits as debts owed to the payer
- Reverse those debts when the expense is deleted
- Net reciprocal debts between the same pair of users
- Derive per-member net balances

Every mutation and the netting that follows it run inside the store's
group scope, so concurrent requests against one group are serialised and a
failed operation leaves no partial effect behind.
"""
import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from groupledger.balances.models import Balance, NetBalance
from groupledger.errors import InvalidInputError, MembershipError
from groupledger.expenses.models import Split

logger = logging.getLogger(__name__)


class BalanceLedger:
    """Authoritative debtor -> creditor amounts for each group."""

    def __init__(self, store):
        self.store = store

    def _check_members(self, group_id: str, user_ids: Iterable[str]) -> None:
        for user_id in user_ids:
            if not self.store.is_member(group_id, user_id):
                raise MembershipError(
                    f"User {user_id} is not a member of group {group_id}",
                    user_id=user_id,
                )

    @staticmethod
    def _owed_splits(payer_id: str, splits: Sequence[Split]) -> List[Split]:
        owed = []
        for split in splits:
            if split.amount_cents < 0:
                raise InvalidInputError(f"Negative split amount for user {split.user_id}")
            # A payer never owes themselves
            if split.user_id != payer_id:
                owed.append(split)
        return owed

    def apply_expense_splits(self, group_id: str, payer_id: str, splits: Sequence[Split]) -> None:
        """Each non-payer participant now owes the payer their share."""
        owed = self._owed_splits(payer_id, splits)
        self._check_members(group_id, [payer_id] + [s.user_id for s in owed])

        with self.store.group_scope(group_id):
            for split in owed:
                current = self.store.get_balance(group_id, split.user_id, payer_id)
                current_cents = current.amount_cents if current else 0
                self.store.set_balance(group_id, split.user_id, payer_id, current_cents + split.amount_cents)
            self.net(group_id)

        logger.info("Applied %d split(s) to group %s for payer %s", len(owed), group_id, payer_id)

    def reverse_expense_splits(self, group_id: str, payer_id: str, splits: Sequence[Split]) -> None:
        """
        Undo the debts an expense created.

        Balances are floored at zero: netting or settlements may already
        have reduced a row below the amount being reversed.
        """
        owed = self._owed_splits(payer_id, splits)

        with self.store.group_scope(group_id):
            for split in owed:
                current = self.store.get_balance(group_id, split.user_id, payer_id)
                current_cents = current.amount_cents if current else 0
                self.store.set_balance(
                    group_id, split.user_id, payer_id, max(0, current_cents - split.amount_cents)
                )
            self.net(group_id)

        logger.info("Reversed %d split(s) in group %s for payer %s", len(owed), group_id, payer_id)

    def net(self, group_id: str) -> int:
        """
        Collapse reciprocal debts.

        If A owes B 10 and B owes A 3, the result is A owes B 7 and the
        reverse row is cleared. Idempotent.

        Returns:
            Number of pairs that were netted
        """
        netted = 0
        with self.store.group_scope(group_id):
            amounts: Dict[Tuple[str, str], int] = {
                (b.debtor_id, b.creditor_id): b.amount_cents for b in self.store.list_balances(group_id)
            }
            processed = set()

            for debtor_id, creditor_id in list(amounts):
                pair_key = tuple(sorted((debtor_id, creditor_id)))
                if pair_key in processed:
                    continue
                processed.add(pair_key)

                forward = amounts.get((debtor_id, creditor_id), 0)
                reverse = amounts.get((creditor_id, debtor_id), 0)
                if forward <= 0 or reverse <= 0:
                    continue

                offset = min(forward, reverse)
                self.store.set_balance(group_id, debtor_id, creditor_id, forward - offset)
                self.store.set_balance(group_id, creditor_id, debtor_id, reverse - offset)
                netted += 1

        if netted:
            logger.debug("Netted %d reciprocal pair(s) in group %s", netted, group_id)
        return netted

    def get_balances(self, group_id: str) -> List[Balance]:
        """Outstanding (positive) debt rows for the group."""
        with self.store.group_scope(group_id):
            return self.store.list_balances(group_id)

    def get_net_balances(self, group_id: str, member_ids: Sequence[str]) -> List[NetBalance]:
        """
        Net position per member, in the order given.

        net = owed to the member - owed by the member. Members without any
        balance rows net to zero.
        """
        totals: Dict[str, int] = {user_id: 0 for user_id in member_ids}
        for balance in self.get_balances(group_id):
            if balance.creditor_id in totals:
                totals[balance.creditor_id] += balance.amount_cents
            if balance.debtor_id in totals:
                totals[balance.debtor_id] -= balance.amount_cents
        return [NetBalance(user_id=user_id, net_cents=totals[user_id]) for user_id in member_ids]
