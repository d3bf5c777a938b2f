"""Dict-backed store for tests and single-process deployments."""
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from bson import ObjectId

from groupledger.balances.models import Balance
from groupledger.expenses.models import Expense, Split
from groupledger.groups.models import Group
from groupledger.settlements.models import Settlement
from groupledger.users.model import Profile
from groupledger.utils.enums import SplitType

from .base import BaseStore


def _new_id() -> str:
    return str(ObjectId())


class InMemoryStore(BaseStore):

    def __init__(self):
        super().__init__()
        self._data_lock = threading.RLock()
        self.profiles: Dict[str, Profile] = {}
        self.groups: Dict[str, Group] = {}
        self.members: Dict[str, List[str]] = {}
        self.expenses: Dict[str, Expense] = {}
        self.balances: Dict[Tuple[str, str, str], Balance] = {}
        self.settlements: List[Settlement] = []

    # Profiles

    def upsert_profile(self, user_id: str, email: str, full_name: Optional[str] = None) -> Profile:
        with self._data_lock:
            profile = Profile(id=user_id, email=email.strip().lower(), full_name=full_name)
            self.profiles[user_id] = profile
            return profile

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.profiles.get(user_id)

    def get_profile_by_email(self, email: str) -> Optional[Profile]:
        email = email.strip().lower()
        for profile in list(self.profiles.values()):
            if profile.email == email:
                return profile
        return None

    def search_profiles(self, query: str, exclude_id: Optional[str] = None, limit: int = 10) -> List[Profile]:
        needle = query.lower()
        found = [
            p for p in list(self.profiles.values())
            if p.id != exclude_id
            and (needle in p.email or needle in (p.full_name or "").lower())
        ]
        return found[:limit]

    # Groups and membership

    def create_group(self, name: str, description: Optional[str], created_by: str) -> Group:
        with self._data_lock:
            group = Group(id=_new_id(), name=name, description=description, created_by=created_by)
            self.groups[group.id] = group
            self.members[group.id] = []
            return group

    def get_group(self, group_id: str) -> Optional[Group]:
        return self.groups.get(group_id)

    def list_user_groups(self, user_id: str) -> List[Group]:
        with self._data_lock:
            groups = [self.groups[gid] for gid, ids in self.members.items() if user_id in ids]
        return sorted(groups, key=lambda g: g.created_at, reverse=True)

    def delete_group(self, group_id: str) -> None:
        with self._data_lock:
            self.groups.pop(group_id, None)
            self.members.pop(group_id, None)
            for expense_id in [e.id for e in self.expenses.values() if e.group_id == group_id]:
                del self.expenses[expense_id]
            for key in [k for k in self.balances if k[0] == group_id]:
                del self.balances[key]
            self.settlements = [s for s in self.settlements if s.group_id != group_id]

    def add_member(self, group_id: str, user_id: str) -> None:
        with self._data_lock:
            ids = self.members.setdefault(group_id, [])
            if user_id not in ids:
                ids.append(user_id)

    def remove_member(self, group_id: str, user_id: str) -> None:
        with self._data_lock:
            ids = self.members.get(group_id, [])
            if user_id in ids:
                ids.remove(user_id)

    def is_member(self, group_id: str, user_id: str) -> bool:
        return user_id in self.members.get(group_id, [])

    def list_member_ids(self, group_id: str) -> List[str]:
        return list(self.members.get(group_id, []))

    # Expenses

    def create_expense(
        self,
        group_id: str,
        description: str,
        amount_cents: int,
        paid_by: str,
        split_type: SplitType,
        splits: List[Split],
    ) -> Expense:
        with self._data_lock:
            expense = Expense(
                id=_new_id(),
                group_id=group_id,
                description=description,
                amount_cents=amount_cents,
                paid_by=paid_by,
                split_type=split_type,
                splits=list(splits),
            )
            self.expenses[expense.id] = expense
            return expense

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        return self.expenses.get(expense_id)

    def list_expenses(self, group_id: str) -> List[Expense]:
        found = [e for e in list(self.expenses.values()) if e.group_id == group_id]
        return sorted(found, key=lambda e: e.created_at, reverse=True)

    def delete_expense(self, expense_id: str) -> None:
        with self._data_lock:
            self.expenses.pop(expense_id, None)

    # Balances

    def get_balance(self, group_id: str, debtor_id: str, creditor_id: str) -> Optional[Balance]:
        balance = self.balances.get((group_id, debtor_id, creditor_id))
        return replace(balance) if balance else None

    def set_balance(self, group_id: str, debtor_id: str, creditor_id: str, amount_cents: int) -> None:
        key = (group_id, debtor_id, creditor_id)
        with self._data_lock:
            if amount_cents <= 0:
                self.balances.pop(key, None)
                return
            self.balances[key] = Balance(
                group_id=group_id,
                debtor_id=debtor_id,
                creditor_id=creditor_id,
                amount_cents=amount_cents,
                updated_at=datetime.utcnow(),
            )

    def list_balances(self, group_id: str) -> List[Balance]:
        with self._data_lock:
            return [replace(b) for k, b in self.balances.items() if k[0] == group_id and b.amount_cents > 0]

    def list_user_balances(self, user_id: str) -> List[Balance]:
        with self._data_lock:
            return [
                replace(b) for b in self.balances.values()
                if b.amount_cents > 0 and user_id in (b.debtor_id, b.creditor_id)
            ]

    def replace_balances(self, group_id: str, balances: List[Balance]) -> None:
        with self._data_lock:
            for key in [k for k in self.balances if k[0] == group_id]:
                del self.balances[key]
            for b in balances:
                self.balances[(group_id, b.debtor_id, b.creditor_id)] = replace(b)

    # Settlements

    def create_settlement(self, group_id: str, payer_id: str, payee_id: str, amount_cents: int) -> Settlement:
        with self._data_lock:
            settlement = Settlement(
                id=_new_id(),
                group_id=group_id,
                payer_id=payer_id,
                payee_id=payee_id,
                amount_cents=amount_cents,
            )
            self.settlements.append(settlement)
            return settlement

    def list_settlements(self, group_id: str) -> List[Settlement]:
        return [s for s in reversed(self.settlements) if s.group_id == group_id]

    def list_user_settlements(self, user_id: str) -> List[Settlement]:
        return [s for s in reversed(self.settlements) if user_id in (s.payer_id, s.payee_id)]
