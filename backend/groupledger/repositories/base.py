"""
Store contract shared by every persistence backend.

The ledger engine only ever talks to a store through the methods below.
Money is exchanged as integer cents. ``set_balance`` with 0 removes the row,
so absence and zero read the same.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from groupledger.balances.models import Balance
from groupledger.errors import PersistenceError

logger = logging.getLogger(__name__)


class BaseStore:
    """Per-group locking and rollback on top of the abstract row operations."""

    def __init__(self):
        self._locks_guard = threading.Lock()
        self._group_locks: Dict[str, threading.RLock] = {}

    def _group_lock(self, group_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._group_locks.get(group_id)
            if lock is None:
                lock = self._group_locks[group_id] = threading.RLock()
            return lock

    def discard_group_lock(self, group_id: str) -> None:
        """Forget the lock of a group that no longer exists."""
        with self._locks_guard:
            self._group_locks.pop(group_id, None)

    @contextmanager
    def group_scope(self, group_id: str) -> Iterator[None]:
        """
        Serialise ledger work on one group.

        Re-entrant for the owning thread. If the block raises, the group's
        balance rows are put back the way they were on entry so that no
        reader ever sees half of a logical operation.
        """
        with self._group_lock(group_id):
            snapshot = self.list_balances(group_id)
            try:
                yield
            except Exception:
                try:
                    if self.list_balances(group_id) != snapshot:
                        self.replace_balances(group_id, snapshot)
                except PersistenceError:
                    logger.exception("Could not restore balances for group %s", group_id)
                raise

    # Membership

    def is_member(self, group_id: str, user_id: str) -> bool:
        raise NotImplementedError

    def list_member_ids(self, group_id: str) -> List[str]:
        raise NotImplementedError

    # Balances

    def get_balance(self, group_id: str, debtor_id: str, creditor_id: str) -> Optional[Balance]:
        raise NotImplementedError

    def set_balance(self, group_id: str, debtor_id: str, creditor_id: str, amount_cents: int) -> None:
        raise NotImplementedError

    def list_balances(self, group_id: str) -> List[Balance]:
        raise NotImplementedError

    def replace_balances(self, group_id: str, balances: List[Balance]) -> None:
        raise NotImplementedError
