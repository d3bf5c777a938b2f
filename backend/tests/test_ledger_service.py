import random
import threading

import pytest

from groupledger.core import BalanceLedger
from groupledger.errors import InvalidInputError, MembershipError, PersistenceError
from groupledger.expenses.models import Split


def _amounts(store, group_id):
    return {(b.debtor_id, b.creditor_id): b.amount_cents for b in store.list_balances(group_id)}


def _equal_splits(user_ids, cents):
    return [Split(user_id=u, amount_cents=cents) for u in user_ids]


def test_apply_creates_debts_to_payer(store, group):
    ledger = BalanceLedger(store)
    ledger.apply_expense_splits(group.id, "alice", _equal_splits(["alice", "bob", "carol"], 3000))

    assert _amounts(store, group.id) == {("bob", "alice"): 3000, ("carol", "alice"): 3000}


def test_apply_accumulates(store, group):
    ledger = BalanceLedger(store)
    ledger.apply_expense_splits(group.id, "alice", [Split("bob", 1000)])
    ledger.apply_expense_splits(group.id, "alice", [Split("bob", 500)])

    assert store.get_balance(group.id, "bob", "alice").amount_cents == 1500


def test_apply_nets_reciprocal_debts(store, group):
    ledger = BalanceLedger(store)
    ledger.apply_expense_splits(group.id, "alice", [Split("alice", 3000), Split("bob", 3000)])
    ledger.apply_expense_splits(group.id, "bob", [Split("alice", 1000), Split("bob", 1000)])

    assert _amounts(store, group.id) == {("bob", "alice"): 2000}
    assert store.get_balance(group.id, "alice", "bob") is None


def test_equal_reciprocal_debts_cancel(store, group):
    ledger = BalanceLedger(store)
    ledger.apply_expense_splits(group.id, "alice", [Split("bob", 700)])
    ledger.apply_expense_splits(group.id, "bob", [Split("alice", 700)])

    assert _amounts(store, group.id) == {}


def test_netting_is_idempotent(store, group):
    store.set_balance(group.id, "alice", "bob", 1000)
    store.set_balance(group.id, "bob", "alice", 300)
    store.set_balance(group.id, "carol", "alice", 200)
    ledger = BalanceLedger(store)

    assert ledger.net(group.id) == 1
    once = _amounts(store, group.id)
    assert ledger.net(group.id) == 0
    assert _amounts(store, group.id) == once == {("alice", "bob"): 700, ("carol", "alice"): 200}


def test_reverse_floors_at_zero(store, group):
    ledger = BalanceLedger(store)
    ledger.apply_expense_splits(group.id, "alice", [Split("bob", 1000)])
    ledger.reverse_expense_splits(group.id, "alice", [Split("bob", 2500)])

    assert store.get_balance(group.id, "bob", "alice") is None


def test_reverse_restores_previous_state(store, group):
    ledger = BalanceLedger(store)
    ledger.apply_expense_splits(group.id, "alice", [Split("bob", 1000), Split("carol", 400)])
    ledger.apply_expense_splits(group.id, "alice", [Split("bob", 250)])
    ledger.reverse_expense_splits(group.id, "alice", [Split("bob", 250)])

    assert _amounts(store, group.id) == {("bob", "alice"): 1000, ("carol", "alice"): 400}


def test_reverse_ignores_membership_changes(store, group):
    ledger = BalanceLedger(store)
    ledger.apply_expense_splits(group.id, "alice", [Split("carol", 800)])
    store.remove_member(group.id, "carol")

    ledger.reverse_expense_splits(group.id, "alice", [Split("carol", 800)])
    assert _amounts(store, group.id) == {}


def test_net_balances_follow_member_order(store, group):
    ledger = BalanceLedger(store)
    ledger.apply_expense_splits(group.id, "alice", [Split("bob", 1500), Split("carol", 500)])

    nets = ledger.get_net_balances(group.id, ["carol", "dave", "alice", "bob"])
    assert [(n.user_id, n.net_cents) for n in nets] == [
        ("carol", -500),
        ("dave", 0),
        ("alice", 2000),
        ("bob", -1500),
    ]


def test_net_balances_are_conserved(store, group):
    ledger = BalanceLedger(store)
    members = ["alice", "bob", "carol"]
    rng = random.Random(7)

    for _ in range(60):
        payer = rng.choice(members)
        participants = rng.sample(members, rng.randint(1, 3))
        splits = [Split(u, rng.randint(1, 9999)) for u in participants]
        ledger.apply_expense_splits(group.id, payer, splits)

    nets = ledger.get_net_balances(group.id, members)
    assert sum(n.net_cents for n in nets) == 0
    # canonical form: never both directions for a pair
    amounts = _amounts(store, group.id)
    assert not any((c, d) in amounts for (d, c) in amounts)


def test_apply_rejects_non_members_before_writing(store, group):
    ledger = BalanceLedger(store)
    with pytest.raises(MembershipError):
        ledger.apply_expense_splits(group.id, "alice", [Split("bob", 100), Split("mallory", 100)])
    with pytest.raises(MembershipError):
        ledger.apply_expense_splits(group.id, "mallory", [Split("bob", 100)])

    assert _amounts(store, group.id) == {}


def test_apply_rejects_negative_split(store, group):
    with pytest.raises(InvalidInputError):
        BalanceLedger(store).apply_expense_splits(group.id, "alice", [Split("bob", -100)])


def test_failed_apply_leaves_no_partial_update(flaky_store, flaky_group):
    ledger = BalanceLedger(flaky_store)
    ledger.apply_expense_splits(flaky_group.id, "alice", [Split("bob", 1000)])
    before = _amounts(flaky_store, flaky_group.id)

    flaky_store.fail_after = flaky_store.balance_writes + 1
    with pytest.raises(PersistenceError):
        ledger.apply_expense_splits(flaky_group.id, "alice", [Split("bob", 500), Split("carol", 500)])

    assert _amounts(flaky_store, flaky_group.id) == before


def test_concurrent_updates_are_not_lost(store, group):
    ledger = BalanceLedger(store)

    def worker():
        for _ in range(50):
            ledger.apply_expense_splits(group.id, "alice", [Split("bob", 100)])

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get_balance(group.id, "bob", "alice").amount_cents == 8 * 50 * 100
