import pytest

from groupledger.core import BalanceService, ExpenseService
from groupledger.errors import (
    InvalidInputError,
    MembershipError,
    NotFoundError,
    PermissionDeniedError,
    SplitMismatchError,
)


def test_dinner_and_parking_scenario(store, group):
    expenses = ExpenseService(store)
    balances = BalanceService(store)

    result, error = expenses.add_expense(group.id, "Dinner", 90, "alice", "equal", ["alice", "bob", "carol"])
    assert error is None and result.balances_updated
    result, error = expenses.add_expense(group.id, "Parking", 30, "bob", "equal", ["alice", "bob"])
    assert error is None and result.balances_updated

    nets, error = balances.get_net_balances(group.id, "alice")
    assert error is None
    assert {n.user_id: n.net_cents for n in nets} == {"alice": 4500, "bob": -1500, "carol": -3000}
    assert sum(n.net_cents for n in nets) == 0

    raw, _ = balances.get_group_balances(group.id, "carol")
    assert {(b.debtor_id, b.creditor_id): b.amount_cents for b in raw} == {
        ("bob", "alice"): 1500,
        ("carol", "alice"): 3000,
    }

    transfers, _ = balances.get_simplified_debts(group.id, "bob")
    assert [(t.from_user, t.to_user, t.amount_cents) for t in transfers] == [
        ("carol", "alice", 3000),
        ("bob", "alice", 1500),
    ]


def test_percentage_expense_keeps_percentages(store, group):
    result, error = ExpenseService(store).add_expense(
        group.id, "Hotel", 200, "bob", "percentage", ["alice", "bob"],
        custom_percentages={"alice": 25, "bob": 75},
    )
    assert error is None
    assert [(s.user_id, s.amount_cents, s.percentage) for s in result.expense.splits] == [
        ("alice", 5000, 25.0),
        ("bob", 15000, 75.0),
    ]
    assert store.get_balance(group.id, "alice", "bob").amount_cents == 5000


def test_exact_mismatch_writes_nothing(store, group):
    result, error = ExpenseService(store).add_expense(
        group.id, "Tickets", 100, "alice", "exact", ["alice", "bob"],
        custom_amounts={"alice": 60, "bob": 39},
    )
    assert result is None
    assert isinstance(error, SplitMismatchError)
    assert store.list_expenses(group.id) == []


def test_non_member_payer_and_participant(store, group):
    service = ExpenseService(store)

    _, error = service.add_expense(group.id, "Taxi", 10, "mallory", "equal", ["alice"])
    assert isinstance(error, MembershipError)
    _, error = service.add_expense(group.id, "Taxi", 10, "alice", "equal", ["alice", "mallory"])
    assert isinstance(error, MembershipError)
    assert store.list_expenses(group.id) == []


def test_description_required(store, group):
    _, error = ExpenseService(store).add_expense(group.id, "  ", 10, "alice", "equal", ["bob"])
    assert isinstance(error, InvalidInputError)


def test_balance_failure_keeps_expense(flaky_store, flaky_group):
    flaky_store.fail_after = 0

    result, error = ExpenseService(flaky_store).add_expense(
        flaky_group.id, "Groceries", 60, "alice", "equal", ["alice", "bob", "carol"]
    )

    assert error is None
    assert result.balances_updated is False
    assert [e.id for e in flaky_store.list_expenses(flaky_group.id)] == [result.expense.id]
    assert flaky_store.list_balances(flaky_group.id) == []


def test_delete_expense_reverses_balances(store, group):
    service = ExpenseService(store)
    result, _ = service.add_expense(group.id, "Dinner", 90, "alice", "equal", ["alice", "bob", "carol"])

    ok, error = service.delete_expense(result.expense.id, "alice")

    assert ok and error is None
    assert store.get_expense(result.expense.id) is None
    assert store.list_balances(group.id) == []


def test_only_payer_can_delete(store, group):
    service = ExpenseService(store)
    result, _ = service.add_expense(group.id, "Dinner", 90, "alice", "equal", ["alice", "bob"])

    ok, error = service.delete_expense(result.expense.id, "bob")
    assert not ok
    assert isinstance(error, PermissionDeniedError)

    ok, error = service.delete_expense("missing", "alice")
    assert isinstance(error, NotFoundError)


def test_group_expenses_require_membership(store, group):
    service = ExpenseService(store)
    service.add_expense(group.id, "Coffee", 9, "carol", "equal", ["alice", "bob", "carol"])

    expenses, error = service.get_group_expenses(group.id, "bob")
    assert error is None and [e.description for e in expenses] == ["Coffee"]

    _, error = service.get_group_expenses(group.id, "mallory")
    assert isinstance(error, MembershipError)


def test_preview_split_writes_nothing(store, group):
    splits, error = ExpenseService(store).preview_split(100, ["a", "b", "c"], "equal")
    assert error is None
    assert [s.amount_cents for s in splits] == [3333, 3333, 3333]
    assert store.list_expenses(group.id) == []


@pytest.mark.parametrize("split_type", ["weighted", None])
def test_preview_rejects_unknown_policy(store, split_type):
    _, error = ExpenseService(store).preview_split(100, ["a"], split_type)
    assert isinstance(error, InvalidInputError)


def test_malformed_description_and_amount(store, group):
    service = ExpenseService(store)

    _, error = service.add_expense(group.id, 5, 10, "alice", "equal", ["bob"])
    assert isinstance(error, InvalidInputError)
    _, error = service.add_expense(group.id, "Yacht", "1e30", "alice", "equal", ["alice", "bob"])
    assert isinstance(error, InvalidInputError)
    assert store.list_expenses(group.id) == []


def test_outsider_cannot_record_expense_for_members(store, group):
    _, error = ExpenseService(store).add_expense(
        group.id, "Taxi", 10, "alice", "equal", ["alice", "bob"], recorded_by="mallory"
    )
    assert isinstance(error, MembershipError)
    assert store.list_expenses(group.id) == []
    assert store.list_balances(group.id) == []
