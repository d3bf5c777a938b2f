from groupledger.core import BalanceService, ExpenseService, GroupService
from groupledger.errors import (
    InvalidInputError,
    MembershipError,
    NotFoundError,
    PermissionDeniedError,
)


def test_creator_becomes_member(store):
    group, error = GroupService(store).create_group("  Flat 4B ", "alice", description="")
    assert error is None
    assert group.name == "Flat 4B"
    assert group.description is None
    assert store.list_member_ids(group.id) == ["alice"]


def test_group_name_rules(store):
    service = GroupService(store)
    _, error = service.create_group("   ", "alice")
    assert isinstance(error, InvalidInputError)
    _, error = service.create_group("x" * 101, "alice")
    assert isinstance(error, InvalidInputError)


def test_add_member_by_email_and_id(store, group):
    store.upsert_profile("dave", "Dave@Example.com", "Dave")
    service = GroupService(store)

    profile, error = service.add_member(group.id, "alice", email="dave@example.com")
    assert error is None and profile.id == "dave"

    _, error = service.add_member(group.id, "alice", user_id="erin")
    assert error is None
    assert store.list_member_ids(group.id) == ["alice", "bob", "carol", "dave", "erin"]


def test_add_member_failures(store, group):
    service = GroupService(store)

    _, error = service.add_member(group.id, "bob", user_id="erin")
    assert isinstance(error, PermissionDeniedError)
    _, error = service.add_member(group.id, "alice", user_id="bob")
    assert isinstance(error, InvalidInputError)
    _, error = service.add_member(group.id, "alice", email="nobody@example.com")
    assert isinstance(error, NotFoundError)
    _, error = service.add_member(group.id, "alice")
    assert isinstance(error, InvalidInputError)
    _, error = service.add_member("missing", "alice", user_id="erin")
    assert isinstance(error, NotFoundError)


def test_remove_member_rules(store, group):
    service = GroupService(store)

    ok, error = service.remove_member(group.id, "alice", "alice")
    assert not ok and isinstance(error, PermissionDeniedError)
    ok, error = service.remove_member(group.id, "carol", "bob")
    assert not ok and isinstance(error, PermissionDeniedError)

    ok, error = service.remove_member(group.id, "carol", "alice")
    assert ok and error is None
    assert not store.is_member(group.id, "carol")


def test_removed_member_keeps_open_balances(store, group):
    ExpenseService(store).add_expense(group.id, "Dinner", 90, "alice", "equal", ["alice", "bob", "carol"])
    GroupService(store).remove_member(group.id, "carol", "alice")

    nets, error = BalanceService(store).get_net_balances(group.id, "alice")
    assert error is None
    assert {n.user_id: n.net_cents for n in nets} == {"alice": 6000, "bob": -3000, "carol": -3000}


def test_delete_group_cascades(store, group):
    ExpenseService(store).add_expense(group.id, "Dinner", 90, "alice", "equal", ["alice", "bob", "carol"])
    BalanceService(store).settle_balance(group.id, "bob", "alice", 10)
    service = GroupService(store)

    ok, error = service.delete_group(group.id, "bob")
    assert not ok and isinstance(error, PermissionDeniedError)

    ok, error = service.delete_group(group.id, "alice")
    assert ok and error is None
    assert store.get_group(group.id) is None
    assert store.list_member_ids(group.id) == []
    assert store.list_expenses(group.id) == []
    assert store.list_balances(group.id) == []
    assert store.list_settlements(group.id) == []


def test_group_details_for_members_only(store, group):
    store.upsert_profile("bob", "bob@example.com", "Bob")
    service = GroupService(store)

    details, error = service.get_group_details(group.id, "bob")
    assert error is None
    assert [m.id for m in details["members"]] == ["alice", "bob", "carol"]
    assert details["members"][1].display_name == "Bob"

    _, error = service.get_group_details(group.id, "mallory")
    assert isinstance(error, MembershipError)


def test_user_groups(store, group):
    other, _ = GroupService(store).create_group("Office", "bob")
    groups, error = GroupService(store).get_user_groups("bob")
    assert error is None
    assert {g.id for g in groups} == {group.id, other.id}


def test_group_name_must_be_text(store):
    _, error = GroupService(store).create_group(5, "alice")
    assert isinstance(error, InvalidInputError)


def test_delete_group_drops_its_lock(store, group):
    ExpenseService(store).add_expense(group.id, "Dinner", 90, "alice", "equal", ["alice", "bob"])
    assert group.id in store._group_locks

    ok, _ = GroupService(store).delete_group(group.id, "alice")
    assert ok
    assert group.id not in store._group_locks
