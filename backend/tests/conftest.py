import pytest
from flask_jwt_extended import create_access_token

from groupledger import create_app
from groupledger.config import TestingConfig
from groupledger.errors import PersistenceError
from groupledger.repositories import InMemoryStore


class FlakyStore(InMemoryStore):
    """In-memory store whose balance writes can be made to fail."""

    def __init__(self):
        super().__init__()
        self.fail_after = None
        self.balance_writes = 0

    def set_balance(self, group_id, debtor_id, creditor_id, amount_cents):
        if self.fail_after is not None and self.balance_writes >= self.fail_after:
            raise PersistenceError("balance write refused")
        self.balance_writes += 1
        super().set_balance(group_id, debtor_id, creditor_id, amount_cents)


def _seed_group(store):
    group = store.create_group("Trip", "Weekend away", "alice")
    for user_id in ("alice", "bob", "carol"):
        store.add_member(group.id, user_id)
    return group


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def group(store):
    return _seed_group(store)


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def flaky_group(flaky_store):
    return _seed_group(flaky_store)


@pytest.fixture
def app(store):
    return create_app(TestingConfig, store=store)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    def _headers(user_id):
        with app.app_context():
            token = create_access_token(identity=user_id)
        return {"Authorization": f"Bearer {token}"}
    return _headers
