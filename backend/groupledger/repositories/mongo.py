"""
MongoDB store.

Collections:
- users: profile documents keyed by the auth subject
- groups / group_members
- expenses: splits embedded in the expense document
- balances: one document per (group_id, debtor_id, creditor_id)
- settlements: append-only
"""
import logging
import re
from datetime import datetime
from functools import wraps
from typing import Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from groupledger.balances.models import Balance
from groupledger.errors import PersistenceError
from groupledger.expenses.models import Expense, Split
from groupledger.groups.models import Group
from groupledger.settlements.models import Settlement
from groupledger.users.model import Profile
from groupledger.utils.enums import SplitType

from .base import BaseStore

logger = logging.getLogger(__name__)


def _oid(value) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _translate_errors(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PyMongoError as e:
            logger.exception("MongoDB call %s failed", func.__name__)
            raise PersistenceError(f"Storage failure in {func.__name__}: {e}") from e
    return wrapper


class MongoStore(BaseStore):

    def __init__(self, db):
        super().__init__()
        self.db = db

    @_translate_errors
    def ensure_indexes(self) -> None:
        self.db.balances.create_index(
            [("group_id", ASCENDING), ("debtor_id", ASCENDING), ("creditor_id", ASCENDING)],
            unique=True,
        )
        self.db.group_members.create_index(
            [("group_id", ASCENDING), ("user_id", ASCENDING)], unique=True
        )
        self.db.users.create_index("email", unique=True)
        self.db.expenses.create_index("group_id")
        self.db.settlements.create_index("group_id")

    # Document mappers

    @staticmethod
    def _to_group(doc: Dict) -> Group:
        return Group(
            id=str(doc["_id"]),
            name=doc["name"],
            description=doc.get("description"),
            created_by=doc["created_by"],
            created_at=doc["created_at"],
        )

    @staticmethod
    def _to_expense(doc: Dict) -> Expense:
        return Expense(
            id=str(doc["_id"]),
            group_id=doc["group_id"],
            description=doc["description"],
            amount_cents=doc["amount_cents"],
            paid_by=doc["paid_by"],
            split_type=SplitType(doc["split_type"]),
            splits=[
                Split(user_id=s["user_id"], amount_cents=s["amount_cents"], percentage=s.get("percentage"))
                for s in doc.get("splits", [])
            ],
            created_at=doc["created_at"],
        )

    @staticmethod
    def _to_balance(doc: Dict) -> Balance:
        return Balance(
            group_id=doc["group_id"],
            debtor_id=doc["debtor_id"],
            creditor_id=doc["creditor_id"],
            amount_cents=doc["amount_cents"],
            updated_at=doc["updated_at"],
        )

    @staticmethod
    def _to_settlement(doc: Dict) -> Settlement:
        return Settlement(
            id=str(doc["_id"]),
            group_id=doc["group_id"],
            payer_id=doc["payer_id"],
            payee_id=doc["payee_id"],
            amount_cents=doc["amount_cents"],
            created_at=doc["created_at"],
        )

    # Profiles

    @_translate_errors
    def upsert_profile(self, user_id: str, email: str, full_name: Optional[str] = None) -> Profile:
        email = email.strip().lower()
        self.db.users.update_one(
            {"_id": user_id},
            {"$set": {"email": email, "full_name": full_name, "updated_at": datetime.utcnow()}},
            upsert=True,
        )
        return Profile(id=user_id, email=email, full_name=full_name)

    @_translate_errors
    def get_profile(self, user_id: str) -> Optional[Profile]:
        doc = self.db.users.find_one({"_id": user_id})
        if not doc:
            return None
        return Profile(id=doc["_id"], email=doc["email"], full_name=doc.get("full_name"))

    @_translate_errors
    def get_profile_by_email(self, email: str) -> Optional[Profile]:
        doc = self.db.users.find_one({"email": email.strip().lower()})
        if not doc:
            return None
        return Profile(id=doc["_id"], email=doc["email"], full_name=doc.get("full_name"))

    @_translate_errors
    def search_profiles(self, query: str, exclude_id: Optional[str] = None, limit: int = 10) -> List[Profile]:
        regex_pattern = re.compile(re.escape(query), re.IGNORECASE)
        docs = self.db.users.find(
            {
                "_id": {"$ne": exclude_id},
                "$or": [{"email": regex_pattern}, {"full_name": regex_pattern}],
            }
        ).limit(limit)
        return [Profile(id=d["_id"], email=d["email"], full_name=d.get("full_name")) for d in docs]

    # Groups and membership

    @_translate_errors
    def create_group(self, name: str, description: Optional[str], created_by: str) -> Group:
        doc = {
            "name": name,
            "description": description,
            "created_by": created_by,
            "created_at": datetime.utcnow(),
        }
        result = self.db.groups.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._to_group(doc)

    @_translate_errors
    def get_group(self, group_id: str) -> Optional[Group]:
        oid = _oid(group_id)
        if oid is None:
            return None
        doc = self.db.groups.find_one({"_id": oid})
        return self._to_group(doc) if doc else None

    @_translate_errors
    def list_user_groups(self, user_id: str) -> List[Group]:
        group_ids = [_oid(m["group_id"]) for m in self.db.group_members.find({"user_id": user_id})]
        group_ids = [oid for oid in group_ids if oid is not None]
        docs = self.db.groups.find({"_id": {"$in": group_ids}}).sort("created_at", DESCENDING)
        return [self._to_group(d) for d in docs]

    @_translate_errors
    def delete_group(self, group_id: str) -> None:
        oid = _oid(group_id)
        if oid is not None:
            self.db.groups.delete_one({"_id": oid})
        for collection in ("group_members", "expenses", "balances", "settlements"):
            self.db[collection].delete_many({"group_id": group_id})

    @_translate_errors
    def add_member(self, group_id: str, user_id: str) -> None:
        try:
            self.db.group_members.insert_one(
                {"group_id": group_id, "user_id": user_id, "joined_at": datetime.utcnow()}
            )
        except DuplicateKeyError:
            pass

    @_translate_errors
    def remove_member(self, group_id: str, user_id: str) -> None:
        self.db.group_members.delete_one({"group_id": group_id, "user_id": user_id})

    @_translate_errors
    def is_member(self, group_id: str, user_id: str) -> bool:
        return self.db.group_members.count_documents({"group_id": group_id, "user_id": user_id}) > 0

    @_translate_errors
    def list_member_ids(self, group_id: str) -> List[str]:
        docs = self.db.group_members.find({"group_id": group_id}).sort([("joined_at", ASCENDING), ("_id", ASCENDING)])
        return [d["user_id"] for d in docs]

    # Expenses

    @_translate_errors
    def create_expense(
        self,
        group_id: str,
        description: str,
        amount_cents: int,
        paid_by: str,
        split_type: SplitType,
        splits: List[Split],
    ) -> Expense:
        doc = {
            "group_id": group_id,
            "description": description,
            "amount_cents": amount_cents,
            "paid_by": paid_by,
            "split_type": split_type.value,
            "splits": [
                {"user_id": s.user_id, "amount_cents": s.amount_cents, "percentage": s.percentage}
                for s in splits
            ],
            "created_at": datetime.utcnow(),
        }
        result = self.db.expenses.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._to_expense(doc)

    @_translate_errors
    def get_expense(self, expense_id: str) -> Optional[Expense]:
        oid = _oid(expense_id)
        if oid is None:
            return None
        doc = self.db.expenses.find_one({"_id": oid})
        return self._to_expense(doc) if doc else None

    @_translate_errors
    def list_expenses(self, group_id: str) -> List[Expense]:
        docs = self.db.expenses.find({"group_id": group_id}).sort("created_at", DESCENDING)
        return [self._to_expense(d) for d in docs]

    @_translate_errors
    def delete_expense(self, expense_id: str) -> None:
        oid = _oid(expense_id)
        if oid is not None:
            self.db.expenses.delete_one({"_id": oid})

    # Balances

    @_translate_errors
    def get_balance(self, group_id: str, debtor_id: str, creditor_id: str) -> Optional[Balance]:
        doc = self.db.balances.find_one(
            {"group_id": group_id, "debtor_id": debtor_id, "creditor_id": creditor_id}
        )
        return self._to_balance(doc) if doc else None

    @_translate_errors
    def set_balance(self, group_id: str, debtor_id: str, creditor_id: str, amount_cents: int) -> None:
        key = {"group_id": group_id, "debtor_id": debtor_id, "creditor_id": creditor_id}
        if amount_cents <= 0:
            self.db.balances.delete_one(key)
            return
        self.db.balances.update_one(
            key,
            {"$set": {"amount_cents": amount_cents, "updated_at": datetime.utcnow()}},
            upsert=True,
        )

    @_translate_errors
    def list_balances(self, group_id: str) -> List[Balance]:
        docs = self.db.balances.find({"group_id": group_id, "amount_cents": {"$gt": 0}}).sort("_id", ASCENDING)
        return [self._to_balance(d) for d in docs]

    @_translate_errors
    def list_user_balances(self, user_id: str) -> List[Balance]:
        docs = self.db.balances.find(
            {
                "amount_cents": {"$gt": 0},
                "$or": [{"debtor_id": user_id}, {"creditor_id": user_id}],
            }
        )
        return [self._to_balance(d) for d in docs]

    @_translate_errors
    def replace_balances(self, group_id: str, balances: List[Balance]) -> None:
        self.db.balances.delete_many({"group_id": group_id})
        if balances:
            self.db.balances.insert_many([
                {
                    "group_id": group_id,
                    "debtor_id": b.debtor_id,
                    "creditor_id": b.creditor_id,
                    "amount_cents": b.amount_cents,
                    "updated_at": b.updated_at,
                }
                for b in balances
            ])

    # Settlements

    @_translate_errors
    def create_settlement(self, group_id: str, payer_id: str, payee_id: str, amount_cents: int) -> Settlement:
        doc = {
            "group_id": group_id,
            "payer_id": payer_id,
            "payee_id": payee_id,
            "amount_cents": amount_cents,
            "created_at": datetime.utcnow(),
        }
        result = self.db.settlements.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._to_settlement(doc)

    @_translate_errors
    def list_settlements(self, group_id: str) -> List[Settlement]:
        docs = self.db.settlements.find({"group_id": group_id}).sort(
            [("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return [self._to_settlement(d) for d in docs]

    @_translate_errors
    def list_user_settlements(self, user_id: str) -> List[Settlement]:
        docs = self.db.settlements.find(
            {"$or": [{"payer_id": user_id}, {"payee_id": user_id}]}
        ).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        return [self._to_settlement(d) for d in docs]
