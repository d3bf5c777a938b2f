"""Expense models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from groupledger.utils.money import from_cents
from groupledger.utils.enums import SplitType


@dataclass
class Split:
    user_id: str
    amount_cents: int
    percentage: Optional[float] = None

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "amount": from_cents(self.amount_cents),
            "percentage": self.percentage,
        }


@dataclass
class Expense:
    id: str
    group_id: str
    description: str
    amount_cents: int
    paid_by: str
    split_type: SplitType
    splits: List[Split] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "group_id": self.group_id,
            "description": self.description,
            "amount": from_cents(self.amount_cents),
            "paid_by": self.paid_by,
            "split_type": self.split_type.value,
            "splits": [s.to_dict() for s in self.splits],
            "created_at": self.created_at.isoformat(),
        }
