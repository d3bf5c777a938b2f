"""Balance models: stored debt edges and derived views."""
from dataclasses import dataclass, field
from datetime import datetime

from groupledger.utils.money import from_cents


@dataclass
class Balance:
    """Directed debt edge: debtor owes creditor ``amount_cents``."""
    group_id: str
    debtor_id: str
    creditor_id: str
    amount_cents: int
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self):
        return {
            "group_id": self.group_id,
            "debtor_id": self.debtor_id,
            "creditor_id": self.creditor_id,
            "amount": from_cents(self.amount_cents),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class NetBalance:
    """Positive = is owed money, negative = owes money."""
    user_id: str
    net_cents: int

    def to_dict(self):
        return {"user_id": self.user_id, "net_balance": from_cents(self.net_cents)}


@dataclass
class Transfer:
    from_user: str
    to_user: str
    amount_cents: int

    def to_dict(self):
        return {
            "from": self.from_user,
            "to": self.to_user,
            "amount": from_cents(self.amount_cents),
        }
