"""Settlement models."""
from dataclasses import dataclass, field
from datetime import datetime

from groupledger.utils.money import from_cents


@dataclass(frozen=True)
class Settlement:
    """Append-only record of a real-world payment."""
    id: str
    group_id: str
    payer_id: str
    payee_id: str
    amount_cents: int
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "group_id": self.group_id,
            "payer_id": self.payer_id,
            "payee_id": self.payee_id,
            "amount": from_cents(self.amount_cents),
            "created_at": self.created_at.isoformat(),
        }
