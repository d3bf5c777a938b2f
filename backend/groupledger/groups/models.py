"""Group models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Group:
    id: str
    name: str
    created_by: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
        }
