from dataclasses import dataclass
from typing import Optional


@dataclass
class Profile:
    id: str
    email: str
    full_name: Optional[str] = None

    @property
    def display_name(self):
        return self.full_name or self.email

    def to_dict(self):
        return {"id": self.id, "email": self.email, "full_name": self.full_name}
