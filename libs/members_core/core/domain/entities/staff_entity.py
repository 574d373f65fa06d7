from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class StaffDirectoryEntity:
    email: str
    name: str
    sw_id: str = ""
    phone: str = ""
    is_active: bool = True
    is_supervisor: bool = False

    @property
    def match_fields(self) -> list[str]:
        return [self.name, self.email, self.sw_id]

    @classmethod
    def from_model(cls, m: Any) -> StaffDirectoryEntity:
        return cls(
            email=m.email,
            name=m.name,
            sw_id=m.sw_id,
            phone=m.phone,
            is_active=m.is_active,
            is_supervisor=m.is_supervisor,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "name": self.name,
            "sw_id": self.sw_id,
            "phone": self.phone,
            "is_active": self.is_active,
            "is_supervisor": self.is_supervisor,
        }
