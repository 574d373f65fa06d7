from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class MonthlyVisitLockEntity:
    """Winner of the one-visit-per-member-per-month race."""

    member_id: str
    month: str
    visit_id: str
    staff_identity: str = ""
    staff_name: str = ""
    claim_id: str = ""
    created_at: datetime | None = None

    def is_held_by(self, visit_id: str) -> bool:
        return self.visit_id == visit_id

    @classmethod
    def from_model(cls, m: Any) -> MonthlyVisitLockEntity:
        return cls(
            member_id=m.member_id,
            month=m.month,
            visit_id=m.visit_id,
            staff_identity=m.staff_identity,
            staff_name=m.staff_name,
            claim_id=m.claim_id,
            created_at=m.created_at,
        )
