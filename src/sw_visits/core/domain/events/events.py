from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from members_core.core.domain.events.events import DomainEvent


# ╭──────────────────────────────────────────────╮
# │ 1. Visits                                    │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class VisitAcceptedEvent(DomainEvent):
    visit_id: str
    member_id: str
    staff_identity: str
    claim_id: str
    flagged: bool


@dataclass(frozen=True)
class FlaggedVisitEvent(DomainEvent):
    """Payload of the supervisor alert; everything the e-mail body needs."""

    visit_id: str
    member_id: str
    member_name: str
    rcfe_name: str
    rcfe_address: str
    staff_name: str
    staff_email: str
    visit_date: date
    total_score: int
    urgency: str
    flag_reasons: tuple[str, ...] = ()
    # free-text assignment columns of the member, used to find notifiable staff
    assignment_texts: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe body for the alert task."""
        return {
            "visit_id": self.visit_id,
            "member_id": self.member_id,
            "member_name": self.member_name,
            "rcfe_name": self.rcfe_name,
            "rcfe_address": self.rcfe_address,
            "staff_name": self.staff_name,
            "staff_email": self.staff_email,
            "visit_date": self.visit_date.isoformat(),
            "total_score": self.total_score,
            "urgency": self.urgency,
            "flag_reasons": list(self.flag_reasons),
            "assignment_texts": list(self.assignment_texts),
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> FlaggedVisitEvent:
        return cls(
            **{
                **data,
                "visit_date": date.fromisoformat(data["visit_date"]),
                "flag_reasons": tuple(data.get("flag_reasons") or ()),
                "assignment_texts": tuple(data.get("assignment_texts") or ()),
            }
        )


@dataclass(frozen=True)
class VisitsSignedOffEvent(DomainEvent):
    visit_ids: tuple[str, ...]
    signed_off_by: str


# ╭──────────────────────────────────────────────╮
# │ 2. Claims                                    │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class ClaimStatusChangedEvent(DomainEvent):
    claim_id: str
    from_status: str
    to_status: str
    actor: str
