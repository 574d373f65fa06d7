from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

VISIT_STATUS_PENDING_SIGNOFF = "pending_signoff"
VISIT_STATUS_FLAGGED = "flagged"
VISIT_STATUS_SIGNED_OFF = "signed_off"

URGENCY_STANDARD = "standard"
URGENCY_URGENT = "urgent"
URGENCY_IMMEDIATE = "immediate"


def visit_month(visit_date: date) -> str:
    return visit_date.strftime("%Y-%m")


@dataclass(slots=True)
class VisitEntity:
    """
    One accepted monthly questionnaire.

    Core fields are frozen once stored; only the sign-off block and the claim
    linkage change afterwards.
    """

    visit_id: str
    member_id: str
    staff_identity: str
    visit_date: date
    member_name: str = ""
    staff_id: str = ""
    staff_email: str = ""
    staff_name: str = ""
    rcfe_id: str = ""
    rcfe_name: str = ""
    rcfe_address: str = ""
    questionnaire: dict[str, Any] = field(default_factory=dict)
    total_score: int = 0
    flagged: bool = False
    flag_reasons: list[str] = field(default_factory=list)
    urgency: str = URGENCY_STANDARD
    geolocation: dict[str, Any] | None = None
    status: str = VISIT_STATUS_PENDING_SIGNOFF
    # sign-off
    signed_off_at: datetime | None = None
    signed_off_by: str = ""
    signoff_notes: str = ""
    # claim linkage
    claim_id: str = ""
    claim_status: str = ""
    submitted_at: datetime | None = None

    @property
    def visit_month(self) -> str:
        return visit_month(self.visit_date)

    @property
    def is_signed_off(self) -> bool:
        return self.status == VISIT_STATUS_SIGNED_OFF

    @classmethod
    def from_model(cls, m: Any) -> VisitEntity:
        return cls(
            visit_id=m.visit_id,
            member_id=m.member_id,
            staff_identity=m.staff_identity,
            visit_date=m.visit_date,
            member_name=m.member_name,
            staff_id=m.staff_id,
            staff_email=m.staff_email,
            staff_name=m.staff_name,
            rcfe_id=m.rcfe_id,
            rcfe_name=m.rcfe_name,
            rcfe_address=m.rcfe_address,
            questionnaire=dict(m.questionnaire or {}),
            total_score=m.total_score,
            flagged=m.flagged,
            flag_reasons=list(m.flag_reasons or []),
            urgency=m.urgency,
            geolocation=m.geolocation,
            status=m.status,
            signed_off_at=m.signed_off_at,
            signed_off_by=m.signed_off_by,
            signoff_notes=m.signoff_notes,
            claim_id=m.claim_id,
            claim_status=m.claim_status,
            submitted_at=m.submitted_at,
        )

    def to_model_defaults(self) -> dict[str, Any]:
        """Column values for the first (and only) insert of this visit."""
        return {
            "member_id": self.member_id,
            "member_name": self.member_name,
            "staff_id": self.staff_id,
            "staff_email": self.staff_email,
            "staff_name": self.staff_name,
            "staff_identity": self.staff_identity,
            "rcfe_id": self.rcfe_id,
            "rcfe_name": self.rcfe_name,
            "rcfe_address": self.rcfe_address,
            "visit_date": self.visit_date,
            "visit_month": self.visit_month,
            "questionnaire": self.questionnaire,
            "total_score": self.total_score,
            "flagged": self.flagged,
            "flag_reasons": self.flag_reasons,
            "urgency": self.urgency,
            "geolocation": self.geolocation,
            "status": self.status,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "visitId": self.visit_id,
            "memberId": self.member_id,
            "memberName": self.member_name,
            "staffIdentity": self.staff_identity,
            "staffName": self.staff_name,
            "rcfeId": self.rcfe_id,
            "rcfeName": self.rcfe_name,
            "visitDate": self.visit_date.isoformat(),
            "totalScore": self.total_score,
            "flagged": self.flagged,
            "flagReasons": list(self.flag_reasons),
            "urgency": self.urgency,
            "status": self.status,
            "signedOffAt": self.signed_off_at.isoformat() if self.signed_off_at else None,
            "signedOffBy": self.signed_off_by or None,
            "claimId": self.claim_id or None,
            "claimStatus": self.claim_status or None,
        }
