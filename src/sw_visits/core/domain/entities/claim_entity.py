from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sw_visits.core.domain.entities.visit_entity import VisitEntity

CLAIM_STATUS_DRAFT = "draft"
CLAIM_STATUS_SUBMITTED = "submitted"
CLAIM_STATUS_APPROVED = "approved"
CLAIM_STATUS_PAID = "paid"
CLAIM_STATUS_REJECTED = "rejected"

CLAIM_STATUSES = (
    CLAIM_STATUS_DRAFT,
    CLAIM_STATUS_SUBMITTED,
    CLAIM_STATUS_APPROVED,
    CLAIM_STATUS_PAID,
    CLAIM_STATUS_REJECTED,
)

# reviewer transitions; draft -> submitted belongs to the owning staff member
REVIEW_TRANSITIONS: dict[str, frozenset[str]] = {
    CLAIM_STATUS_SUBMITTED: frozenset({CLAIM_STATUS_APPROVED, CLAIM_STATUS_REJECTED, CLAIM_STATUS_DRAFT}),
    CLAIM_STATUS_APPROVED: frozenset({CLAIM_STATUS_PAID, CLAIM_STATUS_REJECTED}),
}
TRANSITIONS_REQUIRING_NOTES = frozenset({CLAIM_STATUS_DRAFT, CLAIM_STATUS_REJECTED})

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9@._-]+")


def staff_key(staff_identity: str) -> str:
    """
    URL-safe form of the identity. Rewritten identities carry a digest of the
    raw value, so `a b` and `a_b` never share a claim id.
    """
    raw = staff_identity.strip()
    safe = _UNSAFE_KEY_CHARS.sub("_", raw)
    if not safe:
        return "unknown"
    if safe != raw:
        safe = f"{safe}-{hashlib.sha1(raw.encode()).hexdigest()[:8]}"
    return safe


def build_claim_id(staff_identity: str, claim_date: date) -> str:
    return f"swClaim_{staff_key(staff_identity)}_{claim_date.strftime('%Y%m%d')}"


def compute_claim_total(visit_count: int, fee_rate: int, gas_rate: int) -> int:
    gas = gas_rate if visit_count >= 1 else 0
    return visit_count * fee_rate + gas


@dataclass(slots=True)
class ClaimEntity:
    """Daily claim of one staff member: every visit of that day, priced from scratch."""

    claim_id: str
    staff_identity: str
    claim_date: date
    staff_email: str = ""
    staff_name: str = ""
    visit_ids: list[str] = field(default_factory=list)
    visit_count: int = 0
    visit_fee_rate: int = 45
    gas_amount: int = 0
    total_member_visit_fees: int = 0
    total_amount: int = 0
    member_visits: list[dict[str, Any]] = field(default_factory=list)
    status: str = CLAIM_STATUS_DRAFT
    submitted_at: datetime | None = None
    reviewer_notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def claim_month(self) -> str:
        return self.claim_date.strftime("%Y-%m")

    @property
    def is_draft(self) -> bool:
        return self.status == CLAIM_STATUS_DRAFT

    def contains(self, visit_id: str) -> bool:
        return visit_id in self.visit_ids

    def fold_visit(self, visit: VisitEntity, fee_rate: int, gas_rate: int) -> None:
        """Adds the visit (set semantics) and recomputes every amount from the id set."""
        next_ids = set(self.visit_ids) | {visit.visit_id}
        self.visit_ids = sorted(next_ids)
        self.visit_count = len(next_ids)
        self.visit_fee_rate = fee_rate
        self.gas_amount = gas_rate if self.visit_count >= 1 else 0
        self.total_member_visit_fees = self.visit_count * fee_rate
        self.total_amount = compute_claim_total(self.visit_count, fee_rate, gas_rate)

        if not any(item.get("visit_id") == visit.visit_id for item in self.member_visits):
            self.member_visits.append(
                {
                    "visit_id": visit.visit_id,
                    "member_id": visit.member_id,
                    "member_name": visit.member_name,
                    "rcfe_name": visit.rcfe_name,
                    "visit_date": visit.visit_date.isoformat(),
                    "fee": fee_rate,
                }
            )
        if visit.staff_email and not self.staff_email:
            self.staff_email = visit.staff_email
        if visit.staff_name and not self.staff_name:
            self.staff_name = visit.staff_name

    @classmethod
    def from_model(cls, m: Any) -> ClaimEntity:
        return cls(
            claim_id=m.claim_id,
            staff_identity=m.staff_identity,
            claim_date=m.claim_date,
            staff_email=m.staff_email,
            staff_name=m.staff_name,
            visit_ids=list(m.visit_ids or []),
            visit_count=m.visit_count,
            visit_fee_rate=m.visit_fee_rate,
            gas_amount=m.gas_amount,
            total_member_visit_fees=m.total_member_visit_fees,
            total_amount=m.total_amount,
            member_visits=list(m.member_visits or []),
            status=m.status,
            submitted_at=m.submitted_at,
            reviewer_notes=m.reviewer_notes,
            created_at=m.created_at,
            updated_at=m.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "claimId": self.claim_id,
            "staffIdentity": self.staff_identity,
            "staffEmail": self.staff_email,
            "staffName": self.staff_name,
            "claimDate": self.claim_date.isoformat(),
            "claimMonth": self.claim_month,
            "visitIds": list(self.visit_ids),
            "visitCount": self.visit_count,
            "visitFeeRate": self.visit_fee_rate,
            "gasAmount": self.gas_amount,
            "totalMemberVisitFees": self.total_member_visit_fees,
            "totalAmount": self.total_amount,
            "memberVisits": list(self.member_visits),
            "status": self.status,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            "reviewerNotes": self.reviewer_notes or None,
        }
