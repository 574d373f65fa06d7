from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from members_core.core.domain.services.match_engine import normalize

AUTHORIZED_STATUS = "authorized"


@dataclass(slots=True)
class MemberEntity:
    """One cached row of the members table, keyed by `client_id`."""

    client_id: str
    first_name: str = ""
    last_name: str = ""
    # free-text assignment columns, one per source team
    social_worker_assigned: str = ""
    staff_assigned: str = ""
    kaiser_user_assignment: str = ""
    sw_id: str = ""
    calaim_status: str = ""
    calaim_mco: str = ""
    hold_for_social_worker: str = ""
    on_hold: bool = False
    authorization_end_date: date | None = None
    rcfe_registered_id: str = ""
    rcfe_name: str = ""
    rcfe_address: str = ""
    rcfe_city: str = ""
    rcfe_zip: str = ""
    rcfe_county: str = ""
    rcfe_administrator: str = ""
    rcfe_administrator_email: str = ""
    member_county: str = ""
    member_city: str = ""
    date_modified: datetime | None = None
    search_keys: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)
    cached_at: datetime | None = None

    # ───────────────────────── derived ─────────────────────────
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def assignment_fields(self) -> list[str]:
        return [
            self.social_worker_assigned,
            self.staff_assigned,
            self.kaiser_user_assignment,
        ]

    @property
    def is_authorized(self) -> bool:
        status = (self.calaim_status or "").strip().lower()
        return status == AUTHORIZED_STATUS or status.startswith(f"{AUTHORIZED_STATUS} ")

    def enforces_auth_expiry(self, plans: Iterable[str]) -> bool:
        mco = (self.calaim_mco or "").lower()
        return any(p.strip().lower() in mco for p in plans if p and p.strip())

    def is_authorization_expired(self, today: date, plans: Iterable[str]) -> bool:
        """Only plans listed in `plans` stop visits after the end date."""
        if not self.authorization_end_date or not self.enforces_auth_expiry(plans):
            return False
        return self.authorization_end_date < today

    @property
    def facility_key(self) -> str:
        """Stable facility id when present, else the normalized facility name."""
        if (self.rcfe_registered_id or "").strip():
            return f"id:{self.rcfe_registered_id.strip()}"
        name = normalize(self.rcfe_name)
        return f"name:{name}" if name else "name:unassigned"

    # ───────────────────────── conversions ─────────────────────────
    @classmethod
    def from_model(cls, m: Any) -> MemberEntity:
        return cls(
            client_id=m.client_id,
            first_name=m.first_name,
            last_name=m.last_name,
            social_worker_assigned=m.social_worker_assigned,
            staff_assigned=m.staff_assigned,
            kaiser_user_assignment=m.kaiser_user_assignment,
            sw_id=m.sw_id,
            calaim_status=m.calaim_status,
            calaim_mco=m.calaim_mco,
            hold_for_social_worker=m.hold_for_social_worker,
            on_hold=m.on_hold,
            authorization_end_date=m.authorization_end_date,
            rcfe_registered_id=m.rcfe_registered_id,
            rcfe_name=m.rcfe_name,
            rcfe_address=m.rcfe_address,
            rcfe_city=m.rcfe_city,
            rcfe_zip=m.rcfe_zip,
            rcfe_county=m.rcfe_county,
            rcfe_administrator=m.rcfe_administrator,
            rcfe_administrator_email=m.rcfe_administrator_email,
            member_county=m.member_county,
            member_city=m.member_city,
            date_modified=m.date_modified,
            search_keys=list(m.search_keys or []),
            raw=dict(m.raw or {}),
            cached_at=m.cached_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "name": self.full_name,
            "calaim_status": self.calaim_status,
            "calaim_mco": self.calaim_mco,
            "on_hold": self.on_hold,
            "authorization_end_date": (
                self.authorization_end_date.isoformat() if self.authorization_end_date else None
            ),
            "rcfe_registered_id": self.rcfe_registered_id,
            "rcfe_name": self.rcfe_name,
            "rcfe_address": self.rcfe_address,
            "social_worker_assigned": self.social_worker_assigned,
            "staff_assigned": self.staff_assigned,
            "kaiser_user_assignment": self.kaiser_user_assignment,
        }
