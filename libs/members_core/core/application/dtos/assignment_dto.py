from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RcfeMemberDTO:
    id: str
    name: str
    status: str
    mco: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "status": self.status, "mco": self.mco}


@dataclass
class RcfeGroupDTO:
    id: str
    name: str
    address: str = ""
    city: str = ""
    county: str = ""
    administrator: str = ""
    administrator_email: str = ""
    members: list[RcfeMemberDTO] = field(default_factory=list)

    @property
    def member_count(self) -> int:
        return len(self.members)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "county": self.county,
            "administrator": self.administrator,
            "administratorEmail": self.administrator_email,
            "memberCount": self.member_count,
            "members": [m.to_dict() for m in self.members],
        }


@dataclass
class AssignmentResultDTO:
    staff_id: str
    rcfe_list: list[RcfeGroupDTO]
    total_members: int
    total_rcfes: int
    members_suspended: int
    cache_status: str
    total_assigned_all: int
    excluded_counts: dict[str, int]
    match_strategy: str
    needles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "staffId": self.staff_id,
            "rcfeList": [g.to_dict() for g in self.rcfe_list],
            "totalMembers": self.total_members,
            "totalRCFEs": self.total_rcfes,
            "membersSuspended": self.members_suspended,
            "cacheStatus": self.cache_status,
            "totalAssignedAll": self.total_assigned_all,
            "excludedCounts": {
                "onHold": self.excluded_counts.get("on_hold", 0),
                "authExpired": self.excluded_counts.get("auth_expired", 0),
            },
            "matchStrategy": self.match_strategy,
        }
