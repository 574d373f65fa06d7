from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

MEMBERS_SYNC_KEY = "caspio_members"


@dataclass(slots=True)
class MembersSyncStateEntity:
    key: str = MEMBERS_SYNC_KEY
    last_synced_at: datetime | None = None
    watermark: datetime | None = None
    last_run_at: datetime | None = None
    last_mode: str = ""
    complete: bool = True
    summary: dict[str, Any] = field(default_factory=dict)

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return self.last_synced_at is not None and now - self.last_synced_at < ttl

    @classmethod
    def from_model(cls, m: Any) -> MembersSyncStateEntity:
        return cls(
            key=m.key,
            last_synced_at=m.last_synced_at,
            watermark=m.watermark,
            last_run_at=m.last_run_at,
            last_mode=m.last_mode,
            complete=m.complete,
            summary=dict(m.summary or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_synced_at": self.last_synced_at.isoformat() if self.last_synced_at else None,
            "watermark": self.watermark.isoformat() if self.watermark else None,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_mode": self.last_mode,
            "complete": self.complete,
            "summary": self.summary,
        }
