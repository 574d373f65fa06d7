from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class SyncResultDTO:
    mode: str
    count: int
    last_sync_time: datetime | None
    complete: bool = True
    skipped: bool = False
    fetched: int = 0
    skipped_missing_id: int = 0
    pages: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "count": self.count,
            "lastSyncTime": self.last_sync_time.isoformat() if self.last_sync_time else None,
            "complete": self.complete,
            "skipped": self.skipped,
            "fetched": self.fetched,
            "skippedMissingId": self.skipped_missing_id,
            "pages": self.pages,
        }
