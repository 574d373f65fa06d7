from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


# ───────────────────────────────────────────────
# Base event
# ───────────────────────────────────────────────
@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

# ╭──────────────────────────────────────────────╮
# │ 1. Members cache                            │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class MembersCacheSyncedEvent(DomainEvent):
    mode: str
    upserted: int
    complete: bool
    last_sync_time: datetime

@dataclass(frozen=True)
class MembersCacheRefreshRequestedEvent(DomainEvent):
    mode: str
    reason: str

# ╭──────────────────────────────────────────────╮
# │ 2. Staff directory                          │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class StaffDirectoryUpdatedEvent(DomainEvent):
    upserted: int
