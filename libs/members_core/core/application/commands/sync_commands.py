from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from members_core.core.application.cqrs import CommandDTO

SYNC_MODE_FULL = "full"
SYNC_MODE_INCREMENTAL = "incremental"
SYNC_MODES = (SYNC_MODE_FULL, SYNC_MODE_INCREMENTAL)


@dataclass(frozen=True)
class SyncMembersCacheCommand(CommandDTO):
    mode: str = SYNC_MODE_INCREMENTAL
    since: datetime | None = None
    force: bool = False


@dataclass(frozen=True)
class UpsertStaffDirectoryCommand(CommandDTO):
    """Entries shaped `{email, name, sw_id?, phone?, is_active?, is_supervisor?}`."""
    entries: tuple[dict, ...] = field(default_factory=tuple)
