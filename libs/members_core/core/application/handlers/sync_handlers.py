from __future__ import annotations

import structlog

from members_core.core.application.commands.sync_commands import (
    SyncMembersCacheCommand,
    UpsertStaffDirectoryCommand,
)
from members_core.core.application.cqrs import CommandHandler
from members_core.core.application.dtos.sync_dto import SyncResultDTO
from members_core.core.application.services.members_cache_service import MembersCacheService
from members_core.core.application.services.staff_directory_service import StaffDirectoryService
from members_core.core.domain.events.events import StaffDirectoryUpdatedEvent
from members_core.core.domain.services.event_dispatcher import EventDispatcher

logger = structlog.get_logger(__name__)


class SyncMembersCacheHandler(CommandHandler[SyncMembersCacheCommand]):
    """Runs one members cache sync; infrastructure errors propagate to the caller (task retry)."""

    def __init__(self, cache_service: MembersCacheService) -> None:
        self.cache_service = cache_service

    def handle(self, cmd: SyncMembersCacheCommand) -> SyncResultDTO:
        logger.info("members_sync.command", mode=cmd.mode, since=str(cmd.since), force=cmd.force)
        return self.cache_service.sync(mode=cmd.mode, since=cmd.since, force=cmd.force)


class UpsertStaffDirectoryHandler(CommandHandler[UpsertStaffDirectoryCommand]):
    def __init__(self, directory: StaffDirectoryService, dispatcher: EventDispatcher) -> None:
        self.directory = directory
        self.dispatcher = dispatcher

    def handle(self, cmd: UpsertStaffDirectoryCommand) -> int:
        upserted = self.directory.upsert_entries(cmd.entries)
        self.dispatcher.dispatch(StaffDirectoryUpdatedEvent(upserted=upserted))
        return upserted
