from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timedelta

import structlog
from django.utils import timezone

from members_core.adapters.api_clients.caspio_api_client import CaspioAPIClient, CaspioTokenProvider
from members_core.adapters.observability.metrics import (
    MEMBERS_SYNC_DURATION,
    MEMBERS_SYNC_FAILURES,
    MEMBERS_SYNC_ROWS,
)
from members_core.core.application.commands.sync_commands import (
    SYNC_MODE_FULL,
    SYNC_MODE_INCREMENTAL,
    SYNC_MODES,
)
from members_core.core.application.dtos.sync_dto import SyncResultDTO
from members_core.core.domain.entities.member_entity import MemberEntity
from members_core.core.domain.entities.sync_state_entity import MembersSyncStateEntity
from members_core.core.domain.events.events import (
    MembersCacheRefreshRequestedEvent,
    MembersCacheSyncedEvent,
)
from members_core.core.domain.exceptions import (
    CacheUnavailableError,
    CaspioAuthError,
    CaspioRequestError,
)
from members_core.core.domain.mappers.caspio_member_mapper import (
    CaspioMemberMapper,
    format_caspio_datetime,
)
from members_core.core.domain.repositories.member_cache_repository import MemberCacheRepository
from members_core.core.domain.repositories.sync_state_repository import SyncStateRepository
from members_core.core.domain.services.event_dispatcher import EventDispatcher

logger = structlog.get_logger(__name__)

CACHE_STATUS_FRESH = "fresh"
CACHE_STATUS_STALE = "stale"
CACHE_STATUS_EMPTY = "empty"


class MembersCacheService:
    """
    Local cache of the remote members table.

    `sync` pulls pages from Caspio and upserts them by `client_id`;
    `ensure_fresh` is what request paths call: it never blocks on the
    remote platform, it only enqueues a background refresh when stale.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        api_client: CaspioAPIClient,
        token_provider: CaspioTokenProvider,
        member_repo: MemberCacheRepository,
        state_repo: SyncStateRepository,
        dispatcher: EventDispatcher | None = None,
        refresh_scheduler: Callable[[str], bool] | None = None,
        page_size: int = 1000,
        max_pages: int = 50,
        ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self.api = api_client
        self.token_provider = token_provider
        self.member_repo = member_repo
        self.state_repo = state_repo
        self.dispatcher = dispatcher
        self.refresh_scheduler = refresh_scheduler
        self.page_size = page_size
        self.max_pages = max_pages
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    # ───────────────────────── freshness ─────────────────────────
    def state(self) -> MembersSyncStateEntity:
        return self.state_repo.get()

    def is_fresh(self) -> bool:
        return self.state_repo.get().is_fresh(self.clock(), self.ttl)

    def status(self) -> str:
        if self.member_repo.count() == 0:
            return CACHE_STATUS_EMPTY
        return CACHE_STATUS_FRESH if self.is_fresh() else CACHE_STATUS_STALE

    def ensure_fresh(self) -> str:
        """Current cache status; a stale cache gets a background refresh enqueued."""
        status = self.status()
        if status == CACHE_STATUS_STALE:
            self.request_refresh(SYNC_MODE_INCREMENTAL, reason="stale")
        return status

    def request_refresh(self, mode: str = SYNC_MODE_INCREMENTAL, reason: str = "stale") -> bool:
        if self.refresh_scheduler is None:
            logger.debug("members_cache.refresh_not_configured", mode=mode)
            return False
        try:
            enqueued = bool(self.refresh_scheduler(mode))
        except Exception as exc:  # noqa: BLE001
            logger.error("members_cache.refresh_enqueue_failed", mode=mode, error=str(exc))
            return False
        if enqueued and self.dispatcher:
            self.dispatcher.dispatch(MembersCacheRefreshRequestedEvent(mode=mode, reason=reason))
        return enqueued

    # ───────────────────────── reads ─────────────────────────
    def read(self, filter_fn: Callable[[MemberEntity], bool] | None = None) -> list[MemberEntity]:
        return [m for m in self.member_repo.iter_all() if filter_fn is None or filter_fn(m)]

    def get_member(self, client_id: str) -> MemberEntity | None:
        return self.member_repo.find_by_client_id(client_id)

    def count(self) -> int:
        return self.member_repo.count()

    # ───────────────────────── sync ─────────────────────────
    def sync(
        self,
        mode: str = SYNC_MODE_INCREMENTAL,
        since: datetime | None = None,
        force: bool = False,
    ) -> SyncResultDTO:
        if mode not in SYNC_MODES:
            raise ValueError(f"Unknown sync mode: {mode}")

        now = self.clock()
        state = self.state_repo.get()

        if not force and state.is_fresh(now, self.ttl) and self.member_repo.count() > 0:
            logger.info("members_sync.skipped_fresh", last_synced_at=str(state.last_synced_at))
            return SyncResultDTO(mode=mode, count=0, last_sync_time=state.last_synced_at, skipped=True)

        effective_mode, where = self._resolve_mode(mode, since or state.watermark)
        log = logger.bind(mode=effective_mode, requested_mode=mode, where=where)
        log.info("members_sync.start")
        started = time.perf_counter()

        try:
            token = self.token_provider.get_token()
        except CaspioAuthError as exc:
            self._record_failure(state, now, effective_mode, str(exc))
            MEMBERS_SYNC_FAILURES.labels(effective_mode, "auth").inc()
            log.error("members_sync.auth_failed", error=str(exc))
            raise CacheUnavailableError(f"Members cache unavailable: {exc}") from exc

        pages = fetched = upserted = skipped_missing_id = 0
        max_modified: datetime | None = None
        error: str | None = None

        try:
            for page_number, rows in self.api.iter_member_pages(
                token=token, page_size=self.page_size, max_pages=self.max_pages, where=where
            ):
                pages += 1
                fetched += len(rows)
                members: list[MemberEntity] = []
                for row in rows:
                    member = CaspioMemberMapper.map_row(row)
                    if member is None:
                        skipped_missing_id += 1
                        continue
                    members.append(member)
                    if member.date_modified and (max_modified is None or member.date_modified > max_modified):
                        max_modified = member.date_modified
                upserted += self.member_repo.upsert_many(members)
                log.debug("members_sync.page", page=page_number, rows=len(rows), upserted=len(members))
        except CaspioRequestError as exc:
            error = str(exc)
            if pages == 0:
                self._record_failure(state, now, effective_mode, error)
                MEMBERS_SYNC_FAILURES.labels(effective_mode, "unavailable").inc()
                log.error("members_sync.unavailable", error=error)
                raise CacheUnavailableError(f"Members cache unavailable: {exc}") from exc
            MEMBERS_SYNC_FAILURES.labels(effective_mode, "partial").inc()
            log.warning("members_sync.partial", pages=pages, upserted=upserted, error=error)

        complete = error is None
        # partial runs keep the old watermark so the next incremental re-reads the gap
        if complete:
            watermark = max(filter(None, [max_modified, state.watermark]), default=None) or now
        else:
            watermark = state.watermark

        state.last_synced_at = now
        state.last_run_at = now
        state.watermark = watermark
        state.last_mode = effective_mode
        state.complete = complete
        state.summary = {
            "fetched": fetched,
            "upserted": upserted,
            "skipped_missing_id": skipped_missing_id,
            "pages": pages,
            "error": error,
        }
        self.state_repo.save(state)

        MEMBERS_SYNC_ROWS.labels(effective_mode).inc(upserted)
        MEMBERS_SYNC_DURATION.labels(effective_mode).observe(time.perf_counter() - started)
        log.info(
            "members_sync.done",
            pages=pages,
            fetched=fetched,
            upserted=upserted,
            skipped_missing_id=skipped_missing_id,
            complete=complete,
        )

        if self.dispatcher:
            self.dispatcher.dispatch(
                MembersCacheSyncedEvent(
                    mode=effective_mode, upserted=upserted, complete=complete, last_sync_time=now
                )
            )

        return SyncResultDTO(
            mode=effective_mode,
            count=upserted,
            last_sync_time=now,
            complete=complete,
            fetched=fetched,
            skipped_missing_id=skipped_missing_id,
            pages=pages,
        )

    # ───────────────────────── helpers ─────────────────────────
    @staticmethod
    def _resolve_mode(mode: str, since: datetime | None) -> tuple[str, str | None]:
        """Incremental without any watermark degrades to a full sync."""
        if mode == SYNC_MODE_FULL or since is None:
            return SYNC_MODE_FULL, None
        return SYNC_MODE_INCREMENTAL, f"Date_Modified>'{format_caspio_datetime(since)}'"

    def _record_failure(
        self, state: MembersSyncStateEntity, now: datetime, mode: str, error: str
    ) -> None:
        state.last_run_at = now
        state.last_mode = mode
        state.complete = False
        state.summary = {**state.summary, "error": error}
        self.state_repo.save(state)
