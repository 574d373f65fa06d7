from __future__ import annotations

import time
from contextlib import contextmanager

import structlog
from celery import Task, shared_task
from django.conf import settings
from django.core.cache import cache

from members_core.core.application.commands.sync_commands import (
    SYNC_MODE_FULL,
    SYNC_MODE_INCREMENTAL,
    SyncMembersCacheCommand,
)
from members_core.core.domain.exceptions import MembersCacheError
from sw_visits.core.domain.events.events import FlaggedVisitEvent

log = structlog.get_logger(__name__)

# ──────────────────────────────────────────────────────────────────────────
# Queues and parameters
# ──────────────────────────────────────────────────────────────────────────
QUEUE_MEMBERS_SYNC  = "members_sync"
QUEUE_NOTIFICATIONS = "notifications"
SYNC_LOCK_TTL_SEC   = 15 * 60      # one Caspio sweep at a time
ENQUEUE_DEDUPE_SEC  = 60           # collapses bursts of stale reads into one task
BUSY_RETRY_SECONDS  = 60


# ──────────────────────────────────────────────────────────────────────────
# Base Task with DLQ
# ──────────────────────────────────────────────────────────────────────────
class BaseTaskWithDLQ(Task):
    """
    Re-publishes the task on the dead letter queue once every retry failed.
    Skipped under `task_always_eager`, where there is no broker.
    """
    def on_failure(self, exc, task_id, args, kwargs, einfo):
        is_eager = bool(getattr(self.app.conf, "task_always_eager", False))
        if is_eager:
            log.critical(
                "task.failed_eager_mode",
                task=self.name, task_id=task_id, error=str(exc),
            )
        else:
            log.critical(
                "task.failed_dlq_redirect",
                task=self.name, task_id=task_id, error=str(exc),
                queue="dead_letter",
            )
            self.app.send_task(
                self.name,
                args=args,
                kwargs=kwargs,
                queue="dead_letter",
                routing_key="dead_letter",
            )
        super().on_failure(exc, task_id, args, kwargs, einfo)


# ──────────────────────────────────────────────────────────────────────────
# Distributed lock on the members sync
# ──────────────────────────────────────────────────────────────────────────
@contextmanager
def sync_lock(namespace: str = "members_cache", ttl: int = SYNC_LOCK_TTL_SEC):
    """Cache-backed mutual exclusion (Redis in production)."""
    key = f"locks:{namespace}:sync"
    acquired = cache.add(key, str(time.time()), ttl)
    try:
        yield acquired
    finally:
        if acquired:
            cache.delete(key)


def _command_bus():
    from members_core.adapters.config.composition_root import setup_di_container_from_settings

    return setup_di_container_from_settings(settings).command_bus()


# ──────────────────────────────────────────────────────────────────────────
# Members cache refresh
# ──────────────────────────────────────────────────────────────────────────
@shared_task(
    base=BaseTaskWithDLQ, bind=True, max_retries=3, default_retry_delay=120,
    acks_late=True, queue=QUEUE_MEMBERS_SYNC
)
def refresh_members_cache(self, mode: str = SYNC_MODE_INCREMENTAL, force: bool = False):
    """
    Pulls Caspio into the local members cache.
    A sync already running elsewhere postpones this one instead of overlapping it.
    """
    with sync_lock() as ok:
        if not ok:
            log.warning("members_sync.busy", mode=mode)
            raise self.retry(countdown=BUSY_RETRY_SECONDS)
        try:
            log.info("members_sync.start", mode=mode, force=force)
            result = _command_bus().dispatch(SyncMembersCacheCommand(mode=mode, force=force))
        except MembersCacheError as exc:
            log.error("members_sync.error", mode=mode, error=str(exc))
            raise self.retry(exc=exc)  # noqa: B904
    log.info("members_sync.ok", **result.to_dict())
    return result.to_dict()


def enqueue_members_refresh(mode: str = SYNC_MODE_INCREMENTAL, force: bool = False) -> bool:
    """
    Queues one refresh unless an identical request was queued in the last minute.
    Broker failures are logged and reported as `False`; reads never fail on them.
    """
    key = f"locks:members_cache:enqueue:{mode}"
    if not cache.add(key, str(time.time()), ENQUEUE_DEDUPE_SEC):
        log.debug("members_sync.enqueue_deduplicated", mode=mode)
        return False
    try:
        refresh_members_cache.delay(mode, force)
    except Exception as exc:  # noqa: BLE001
        cache.delete(key)
        log.error("members_sync.enqueue_failed", mode=mode, error=str(exc))
        return False
    log.info("members_sync.enqueued", mode=mode, force=force)
    return True


@shared_task(queue=QUEUE_MEMBERS_SYNC)
def schedule_members_refresh(mode: str = SYNC_MODE_INCREMENTAL, force: bool = False):
    """[Beat] hourly incremental refresh and the nightly forced full resync."""
    if mode not in (SYNC_MODE_FULL, SYNC_MODE_INCREMENTAL):
        log.error("members_sync.invalid_mode", mode=mode)
        return False
    return enqueue_members_refresh(mode, force=force)


# ──────────────────────────────────────────────────────────────────────────
# Flagged visit alerts
# ──────────────────────────────────────────────────────────────────────────
def _visit_notifications():
    from sw_visits.adapters.config.composition_root import setup_di_container_from_settings

    return setup_di_container_from_settings(settings).visit_notifications()


@shared_task(base=BaseTaskWithDLQ, acks_late=True, queue=QUEUE_NOTIFICATIONS)
def notify_flagged_visit(payload: dict):
    """E-mails supervisors and assigned staff about one flagged visit."""
    event = FlaggedVisitEvent.from_payload(payload)
    return _visit_notifications().notify_flagged(event)


def enqueue_flagged_visit_alert(event: FlaggedVisitEvent) -> bool:
    """
    Hands the alert to the worker so provider retries never hold a request.
    Broker failures are logged and reported as `False`; the visit is already committed.
    """
    try:
        notify_flagged_visit.delay(event.to_payload())
    except Exception as exc:  # noqa: BLE001
        log.error("visit_alert.enqueue_failed", visit_id=event.visit_id, error=str(exc))
        return False
    log.info("visit_alert.enqueued", visit_id=event.visit_id, urgency=event.urgency)
    return True
