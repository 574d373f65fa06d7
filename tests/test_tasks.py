from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock, patch

from django.conf import settings
from django.core.cache import cache
from django.test import SimpleTestCase

from calaim_api import tasks
from members_core.core.application.dtos.sync_dto import SyncResultDTO
from sw_visits.adapters.config.composition_root import setup_di_container_from_settings
from sw_visits.core.domain.events.events import FlaggedVisitEvent


class EnqueueMembersRefreshTests(SimpleTestCase):
    def setUp(self) -> None:
        cache.clear()

    @patch.object(tasks.refresh_members_cache, "delay")
    def test_burst_is_collapsed(self, delay: MagicMock) -> None:
        self.assertTrue(tasks.enqueue_members_refresh("incremental"))
        self.assertFalse(tasks.enqueue_members_refresh("incremental"))
        self.assertTrue(tasks.enqueue_members_refresh("full", force=True))

        self.assertEqual(delay.call_count, 2)
        delay.assert_any_call("full", True)

    @patch.object(tasks.refresh_members_cache, "delay", side_effect=ConnectionError("broker down"))
    def test_broker_failure_is_reported(self, delay: MagicMock) -> None:
        self.assertFalse(tasks.enqueue_members_refresh())
        # the dedupe key is released so the next read can try again
        delay.side_effect = None
        self.assertTrue(tasks.enqueue_members_refresh())

    @patch.object(tasks, "enqueue_members_refresh", return_value=True)
    def test_beat_entry_validates_mode(self, enqueue: MagicMock) -> None:
        self.assertFalse(tasks.schedule_members_refresh("weekly"))
        enqueue.assert_not_called()
        self.assertTrue(tasks.schedule_members_refresh("full", True))
        enqueue.assert_called_once_with("full", force=True)


class RefreshMembersCacheTests(SimpleTestCase):
    def setUp(self) -> None:
        cache.clear()

    @patch.object(tasks, "_command_bus")
    def test_runs_one_sync(self, command_bus: MagicMock) -> None:
        command_bus.return_value.dispatch.return_value = SyncResultDTO(mode="full", count=12, last_sync_time=None)

        result = tasks.refresh_members_cache("full", True)

        self.assertEqual(result["count"], 12)
        cmd = command_bus.return_value.dispatch.call_args.args[0]
        self.assertEqual((cmd.mode, cmd.force), ("full", True))
        # lock released
        self.assertTrue(cache.add("locks:members_cache:sync", "x", 10))

    def test_sync_lock_is_exclusive(self) -> None:
        with tasks.sync_lock() as first:
            with tasks.sync_lock() as second:
                self.assertTrue(first)
                self.assertFalse(second)
        with tasks.sync_lock() as again:
            self.assertTrue(again)


def _flagged() -> FlaggedVisitEvent:
    return FlaggedVisitEvent(
        visit_id="visit-1",
        member_id="C-1001",
        member_name="Rosie Cotton",
        rcfe_name="Green Dragon Care Home",
        rcfe_address="1 Bywater Rd",
        staff_name="Frodo Baggins",
        staff_email="frodo@shire.org",
        visit_date=date(2026, 10, 6),
        total_score=20,
        urgency="immediate",
        flag_reasons=("Low overall score (20)",),
        assignment_texts=("Baggins, Frodo",),
    )


class FlaggedVisitAlertTaskTests(SimpleTestCase):
    @patch.object(tasks.notify_flagged_visit, "delay")
    def test_alert_is_queued_as_json(self, delay: MagicMock) -> None:
        self.assertTrue(tasks.enqueue_flagged_visit_alert(_flagged()))

        payload = delay.call_args.args[0]
        self.assertEqual(payload["visit_date"], "2026-10-06")
        self.assertEqual(payload["flag_reasons"], ["Low overall score (20)"])

    @patch.object(tasks.notify_flagged_visit, "delay", side_effect=ConnectionError("broker down"))
    def test_broker_failure_is_reported(self, _delay: MagicMock) -> None:
        self.assertFalse(tasks.enqueue_flagged_visit_alert(_flagged()))

    @patch.object(tasks, "_visit_notifications")
    def test_worker_rebuilds_the_event(self, notifications: MagicMock) -> None:
        notifications.return_value.notify_flagged.return_value = True

        self.assertTrue(tasks.notify_flagged_visit(_flagged().to_payload()))

        event = notifications.return_value.notify_flagged.call_args.args[0]
        self.assertEqual(event.visit_date, date(2026, 10, 6))
        self.assertEqual(event.assignment_texts, ("Baggins, Frodo",))
        self.assertEqual(event.urgency, "immediate")

    def test_ingestion_publishes_through_the_queue(self) -> None:
        ingestion = setup_di_container_from_settings(settings).ingestion()
        self.assertIs(ingestion.alert_publisher, tasks.enqueue_flagged_visit_alert)
